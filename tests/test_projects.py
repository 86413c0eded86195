"""Tests for projects and project viewer grants."""

import uuid
from datetime import date

import pytest

from buildcost.core.config import settings
from buildcost.core.errors import Conflict, Forbidden, NotFound, ValidationError
from buildcost.db.enums import Role
from buildcost.db.models import BudgetProject, Project, ProjectViewer
from buildcost.schemas.budget import BudgetCreate
from buildcost.schemas.project import ProjectCreate, ProjectUpdate
from buildcost.services import budget_service, project_service

from conftest import context_for, make_user


def _project(db, ctx, name="House", **kwargs):
    return project_service.create_project(db, ctx, ProjectCreate(name=name, **kwargs))


def test_create_records_creator(db, admin_ctx, test_user, test_org):
    project = _project(db, admin_ctx)
    assert project.organization_id == test_org.id
    assert project.created_by_user_id == test_user.id
    assert project.status == "PLANNING"


def test_project_limit(db, admin_ctx, monkeypatch):
    monkeypatch.setattr(settings, "MAX_PROJECTS_PER_ORG", 2)
    _project(db, admin_ctx, "One")
    _project(db, admin_ctx, "Two")

    with pytest.raises(Forbidden) as exc_info:
        _project(db, admin_ctx, "Three")
    assert exc_info.value.details == {"limit": 2, "total": 2}


def test_unlimited_projects_when_limit_disabled(db, admin_ctx, monkeypatch):
    monkeypatch.setattr(settings, "MAX_PROJECTS_PER_ORG", 0)
    for n in range(3):
        _project(db, admin_ctx, f"Project {n}")
    assert db.query(Project).count() == 3


def test_viewer_cannot_create(db, viewer_ctx):
    with pytest.raises(Forbidden):
        _project(db, viewer_ctx)


def test_update_rejects_inverted_dates(db, admin_ctx):
    project = _project(db, admin_ctx, start_date=date(2026, 5, 1))
    with pytest.raises(ValidationError):
        project_service.update_project(
            db, admin_ctx, project.id, ProjectUpdate(end_date=date(2026, 4, 1))
        )


def test_member_can_delete_and_cascade(db, admin_ctx, member_ctx, viewer_user):
    project = _project(db, admin_ctx)
    project_service.add_viewer(db, admin_ctx, project.id, viewer_user.id)
    budget_service.create_budget(
        db, admin_ctx, BudgetCreate(title="Budget", project_id=project.id)
    )

    project_service.delete_project(db, member_ctx, project.id)

    assert db.get(Project, project.id) is None
    assert db.query(ProjectViewer).count() == 0
    assert db.query(BudgetProject).count() == 0


# =============================================================================
# Visibility
# =============================================================================

def test_viewer_sees_only_granted_projects(db, admin_ctx, viewer_ctx, viewer_user):
    shared = _project(db, admin_ctx, "Shared")
    hidden = _project(db, admin_ctx, "Hidden")
    project_service.add_viewer(db, admin_ctx, shared.id, viewer_user.id)

    visible = project_service.list_projects(db, viewer_ctx)
    assert [p.id for p in visible] == [shared.id]

    assert project_service.get_viewable_project(db, viewer_ctx, shared.id).id == shared.id
    with pytest.raises(Forbidden):
        project_service.get_viewable_project(db, viewer_ctx, hidden.id)


def test_member_sees_every_project(db, admin_ctx, member_ctx):
    _project(db, admin_ctx, "A")
    _project(db, admin_ctx, "B")
    assert len(project_service.list_projects(db, member_ctx)) == 2


# =============================================================================
# Viewer grants
# =============================================================================

def test_add_viewer_requires_viewer_role(db, admin_ctx, member_user):
    project = _project(db, admin_ctx)
    with pytest.raises(ValidationError) as exc_info:
        project_service.add_viewer(db, admin_ctx, project.id, member_user.id)
    assert exc_info.value.message == "Only viewers need explicit project access"


def test_add_viewer_requires_membership(db, admin_ctx):
    project = _project(db, admin_ctx)
    stranger = make_user(db)
    with pytest.raises(ValidationError):
        project_service.add_viewer(db, admin_ctx, project.id, stranger.id)


def test_add_viewer_twice(db, admin_ctx, viewer_user):
    project = _project(db, admin_ctx)
    project_service.add_viewer(db, admin_ctx, project.id, viewer_user.id)
    with pytest.raises(Conflict):
        project_service.add_viewer(db, admin_ctx, project.id, viewer_user.id)


def test_remove_viewer(db, admin_ctx, viewer_user):
    project = _project(db, admin_ctx)
    other = _project(db, admin_ctx, "Other")
    grant = project_service.add_viewer(db, admin_ctx, project.id, viewer_user.id)

    with pytest.raises(ValidationError):
        project_service.remove_viewer(db, admin_ctx, other.id, grant.id)

    project_service.remove_viewer(db, admin_ctx, project.id, grant.id)
    assert project_service.list_viewers(db, admin_ctx, project.id) == []

    with pytest.raises(NotFound):
        project_service.remove_viewer(db, admin_ctx, project.id, uuid.uuid4())


def test_viewer_created_project_visible_to_creator(db, test_org, admin_ctx):
    # Demoted to VIEWER, the creator still sees their own project
    user = make_user(db, test_org, Role.MEMBER)
    project = _project(db, context_for(db, user, test_org))
    membership = user.memberships[0]
    membership.role = Role.VIEWER.value
    db.flush()

    ctx = context_for(db, user, test_org)
    assert [p.id for p in project_service.list_projects(db, ctx)] == [project.id]


# =============================================================================
# API
# =============================================================================

async def test_project_crud_api(authed_client):
    response = await authed_client.post(
        "/projects",
        json={
            "name": "Office",
            "project_type": "COMMERCIAL",
            "client_email": "owner@acme-builders.com",
        },
    )
    assert response.status_code == 201
    project = response.json()["project"]
    assert project["status"] == "PLANNING"

    response = await authed_client.patch(
        f"/projects/{project['id']}", json={"status": "IN_PROGRESS"}
    )
    assert response.status_code == 200
    assert response.json()["project"]["status"] == "IN_PROGRESS"

    response = await authed_client.delete(f"/projects/{project['id']}")
    assert response.status_code == 204

    response = await authed_client.get(f"/projects/{project['id']}")
    assert response.status_code == 404
    assert response.json()["error"]["kind"] == "not_found"


async def test_invalid_date_range_rejected(authed_client):
    response = await authed_client.post(
        "/projects",
        json={"name": "Bad", "start_date": "2026-05-01", "end_date": "2026-04-01"},
    )
    assert response.status_code == 400


async def test_viewer_grant_api(db, authed_client, admin_ctx, viewer_user):
    project = _project(db, admin_ctx)
    response = await authed_client.post(
        f"/projects/{project.id}/viewers", json={"user_id": str(viewer_user.id)}
    )
    assert response.status_code == 201
    assert response.json()["viewer"]["email"] == viewer_user.email

    response = await authed_client.get(f"/projects/{project.id}/viewers")
    assert [v["user_id"] for v in response.json()["viewers"]] == [str(viewer_user.id)]
