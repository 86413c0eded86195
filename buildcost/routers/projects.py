"""Project, project viewer and project budget endpoints."""

from uuid import UUID

from fastapi import APIRouter, Depends, Response, status
from sqlalchemy.orm import Session

from buildcost.core.deps import get_db, get_request_context, require_csrf_header
from buildcost.schemas.auth import RequestContext
from buildcost.schemas.project import ProjectCreate, ProjectRead, ProjectUpdate, ViewerAdd
from buildcost.services import budget_service, project_service

router = APIRouter()


# =============================================================================
# Projects
# =============================================================================

@router.get("")
def list_projects(
    organization_id: UUID | None = None,
    ctx: RequestContext = Depends(get_request_context),
    db: Session = Depends(get_db),
):
    """
    ADMIN/MEMBER see every project of the organization; VIEWERs see the
    projects they created or were granted.
    """
    projects = project_service.list_projects(db, ctx, organization_id)
    return {"projects": [ProjectRead.model_validate(p) for p in projects]}


@router.post(
    "",
    status_code=status.HTTP_201_CREATED,
    dependencies=[Depends(require_csrf_header)],
)
def create_project(
    data: ProjectCreate,
    ctx: RequestContext = Depends(get_request_context),
    db: Session = Depends(get_db),
):
    project = project_service.create_project(db, ctx, data)
    db.commit()
    return {"project": ProjectRead.model_validate(project)}


@router.get("/{project_id}")
def get_project(
    project_id: UUID,
    ctx: RequestContext = Depends(get_request_context),
    db: Session = Depends(get_db),
):
    project = project_service.get_viewable_project(db, ctx, project_id)
    return {"project": ProjectRead.model_validate(project)}


@router.patch("/{project_id}", dependencies=[Depends(require_csrf_header)])
def update_project(
    project_id: UUID,
    data: ProjectUpdate,
    ctx: RequestContext = Depends(get_request_context),
    db: Session = Depends(get_db),
):
    project = project_service.update_project(db, ctx, project_id, data)
    db.commit()
    return {"project": ProjectRead.model_validate(project)}


@router.delete(
    "/{project_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    dependencies=[Depends(require_csrf_header)],
)
def delete_project(
    project_id: UUID,
    ctx: RequestContext = Depends(get_request_context),
    db: Session = Depends(get_db),
):
    project_service.delete_project(db, ctx, project_id)
    db.commit()
    return Response(status_code=status.HTTP_204_NO_CONTENT)


# =============================================================================
# Viewers
# =============================================================================

@router.get("/{project_id}/viewers")
def list_viewers(
    project_id: UUID,
    ctx: RequestContext = Depends(get_request_context),
    db: Session = Depends(get_db),
):
    return {"viewers": project_service.list_viewers(db, ctx, project_id)}


@router.post(
    "/{project_id}/viewers",
    status_code=status.HTTP_201_CREATED,
    dependencies=[Depends(require_csrf_header)],
)
def add_viewer(
    project_id: UUID,
    data: ViewerAdd,
    ctx: RequestContext = Depends(get_request_context),
    db: Session = Depends(get_db),
):
    """Grant a VIEWER member read access to this project."""
    viewer = project_service.add_viewer(db, ctx, project_id, data.user_id)
    db.commit()
    return {"viewer": viewer}


@router.delete(
    "/{project_id}/viewers/{viewer_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    dependencies=[Depends(require_csrf_header)],
)
def remove_viewer(
    project_id: UUID,
    viewer_id: UUID,
    ctx: RequestContext = Depends(get_request_context),
    db: Session = Depends(get_db),
):
    project_service.remove_viewer(db, ctx, project_id, viewer_id)
    db.commit()
    return Response(status_code=status.HTTP_204_NO_CONTENT)


# =============================================================================
# Budgets
# =============================================================================

@router.get("/{project_id}/budgets")
def list_project_budgets(
    project_id: UUID,
    ctx: RequestContext = Depends(get_request_context),
    db: Session = Depends(get_db),
):
    budgets = budget_service.list_project_budgets(db, ctx, project_id)
    return {"budgets": [budget_service.to_read(b) for b in budgets]}
