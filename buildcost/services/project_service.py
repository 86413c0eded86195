"""Project service - contractor projects and explicit viewer grants."""

import logging
from uuid import UUID

from sqlalchemy import func, or_, select
from sqlalchemy.orm import Session

from buildcost.core import permissions
from buildcost.core.config import settings
from buildcost.core.errors import Conflict, Forbidden, NotFound, ValidationError
from buildcost.db.enums import ROLES_CAN_EDIT, OrganizationType, Role
from buildcost.db.models import Project, ProjectViewer, User
from buildcost.schemas.auth import RequestContext
from buildcost.schemas.project import ProjectCreate, ProjectUpdate, ViewerRead
from buildcost.services import membership_service, user_service

logger = logging.getLogger(__name__)


# =============================================================================
# Access helpers
# =============================================================================

def _load(db: Session, project_id: UUID) -> Project:
    project = db.get(Project, project_id)
    if not project:
        raise NotFound("Project not found")
    return project


def has_viewer_grant(db: Session, project_id: UUID, user_id: UUID) -> bool:
    return db.scalar(
        select(ProjectViewer.id).where(
            ProjectViewer.project_id == project_id,
            ProjectViewer.user_id == user_id,
        )
    ) is not None


def can_view_project(db: Session, ctx: RequestContext, project: Project) -> bool:
    """
    ADMIN/MEMBER see every project of their org; a VIEWER sees projects they
    created or were explicitly granted.
    """
    role = ctx.role_in(project.organization_id)
    if role is None:
        return False
    if role in ROLES_CAN_EDIT:
        return True
    return project.created_by_user_id == ctx.user_id or has_viewer_grant(
        db, project.id, ctx.user_id
    )


def get_viewable_project(db: Session, ctx: RequestContext, project_id: UUID) -> Project:
    project = _load(db, project_id)
    if not can_view_project(db, ctx, project):
        raise Forbidden("You do not have access to this project")
    return project


def get_editable_project(db: Session, ctx: RequestContext, project_id: UUID) -> Project:
    project = _load(db, project_id)
    permissions.require_editor(ctx, project.organization_id)
    return project


def count_projects(db: Session, org_id: UUID) -> int:
    return db.scalar(
        select(func.count()).select_from(Project).where(Project.organization_id == org_id)
    ) or 0


# =============================================================================
# CRUD
# =============================================================================

def list_projects(
    db: Session,
    ctx: RequestContext,
    organization_id: UUID | None = None,
) -> list[Project]:
    org_id = permissions.resolve_org_id(ctx, organization_id)
    role = permissions.require_member(ctx, org_id)

    stmt = select(Project).where(Project.organization_id == org_id)
    if role == Role.VIEWER:
        granted = select(ProjectViewer.project_id).where(ProjectViewer.user_id == ctx.user_id)
        stmt = stmt.where(
            or_(Project.created_by_user_id == ctx.user_id, Project.id.in_(granted))
        )
    stmt = stmt.order_by(Project.updated_at.desc(), Project.id)
    return list(db.scalars(stmt).all())


def create_project(db: Session, ctx: RequestContext, data: ProjectCreate) -> Project:
    org_id = permissions.resolve_org_id(ctx, data.organization_id)
    permissions.require_editor(ctx, org_id)
    permissions.require_org_type(db, org_id, OrganizationType.CONTRACTOR, "projects")

    limit = settings.MAX_PROJECTS_PER_ORG
    if limit > 0:
        total = count_projects(db, org_id)
        if total >= limit:
            raise Forbidden(
                f"Your organization has reached the limit of {limit} projects",
                details={"limit": limit, "total": total},
            )

    values = data.model_dump(exclude={"organization_id"})
    values["status"] = data.status.value
    values["project_type"] = data.project_type.value if data.project_type else None
    project = Project(organization_id=org_id, created_by_user_id=ctx.user_id, **values)
    db.add(project)
    db.flush()
    logger.info(
        "Created project",
        extra={"project_id": str(project.id), "org_id": str(org_id)},
    )
    return project


def update_project(
    db: Session,
    ctx: RequestContext,
    project_id: UUID,
    data: ProjectUpdate,
) -> Project:
    project = get_editable_project(db, ctx, project_id)
    patch = data.model_dump(exclude_unset=True)
    for field in ("name", "status"):
        if field in patch and patch[field] is None:
            raise ValidationError(f"{field} cannot be null")

    for field, value in patch.items():
        setattr(project, field, getattr(value, "value", value))

    if project.start_date and project.end_date and project.end_date < project.start_date:
        raise ValidationError("end_date must not be before start_date")
    db.flush()
    return project


def delete_project(db: Session, ctx: RequestContext, project_id: UUID) -> None:
    """Delete a project; viewer grants and budget links go with it."""
    project = get_editable_project(db, ctx, project_id)
    db.delete(project)
    db.flush()
    logger.info("Deleted project", extra={"project_id": str(project_id)})


# =============================================================================
# Viewers
# =============================================================================

def _viewer_read(grant: ProjectViewer, user: User) -> ViewerRead:
    return ViewerRead(
        id=grant.id,
        project_id=grant.project_id,
        user_id=user.id,
        email=user.email,
        display_name=user.display_name,
        created_at=grant.created_at,
    )


def list_viewers(db: Session, ctx: RequestContext, project_id: UUID) -> list[ViewerRead]:
    get_editable_project(db, ctx, project_id)
    rows = db.execute(
        select(ProjectViewer, User)
        .join(User, User.id == ProjectViewer.user_id)
        .where(ProjectViewer.project_id == project_id)
        .order_by(ProjectViewer.created_at, User.email)
    ).all()
    return [_viewer_read(grant, user) for grant, user in rows]


def add_viewer(
    db: Session,
    ctx: RequestContext,
    project_id: UUID,
    user_id: UUID,
) -> ViewerRead:
    """Grant a VIEWER member of the project's organization read access."""
    project = get_editable_project(db, ctx, project_id)
    user = user_service.get_user(db, user_id)

    if has_viewer_grant(db, project.id, user.id):
        raise Conflict("User is already a viewer of this project")

    membership = membership_service.get_membership(db, project.organization_id, user.id)
    if not membership:
        raise ValidationError("User is not a member of the organization")
    if membership.role != Role.VIEWER.value:
        raise ValidationError("Only viewers need explicit project access")

    grant = ProjectViewer(project_id=project.id, user_id=user.id)
    db.add(grant)
    db.flush()
    return _viewer_read(grant, user)


def remove_viewer(
    db: Session,
    ctx: RequestContext,
    project_id: UUID,
    viewer_id: UUID,
) -> None:
    get_editable_project(db, ctx, project_id)
    grant = db.get(ProjectViewer, viewer_id)
    if not grant:
        raise NotFound("Viewer not found")
    if grant.project_id != project_id:
        raise ValidationError("Viewer does not belong to this project")
    db.delete(grant)
    db.flush()
