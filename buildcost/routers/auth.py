"""Session endpoints: current user, active organization switch, logout."""

from fastapi import APIRouter, Depends, Response
from sqlalchemy.orm import Session

from buildcost.core.config import settings
from buildcost.core.deps import COOKIE_NAME, get_db, get_request_context, require_csrf_header
from buildcost.schemas.auth import MeResponse, RequestContext, SwitchOrgRequest
from buildcost.services import auth_service, user_service

router = APIRouter()


def set_session_cookie(response: Response, token: str) -> None:
    response.set_cookie(
        key=COOKIE_NAME,
        value=token,
        max_age=settings.JWT_EXPIRES_HOURS * 3600,
        httponly=True,
        samesite="lax",
        secure=settings.cookie_secure,
        path="/",
    )


@router.get("/me")
def get_me(
    ctx: RequestContext = Depends(get_request_context),
    db: Session = Depends(get_db),
) -> MeResponse:
    """
    Get current authenticated user info.

    Returns the user profile, active organization and every membership.
    """
    user = user_service.get_user(db, ctx.user_id)
    return auth_service.build_me(db, user, ctx)


@router.post("/switch-org", dependencies=[Depends(require_csrf_header)])
def switch_org(
    data: SwitchOrgRequest,
    response: Response,
    ctx: RequestContext = Depends(get_request_context),
    db: Session = Depends(get_db),
):
    """
    Bind the session to another organization the user belongs to.

    Re-issues the session token; it is set as the cookie and also returned
    for bearer-token clients.
    """
    user = user_service.get_user(db, ctx.user_id)
    token = auth_service.switch_active_org(db, user, data.organization_id)
    set_session_cookie(response, token)
    return {"active_org_id": data.organization_id, "token": token}


@router.post("/logout", dependencies=[Depends(require_csrf_header)])
def logout(
    response: Response,
    ctx: RequestContext = Depends(get_request_context),
):
    """Clear session cookie."""
    response.delete_cookie(COOKIE_NAME, path="/")
    return {"status": "logged_out"}
