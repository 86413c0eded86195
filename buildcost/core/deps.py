"""FastAPI dependencies for authentication, request context, and database access."""

from typing import Generator

import jwt
from fastapi import Depends, Request
from sqlalchemy.orm import Session

from buildcost.core.errors import Forbidden, NotAuthenticated
from buildcost.core.security import decode_session_token
from buildcost.db.session import SessionLocal


# Cookie and header names
COOKIE_NAME = "buildcost_session"
CSRF_HEADER = "X-Requested-With"
CSRF_HEADER_VALUE = "XMLHttpRequest"


def get_db() -> Generator[Session, None, None]:
    """
    Database session dependency.

    Yields a database session and ensures it's closed after the request.
    Uncommitted work is rolled back on close.
    """
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def _read_token(request: Request) -> str | None:
    token = request.cookies.get(COOKIE_NAME)
    if token:
        return token
    auth = request.headers.get("Authorization", "")
    if auth.lower().startswith("bearer "):
        return auth[7:].strip() or None
    return None


def get_current_user(
    request: Request,
    db: Session = Depends(get_db),
):
    """
    Get authenticated user from session cookie or bearer token.

    Validates:
    - Token exists
    - JWT is valid and not expired
    - User exists and is active
    - Token version matches (for revocation support)

    Raises:
        NotAuthenticated: Authentication failed
    """
    from buildcost.db.models import User
    from buildcost.schemas.auth import TokenPayload

    token = _read_token(request)
    if not token:
        raise NotAuthenticated("Not authenticated")

    try:
        payload = TokenPayload.model_validate(decode_session_token(token))
    except (jwt.InvalidTokenError, ValueError):
        raise NotAuthenticated("Invalid session")

    user = db.get(User, payload.sub)
    if not user:
        raise NotAuthenticated("User not found")

    if not user.is_active:
        raise NotAuthenticated("Account disabled")

    # Token version check (revocation support)
    if user.token_version != payload.token_version:
        raise NotAuthenticated("Session revoked")

    request.state.user = user
    request.state.token_org_id = payload.org_id
    return user


def get_request_context(
    request: Request,
    db: Session = Depends(get_db),
):
    """
    Build the RequestContext for the caller.

    This is the PRIMARY auth dependency for most endpoints. The active
    organization from the token is dropped if the membership no longer exists.
    """
    from buildcost.db.enums import Role
    from buildcost.db.models import Membership
    from buildcost.schemas.auth import RequestContext

    user = get_current_user(request, db)

    memberships = {}
    for membership in db.query(Membership).filter(Membership.user_id == user.id):
        # Unknown role strings are a data problem: refuse rather than guess
        if not Role.has_value(membership.role):
            raise Forbidden(
                f"Unknown role '{membership.role}'. Contact administrator."
            )
        memberships[membership.organization_id] = Role(membership.role)

    active_org_id = request.state.token_org_id
    if active_org_id not in memberships:
        active_org_id = None

    ctx = RequestContext(
        user_id=user.id,
        active_org_id=active_org_id,
        memberships=memberships,
    )
    request.state.ctx = ctx
    return ctx


def require_csrf_header(request: Request) -> None:
    """
    Verify CSRF header on mutations.

    Apply to state-changing endpoints (POST, PATCH, PUT, DELETE).

    Raises:
        Forbidden: Missing or invalid CSRF header
    """
    if request.headers.get(CSRF_HEADER) != CSRF_HEADER_VALUE:
        raise Forbidden(
            f"Missing CSRF header. Include '{CSRF_HEADER}: {CSRF_HEADER_VALUE}'"
        )
