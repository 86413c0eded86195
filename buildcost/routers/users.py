"""User lookup endpoints (member invitation picker)."""

from fastapi import APIRouter, Depends, Query, Request
from sqlalchemy.orm import Session

from buildcost.core.config import settings
from buildcost.core.deps import get_db, get_request_context
from buildcost.core.rate_limit import limiter
from buildcost.schemas.auth import RequestContext
from buildcost.schemas.user import UserRead
from buildcost.services import user_service

router = APIRouter()


@router.get("/search")
@limiter.limit(f"{settings.RATE_LIMIT_SEARCH}/minute")
def search_users(
    request: Request,
    q: str = Query("", max_length=255),
    limit: int = Query(10, ge=1, le=50),
    ctx: RequestContext = Depends(get_request_context),
    db: Session = Depends(get_db),
):
    """Find users by email or display name, excluding the caller."""
    users = user_service.search_users(db, q, exclude_user_id=ctx.user_id, limit=limit)
    return {"users": [UserRead.model_validate(u) for u in users]}
