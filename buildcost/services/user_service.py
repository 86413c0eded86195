"""User service - identity records (authentication is external)."""

from uuid import UUID

from sqlalchemy import func, or_, select
from sqlalchemy.orm import Session

from buildcost.core.errors import Conflict, NotFound
from buildcost.db.models import User


def get_user(db: Session, user_id: UUID) -> User:
    user = db.get(User, user_id)
    if not user:
        raise NotFound("User not found")
    return user


def get_user_by_email(db: Session, email: str) -> User | None:
    return db.scalar(select(User).where(func.lower(User.email) == email.lower()))


def create_user(db: Session, email: str, display_name: str) -> User:
    if get_user_by_email(db, email):
        raise Conflict(f"User with email '{email}' already exists")
    user = User(email=email.lower(), display_name=display_name)
    db.add(user)
    db.flush()
    return user


def search_users(
    db: Session,
    query: str,
    exclude_user_id: UUID | None = None,
    limit: int = 10,
) -> list[User]:
    """Case-insensitive match on email or display name; short queries match nothing."""
    query = query.strip()
    if len(query) < 2:
        return []
    pattern = f"%{query.lower()}%"
    stmt = select(User).where(
        User.is_active.is_(True),
        or_(func.lower(User.email).like(pattern), func.lower(User.display_name).like(pattern)),
    )
    if exclude_user_id:
        stmt = stmt.where(User.id != exclude_user_id)
    return list(db.scalars(stmt.order_by(User.email).limit(limit)).all())


def revoke_sessions(db: Session, user: User) -> None:
    """Invalidate every issued session token for the user."""
    user.token_version += 1
    db.flush()
