"""Identity gate: token -> caller, plus the ownership and restriction checks."""
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from community.core.exceptions import ForbiddenError, NotFoundError, UnauthorizedError
from community.core.security import decode_token
from community.models.user import User
from community.schemas.user import CallerIdentity


async def get_user(db: AsyncSession, user_id: int) -> User | None:
    result = await db.execute(select(User).where(User.id == user_id))
    return result.scalar_one_or_none()


async def get_user_or_404(db: AsyncSession, user_id: int) -> User:
    user = await get_user(db, user_id)
    if user is None:
        raise NotFoundError("User not found", "user_not_found")
    return user


async def get_user_from_token(db: AsyncSession, token: str) -> User:
    payload = decode_token(token)
    if not payload or payload.get("type") != "access":
        raise UnauthorizedError("Invalid or expired token", "invalid_token")
    sub = payload.get("sub")
    if not sub or not str(sub).isdigit():
        raise UnauthorizedError("Invalid or expired token", "invalid_token")
    user = await get_user(db, int(sub))
    if user is None:
        raise UnauthorizedError("Unknown user", "invalid_token")
    return user


async def resolve_caller(db: AsyncSession, token: str) -> CallerIdentity:
    user = await get_user_from_token(db, token)
    return CallerIdentity(
        user_id=user.id,
        email=user.email,
        is_admin=user.is_admin,
        is_restricted=bool(user.is_restricted),
    )


def ensure_can_write(user: User) -> None:
    if user.is_restricted:
        raise ForbiddenError("Your account has been restricted by the administrators", "user_restricted")


def ensure_owner_or_admin(user: User, owner_id: int) -> None:
    if user.id != owner_id and not user.is_admin:
        raise ForbiddenError("Only the author or an administrator can do this", "not_owner")


async def get_active_user(db: AsyncSession, user_id: int) -> User:
    """Load a user that may write: exists and is not restricted."""
    user = await get_user_or_404(db, user_id)
    ensure_can_write(user)
    return user
