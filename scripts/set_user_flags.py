"""Grant/revoke admin or restrict/unrestrict a user.

Usage: python scripts/set_user_flags.py <email_or_username> [--admin|--no-admin] [--restrict|--unrestrict]
"""
import asyncio
import os
import sys

# Add project root to sys.path
sys.path.append(os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from sqlalchemy import select
from community.db.session import async_session_maker, engine
from community.models.user import User

FLAGS = {
    "--admin": ("is_superadmin", True),
    "--no-admin": ("is_superadmin", False),
    "--restrict": ("is_restricted", True),
    "--unrestrict": ("is_restricted", False),
}


async def set_flags(identifier: str, changes: list[tuple[str, bool]]):
    async with async_session_maker() as session:
        if "@" in identifier:
            stmt = select(User).where(User.email == identifier)
        else:
            stmt = select(User).where(User.username == identifier)
        result = await session.execute(stmt)
        user = result.scalar_one_or_none()

        if not user:
            print(f"Error: User '{identifier}' not found.")
            return

        for attr, value in changes:
            setattr(user, attr, value)
        await session.commit()
        print(f"{user.username} ({user.email}): admin={user.is_superadmin}, restricted={user.is_restricted}")
    await engine.dispose()


if __name__ == "__main__":
    if len(sys.argv) < 2:
        print(__doc__)
        sys.exit(1)

    target = sys.argv[1]
    unknown = [a for a in sys.argv[2:] if a not in FLAGS]
    if unknown:
        print(f"Unknown option(s): {' '.join(unknown)}")
        sys.exit(1)
    asyncio.run(set_flags(target, [FLAGS[a] for a in sys.argv[2:]]))
