# crud/user.py
from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import or_, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from models import User


async def get_active_user(db: AsyncSession, user_id: str) -> Optional[User]:
    result = await db.execute(select(User).where(User.id == user_id, User.is_active.is_(True)))
    return result.scalar_one_or_none()


async def find_by_username_or_email(db: AsyncSession, value: str) -> Optional[User]:
    value = value.strip().lower()
    result = await db.execute(
        select(User).where(or_(User.username == value, User.email == value))
    )
    return result.scalar_one_or_none()


async def email_taken(db: AsyncSession, email: str, exclude_user_id: Optional[str] = None) -> bool:
    stmt = select(User.id).where(User.email == email)
    if exclude_user_id:
        stmt = stmt.where(User.id != exclude_user_id)
    result = await db.execute(stmt)
    return result.first() is not None


async def create_user(db: AsyncSession, **attrs) -> User:
    user = User(**attrs)
    db.add(user)
    await db.flush()
    return user


async def update_user(db: AsyncSession, user_id: str, **attrs) -> int:
    if not attrs:
        return 0
    result = await db.execute(update(User).where(User.id == user_id).values(**attrs))
    return result.rowcount


async def touch_last_login(db: AsyncSession, user: User) -> None:
    user.last_login = datetime.now(timezone.utc)
    await db.flush()
