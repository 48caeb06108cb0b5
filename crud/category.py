# crud/category.py
from typing import List, Optional

from sqlalchemy import delete, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from models import Category


async def list_categories(db: AsyncSession) -> List[Category]:
    result = await db.execute(select(Category).order_by(Category.name))
    return list(result.scalars().all())


async def get_category(db: AsyncSession, category_id: str) -> Optional[Category]:
    result = await db.execute(select(Category).where(Category.id == category_id))
    return result.scalar_one_or_none()


async def find_category_by_name(db: AsyncSession, name: str) -> Optional[Category]:
    result = await db.execute(select(Category).where(Category.name == name))
    return result.scalar_one_or_none()


async def create_category(db: AsyncSession, **attrs) -> Category:
    category = Category(**{k: v for k, v in attrs.items() if v is not None})
    db.add(category)
    await db.flush()
    return category


async def update_category(db: AsyncSession, category_id: str, **attrs) -> int:
    if not attrs:
        return 0
    result = await db.execute(update(Category).where(Category.id == category_id).values(**attrs))
    return result.rowcount


async def delete_category(db: AsyncSession, category_id: str) -> int:
    result = await db.execute(delete(Category).where(Category.id == category_id))
    return result.rowcount
