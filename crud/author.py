# crud/author.py
from typing import List, Optional, Tuple

from sqlalchemy import delete, desc, func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from models import Author, BookAuthor


async def list_authors(
    db: AsyncSession, search: Optional[str] = None, page: int = 1, limit: int = 10
) -> Tuple[List[Author], int]:
    stmt = select(Author)
    count_stmt = select(func.count()).select_from(Author)
    if search:
        stmt = stmt.where(Author.name.ilike(f"%{search}%"))
        count_stmt = count_stmt.where(Author.name.ilike(f"%{search}%"))
    total = (await db.execute(count_stmt)).scalar_one()
    result = await db.execute(
        stmt.order_by(Author.name, Author.id).offset((page - 1) * limit).limit(limit)
    )
    return list(result.scalars().all()), total


async def get_author(db: AsyncSession, author_id: str) -> Optional[Author]:
    result = await db.execute(select(Author).where(Author.id == author_id))
    return result.scalar_one_or_none()


async def get_authors(db: AsyncSession, author_ids) -> List[Author]:
    result = await db.execute(select(Author).where(Author.id.in_(list(author_ids))))
    return list(result.scalars().all())


async def create_author(db: AsyncSession, **attrs) -> Author:
    author = Author(**{k: v for k, v in attrs.items() if v is not None})
    db.add(author)
    await db.flush()
    return author


async def update_author(db: AsyncSession, author_id: str, **attrs) -> int:
    if not attrs:
        return 0
    result = await db.execute(update(Author).where(Author.id == author_id).values(**attrs))
    return result.rowcount


async def delete_author(db: AsyncSession, author_id: str) -> int:
    result = await db.execute(delete(Author).where(Author.id == author_id))
    return result.rowcount


async def productive_authors(db: AsyncSession, limit: int = 10) -> List[Tuple[Author, int]]:
    book_count = func.count(BookAuthor.book_id).label("book_count")
    result = await db.execute(
        select(Author, book_count)
        .outerjoin(BookAuthor, BookAuthor.author_id == Author.id)
        .group_by(Author.id)
        .order_by(desc(book_count), Author.name)
        .limit(limit)
    )
    return [(author, count) for author, count in result.all()]
