# crud/ledger.py – book_author join rows
from decimal import Decimal
from typing import Iterable, List, Optional, Tuple

from sqlalchemy import delete, func, select, update
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from models import BookAuthor, ContributorRole


async def entries_for_book(db: AsyncSession, book_id: str) -> List[BookAuthor]:
    result = await db.execute(
        select(BookAuthor)
        .where(BookAuthor.book_id == book_id)
        .order_by(BookAuthor.created_at)
        .execution_options(populate_existing=True)
    )
    return list(result.scalars().all())


async def entries_for_author(db: AsyncSession, author_id: str) -> List[BookAuthor]:
    result = await db.execute(
        select(BookAuthor)
        .where(BookAuthor.author_id == author_id)
        .options(selectinload(BookAuthor.book))
        .order_by(BookAuthor.created_at)
    )
    return list(result.scalars().all())


async def get_entry(db: AsyncSession, book_id: str, author_id: str) -> Optional[BookAuthor]:
    result = await db.execute(
        select(BookAuthor).where(
            BookAuthor.book_id == book_id, BookAuthor.author_id == author_id
        )
    )
    return result.scalar_one_or_none()


async def insert(
    db: AsyncSession,
    book_id: str,
    author_id: str,
    role: ContributorRole,
    percentage: Decimal,
) -> BookAuthor:
    entry = BookAuthor(
        book_id=book_id,
        author_id=author_id,
        role=ContributorRole(role),
        contribution_percentage=percentage,
    )
    db.add(entry)
    await db.flush()
    return entry


async def insert_many(
    db: AsyncSession, book_id: str, rows: Iterable[Tuple[str, ContributorRole, Decimal]]
) -> List[BookAuthor]:
    entries = [
        BookAuthor(
            book_id=book_id,
            author_id=author_id,
            role=ContributorRole(role),
            contribution_percentage=percentage,
        )
        for author_id, role, percentage in rows
    ]
    db.add_all(entries)
    await db.flush()
    return entries


async def update_entry(
    db: AsyncSession,
    book_id: str,
    author_id: str,
    percentage: Optional[Decimal] = None,
    role: Optional[ContributorRole] = None,
) -> int:
    values = {}
    if percentage is not None:
        values["contribution_percentage"] = percentage
    if role is not None:
        values["role"] = ContributorRole(role)
    if not values:
        return 0
    result = await db.execute(
        update(BookAuthor)
        .where(BookAuthor.book_id == book_id, BookAuthor.author_id == author_id)
        .values(**values)
    )
    return result.rowcount


async def remove(db: AsyncSession, book_id: str, author_id: str) -> int:
    result = await db.execute(
        delete(BookAuthor).where(
            BookAuthor.book_id == book_id, BookAuthor.author_id == author_id
        )
    )
    return result.rowcount


async def remove_all_for_book(db: AsyncSession, book_id: str) -> int:
    result = await db.execute(delete(BookAuthor).where(BookAuthor.book_id == book_id))
    return result.rowcount


async def count_for_book(db: AsyncSession, book_id: str) -> int:
    result = await db.execute(
        select(func.count()).select_from(BookAuthor).where(BookAuthor.book_id == book_id)
    )
    return result.scalar_one()


async def count_books_for_author(db: AsyncSession, author_id: str) -> int:
    result = await db.execute(
        select(func.count()).select_from(BookAuthor).where(BookAuthor.author_id == author_id)
    )
    return result.scalar_one()
