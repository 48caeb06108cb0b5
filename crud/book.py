# crud/book.py – book rows, listing filters and pagination
from dataclasses import dataclass
from datetime import datetime, timezone
from decimal import Decimal
from typing import List, Optional, Tuple

from sqlalchemy import asc, case, delete, desc, func, or_, select, update
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from models import Book, BookAuthor

SORTABLE_COLUMNS = {
    "title": Book.title,
    "price": Book.price,
    "stock": Book.stock,
    "published_date": Book.published_date,
    "created_at": Book.created_at,
}


@dataclass
class BookFilters:
    search: Optional[str] = None
    category_id: Optional[str] = None
    author_id: Optional[str] = None
    min_price: Optional[Decimal] = None
    max_price: Optional[Decimal] = None
    in_stock: str = "all"
    sort_by: str = "title"
    sort_order: str = "ASC"


def _with_relations(stmt):
    return stmt.options(
        selectinload(Book.category),
        selectinload(Book.contributions).selectinload(BookAuthor.author),
    )


def _apply_filters(query, filters: BookFilters):
    if filters.search:
        query = query.where(or_(
            Book.title.ilike(f"%{filters.search}%"),
            Book.description.ilike(f"%{filters.search}%"),
        ))
    if filters.category_id:
        query = query.where(Book.category_id == filters.category_id)
    if filters.min_price is not None:
        query = query.where(Book.price >= filters.min_price)
    if filters.max_price is not None:
        query = query.where(Book.price <= filters.max_price)
    if filters.in_stock == "true":
        query = query.where(Book.stock > 0)
    elif filters.in_stock == "false":
        query = query.where(Book.stock == 0)
    if filters.author_id:
        query = query.where(Book.id.in_(
            select(BookAuthor.book_id).where(BookAuthor.author_id == filters.author_id)
        ))
    return query


def _order_by(filters: BookFilters):
    sort_column = SORTABLE_COLUMNS.get(filters.sort_by, Book.title)
    direction_func = desc if filters.sort_order.upper() == "DESC" else asc

    # NULLs last on every backend
    nulls_last = case((sort_column.is_(None), 1), else_=0)
    return nulls_last, direction_func(sort_column), Book.id


async def list_books(
    db: AsyncSession, filters: BookFilters, page: int = 1, limit: int = 10
) -> Tuple[List[Book], int]:
    count_stmt = _apply_filters(select(func.count()).select_from(Book), filters)
    total = (await db.execute(count_stmt)).scalar_one()

    stmt = _apply_filters(select(Book), filters)
    stmt = _with_relations(stmt).order_by(*_order_by(filters))
    stmt = stmt.offset((page - 1) * limit).limit(limit)
    result = await db.execute(stmt)
    return list(result.scalars().all()), total


async def get_book(db: AsyncSession, book_id: str) -> Optional[Book]:
    stmt = _with_relations(select(Book).where(Book.id == book_id))
    result = await db.execute(stmt.execution_options(populate_existing=True))
    return result.scalar_one_or_none()


async def lock_book(db: AsyncSession, book_id: str) -> Optional[Book]:
    """Fetch a book with a write lock held until the transaction ends.

    Ledger writers lock the parent book first so two of them can't both
    pass a headroom check against the same stale total. The lock is taken
    by writing the row: that is a row lock on server databases, and on
    SQLite the UPDATE opens the write transaction before anything is read.
    """
    touched = await db.execute(
        update(Book).where(Book.id == book_id).values(updated_at=datetime.now(timezone.utc))
    )
    if touched.rowcount == 0:
        return None
    result = await db.execute(select(Book).where(Book.id == book_id))
    return result.scalar_one_or_none()


async def find_book_by_isbn(db: AsyncSession, isbn: str) -> Optional[Book]:
    if not isbn:
        return None
    result = await db.execute(select(Book).where(Book.isbn == isbn))
    return result.scalar_one_or_none()


async def create_book(db: AsyncSession, **attrs) -> Book:
    book = Book(**{k: v for k, v in attrs.items() if v is not None})
    db.add(book)
    await db.flush()
    return book


async def update_book(db: AsyncSession, book_id: str, **attrs) -> int:
    if not attrs:
        return 0
    result = await db.execute(update(Book).where(Book.id == book_id).values(**attrs))
    return result.rowcount


async def delete_book(db: AsyncSession, book_id: str) -> int:
    result = await db.execute(delete(Book).where(Book.id == book_id))
    return result.rowcount


async def clear_category(db: AsyncSession, category_id: str) -> int:
    result = await db.execute(
        update(Book).where(Book.category_id == category_id).values(category_id=None)
    )
    return result.rowcount


async def count_for_category(db: AsyncSession, category_id: str) -> int:
    result = await db.execute(
        select(func.count()).select_from(Book).where(Book.category_id == category_id)
    )
    return result.scalar_one()


async def books_for_author(db: AsyncSession, author_id: str) -> List[Book]:
    stmt = _with_relations(select(Book).join(BookAuthor).where(BookAuthor.author_id == author_id))
    result = await db.execute(stmt.order_by(Book.title))
    return list(result.scalars().all())


async def books_for_category(db: AsyncSession, category_id: str) -> List[Book]:
    stmt = _with_relations(select(Book).where(Book.category_id == category_id))
    result = await db.execute(stmt.order_by(Book.title))
    return list(result.scalars().all())


async def popular_books(db: AsyncSession, limit: int = 10) -> List[Book]:
    # low remaining stock means it has been selling
    stmt = _with_relations(select(Book).where(Book.stock > 0))
    result = await db.execute(stmt.order_by(Book.stock.asc(), Book.title).limit(limit))
    return list(result.scalars().all())


async def new_releases(db: AsyncSession, limit: int = 10) -> List[Book]:
    nulls_last = case((Book.published_date.is_(None), 1), else_=0)
    stmt = _with_relations(select(Book))
    result = await db.execute(
        stmt.order_by(nulls_last, Book.published_date.desc(), Book.title).limit(limit)
    )
    return list(result.scalars().all())
