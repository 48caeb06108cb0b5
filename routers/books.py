"""
Book endpoints, including the contributor ledger of each book.

Reads are public. Every write requires the ``admin`` role.
"""
from decimal import Decimal
from typing import Literal, Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from crud import book as book_crud
from crud.book import BookFilters
from database import get_db
from dependencies import get_catalog, require_admin
from routers import ok
from schemas import (
    AddContributorRequest, BookCreate, BookOut, BookUpdate, ContributionSummary,
    LedgerEntryOut, Pagination, ReplaceContributorsRequest, UpdateContributorRequest,
)
from services import ledger
from services.catalog import CatalogService

router = APIRouter(prefix="/books", tags=["books"])

SortField = Literal["title", "price", "stock", "published_date", "created_at"]
SortOrder = Literal["ASC", "DESC", "asc", "desc"]
StockFilter = Literal["all", "true", "false"]

# columns that may not be set to NULL through a partial update
_NOT_NULLABLE = ("title", "price", "stock")


@router.get("")
async def list_books(
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    search: Optional[str] = None,
    category_id: Optional[str] = None,
    author_id: Optional[str] = None,
    min_price: Optional[Decimal] = Query(None, ge=0),
    max_price: Optional[Decimal] = Query(None, ge=0),
    in_stock: StockFilter = "all",
    sort_by: SortField = "title",
    sort_order: SortOrder = "ASC",
    db: AsyncSession = Depends(get_db),
):
    filters = BookFilters(
        search=search,
        category_id=category_id,
        author_id=author_id,
        min_price=min_price,
        max_price=max_price,
        in_stock=in_stock,
        sort_by=sort_by,
        sort_order=sort_order.upper(),
    )
    books, total = await book_crud.list_books(db, filters, page=page, limit=limit)
    return ok(
        "Books retrieved successfully",
        [BookOut.from_book(b) for b in books],
        pagination=Pagination.build(page, limit, total),
        filters={
            "search": search,
            "category_id": category_id,
            "author_id": author_id,
            "min_price": min_price,
            "max_price": max_price,
            "in_stock": in_stock,
            "sort_by": sort_by,
            "sort_order": sort_order.upper(),
        },
    )


@router.get("/stats/popular")
async def popular_books(limit: int = Query(10, ge=1, le=100), db: AsyncSession = Depends(get_db)):
    books = await book_crud.popular_books(db, limit)
    return ok("Popular books retrieved successfully", [BookOut.from_book(b) for b in books])


@router.get("/stats/new-releases")
async def new_releases(limit: int = Query(10, ge=1, le=100), db: AsyncSession = Depends(get_db)):
    books = await book_crud.new_releases(db, limit)
    return ok("New release books retrieved successfully", [BookOut.from_book(b) for b in books])


@router.get("/{book_id}")
async def get_book(book_id: str, catalog: CatalogService = Depends(get_catalog)):
    book = await catalog.get_book(book_id)
    return ok("Book retrieved successfully", BookOut.from_book(book))


@router.post("", status_code=201, dependencies=[Depends(require_admin)])
async def create_book(payload: BookCreate, catalog: CatalogService = Depends(get_catalog)):
    attrs = payload.model_dump(exclude={"authors"})
    book = await catalog.create_book_with_contributors(attrs, payload.authors)
    return ok("Book created successfully", BookOut.from_book(book))


@router.put("/{book_id}", dependencies=[Depends(require_admin)])
async def update_book(book_id: str, payload: BookUpdate, catalog: CatalogService = Depends(get_catalog)):
    attrs = payload.model_dump(exclude_unset=True, exclude={"authors"})
    for field in _NOT_NULLABLE:
        if field in attrs and attrs[field] is None:
            del attrs[field]
    book = await catalog.update_book(book_id, attrs, payload.authors)
    return ok("Book updated successfully", BookOut.from_book(book))


@router.delete("/{book_id}", dependencies=[Depends(require_admin)])
async def delete_book(book_id: str, catalog: CatalogService = Depends(get_catalog)):
    await catalog.delete_book(book_id)
    return ok("Book deleted successfully")


# ─────────────────────── contributor ledger ───────────────────────
@router.get("/{book_id}/contributions")
async def get_contributions(book_id: str, catalog: CatalogService = Depends(get_catalog)):
    entries = await catalog.contributions(book_id)
    summary = ContributionSummary(
        book_id=book_id,
        entries=[LedgerEntryOut.model_validate(e) for e in entries],
        total=ledger.compute_total(entries),
        remaining=ledger.remaining_headroom(entries),
    )
    return ok("Contributions retrieved successfully", summary)


@router.put("/{book_id}/authors", dependencies=[Depends(require_admin)])
async def replace_authors(
    book_id: str, payload: ReplaceContributorsRequest, catalog: CatalogService = Depends(get_catalog)
):
    entries = await catalog.replace_contributors(book_id, payload.authors)
    return ok("Book authors replaced successfully", [LedgerEntryOut.model_validate(e) for e in entries])


@router.post("/{book_id}/authors", status_code=201, dependencies=[Depends(require_admin)])
async def add_author(
    book_id: str, payload: AddContributorRequest, catalog: CatalogService = Depends(get_catalog)
):
    entry = await catalog.add_contributor(
        book_id, payload.author_id, payload.role, payload.contribution_percentage
    )
    return ok("Author added to book successfully", LedgerEntryOut.model_validate(entry))


@router.put("/{book_id}/authors/{author_id}", dependencies=[Depends(require_admin)])
async def update_author_share(
    book_id: str,
    author_id: str,
    payload: UpdateContributorRequest,
    catalog: CatalogService = Depends(get_catalog),
):
    entry = await catalog.update_contributor(
        book_id, author_id, payload.contribution_percentage, payload.role
    )
    return ok("Book author updated successfully", LedgerEntryOut.model_validate(entry))


@router.delete("/{book_id}/authors/{author_id}", dependencies=[Depends(require_admin)])
async def remove_author(book_id: str, author_id: str, catalog: CatalogService = Depends(get_catalog)):
    await catalog.remove_contributor(book_id, author_id)
    return ok("Author removed from book successfully")
