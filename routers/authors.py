from typing import Literal, Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from crud import author as author_crud
from crud import book as book_crud
from crud import ledger as ledger_crud
from database import get_db
from dependencies import get_catalog, require_admin
from routers import ok
from schemas import AuthorCreate, AuthorOut, AuthorUpdate, BookOut, Pagination
from services.catalog import CatalogService

router = APIRouter(prefix="/authors", tags=["authors"])


async def _author_with_books(db: AsyncSession, author) -> dict:
    data = AuthorOut.model_validate(author).model_dump()
    data["books"] = [BookOut.from_book(b) for b in await book_crud.books_for_author(db, author.id)]
    return data


@router.get("")
async def list_authors(
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    search: Optional[str] = None,
    include_books: Literal["true", "false"] = "false",
    db: AsyncSession = Depends(get_db),
):
    authors, total = await author_crud.list_authors(db, search=search, page=page, limit=limit)
    if include_books == "true":
        data = [await _author_with_books(db, a) for a in authors]
    else:
        data = [AuthorOut.model_validate(a) for a in authors]
    return ok(
        "Authors retrieved successfully",
        data,
        pagination=Pagination.build(page, limit, total),
    )


@router.get("/stats/productive")
async def productive_authors(limit: int = Query(10, ge=1, le=100), db: AsyncSession = Depends(get_db)):
    rows = await author_crud.productive_authors(db, limit)
    data = [
        {**AuthorOut.model_validate(author).model_dump(), "book_count": count}
        for author, count in rows
    ]
    return ok("Most productive authors retrieved successfully", data)


@router.get("/{author_id}")
async def get_author(
    author_id: str,
    include_books: Literal["true", "false"] = "true",
    db: AsyncSession = Depends(get_db),
    catalog: CatalogService = Depends(get_catalog),
):
    author = await catalog.get_author(author_id)
    if include_books == "true":
        data = await _author_with_books(db, author)
    else:
        data = AuthorOut.model_validate(author)
    entries = await ledger_crud.entries_for_author(db, author_id)
    stats = {
        "total_books": len(entries),
        "roles": list(dict.fromkeys(e.role.value for e in entries)),
    }
    return ok("Author retrieved successfully", data, stats=stats)


@router.get("/{author_id}/books")
async def get_author_books(
    author_id: str,
    db: AsyncSession = Depends(get_db),
    catalog: CatalogService = Depends(get_catalog),
):
    author = await catalog.get_author(author_id)
    books = await book_crud.books_for_author(db, author_id)
    return ok(
        f"Books by {author.name} retrieved successfully",
        {
            "author": AuthorOut.model_validate(author),
            "books": [BookOut.from_book(b) for b in books],
            "total_books": len(books),
        },
    )


@router.post("", status_code=201, dependencies=[Depends(require_admin)])
async def create_author(payload: AuthorCreate, catalog: CatalogService = Depends(get_catalog)):
    author = await catalog.create_author(payload.model_dump())
    return ok("Author created successfully", AuthorOut.model_validate(author))


@router.put("/{author_id}", dependencies=[Depends(require_admin)])
async def update_author(
    author_id: str, payload: AuthorUpdate, catalog: CatalogService = Depends(get_catalog)
):
    attrs = payload.model_dump(exclude_unset=True)
    if attrs.get("name") is None:
        attrs.pop("name", None)
    if "biography" in attrs and not attrs["biography"]:
        attrs["biography"] = None
    author = await catalog.update_author(author_id, attrs)
    return ok("Author updated successfully", AuthorOut.model_validate(author))


@router.delete("/{author_id}", dependencies=[Depends(require_admin)])
async def delete_author(author_id: str, catalog: CatalogService = Depends(get_catalog)):
    await catalog.delete_author(author_id)
    return ok("Author deleted successfully")
