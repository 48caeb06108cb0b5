from typing import Literal

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from crud import book as book_crud
from crud import category as category_crud
from database import get_db
from dependencies import get_catalog, require_admin
from routers import ok
from schemas import BookOut, CategoryCreate, CategoryOut, CategoryUpdate
from services.catalog import CatalogService

router = APIRouter(prefix="/categories", tags=["categories"])


async def _category_with_books(db: AsyncSession, category) -> dict:
    data = CategoryOut.model_validate(category).model_dump()
    data["books"] = [BookOut.from_book(b) for b in await book_crud.books_for_category(db, category.id)]
    return data


@router.get("")
async def list_categories(
    include_books: Literal["true", "false"] = "false",
    db: AsyncSession = Depends(get_db),
):
    categories = await category_crud.list_categories(db)
    if include_books == "true":
        data = [await _category_with_books(db, c) for c in categories]
    else:
        data = [CategoryOut.model_validate(c) for c in categories]
    return ok("Categories retrieved successfully", data, count=len(categories))


@router.get("/{category_id}")
async def get_category(
    category_id: str,
    include_books: Literal["true", "false"] = "false",
    db: AsyncSession = Depends(get_db),
    catalog: CatalogService = Depends(get_catalog),
):
    category = await catalog.get_category(category_id)
    if include_books == "true":
        data = await _category_with_books(db, category)
    else:
        data = CategoryOut.model_validate(category)
    book_count = await book_crud.count_for_category(db, category_id)
    return ok("Category retrieved successfully", data, stats={"book_count": book_count})


@router.post("", status_code=201, dependencies=[Depends(require_admin)])
async def create_category(payload: CategoryCreate, catalog: CatalogService = Depends(get_catalog)):
    category = await catalog.create_category(payload.model_dump())
    return ok("Category created successfully", CategoryOut.model_validate(category))


@router.put("/{category_id}", dependencies=[Depends(require_admin)])
async def update_category(
    category_id: str, payload: CategoryUpdate, catalog: CatalogService = Depends(get_catalog)
):
    attrs = {k: v for k, v in payload.model_dump(exclude_unset=True).items() if v is not None}
    category = await catalog.update_category(category_id, attrs)
    return ok("Category updated successfully", CategoryOut.model_validate(category))


@router.delete("/{category_id}", dependencies=[Depends(require_admin)])
async def delete_category(category_id: str, catalog: CatalogService = Depends(get_catalog)):
    detached = await catalog.delete_category(category_id)
    return ok("Category deleted successfully", {"detached_books": detached})
