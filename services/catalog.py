"""
Catalog service: multi-record writes over books, authors and categories.

Each public coroutine is one unit of work. Ledger rules from
``services.ledger`` run before anything is written, and the whole write is
wrapped in ``database.transaction`` so a failure at any point leaves no
partial state behind.
"""
import logging
from typing import List, Optional, Sequence

from sqlalchemy.ext.asyncio import AsyncSession

from crud import author as author_crud
from crud import book as book_crud
from crud import category as category_crud
from crud import ledger as ledger_crud
from database import transaction
from errors import (
    AuthorHasBooks, Conflict, DuplicateContributor, ExceedsCapacity, NotFound, ValidationError,
)
from models import Author, Book, BookAuthor, Category, ContributorRole
from services import ledger

logger = logging.getLogger(__name__)


class CatalogService:
    def __init__(self, session: AsyncSession):
        self.session = session

    # ─────────────────────── lookups ───────────────────────
    async def get_book(self, book_id: str) -> Book:
        book = await book_crud.get_book(self.session, book_id)
        if book is None:
            raise NotFound("Book", book_id)
        return book

    async def get_author(self, author_id: str) -> Author:
        author = await author_crud.get_author(self.session, author_id)
        if author is None:
            raise NotFound("Author", author_id)
        return author

    async def get_category(self, category_id: str) -> Category:
        category = await category_crud.get_category(self.session, category_id)
        if category is None:
            raise NotFound("Category", category_id)
        return category

    async def contributions(self, book_id: str) -> List[BookAuthor]:
        await self.get_book(book_id)
        return await ledger_crud.entries_for_book(self.session, book_id)

    async def _lock_book(self, book_id: str) -> Book:
        book = await book_crud.lock_book(self.session, book_id)
        if book is None:
            raise NotFound("Book", book_id)
        return book

    async def _require_authors(self, author_ids: Sequence[str]) -> None:
        found = {a.id for a in await author_crud.get_authors(self.session, author_ids)}
        for author_id in author_ids:
            if author_id not in found:
                raise NotFound("Author", author_id)

    async def _check_book_refs(self, attrs: dict, book_id: Optional[str] = None) -> None:
        if attrs.get("category_id"):
            await self.get_category(attrs["category_id"])
        if attrs.get("isbn"):
            other = await book_crud.find_book_by_isbn(self.session, attrs["isbn"])
            if other is not None and other.id != book_id:
                raise Conflict("ISBN is already used by another book")

    # ─────────────────────── books ───────────────────────
    async def create_book_with_contributors(self, attrs: dict, contributors: Sequence) -> Book:
        # fail fast, before a transaction is even opened
        resolved = ledger.validate_contributor_list(attrs.get("id"), contributors)

        async with transaction(self.session):
            await self._require_authors([author_id for author_id, _, _ in resolved])
            await self._check_book_refs(attrs)
            if attrs.get("id") and await book_crud.get_book(self.session, attrs["id"]):
                raise Conflict(f"Book {attrs['id']} already exists")
            book = await book_crud.create_book(self.session, **attrs)
            await ledger_crud.insert_many(self.session, book.id, resolved)
            book_id = book.id

        logger.info("Created book %s with %d contributor(s)", book_id, len(resolved))
        return await self.get_book(book_id)

    async def update_book(self, book_id: str, attrs: dict, contributors: Optional[Sequence] = None) -> Book:
        resolved = None
        if contributors is not None:
            resolved = ledger.validate_contributor_list(book_id, contributors)

        async with transaction(self.session):
            await self._lock_book(book_id)
            await self._check_book_refs(attrs, book_id)
            await book_crud.update_book(self.session, book_id, **attrs)
            if resolved is not None:
                await self._replace_entries(book_id, resolved)

        logger.info("Updated book %s", book_id)
        return await self.get_book(book_id)

    async def replace_contributors(self, book_id: str, contributors: Sequence) -> List[BookAuthor]:
        resolved = ledger.validate_contributor_list(book_id, contributors)

        async with transaction(self.session):
            await self._lock_book(book_id)
            await self._replace_entries(book_id, resolved)

        logger.info("Replaced contributors of book %s (%d entries)", book_id, len(resolved))
        return await ledger_crud.entries_for_book(self.session, book_id)

    async def _replace_entries(self, book_id: str, resolved) -> None:
        await self._require_authors([author_id for author_id, _, _ in resolved])
        await ledger_crud.remove_all_for_book(self.session, book_id)
        await ledger_crud.insert_many(self.session, book_id, resolved)

    async def delete_book(self, book_id: str) -> None:
        async with transaction(self.session):
            await self._lock_book(book_id)
            removed = await ledger_crud.remove_all_for_book(self.session, book_id)
            await book_crud.delete_book(self.session, book_id)
        logger.info("Deleted book %s and %d ledger entries", book_id, removed)

    # ─────────────────────── ledger ───────────────────────
    async def add_contributor(
        self,
        book_id: str,
        author_id: str,
        role: ContributorRole = ContributorRole.CO_AUTHOR,
        percentage=None,
    ) -> BookAuthor:
        async with transaction(self.session):
            await self._lock_book(book_id)
            await self.get_author(author_id)
            entries = await ledger_crud.entries_for_book(self.session, book_id)
            if any(e.author_id == author_id for e in entries):
                raise DuplicateContributor(book_id, author_id)
            pct = ledger.resolve_percentage(percentage, entries)
            try:
                pct = ledger.validate_insert(book_id, pct, entries)
            except ExceedsCapacity:
                logger.warning("Rejected %s%% for author %s on book %s", pct, author_id, book_id)
                raise
            entry = await ledger_crud.insert(self.session, book_id, author_id, role, pct)

        logger.info("Added author %s to book %s at %s%%", author_id, book_id, pct)
        return entry

    async def update_contributor(
        self,
        book_id: str,
        author_id: str,
        percentage=None,
        role: Optional[ContributorRole] = None,
    ) -> BookAuthor:
        async with transaction(self.session):
            await self._lock_book(book_id)
            entries = await ledger_crud.entries_for_book(self.session, book_id)
            if not any(e.author_id == author_id for e in entries):
                raise NotFound("BookAuthor", f"{book_id}/{author_id}")
            pct = None
            if percentage is not None:
                pct = ledger.validate_update(book_id, author_id, percentage, entries)
            elif role is None:
                raise ValidationError("body", "nothing to update")
            await ledger_crud.update_entry(self.session, book_id, author_id, pct, role)

        entry = await ledger_crud.get_entry(self.session, book_id, author_id)
        await self.session.refresh(entry)
        return entry

    async def remove_contributor(self, book_id: str, author_id: str) -> None:
        async with transaction(self.session):
            await self._lock_book(book_id)
            entry = await ledger_crud.get_entry(self.session, book_id, author_id)
            if entry is None:
                raise NotFound("BookAuthor", f"{book_id}/{author_id}")
            count = await ledger_crud.count_for_book(self.session, book_id)
            ledger.validate_removal(book_id, author_id, count)
            await ledger_crud.remove(self.session, book_id, author_id)
        logger.info("Removed author %s from book %s", author_id, book_id)

    # ─────────────────────── authors ───────────────────────
    async def create_author(self, attrs: dict) -> Author:
        async with transaction(self.session):
            if attrs.get("id") and await author_crud.get_author(self.session, attrs["id"]):
                raise Conflict(f"Author {attrs['id']} already exists")
            author = await author_crud.create_author(self.session, **attrs)
        await self.session.refresh(author)
        return author

    async def update_author(self, author_id: str, attrs: dict) -> Author:
        async with transaction(self.session):
            await self.get_author(author_id)
            await author_crud.update_author(self.session, author_id, **attrs)
        author = await self.get_author(author_id)
        await self.session.refresh(author)
        return author

    async def delete_author(self, author_id: str) -> None:
        async with transaction(self.session):
            await self.get_author(author_id)
            book_count = await ledger_crud.count_books_for_author(self.session, author_id)
            if book_count > 0:
                raise AuthorHasBooks(author_id, book_count)
            await author_crud.delete_author(self.session, author_id)
        logger.info("Deleted author %s", author_id)

    # ─────────────────────── categories ───────────────────────
    async def create_category(self, attrs: dict) -> Category:
        async with transaction(self.session):
            if await category_crud.find_category_by_name(self.session, attrs["name"]):
                raise Conflict("Category name already exists")
            if attrs.get("id") and await category_crud.get_category(self.session, attrs["id"]):
                raise Conflict(f"Category {attrs['id']} already exists")
            category = await category_crud.create_category(self.session, **attrs)
        await self.session.refresh(category)
        return category

    async def update_category(self, category_id: str, attrs: dict) -> Category:
        async with transaction(self.session):
            await self.get_category(category_id)
            if attrs.get("name"):
                other = await category_crud.find_category_by_name(self.session, attrs["name"])
                if other is not None and other.id != category_id:
                    raise Conflict("Category name already exists")
            await category_crud.update_category(self.session, category_id, **attrs)
        category = await self.get_category(category_id)
        await self.session.refresh(category)
        return category

    async def delete_category(self, category_id: str) -> int:
        """Delete a category, detaching its books rather than deleting them."""
        async with transaction(self.session):
            await self.get_category(category_id)
            detached = await book_crud.clear_category(self.session, category_id)
            await category_crud.delete_category(self.session, category_id)
        logger.info("Deleted category %s, detached %d book(s)", category_id, detached)
        return detached
