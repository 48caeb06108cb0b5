"""Error types raised by the catalog.

Every error carries a stable ``code`` and the HTTP status it maps to, so
the API layer can render it without inspecting the message.
"""
from decimal import Decimal
from typing import Optional, Sequence


class BookstoreError(Exception):
    """Base exception for all bookstore errors."""

    code = "BOOKSTORE_ERROR"
    status_code = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

    def details(self) -> dict:
        return {}


class ValidationError(BookstoreError):
    """A request field failed a domain rule."""

    code = "VALIDATION_ERROR"
    status_code = 400

    def __init__(self, field: str, reason: str):
        super().__init__(f"{field}: {reason}")
        self.field = field
        self.reason = reason

    def details(self) -> dict:
        return {"field": self.field, "reason": self.reason}


class ExceedsCapacity(BookstoreError):
    """Adding or updating a ledger entry would push a book past 100%."""

    code = "EXCEEDS_CAPACITY"
    status_code = 400

    def __init__(self, book_id: Optional[str], current_total: Decimal, attempted: Decimal):
        self.book_id = book_id
        self.current_total = current_total
        self.attempted = attempted
        self.remaining = Decimal("100.00") - current_total
        super().__init__(
            f"Cannot add {attempted}%. Only {self.remaining}% remaining "
            f"(current total: {current_total}%)."
        )

    def details(self) -> dict:
        return {
            "current_total": float(self.current_total),
            "attempted": float(self.attempted),
            "remaining": float(self.remaining),
        }


class DuplicateContributor(BookstoreError):
    code = "DUPLICATE_CONTRIBUTOR"
    status_code = 409

    def __init__(self, book_id: Optional[str], author_id: str):
        super().__init__(f"Author {author_id} is already associated with this book")
        self.book_id = book_id
        self.author_id = author_id

    def details(self) -> dict:
        return {"book_id": self.book_id, "author_id": self.author_id}


class LastAuthorViolation(BookstoreError):
    code = "LAST_AUTHOR"
    status_code = 400

    def __init__(self, book_id: str):
        super().__init__("Cannot remove the only author from a book")
        self.book_id = book_id

    def details(self) -> dict:
        return {"book_id": self.book_id}


class AuthorHasBooks(BookstoreError):
    code = "AUTHOR_HAS_BOOKS"
    status_code = 409

    def __init__(self, author_id: str, book_count: int):
        super().__init__(
            f"Cannot delete author. They have {book_count} book(s) associated."
        )
        self.author_id = author_id
        self.book_count = book_count

    def details(self) -> dict:
        return {"author_id": self.author_id, "book_count": self.book_count}


class NotFound(BookstoreError):
    code = "NOT_FOUND"
    status_code = 404

    def __init__(self, entity_type: str, id: str):
        super().__init__(f"{entity_type} not found")
        self.entity_type = entity_type
        self.id = id

    def details(self) -> dict:
        return {"entity_type": self.entity_type, "id": self.id}


class Conflict(BookstoreError):
    """A write collided with a uniqueness constraint."""

    code = "CONFLICT"
    status_code = 409

    def __init__(self, reason: str):
        super().__init__(reason)
        self.reason = reason


class AuthenticationError(BookstoreError):
    status_code = 401

    def __init__(self, message: str, code: str = "AUTH_ERROR"):
        super().__init__(message)
        self.code = code


class PermissionDenied(BookstoreError):
    code = "INSUFFICIENT_ROLE"
    status_code = 403

    def __init__(self, required_roles: Sequence[str], user_role: str):
        super().__init__("Insufficient permissions")
        self.required_roles = list(required_roles)
        self.user_role = user_role

    def details(self) -> dict:
        return {"required_roles": self.required_roles, "user_role": self.user_role}
