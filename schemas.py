from datetime import date, datetime
from decimal import Decimal
from typing import List, Optional

from pydantic import BaseModel, Field, field_validator

from models import ContributorRole, UserRole
from services.isbn_utils import normalize_isbn

EMAIL_PATTERN = r"^[^@\s]+@[^@\s]+\.[^@\s]+$"


def _trimmed(value: Optional[str]) -> Optional[str]:
    return value.strip() if isinstance(value, str) else value


# ─────────────────────── ledger ───────────────────────
class ContributorIn(BaseModel):
    author_id: str = Field(min_length=1, max_length=50)
    role: ContributorRole = ContributorRole.PRIMARY_AUTHOR
    # left unbounded here so the ledger rules report range errors themselves
    contribution_percentage: Optional[Decimal] = None


class AddContributorRequest(ContributorIn):
    role: ContributorRole = ContributorRole.CO_AUTHOR


class UpdateContributorRequest(BaseModel):
    role: Optional[ContributorRole] = None
    contribution_percentage: Optional[Decimal] = None


class ReplaceContributorsRequest(BaseModel):
    authors: List[ContributorIn]


# ─────────────────────── books ───────────────────────
class BookFields(BaseModel):
    title: Optional[str] = Field(default=None, max_length=500)
    published_date: Optional[date] = None
    category_id: Optional[str] = None
    isbn: Optional[str] = None
    price: Optional[Decimal] = Field(default=None, ge=0, max_digits=10, decimal_places=2)
    stock: Optional[int] = Field(default=None, ge=0)
    description: Optional[str] = Field(default=None, max_length=10000)

    @field_validator("title", "description", mode="before")
    @classmethod
    def _strip(cls, v):
        return _trimmed(v)

    @field_validator("title")
    @classmethod
    def _title_not_blank(cls, v):
        if v is not None and not v:
            raise ValueError("Book title is required")
        return v

    @field_validator("isbn", mode="before")
    @classmethod
    def _isbn(cls, v):
        if v in (None, ""):
            return None
        return normalize_isbn(str(v))

    @field_validator("published_date")
    @classmethod
    def _not_in_future(cls, v):
        if v is not None and v > date.today():
            raise ValueError("Published date cannot be in the future")
        return v


class BookCreate(BookFields):
    id: Optional[str] = Field(default=None, min_length=1, max_length=50)
    title: str = Field(max_length=500)
    price: Decimal = Field(default=Decimal("0"), ge=0, max_digits=10, decimal_places=2)
    stock: int = Field(default=0, ge=0)
    authors: List[ContributorIn] = Field(default_factory=list)


class BookUpdate(BookFields):
    authors: Optional[List[ContributorIn]] = None


class CategoryOut(BaseModel):
    id: str
    name: str
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class BookContributorOut(BaseModel):
    author_id: str
    name: Optional[str] = None
    role: ContributorRole
    contribution_percentage: float


class LedgerEntryOut(BaseModel):
    book_id: str
    author_id: str
    role: ContributorRole
    contribution_percentage: float
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class BookOut(BaseModel):
    id: str
    title: str
    published_date: Optional[date] = None
    category_id: Optional[str] = None
    category: Optional[CategoryOut] = None
    isbn: Optional[str] = None
    price: float
    stock: int
    in_stock: bool
    description: Optional[str] = None
    authors: List[BookContributorOut] = Field(default_factory=list)
    total_contribution: float = 0
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @classmethod
    def from_book(cls, book) -> "BookOut":
        authors = [
            BookContributorOut(
                author_id=entry.author_id,
                name=entry.author.name if entry.author is not None else None,
                role=entry.role,
                contribution_percentage=entry.contribution_percentage,
            )
            for entry in book.contributions
        ]
        return cls(
            id=book.id,
            title=book.title,
            published_date=book.published_date,
            category_id=book.category_id,
            category=CategoryOut.model_validate(book.category) if book.category else None,
            isbn=book.isbn,
            price=book.price,
            stock=book.stock,
            in_stock=book.in_stock,
            description=book.description,
            authors=authors,
            total_contribution=sum(a.contribution_percentage for a in authors),
            created_at=book.created_at,
            updated_at=book.updated_at,
        )


class ContributionSummary(BaseModel):
    book_id: str
    entries: List[LedgerEntryOut]
    total: float
    remaining: float


# ─────────────────────── authors & categories ───────────────────────
class AuthorCreate(BaseModel):
    id: Optional[str] = Field(default=None, min_length=1, max_length=50)
    name: str = Field(min_length=2, max_length=255)
    biography: Optional[str] = Field(default=None, max_length=5000)

    @field_validator("name", "biography", mode="before")
    @classmethod
    def _strip(cls, v):
        return _trimmed(v)


class AuthorUpdate(BaseModel):
    name: Optional[str] = Field(default=None, min_length=2, max_length=255)
    biography: Optional[str] = Field(default=None, max_length=5000)

    @field_validator("name", "biography", mode="before")
    @classmethod
    def _strip(cls, v):
        return _trimmed(v)


class AuthorOut(BaseModel):
    id: str
    name: str
    biography: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class CategoryCreate(BaseModel):
    id: Optional[str] = Field(default=None, min_length=1, max_length=50)
    name: str = Field(min_length=2, max_length=100)

    @field_validator("name", mode="before")
    @classmethod
    def _strip(cls, v):
        return _trimmed(v)


class CategoryUpdate(BaseModel):
    name: Optional[str] = Field(default=None, min_length=2, max_length=100)

    @field_validator("name", mode="before")
    @classmethod
    def _strip(cls, v):
        return _trimmed(v)


# ─────────────────────── auth ───────────────────────
class RegisterRequest(BaseModel):
    username: str = Field(min_length=3, max_length=100)
    email: str = Field(pattern=EMAIL_PATTERN, max_length=255)
    password: str = Field(min_length=6, max_length=255)
    fullName: str = Field(min_length=2, max_length=255)


class LoginRequest(BaseModel):
    usernameOrEmail: str = Field(min_length=1)
    password: str = Field(min_length=1)


class RefreshRequest(BaseModel):
    refreshToken: str = Field(min_length=1)


class ProfileUpdate(BaseModel):
    fullName: Optional[str] = Field(default=None, min_length=2, max_length=255)
    email: Optional[str] = Field(default=None, pattern=EMAIL_PATTERN, max_length=255)


class UserOut(BaseModel):
    id: str
    username: str
    email: str
    fullName: str
    role: UserRole
    isActive: bool = True
    lastLogin: Optional[datetime] = None

    @classmethod
    def from_user(cls, user) -> "UserOut":
        return cls(
            id=user.id,
            username=user.username,
            email=user.email,
            fullName=user.full_name,
            role=user.role,
            isActive=user.is_active,
            lastLogin=user.last_login,
        )


class TokenPair(BaseModel):
    accessToken: str
    refreshToken: str
    tokenType: str = "Bearer"
    expiresIn: int
    user: UserOut


class Pagination(BaseModel):
    current_page: int
    total_pages: int
    total_items: int
    items_per_page: int

    @classmethod
    def build(cls, page: int, limit: int, total: int) -> "Pagination":
        return cls(
            current_page=page,
            total_pages=(total + limit - 1) // limit if limit else 0,
            total_items=total,
            items_per_page=limit,
        )
