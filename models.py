# models.py
import enum
import uuid
from datetime import datetime, timezone

from sqlalchemy import (
    Boolean, CheckConstraint, Column, Date, DateTime, Enum, ForeignKey, Index,
    Integer, Numeric, String, Text,
)
from sqlalchemy.orm import relationship

from database import Base


def generate_id(prefix: str) -> str:
    return f"{prefix}{uuid.uuid4().hex[:12].upper()}"


def _utcnow():
    return datetime.now(timezone.utc)


class ContributorRole(str, enum.Enum):
    PRIMARY_AUTHOR = "Primary Author"
    CO_AUTHOR = "Co-Author"
    EDITOR = "Editor"
    TRANSLATOR = "Translator"


class UserRole(str, enum.Enum):
    ADMIN = "admin"
    USER = "user"


def _enum_values(enum_cls):
    return [member.value for member in enum_cls]


class Category(Base):
    __tablename__ = "category"
    id = Column(String(50), primary_key=True, default=lambda: generate_id("CAT"))
    name = Column(String(100), nullable=False, unique=True, index=True)
    created_at = Column(DateTime(timezone=True), default=_utcnow, nullable=False)
    updated_at = Column(DateTime(timezone=True), default=_utcnow, onupdate=_utcnow, nullable=False)

    books = relationship("Book", back_populates="category", passive_deletes=True)


class Author(Base):
    __tablename__ = "author"
    id = Column(String(50), primary_key=True, default=lambda: generate_id("AUT"))
    name = Column(String(255), nullable=False, index=True)
    biography = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), default=_utcnow, nullable=False)
    updated_at = Column(DateTime(timezone=True), default=_utcnow, onupdate=_utcnow, nullable=False)

    # deletion is refused while entries exist, so no cascade here
    contributions = relationship("BookAuthor", back_populates="author", passive_deletes="all")


class Book(Base):
    __tablename__ = "book"
    id = Column(String(50), primary_key=True, default=lambda: generate_id("BOO"))
    title = Column(String(500), nullable=False, index=True)
    published_date = Column(Date, nullable=True, index=True)
    category_id = Column(
        String(50),
        ForeignKey("category.id", onupdate="CASCADE", ondelete="SET NULL"),
        nullable=True,
        index=True,
    )
    isbn = Column(String(20), unique=True, nullable=True)
    price = Column(Numeric(10, 2), nullable=False, default=0)
    stock = Column(Integer, nullable=False, default=0)
    description = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), default=_utcnow, nullable=False)
    updated_at = Column(DateTime(timezone=True), default=_utcnow, onupdate=_utcnow, nullable=False)

    __table_args__ = (
        CheckConstraint("price >= 0", name="ck_book_price_non_negative"),
        CheckConstraint("stock >= 0", name="ck_book_stock_non_negative"),
    )

    category = relationship("Category", back_populates="books", lazy="selectin")
    contributions = relationship(
        "BookAuthor",
        back_populates="book",
        cascade="all, delete-orphan",
        passive_deletes=True,
        lazy="selectin",
        order_by="BookAuthor.created_at",
    )

    @property
    def in_stock(self) -> bool:
        return self.stock > 0


class BookAuthor(Base):
    """Ledger entry: one author's share of one book."""

    __tablename__ = "book_author"
    book_id = Column(
        String(50),
        ForeignKey("book.id", onupdate="CASCADE", ondelete="CASCADE"),
        primary_key=True,
    )
    author_id = Column(
        String(50),
        ForeignKey("author.id", onupdate="CASCADE", ondelete="RESTRICT"),
        primary_key=True,
    )
    role = Column(
        Enum(ContributorRole, values_callable=_enum_values, name="contributor_role"),
        nullable=False,
        default=ContributorRole.PRIMARY_AUTHOR,
    )
    contribution_percentage = Column(Numeric(5, 2), nullable=False)
    created_at = Column(DateTime(timezone=True), default=_utcnow, nullable=False)

    __table_args__ = (
        CheckConstraint(
            "contribution_percentage > 0 AND contribution_percentage <= 100",
            name="ck_book_author_percentage_range",
        ),
        Index("idx_book_author_author", "author_id"),
    )

    book = relationship("Book", back_populates="contributions")
    author = relationship("Author", back_populates="contributions", lazy="selectin")


class User(Base):
    __tablename__ = "user"
    id = Column(String(50), primary_key=True, default=lambda: generate_id("USR"))
    username = Column(String(100), nullable=False, unique=True)
    email = Column(String(255), nullable=False, unique=True)
    password_hash = Column(String(255), nullable=False)
    full_name = Column(String(255), nullable=False)
    role = Column(
        Enum(UserRole, values_callable=_enum_values, name="user_role"),
        nullable=False,
        default=UserRole.USER,
        index=True,
    )
    is_active = Column(Boolean, nullable=False, default=True)
    last_login = Column(DateTime(timezone=True), nullable=True)
    created_at = Column(DateTime(timezone=True), default=_utcnow, nullable=False)
    updated_at = Column(DateTime(timezone=True), default=_utcnow, onupdate=_utcnow, nullable=False)
