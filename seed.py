# seed.py – default catalog and login accounts for a fresh database
import asyncio
import logging
from datetime import date
from decimal import Decimal

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from config import get_config
from database import Database, transaction
from models import Author, Book, BookAuthor, Category, ContributorRole, User, UserRole
from services.security import hash_password

logger = logging.getLogger(__name__)

CATEGORIES = [
    ("CAT001", "Fiction"),
    ("CAT002", "Non-Fiction"),
    ("CAT003", "Science"),
    ("CAT004", "Technology"),
    ("CAT005", "History"),
]

AUTHORS = [
    ("AUT001", "Andrea Hirata", "Indonesian writer known for Laskar Pelangi"),
    ("AUT002", "Tere Liye", "Popular Indonesian novelist with many bestsellers"),
    ("AUT003", "Pramoedya Ananta Toer", "Indonesian author, winner of many international awards"),
]

BOOKS = [
    {
        "id": "BOO001",
        "title": "Laskar Pelangi",
        "published_date": date(2005, 8, 15),
        "category_id": "CAT001",
        "isbn": "9780306406157",
        "price": Decimal("75000.00"),
        "stock": 50,
        "description": "Children in Belitung fighting to go to school",
    },
    {
        "id": "BOO002",
        "title": "Bumi Manusia",
        "published_date": date(1980, 6, 1),
        "category_id": "CAT001",
        "isbn": "9781861972712",
        "price": Decimal("80000.00"),
        "stock": 30,
        "description": "Historical novel of life under Dutch colonial rule",
    },
]

LEDGER = [
    ("BOO001", "AUT001"),
    ("BOO002", "AUT003"),
]

USERS = [
    ("USR001", "admin", "admin@bookstore.com", "admin123", "Administrator", UserRole.ADMIN),
    ("USR002", "testuser", "user@bookstore.com", "user123", "Test User", UserRole.USER),
    ("USR003", "johndoe", "john.doe@example.com", "password123", "John Doe", UserRole.USER),
]


async def _is_empty(session: AsyncSession, model) -> bool:
    return (await session.execute(select(func.count()).select_from(model))).scalar_one() == 0


async def seed_catalog(session: AsyncSession) -> bool:
    if not await _is_empty(session, Category):
        logger.info("Catalog already has data, skipping seed")
        return False
    async with transaction(session):
        session.add_all(Category(id=cid, name=name) for cid, name in CATEGORIES)
        session.add_all(Author(id=aid, name=name, biography=bio) for aid, name, bio in AUTHORS)
        await session.flush()
        session.add_all(Book(**attrs) for attrs in BOOKS)
        await session.flush()
        session.add_all(
            BookAuthor(
                book_id=book_id,
                author_id=author_id,
                role=ContributorRole.PRIMARY_AUTHOR,
                contribution_percentage=Decimal("100.00"),
            )
            for book_id, author_id in LEDGER
        )
    logger.info("Seeded %d categories, %d authors, %d books", len(CATEGORIES), len(AUTHORS), len(BOOKS))
    return True


async def seed_users(session: AsyncSession) -> bool:
    if not await _is_empty(session, User):
        logger.info("Users already exist, skipping seed")
        return False
    async with transaction(session):
        session.add_all(
            User(
                id=uid,
                username=username,
                email=email,
                password_hash=hash_password(password),
                full_name=full_name,
                role=role,
            )
            for uid, username, email, password, full_name, role in USERS
        )
    for _, username, _, _, _, role in USERS:
        logger.info("Seeded user %s (%s)", username, role.value)
    return True


async def seed_all(session: AsyncSession) -> None:
    await seed_catalog(session)
    await seed_users(session)


async def main():
    config = get_config()
    db = Database(config.DATABASE_URL, echo=config.DB_ECHO)
    await db.init_schema()
    try:
        async with db.session() as session:
            await seed_all(session)
    finally:
        await db.dispose()


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO)
    asyncio.run(main())
