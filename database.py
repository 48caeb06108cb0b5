import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator

from fastapi import Request
from sqlalchemy import event
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine
from sqlalchemy.orm import declarative_base, sessionmaker
from sqlalchemy.pool import StaticPool

from errors import Conflict

logger = logging.getLogger(__name__)

Base = declarative_base()


def _enable_sqlite_foreign_keys(dbapi_connection, connection_record):
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


class Database:
    """Engine and session factory for one database.

    Constructed explicitly and handed to whoever needs it; the app keeps
    its instance on ``app.state.db``.
    """

    def __init__(self, url: str, echo: bool = False):
        self.url = url
        engine_kwargs = {"echo": echo}
        if url.startswith("sqlite"):
            engine_kwargs["connect_args"] = {"check_same_thread": False}
            if ":memory:" in url or url.rstrip("/").endswith("sqlite+aiosqlite:"):
                # one shared connection, otherwise every session sees an empty db
                engine_kwargs["poolclass"] = StaticPool
        self.engine = create_async_engine(url, **engine_kwargs)
        if url.startswith("sqlite"):
            event.listen(self.engine.sync_engine, "connect", _enable_sqlite_foreign_keys)
        self.sessionmaker = sessionmaker(self.engine, class_=AsyncSession, expire_on_commit=False)

    async def init_schema(self):
        # models must be imported so their tables are registered on Base
        import models  # noqa: F401

        async with self.engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)
        logger.info("Database schema initialized (%s)", self.url)

    async def dispose(self):
        await self.engine.dispose()

    def session(self) -> AsyncSession:
        return self.sessionmaker()


async def get_db(request: Request) -> AsyncIterator[AsyncSession]:
    async with request.app.state.db.session() as session:
        yield session


@asynccontextmanager
async def transaction(session: AsyncSession) -> AsyncIterator[AsyncSession]:
    """All-or-nothing unit of work on ``session``.

    Commits when the block exits cleanly, rolls back everything since the
    last commit otherwise. Constraint violations surface as ``Conflict``.
    """
    try:
        yield session
        await session.commit()
    except IntegrityError as exc:
        await session.rollback()
        logger.warning("Integrity error, transaction rolled back: %s", exc.orig)
        raise Conflict(f"Constraint violation: {exc.orig}") from exc
    except BaseException:
        await session.rollback()
        raise
