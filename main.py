# main.py – Bookstore API + catalog page
import logging
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from decimal import Decimal, InvalidOperation
from pathlib import Path
from typing import Optional

from fastapi import Depends, FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import HTMLResponse, JSONResponse
from fastapi.staticfiles import StaticFiles
from fastapi.templating import Jinja2Templates
from sqlalchemy.ext.asyncio import AsyncSession

from config import Config, get_config
from crud import book as book_crud
from crud import author as author_crud
from crud import category as category_crud
from crud.book import SORTABLE_COLUMNS, BookFilters
from database import Database, get_db
from errors import BookstoreError
from routers import auth, authors, books, categories
from schemas import BookOut, Pagination

logger = logging.getLogger(__name__)

BASE_DIR = Path(__file__).resolve().parent
templates = Jinja2Templates(directory=str(BASE_DIR / "templates"))


def configure_logging(level: str) -> None:
    logging.basicConfig(
        level=level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


@asynccontextmanager
async def lifespan(app: FastAPI):
    db: Database = app.state.db
    await db.init_schema()
    if app.state.config.SEED_DATA:
        from seed import seed_all

        async with db.session() as session:
            await seed_all(session)
    logger.info("Bookstore API ready on %s", app.state.config.API_PREFIX)
    yield
    await db.dispose()


def _error_body(exc: BookstoreError) -> dict:
    return {"success": False, "message": exc.message, "error": exc.code, **exc.details()}


async def bookstore_error_handler(request: Request, exc: BookstoreError):
    if exc.status_code >= 500:
        logger.error("%s %s failed: %s", request.method, request.url.path, exc.message)
    return JSONResponse(status_code=exc.status_code, content=_error_body(exc))


async def validation_error_handler(request: Request, exc: RequestValidationError):
    errors = [
        {
            "field": ".".join(str(part) for part in err["loc"] if part != "body"),
            "message": err["msg"],
        }
        for err in exc.errors()
    ]
    return JSONResponse(
        status_code=400,
        content={
            "success": False,
            "message": "Validation error",
            "error": "VALIDATION_ERROR",
            "errors": errors,
        },
    )


async def unhandled_error_handler(request: Request, exc: Exception):
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    return JSONResponse(
        status_code=500,
        content={"success": False, "message": "Internal server error", "error": "INTERNAL_ERROR"},
    )


def create_app(config: Optional[Config] = None, database: Optional[Database] = None) -> FastAPI:
    config = config or get_config()
    configure_logging(config.LOG_LEVEL)

    app = FastAPI(title="Bookstore API", version=config.API_VERSION, lifespan=lifespan)
    app.state.config = config
    app.state.db = database or Database(config.DATABASE_URL, echo=config.DB_ECHO)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=[config.FRONTEND_URL],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.add_exception_handler(BookstoreError, bookstore_error_handler)
    app.add_exception_handler(RequestValidationError, validation_error_handler)
    app.add_exception_handler(Exception, unhandled_error_handler)

    app.mount("/static", StaticFiles(directory=str(BASE_DIR / "static")), name="static")
    for module in (auth, books, authors, categories):
        app.include_router(module.router, prefix=config.API_PREFIX)

    @app.get("/health")
    async def health():
        return {
            "status": "OK",
            "message": "Bookstore API is running",
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "version": config.API_VERSION,
        }

    @app.get(config.API_PREFIX)
    async def welcome():
        prefix = config.API_PREFIX
        return {
            "message": "Welcome to Bookstore API with JWT Authentication",
            "version": config.API_VERSION,
            "endpoints": {
                "health": "/health",
                "auth": f"{prefix}/auth",
                "books": f"{prefix}/books",
                "authors": f"{prefix}/authors",
                "categories": f"{prefix}/categories",
            },
            "authentication": {
                "type": "JWT Bearer Token",
                "header": "Authorization: Bearer <token>",
                "tokenExpiry": config.ACCESS_TOKEN_TTL,
                "refreshTokenExpiry": config.REFRESH_TOKEN_TTL,
            },
        }

    @app.get("/", response_class=HTMLResponse)
    async def home(
        request: Request,
        db: AsyncSession = Depends(get_db),
        page: int = 1,
        limit: int = 12,
        search: str = "",
        category_id: str = "",
        author_id: str = "",
        min_price: str = "",
        max_price: str = "",
        in_stock: str = "all",
        sort_by: str = "title",
        sort_order: str = "ASC",
    ):
        # the form posts blanks for unused filters, so everything arrives as text
        page = max(1, page)
        limit = min(max(1, limit), 100)
        filters = BookFilters(
            search=search or None,
            category_id=category_id or None,
            author_id=author_id or None,
            min_price=_parse_price(min_price),
            max_price=_parse_price(max_price),
            in_stock=in_stock if in_stock in ("all", "true", "false") else "all",
            sort_by=sort_by if sort_by in SORTABLE_COLUMNS else "title",
            sort_order="DESC" if sort_order.upper() == "DESC" else "ASC",
        )
        found, total = await book_crud.list_books(db, filters, page=page, limit=limit)
        all_authors, _ = await author_crud.list_authors(db, page=1, limit=500)

        return templates.TemplateResponse(request, "home.html", {
            "books": [BookOut.from_book(b) for b in found],
            "pagination": Pagination.build(page, limit, total),
            "filters": filters,
            "categories": await category_crud.list_categories(db),
            "authors": all_authors,
            "sort_fields": list(SORTABLE_COLUMNS),
        })

    return app


def _parse_price(value: str) -> Optional[Decimal]:
    if not value:
        return None
    try:
        price = Decimal(value)
    except InvalidOperation:
        return None
    return price if price.is_finite() and price >= 0 else None


app = create_app()
