# dependencies.py – request-scoped collaborators for the routers
from typing import Optional

from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.ext.asyncio import AsyncSession

from config import Config
from crud import user as user_crud
from database import get_db
from errors import AuthenticationError, PermissionDenied
from models import User
from services.accounts import AccountService
from services.catalog import CatalogService
from services.security import ACCESS, decode_token

bearer = HTTPBearer(auto_error=False)


def get_config(request: Request) -> Config:
    return request.app.state.config


def get_catalog(db: AsyncSession = Depends(get_db)) -> CatalogService:
    return CatalogService(db)


def get_accounts(
    db: AsyncSession = Depends(get_db), config: Config = Depends(get_config)
) -> AccountService:
    return AccountService(db, config)


async def get_current_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer),
    db: AsyncSession = Depends(get_db),
    config: Config = Depends(get_config),
) -> User:
    if credentials is None or credentials.scheme.lower() != "bearer":
        raise AuthenticationError("Access token required", "NO_TOKEN")
    claims = decode_token(credentials.credentials, config, expected_type=ACCESS)
    user = await user_crud.get_active_user(db, claims.get("userId"))
    if user is None:
        raise AuthenticationError("User not found or inactive", "INVALID_USER")
    return user


def require_roles(*roles: str):
    async def checker(user: User = Depends(get_current_user)) -> User:
        if user.role.value not in roles:
            raise PermissionDenied(roles, user.role.value)
        return user

    return checker


require_admin = require_roles("admin")
