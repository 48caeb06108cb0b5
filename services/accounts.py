# services/accounts.py – registration, login and token refresh
import logging

from sqlalchemy.ext.asyncio import AsyncSession

from config import Config
from crud import user as user_crud
from database import transaction
from errors import AuthenticationError, Conflict, NotFound
from models import User, UserRole
from services.security import REFRESH, decode_token, hash_password, issue_token_pair, verify_password

logger = logging.getLogger(__name__)


class AccountService:
    def __init__(self, session: AsyncSession, config: Config):
        self.session = session
        self.config = config

    def token_pair(self, user: User) -> dict:
        return issue_token_pair(user, self.config)

    async def register(self, username: str, email: str, password: str, full_name: str, role=None) -> User:
        username = username.strip().lower()
        email = email.strip().lower()
        async with transaction(self.session):
            if (await user_crud.find_by_username_or_email(self.session, username)
                    or await user_crud.find_by_username_or_email(self.session, email)):
                raise Conflict("Username or email already exists")
            user = await user_crud.create_user(
                self.session,
                username=username,
                email=email,
                password_hash=hash_password(password),
                full_name=full_name.strip(),
                role=UserRole(role) if role in ("admin", "user") else UserRole.USER,
            )
        await self.session.refresh(user)
        logger.info("Registered user %s (%s)", user.username, user.role.value)
        return user

    async def login(self, username_or_email: str, password: str) -> User:
        user = await user_crud.find_by_username_or_email(self.session, username_or_email)
        if user is None or not verify_password(user.password_hash, password):
            raise AuthenticationError("Invalid credentials", "INVALID_CREDENTIALS")
        if not user.is_active:
            raise AuthenticationError("Account is deactivated", "ACCOUNT_DEACTIVATED")
        async with transaction(self.session):
            await user_crud.touch_last_login(self.session, user)
        return user

    async def refresh(self, refresh_token: str) -> User:
        claims = decode_token(refresh_token, self.config, expected_type=REFRESH)
        user = await user_crud.get_active_user(self.session, claims.get("userId"))
        if user is None:
            raise AuthenticationError("User not found or inactive", "INVALID_USER")
        return user

    async def update_profile(self, user_id: str, full_name=None, email=None) -> User:
        async with transaction(self.session):
            user = await user_crud.get_active_user(self.session, user_id)
            if user is None:
                raise NotFound("User", user_id)
            values = {}
            if full_name is not None:
                values["full_name"] = full_name.strip()
            if email is not None:
                email = email.strip().lower()
                if await user_crud.email_taken(self.session, email, exclude_user_id=user_id):
                    raise Conflict("Email already used by another user")
                values["email"] = email
            await user_crud.update_user(self.session, user_id, **values)
        await self.session.refresh(user)
        return user
