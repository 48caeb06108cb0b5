from fastapi import APIRouter, Depends

from dependencies import get_accounts, get_current_user
from models import User
from routers import ok
from schemas import LoginRequest, ProfileUpdate, RefreshRequest, RegisterRequest, TokenPair, UserOut
from services.accounts import AccountService

router = APIRouter(prefix="/auth", tags=["auth"])


def _tokens(accounts: AccountService, user: User) -> TokenPair:
    return TokenPair(**accounts.token_pair(user), user=UserOut.from_user(user))


@router.post("/register", status_code=201)
async def register(payload: RegisterRequest, accounts: AccountService = Depends(get_accounts)):
    # self-registration always yields a plain user; admins are seeded
    user = await accounts.register(payload.username, payload.email, payload.password, payload.fullName)
    return ok("User registered successfully", _tokens(accounts, user))


@router.post("/login")
async def login(payload: LoginRequest, accounts: AccountService = Depends(get_accounts)):
    user = await accounts.login(payload.usernameOrEmail, payload.password)
    return ok("Login successful", _tokens(accounts, user))


@router.post("/refresh")
async def refresh(payload: RefreshRequest, accounts: AccountService = Depends(get_accounts)):
    user = await accounts.refresh(payload.refreshToken)
    return ok("Token refreshed successfully", _tokens(accounts, user))


@router.get("/profile")
async def profile(user: User = Depends(get_current_user)):
    return ok("Profile retrieved successfully", {"user": UserOut.from_user(user)})


@router.put("/profile")
async def update_profile(
    payload: ProfileUpdate,
    user: User = Depends(get_current_user),
    accounts: AccountService = Depends(get_accounts),
):
    updated = await accounts.update_profile(user.id, full_name=payload.fullName, email=payload.email)
    return ok("Profile updated successfully", {"user": UserOut.from_user(updated)})


@router.post("/logout")
async def logout(user: User = Depends(get_current_user)):
    # tokens are stateless; the client discards them
    return ok("Logout successful")


@router.get("/verify")
async def verify(user: User = Depends(get_current_user)):
    return ok("Token is valid", {"user": UserOut.from_user(user), "tokenValid": True})
