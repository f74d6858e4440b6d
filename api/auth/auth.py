from fastapi import APIRouter, Depends, HTTPException, Request
from fastapi.security import OAuth2PasswordRequestForm

from api.auth.config import (
    AUTH_RATE_LIMIT,
    create_access_token,
    get_current_user,
    hash_password,
    limiter,
    require_auth,
    verify_password,
)
from api.deps import get_settings, get_stores
from config import Settings
from schemas.register import AuthOut, LoginIn, RegisterIn, TokenOut, UserOut
from services.records import UserRecord
from stores import Stores

router = APIRouter(prefix="/auth", tags=["auth"])


def to_user_out(u: UserRecord) -> UserOut:
    return UserOut(id=u.id, email=u.email, name=u.name, created_at=u.created_at)


async def _authenticate(stores: Stores, email: str, password: str) -> UserRecord:
    user = await stores.users.get_by_email(email)
    if not user or not verify_password(password, user.password_hash):
        raise HTTPException(401, "Invalid credentials")
    return user


@router.post("/register", response_model=AuthOut, status_code=201)
@limiter.limit(AUTH_RATE_LIMIT)
async def register(
    request: Request,
    payload: RegisterIn,
    settings: Settings = Depends(get_settings),
    stores: Stores = Depends(get_stores),
):
    password_hash = hash_password(payload.password, settings.bcrypt_rounds)
    user = await stores.users.create(payload.email, password_hash, payload.name)
    return AuthOut(user=to_user_out(user), access_token=create_access_token(settings, sub=user.id))


@router.post("/login", response_model=AuthOut)
@limiter.limit(AUTH_RATE_LIMIT)
async def login(
    request: Request,
    payload: LoginIn,
    settings: Settings = Depends(get_settings),
    stores: Stores = Depends(get_stores),
):
    user = await _authenticate(stores, payload.email, payload.password)
    return AuthOut(user=to_user_out(user), access_token=create_access_token(settings, sub=user.id))


@router.post("/token", response_model=TokenOut)
@limiter.limit(AUTH_RATE_LIMIT)
async def token(
    request: Request,
    form: OAuth2PasswordRequestForm = Depends(),
    settings: Settings = Depends(get_settings),
    stores: Stores = Depends(get_stores),
):
    user = await _authenticate(stores, form.username, form.password)
    return TokenOut(access_token=create_access_token(settings, sub=user.id))


@router.get("/me", response_model=UserOut)
async def me(current_user=Depends(get_current_user)):
    require_auth(current_user)
    return to_user_out(current_user)
