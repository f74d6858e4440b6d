import secrets
from datetime import datetime, timedelta, timezone
from typing import Optional, Any, Dict

import bcrypt
import jwt
from fastapi import Depends, HTTPException, status
from fastapi.security import OAuth2PasswordBearer
from slowapi import Limiter
from slowapi.util import get_remote_address

from api.deps import get_settings, get_stores
from config import Settings
from services.records import UserRecord
from stores import Stores

oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/api/v1/auth/token", auto_error=False)

# failed and successful attempts both count, per client address and path
AUTH_RATE_LIMIT = "5/15minutes"
limiter = Limiter(key_func=get_remote_address)


def jwt_secret(settings: Settings) -> str:
    if not settings.jwt_secret:
        raise RuntimeError("JWT_SECRET is missing in .env")
    return settings.jwt_secret


def hash_password(password: str, rounds: int = 12) -> str:
    salt = bcrypt.gensalt(rounds=rounds)
    return bcrypt.hashpw(password.encode("utf-8"), salt).decode("utf-8")


def verify_password(password: str, password_hash: str) -> bool:
    try:
        return bcrypt.checkpw(password.encode("utf-8"), password_hash.encode("utf-8"))
    except ValueError:
        return False


def create_access_token(settings: Settings, sub: str, extra: Optional[dict] = None) -> str:
    now = datetime.now(timezone.utc)
    payload: Dict[str, Any] = {
        "sub": sub,
        "type": "access",
        "iat": int(now.timestamp()),
        "exp": int((now + timedelta(minutes=settings.jwt_access_minutes)).timestamp()),
        "jti": secrets.token_hex(16),
    }
    if extra:
        payload.update(extra)
    return jwt.encode(payload, jwt_secret(settings), algorithm=settings.jwt_algorithm)


def decode_token(settings: Settings, token: str) -> Optional[Dict[str, Any]]:
    try:
        return jwt.decode(token, jwt_secret(settings), algorithms=[settings.jwt_algorithm])
    except jwt.PyJWTError:
        return None


async def get_current_user(
    token: Optional[str] = Depends(oauth2_scheme),
    settings: Settings = Depends(get_settings),
    stores: Stores = Depends(get_stores),
) -> Optional[UserRecord]:
    if not token:
        return None

    decoded = decode_token(settings, token)
    if not decoded or decoded.get("type") != "access":
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid token")

    sub = decoded.get("sub")
    if not sub:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid token")

    user = await stores.users.get(sub)
    if not user:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="User not found")

    return user


def require_auth(user):
    if not user:
        raise HTTPException(status_code=401, detail="Unauthorized")
