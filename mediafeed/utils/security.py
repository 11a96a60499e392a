from datetime import datetime, timedelta, timezone
from functools import lru_cache
from typing import Optional

from fastapi import Depends, HTTPException, status
from fastapi.security import APIKeyHeader
import jwt

from mediafeed.core.config import JWTSettings

auth_scheme = APIKeyHeader(name="Authorization", scheme_name="Bearer", auto_error=False)


@lru_cache(maxsize=1)
def get_jwt_settings() -> JWTSettings:
    return JWTSettings()


async def create_access_token(subject: str) -> str:
    jwt_settings = get_jwt_settings()
    expire = datetime.now(timezone.utc) + timedelta(
        minutes=jwt_settings.access_token_expire_minutes
    )
    payload = {"sub": subject, "exp": expire, "type": "access"}
    return jwt.encode(payload, jwt_settings.secret_key, algorithm=jwt_settings.algorithm)


async def verify_token(token: str, secret_key: str, algorithm: str):
    try:
        payload = jwt.decode(token, secret_key, algorithms=[algorithm])
        return payload
    except jwt.ExpiredSignatureError:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Token has expired")
    except jwt.InvalidTokenError:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Could not validate credentials")


async def get_optional_subject(token: Optional[str] = Depends(auth_scheme)) -> Optional[str]:
    """Wallet address of the caller, or None when no token was sent.

    A token that is present but invalid is rejected rather than treated as
    anonymous.
    """
    if not token:
        return None

    if token.startswith("Bearer "):
        token = token[7:]

    jwt_settings = get_jwt_settings()
    payload = await verify_token(token, jwt_settings.secret_key, jwt_settings.algorithm)
    if payload.get("type") != "access" or not payload.get("sub"):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Could not validate credentials",
            headers={"WWW-Authenticate": "Bearer"},
        )
    return payload["sub"]
