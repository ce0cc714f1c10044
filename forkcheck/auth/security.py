import uuid
import secrets
from datetime import datetime, timedelta, timezone
from typing import Optional

import jwt
from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from passlib.context import CryptContext

from ..config import settings


pwd_context = CryptContext(schemes=["pbkdf2_sha256"], deprecated="auto")
http_bearer = HTTPBearer(auto_error=False)

ADMIN_SUBJECT = "admin"


def get_passcode_hash(passcode: str) -> str:
    return pwd_context.hash(passcode)


def verify_passcode(plain: str, configured: Optional[str] = None) -> bool:
    """Check a typed passcode against ADMIN_PASSCODE, which may be stored plain or as a pbkdf2_sha256 hash."""
    configured = settings.admin_passcode if configured is None else configured
    if not plain or not configured:
        return False
    if pwd_context.identify(configured):
        return pwd_context.verify(plain, configured)
    return secrets.compare_digest(plain.encode("utf-8"), configured.encode("utf-8"))


def _create_token(sub: str, ttl_seconds: int, extra: Optional[dict] = None) -> str:
    now = datetime.now(tz=timezone.utc)
    payload = {
        "sub": sub,
        "iat": int(now.timestamp()),
        "exp": int((now + timedelta(seconds=ttl_seconds)).timestamp()),
        "jti": str(uuid.uuid4()),
    }
    if extra:
        payload.update(extra)
    return jwt.encode(payload, settings.jwt_secret, algorithm=settings.jwt_algorithm)


def create_admin_token() -> str:
    return _create_token(ADMIN_SUBJECT, settings.jwt_ttl_seconds, extra={"roles": ["admin"]})


def decode_token(token: str) -> dict:
    try:
        return jwt.decode(token, settings.jwt_secret, algorithms=[settings.jwt_algorithm])
    except jwt.ExpiredSignatureError:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Token expired")
    except jwt.InvalidTokenError:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid token")


def require_admin(creds: Optional[HTTPAuthorizationCredentials] = Depends(http_bearer)) -> dict:
    if creds is None:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Not authenticated")
    payload = decode_token(creds.credentials)
    if payload.get("sub") != ADMIN_SUBJECT or "admin" not in (payload.get("roles") or []):
        raise HTTPException(status_code=403, detail="Forbidden")
    return payload
