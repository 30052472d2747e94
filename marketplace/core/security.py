"""
Marketplace API — Credentials and access tokens

Passwords are stored as pbkdf2_sha256 hashes; any hash made under an older
scheme is replaced the next time its owner proves the password. Access
tokens carry the claims the rest of the service reads back into a Caller.
"""
import uuid
from datetime import datetime, timedelta, timezone
from typing import Any

from jose import JWTError, jwt
from passlib.context import CryptContext

from marketplace.core.access import Role
from marketplace.core.config import get_settings

settings = get_settings()

pwd_context = CryptContext(schemes=["pbkdf2_sha256"], deprecated="auto")

ACCESS_TOKEN_TYPE = "access"


# ─── Passwords ────────────────────────────────────────────────────────────────

def hash_password(plain: str) -> str:
    return pwd_context.hash(plain)


def check_password(plain: str, stored_hash: str) -> tuple[bool, str | None]:
    """
    Returns (matches, replacement_hash). The replacement is only set when
    the stored hash matched but uses a deprecated scheme or settings.
    """
    return pwd_context.verify_and_update(plain, stored_hash)


# ─── Access tokens ────────────────────────────────────────────────────────────

def issue_access_token(user_id: int, role: Role, display_name: str) -> str:
    now = datetime.now(tz=timezone.utc)
    claims = {
        "sub": str(user_id),
        "role": role.value,
        "name": display_name,
        "type": ACCESS_TOKEN_TYPE,
        "iat": now,
        "exp": now + timedelta(minutes=settings.JWT_ACCESS_TOKEN_EXPIRE_MINUTES),
        "jti": uuid.uuid4().hex,
    }
    return jwt.encode(claims, settings.JWT_SECRET_KEY, algorithm=settings.JWT_ALGORITHM)


def read_access_token(token: str) -> dict[str, Any]:
    """Decode a bearer token. Raises JWTError if it is invalid, expired or not an access token."""
    claims = jwt.decode(token, settings.JWT_SECRET_KEY, algorithms=[settings.JWT_ALGORITHM])
    if claims.get("type") != ACCESS_TOKEN_TYPE:
        raise JWTError("access token required")
    return claims
