"""
Password hashing and the signed session tokens handed out at login.

Tokens are HS256 JWTs carrying the user id (``sub``) and a ``type`` of
``access`` or ``refresh``; each type is only accepted where it belongs.
"""
from __future__ import annotations
from datetime import datetime, timedelta, timezone
from typing import Any, Literal
import jwt
from passlib.context import CryptContext
from fitchallenge.config import settings

pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")

JWT_ALG = "HS256"

TokenType = Literal["access", "refresh"]


class TokenError(Exception):
    """Token is malformed, expired, badly signed or of the wrong type."""


def hash_password(password: str) -> str:
    return pwd_context.hash(password)

def verify_password(password: str, password_hash: str) -> bool:
    return pwd_context.verify(password, password_hash)

def _make_token(sub: str, ttl_min: int, token_type: TokenType) -> str:
    now = datetime.now(timezone.utc)
    payload = {
        "sub": sub,
        "type": token_type,
        "iat": now.timestamp(),  # float keeps consecutive tokens distinct
        "exp": int((now + timedelta(minutes=ttl_min)).timestamp()),
    }
    return jwt.encode(payload, settings.jwt_secret, algorithm=JWT_ALG)

def make_access_token(sub: str) -> str:
    return _make_token(sub, settings.access_ttl_min, "access")

def make_refresh_token(sub: str) -> str:
    return _make_token(sub, settings.refresh_ttl_min, "refresh")

def issue_pair(sub: str) -> dict[str, str]:
    return {"access": make_access_token(sub), "refresh": make_refresh_token(sub)}

def decode_token(token: str) -> dict[str, Any]:
    return jwt.decode(token, settings.jwt_secret, algorithms=[JWT_ALG])

def token_subject(token: str, expected: TokenType) -> str:
    """User id from a token of the expected type, or TokenError."""
    try:
        data = decode_token(token)
    except jwt.PyJWTError as e:
        raise TokenError("Invalid token") from e
    if data.get("type") != expected:
        raise TokenError("Wrong token type")
    sub = data.get("sub")
    if not sub:
        raise TokenError("Invalid token")
    return sub
