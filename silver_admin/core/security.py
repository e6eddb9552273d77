"""
Security utilities - password hashing, JWT tokens

Access and refresh tokens are signed with separate secrets and carry a
"type" claim, so one can never be presented in place of the other.
Refresh tokens embed the admin's token_version at issuance; bumping the
version on the admin row invalidates every outstanding refresh token.
"""
import uuid
from datetime import datetime, timedelta, timezone
from enum import Enum
from typing import Optional

import bcrypt
from jose import jwt
from jose.exceptions import ExpiredSignatureError, JWTError

from silver_admin.core.config import settings
from silver_admin.core.exceptions import InvalidTokenError, TokenExpiredError

# bcrypt only looks at the first 72 bytes of input
MAX_PASSWORD_BYTES = 72


class TokenKind(str, Enum):
    ACCESS = "access"
    REFRESH = "refresh"


def hash_password(password: str) -> str:
    """Generate a salted bcrypt hash"""
    return bcrypt.hashpw(
        password.encode("utf-8"),
        bcrypt.gensalt(rounds=settings.BCRYPT_ROUNDS)
    ).decode("utf-8")


def verify_password(plain_password: str, hashed_password: str) -> bool:
    """Verify a password against its hash"""
    if not plain_password or not hashed_password:
        return False
    try:
        return bcrypt.checkpw(
            plain_password.encode("utf-8"),
            hashed_password.encode("utf-8")
        )
    except ValueError:
        # Malformed digest or oversized input
        return False


def _signing_key(kind: TokenKind) -> str:
    if kind is TokenKind.ACCESS:
        return settings.JWT_ACCESS_SECRET
    return settings.JWT_REFRESH_SECRET


def _encode(claims: dict, kind: TokenKind, expires_delta: timedelta) -> str:
    now = datetime.now(timezone.utc)
    claims.update({
        "type": kind.value,
        "iat": now,
        "exp": now + expires_delta,
        "jti": str(uuid.uuid4()),
    })
    return jwt.encode(claims, _signing_key(kind), algorithm=settings.JWT_ALGORITHM)


def create_access_token(admin, expires_delta: Optional[timedelta] = None) -> str:
    """Create a short-lived access token carrying the admin's permission snapshot"""
    claims = {
        "sub": str(admin.id),
        "email": admin.email,
        "role": admin.role,
        "permissions": list(admin.permissions or []),
    }
    return _encode(
        claims,
        TokenKind.ACCESS,
        expires_delta or timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES),
    )


def create_refresh_token(admin, expires_delta: Optional[timedelta] = None) -> str:
    """Create a long-lived refresh token bound to the admin's current token_version"""
    claims = {
        "sub": str(admin.id),
        "token_version": admin.token_version or 0,
    }
    return _encode(
        claims,
        TokenKind.REFRESH,
        expires_delta or timedelta(days=settings.REFRESH_TOKEN_EXPIRE_DAYS),
    )


def decode_token(token: str, kind: TokenKind = TokenKind.ACCESS) -> dict:
    """
    Verify signature, expiry and type of a token.

    Raises:
        TokenExpiredError: signature is valid but the token has expired
        InvalidTokenError: anything else (bad signature, malformed, wrong type)
    """
    if not token:
        raise InvalidTokenError("Token missing")

    try:
        payload = jwt.decode(
            token,
            _signing_key(kind),
            algorithms=[settings.JWT_ALGORITHM],
            options={"verify_sub": False},
        )
    except ExpiredSignatureError as e:
        raise TokenExpiredError("Token has expired") from e
    except JWTError as e:
        raise InvalidTokenError("Invalid token") from e

    if payload.get("type") != kind.value or not payload.get("sub"):
        raise InvalidTokenError("Invalid token")

    return payload
