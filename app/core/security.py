"""
Password hashing & JWT helpers.

- Passwords are hashed with bcrypt directly (passlib is unmaintained
  and broken with bcrypt>=4.1).  The cost factor comes from settings
  and is the same for every hash a deployment produces.
- Access tokens are stateless: they carry the user's id, company,
  role names and flattened permission strings.  There is no session
  table behind them, so expiry is the only way a token stops working.
"""

import functools
from datetime import datetime, timedelta, timezone
from typing import Any

import bcrypt
from fastapi.security import HTTPBearer
from jose import JWTError, jwt

from app.core.config import settings
from app.core.exceptions import UnauthorizedError

# ── Password hashing ────────────────────────────────────────────────


def hash_password(plain: str) -> str:
    salt = bcrypt.gensalt(rounds=settings.BCRYPT_ROUNDS)
    return bcrypt.hashpw(plain.encode("utf-8"), salt).decode("utf-8")


def verify_password(plain: str, hashed: str) -> bool:
    return bcrypt.checkpw(plain.encode("utf-8"), hashed.encode("utf-8"))


@functools.lru_cache(maxsize=1)
def _dummy_hash() -> str:
    return hash_password("no-such-user")


def burn_password_check(plain: str) -> None:
    """Spend one bcrypt comparison when there is no user to check against.

    Keeps a login for an unknown username as slow as a wrong password.
    """
    verify_password(plain, _dummy_hash())


# ── JWT ──────────────────────────────────────────────────────────────
bearer_scheme = HTTPBearer(auto_error=False)


def create_access_token(data: dict[str, Any], expires_delta: timedelta | None = None) -> str:
    to_encode = data.copy()
    now = datetime.now(timezone.utc)
    expire = now + (expires_delta or timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES))
    to_encode.update({"iat": now, "exp": expire})
    return jwt.encode(to_encode, settings.SECRET_KEY, algorithm=settings.JWT_ALGORITHM)


def decode_access_token(token: str) -> dict[str, Any]:
    """Decode & validate a JWT.  Raises UnauthorizedError on failure."""
    try:
        return jwt.decode(token, settings.SECRET_KEY, algorithms=[settings.JWT_ALGORITHM])
    except JWTError as exc:
        raise UnauthorizedError("Invalid or expired token") from exc
