# PURPOSE: the auth gate. Password hashing, token issue, and resolving a bearer
# token to a UserIdentity. This is the only place an identity is produced;
# task code trusts whatever comes out of get_current_user().

from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Optional

import bcrypt
from fastapi import Depends
from fastapi.security import OAuth2PasswordBearer
from jose import JWTError, jwt
from sqlalchemy.orm import Session

from .config import settings
from .errors import Unauthenticated
from .models import UserIdentity
from .store_db import UserRepository, get_db

# OAuth2 password flow; auto_error off so a missing header goes through
# resolve_identity() and fails the same way as a bad token
oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/auth/login", auto_error=False)


# --- Password helpers (bcrypt, no passlib) ---

def hash_password(password: str) -> str:
    """Return a bcrypt hash for the given plain password."""
    if not isinstance(password, str):
        raise TypeError("password must be a string")
    salt = bcrypt.gensalt()
    return bcrypt.hashpw(password.encode("utf-8"), salt).decode("utf-8")


def verify_password(plain_password: str, password_hash: str) -> bool:
    """Verify a plain password against its bcrypt hash."""
    try:
        return bcrypt.checkpw(
            plain_password.encode("utf-8"),
            password_hash.encode("utf-8"),
        )
    except ValueError:
        # malformed stored hash
        return False


# --- JWT helpers ---

def _now_utc() -> datetime:
    return datetime.now(timezone.utc)


def create_access_token(user_id: int, *, expires_minutes: Optional[int] = None) -> str:
    """
    Create a signed JWT for a user.
    - `sub` is the user id as a string (JWT requires a string subject).
    - Expiration controlled by settings.JWT_EXPIRE_MIN unless overridden.
    """
    minutes = settings.JWT_EXPIRE_MIN if expires_minutes is None else expires_minutes
    payload: Dict[str, Any] = {
        "sub": str(user_id),
        "iat": _now_utc(),
        "exp": _now_utc() + timedelta(minutes=minutes),
    }
    return jwt.encode(payload, settings.JWT_SECRET, algorithm=settings.JWT_ALGORITHM)


def decode_access_token(token: Optional[str]) -> int:
    """Verify signature and expiry; return the user id carried in `sub`."""
    if not token:
        raise Unauthenticated()
    try:
        payload = jwt.decode(token, settings.JWT_SECRET, algorithms=[settings.JWT_ALGORITHM])
    except JWTError as err:
        raise Unauthenticated() from err
    subject = payload.get("sub")
    try:
        return int(subject)
    except (TypeError, ValueError) as err:
        raise Unauthenticated() from err


def resolve_identity(credential: Optional[str], users: UserRepository) -> UserIdentity:
    """Bearer credential -> verified identity, or Unauthenticated. No side effects."""
    user_id = decode_access_token(credential)
    row = users.get(user_id)
    if row is None:
        # token outlived its user
        raise Unauthenticated()
    return UserIdentity.model_validate(row)


def get_current_user(
    token: Optional[str] = Depends(oauth2_scheme),
    db: Session = Depends(get_db),
) -> UserIdentity:
    """FastAPI dependency: identity from the Authorization header only."""
    return resolve_identity(token, UserRepository(db))
