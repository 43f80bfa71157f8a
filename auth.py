"""Password hashing and bearer token issuance for user accounts."""
import logging
from datetime import datetime, timedelta
from typing import Any, Dict, Optional

from jose import JWTError, jwt
from passlib.context import CryptContext

from error_handler import InvalidTokenError

logger = logging.getLogger(__name__)

# Password hashing (cost factor 10)
pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto", bcrypt__rounds=10)

TOKEN_ALGORITHM = "HS256"
TOKEN_LIFETIME = timedelta(hours=10)


def hash_password(password: str) -> str:
    """Hash a password using bcrypt with a random salt."""
    # Bcrypt has a 72-byte limit, so truncate if necessary
    password_bytes = password.encode("utf-8")[:72]
    return pwd_context.hash(password_bytes.decode("utf-8", errors="ignore"))


def verify_password(plain_password: str, hashed_password: str) -> bool:
    """Verify a password against a hash."""
    password_bytes = plain_password.encode("utf-8")[:72]
    return pwd_context.verify(password_bytes.decode("utf-8", errors="ignore"), hashed_password)


def apply_password_hash(
    record: Dict[str, Any],
    previous: Optional[Dict[str, Any]] = None,
) -> Dict[str, Any]:
    """
    Replace the plaintext password of a record with its hash.

    Args:
        record: Password record about to be saved
        previous: The record as currently stored, if any

    Returns:
        The record to persist. When the password is unchanged from
        ``previous`` (a re-save of an already hashed value) it is returned
        as-is; otherwise a copy holding the hash and a fresh ``last_update``.
    """
    if previous is not None and record.get("password") == previous.get("password"):
        return record

    hashed = dict(record)
    hashed["password"] = hash_password(record["password"])
    hashed["last_update"] = datetime.utcnow()
    return hashed


def generate_auth_token(user_id: str, secret: Optional[str]) -> Optional[str]:
    """
    Generate a signed JWT for a user.

    Args:
        user_id: Identifier of the user record
        secret: Signing secret

    Returns:
        Token valid for 10 hours, or None when no secret is configured
    """
    if not secret:
        logger.warning("JWT secret is not configured, no token issued")
        return None

    issued_at = datetime.utcnow()
    payload = {
        "_id": str(user_id),
        "iat": issued_at,
        "exp": issued_at + TOKEN_LIFETIME,
    }
    return jwt.encode(payload, secret, algorithm=TOKEN_ALGORITHM)


def decode_auth_token(token: str, secret: str) -> Dict[str, Any]:
    """Verify a token's signature and expiry and return its claims."""
    try:
        return jwt.decode(token, secret, algorithms=[TOKEN_ALGORITHM])
    except JWTError as exc:
        raise InvalidTokenError("Invalid or expired token") from exc
