from datetime import datetime, timedelta
from typing import Optional, Dict, Any
from jose import JWTError, ExpiredSignatureError, jwt
import bcrypt
import hmac

from lms.core.config import settings
from lms.core.exceptions import InvalidTokenError
from lms.core.logging_config import logger

ACCESS_TOKEN_TYPE = "access"
REFRESH_TOKEN_TYPE = "refresh"

# Claims every token carries besides the registered ones
CLAIM_KEYS = ("userId", "email", "roles", "defaultDashboard")


def verify_password(plain_password: str, hashed_password: str) -> bool:
    """Verify password"""
    # Bcrypt has a 72 byte limit - truncate password if necessary
    password_bytes = plain_password.encode('utf-8')[:72]
    try:
        return bcrypt.checkpw(password_bytes, hashed_password.encode('utf-8'))
    except ValueError:
        # Stored hash is not a bcrypt hash
        return False


def get_password_hash(password: str) -> str:
    """Hash password with configurable rounds (BCRYPT_ROUNDS in .env)"""
    password_bytes = password.encode('utf-8')[:72]
    hashed = bcrypt.hashpw(password_bytes, bcrypt.gensalt(rounds=settings.BCRYPT_ROUNDS))
    return hashed.decode('utf-8')


def constant_time_equals(a: str, b: str) -> bool:
    return hmac.compare_digest(a.encode('utf-8'), b.encode('utf-8'))


def _encode(claims: Dict[str, Any], token_type: str, key: str, expires_delta: timedelta) -> str:
    now = datetime.utcnow()
    to_encode = {k: claims[k] for k in CLAIM_KEYS if k in claims}
    to_encode.update({"type": token_type, "iat": now, "exp": now + expires_delta})
    return jwt.encode(to_encode, key, algorithm=settings.JWT_ALGORITHM)


def create_access_token(claims: Dict[str, Any], expires_delta: Optional[timedelta] = None) -> str:
    """Create JWT access token signed with the access key"""
    return _encode(
        claims,
        ACCESS_TOKEN_TYPE,
        settings.JWT_SECRET_KEY,
        expires_delta or timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES),
    )


def create_refresh_token(claims: Dict[str, Any], expires_delta: Optional[timedelta] = None) -> str:
    """Create JWT refresh token signed with the refresh key"""
    return _encode(
        claims,
        REFRESH_TOKEN_TYPE,
        settings.JWT_REFRESH_SECRET_KEY,
        expires_delta or timedelta(days=settings.REFRESH_TOKEN_EXPIRE_DAYS),
    )


def issue_token_pair(claims: Dict[str, Any]) -> Dict[str, str]:
    """Mint an access/refresh pair for the given identity claims"""
    return {
        "access_token": create_access_token(claims),
        "refresh_token": create_refresh_token(claims),
    }


def _decode(token: str, key: str, expected_type: str) -> Dict[str, Any]:
    try:
        payload = jwt.decode(token, key, algorithms=[settings.JWT_ALGORITHM])
    except ExpiredSignatureError:
        logger.info(f"Rejected expired {expected_type} token")
        raise InvalidTokenError(f"Invalid {expected_type} token")
    except JWTError as e:
        logger.info(f"Rejected malformed {expected_type} token: {e}")
        raise InvalidTokenError(f"Invalid {expected_type} token")

    if payload.get("type") != expected_type:
        logger.info(f"Rejected token of type {payload.get('type')!r}, expected {expected_type}")
        raise InvalidTokenError(f"Invalid {expected_type} token")
    if not payload.get("userId"):
        raise InvalidTokenError(f"Invalid {expected_type} token")
    return payload


def decode_access_token(token: str) -> Dict[str, Any]:
    """Decode and verify an access token; raises InvalidTokenError"""
    return _decode(token, settings.JWT_SECRET_KEY, ACCESS_TOKEN_TYPE)


def decode_refresh_token(token: str) -> Dict[str, Any]:
    """Decode and verify a refresh token; raises InvalidTokenError"""
    return _decode(token, settings.JWT_REFRESH_SECRET_KEY, REFRESH_TOKEN_TYPE)
