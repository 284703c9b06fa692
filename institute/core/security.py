import logging
from datetime import datetime, timedelta

from fastapi import HTTPException
from jose import jwt, JWTError
from passlib.context import CryptContext

from institute.core import config

logger = logging.getLogger(__name__)

pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")


def hash_password(password: str) -> str:
    return pwd_context.hash(password)


def verify_password(plain_password: str, password_hash: str) -> bool:
    if not password_hash:
        return False
    return pwd_context.verify(plain_password, password_hash)


def _require_secret() -> str:
    if not config.JWT_SECRET:
        logger.error("JWT_SECRET is not configured")
        raise HTTPException(status_code=500, detail="Token secret not configured")
    return config.JWT_SECRET


def create_access_token(user_id: str, email: str, role: str) -> str:
    """
    Issue a signed HS256 token
    Payload carries user_id, email and role; expiry from JWT_EXPIRES_DAYS
    """
    payload = {
        "user_id": user_id,
        "email": email,
        "role": role,
        "exp": datetime.utcnow() + timedelta(days=config.JWT_EXPIRES_DAYS),
    }
    return jwt.encode(payload, _require_secret(), algorithm=config.JWT_ALGORITHM)


def decode_access_token(token: str) -> dict:
    try:
        return jwt.decode(token, _require_secret(), algorithms=[config.JWT_ALGORITHM])
    except JWTError:
        raise HTTPException(status_code=401, detail="Invalid or Expired Token")
