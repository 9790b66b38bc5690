"""
app/core/security.py

Bearer token helpers. Tokens are issued by the auth service; this service
only needs to read them (issuing is kept for tooling and tests).
"""
from datetime import datetime, timedelta
from typing import Any, Dict, Optional
import logging

from jose import ExpiredSignatureError, JWTError, jwt
from app.core.config import settings

logger = logging.getLogger(__name__)


def create_access_token(subject: str, expires_delta: Optional[timedelta] = None, **claims) -> str:
    """Create a JWT whose ``sub`` is the user id"""
    expire = datetime.utcnow() + (expires_delta or timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES))
    to_encode = {**claims, "sub": str(subject), "exp": expire}
    return jwt.encode(to_encode, settings.SECRET_KEY, algorithm=settings.ALGORITHM)


def decode_access_token(token: str) -> Optional[Dict[str, Any]]:
    """Decoded claims, or None for an expired, forged or malformed token"""
    try:
        return jwt.decode(token, settings.SECRET_KEY, algorithms=[settings.ALGORITHM])
    except ExpiredSignatureError:
        logger.info("Rejected expired access token")
    except JWTError as e:
        logger.info(f"Rejected invalid access token: {e}")
    return None
