"""Identity provider: resolve the current user from a bearer JWT"""

from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Optional
from jose import JWTError, jwt
from fastapi import Depends
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
import logging

from concierge.config import settings
from concierge.exceptions import AuthRequired

logger = logging.getLogger(__name__)

ACCESS_TOKEN_EXPIRE_HOURS = 24

# HTTP Bearer security scheme; missing header is not an error here
security = HTTPBearer(auto_error=False)


@dataclass(frozen=True)
class CurrentUser:
    """Authenticated identity, resolved once per request"""
    id: str
    email: str = ""


def create_access_token(
    user_id: str,
    email: str = "",
    expires_delta: Optional[timedelta] = None
) -> str:
    """
    Mint an access token in the identity provider's format
    
    Args:
        user_id: Subject claim
        email: Email claim
        expires_delta: Optional expiration time delta
        
    Returns:
        Encoded JWT token
    """
    expire = datetime.utcnow() + (expires_delta or timedelta(hours=ACCESS_TOKEN_EXPIRE_HOURS))
    to_encode = {
        "sub": user_id,
        "email": email,
        "aud": settings.AUTH_JWT_AUDIENCE,
        "exp": expire
    }
    return jwt.encode(to_encode, settings.AUTH_JWT_SECRET, algorithm=settings.AUTH_JWT_ALGORITHM)


def decode_access_token(token: str) -> Optional[dict]:
    """
    Decode JWT access token
    
    Returns:
        Decoded claims or None if invalid or expired
    """
    try:
        return jwt.decode(
            token,
            settings.AUTH_JWT_SECRET,
            algorithms=[settings.AUTH_JWT_ALGORITHM],
            audience=settings.AUTH_JWT_AUDIENCE
        )
    except JWTError as e:
        logger.debug(f"Rejected access token: {e}")
        return None


def user_from_token(token: Optional[str]) -> Optional[CurrentUser]:
    """The user behind a token, or None"""
    if not token:
        return None
    payload = decode_access_token(token)
    if not payload or not payload.get("sub"):
        return None
    return CurrentUser(id=str(payload["sub"]), email=payload.get("email") or "")


async def get_current_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security)
) -> Optional[CurrentUser]:
    """Resolve the optional current user from the Authorization header"""
    return user_from_token(credentials.credentials if credentials else None)


async def require_user(
    user: Optional[CurrentUser] = Depends(get_current_user)
) -> CurrentUser:
    """Current user, or AuthRequired"""
    if user is None:
        raise AuthRequired()
    return user
