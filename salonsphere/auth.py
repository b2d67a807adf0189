import logging
from typing import Optional

from fastapi import Depends, HTTPException
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose import ExpiredSignatureError, JWTError
from jose import jwt as jose_jwt
from pydantic import BaseModel

from .config import SUPABASE_JWT_AUDIENCE, SUPABASE_JWT_SECRET

logger = logging.getLogger(__name__)

security = HTTPBearer()

ALGORITHM = "HS256"


class CurrentUser(BaseModel):
    """Identity supplied by the session provider"""

    id: str
    email: Optional[str] = None
    tenant_id: Optional[str] = None
    role: Optional[str] = None


def decode_session_token(token: str) -> dict:
    """
    Verify a session JWT issued by the auth provider and return its claims.
    The tenant id in user metadata is trusted as-is.
    """
    if not SUPABASE_JWT_SECRET:
        logger.error("❌ SUPABASE_JWT_SECRET not configured")
        raise HTTPException(status_code=500, detail="Authentication not configured")

    try:
        return jose_jwt.decode(
            token,
            SUPABASE_JWT_SECRET,
            algorithms=[ALGORITHM],
            audience=SUPABASE_JWT_AUDIENCE,
        )
    except ExpiredSignatureError as e:
        logger.warning("⚠️ Session token expired")
        raise HTTPException(status_code=401, detail="Token expired") from e
    except JWTError as e:
        logger.warning(f"⚠️ Invalid session token: {e}")
        raise HTTPException(status_code=401, detail="Invalid token") from e


def user_from_claims(claims: dict) -> CurrentUser:
    user_id = claims.get("sub")
    if not user_id:
        raise HTTPException(status_code=401, detail="Token missing subject")

    metadata = claims.get("user_metadata") or {}
    return CurrentUser(
        id=user_id,
        email=claims.get("email"),
        tenant_id=metadata.get("tenant_id"),
        role=metadata.get("role"),
    )


async def get_current_user(
    credentials: HTTPAuthorizationCredentials = Depends(security),
) -> CurrentUser:
    """Resolve the signed-in user from the bearer token"""
    claims = decode_session_token(credentials.credentials)
    user = user_from_claims(claims)
    if not user.tenant_id:
        # Not an error: tenant-scoped reads stay disabled until onboarding sets it
        logger.debug(f"User {user.id} has no tenant in session metadata")
    return user


def require_tenant(tenant_id: Optional[str]) -> str:
    """Mutations need a tenant; reads without one are simply disabled"""
    if not tenant_id:
        raise HTTPException(status_code=403, detail="No tenant found")
    return tenant_id
