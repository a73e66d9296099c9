"""
Auth utilities for the Modle API.

Validates bearer JWTs issued by the main app and extracts the user id.
Falls back to the X-User-Id header outside production (tests, local dev).
"""
from fastapi import Header, HTTPException, Request
from typing import Any, Dict, Optional
from backend.core.config import settings
import jwt
import logging

logger = logging.getLogger("modle")


def decode_token(token: str) -> Dict[str, Any]:
    """
    Verify a bearer JWT signature and expiry and return its claims.

    Raises:
        HTTPException 401: Invalid or expired token, or no secret configured
    """
    if not settings.JWT_SECRET:
        logger.warning("auth.jwt_secret_missing")
        raise HTTPException(status_code=401, detail="Token verification unavailable")

    try:
        payload = jwt.decode(
            token,
            settings.JWT_SECRET,
            algorithms=settings.jwt_algorithms(),
            options={"verify_signature": True, "verify_exp": True},
        )
    except jwt.ExpiredSignatureError:
        raise HTTPException(status_code=401, detail="Token expired")
    except jwt.InvalidTokenError as e:
        logger.debug(f"Invalid token: {e}")
        raise HTTPException(status_code=401, detail="Invalid token")
    return payload


def _subject(claims: Dict[str, Any]) -> str:
    user_id = claims.get("sub") or claims.get("id")
    if not user_id:
        raise HTTPException(status_code=401, detail="Token has no subject")
    return str(user_id)


def verify_jwt(token: str) -> str:
    """
    Verify a bearer JWT and extract the user id.

    The main app signs tokens as {"id": ...} (older tokens) or with a
    standard 'sub' claim; either is accepted.
    """
    return _subject(decode_token(token))


async def get_current_user_id(
    request: Request,
    x_user_id: Optional[str] = Header(None, description="Non-production: test user ID")
) -> str:
    """
    Extract current user ID from request context.

    Priority:
    1. Bearer JWT from Authorization header
    2. X-User-Id header (not honored in production)
    3. Raise 401 Unauthorized

    Raises:
        HTTPException 401: Missing or invalid authentication
    """
    auth_header = request.headers.get("Authorization", "")
    if auth_header.startswith("Bearer "):
        # An invalid token never falls through to X-User-Id
        return verify_jwt(auth_header[7:])

    if x_user_id and settings.ENV.lower() != "production":
        return x_user_id

    raise HTTPException(
        status_code=401,
        detail="Missing Authorization (Bearer JWT) or X-User-Id header",
    )


def is_admin_claims(claims: Dict[str, Any]) -> bool:
    """Admin when the token says so ({"isAdmin": true} or {"role": "admin"})."""
    return claims.get("isAdmin") is True or claims.get("role") == "admin"


async def require_admin(
    request: Request,
    x_user_id: Optional[str] = Header(None, description="Non-production: test user ID")
) -> str:
    """
    FastAPI dependency: require an admin caller and return their user id.

    Admins are users listed in MODLE_ADMIN_USER_IDS, or bearer tokens that
    carry an admin claim.

    Raises:
        HTTPException 401: Missing or invalid authentication
        HTTPException 403: Authenticated but not an admin
    """
    auth_header = request.headers.get("Authorization", "")
    if auth_header.startswith("Bearer "):
        claims = decode_token(auth_header[7:])
        user_id = _subject(claims)
        if is_admin_claims(claims):
            return user_id
    else:
        user_id = await get_current_user_id(request, x_user_id)

    if user_id in settings.admin_user_ids():
        return user_id

    logger.warning("auth.admin_denied", extra={"user_id": user_id})
    raise HTTPException(status_code=403, detail="Access denied. Admin privileges required.")
