"""
Tubely Authentication Module

Bearer credential handling for the upload endpoints. Tokens are HS256 JWTs
signed with the shared ``jwt_secret``; the ``sub`` claim carries the user id
and the issuer must be ``tubely-access``.

- get_bearer_token: extract the token from an Authorization header
- validate_jwt: verify signature, expiry and issuer, return the user id
- create_access_token: issue a token (used by tooling and tests)
- get_current_user_id: FastAPI dependency combining the two checks

Usage:
    ```python
    from fastapi import Depends
    from tubely.core.auth import get_current_user_id

    @router.post("/protected")
    async def protected_route(user_id: str = Depends(get_current_user_id)):
        return {"user_id": user_id}
    ```
"""

import logging

from collections.abc import Mapping
from datetime import UTC, datetime, timedelta

from fastapi import Depends, Request
from jose import ExpiredSignatureError, JWTError, jwt

from tubely.config import Settings, get_settings
from tubely.core.errors import AuthError


# Configure module logger
logger = logging.getLogger(__name__)

JWT_ALGORITHM = "HS256"

TOKEN_ISSUER = "tubely-access"

BEARER_PREFIX = "bearer "


def get_bearer_token(headers: Mapping[str, str]) -> str:
    """
    Extract the bearer token from request headers.

    Args:
        headers: Request headers (case-insensitive mapping such as starlette's Headers).

    Returns:
        str: The raw token string.

    Raises:
        AuthError: If the Authorization header is missing or not a Bearer credential.
    """
    authorization = headers.get("authorization") or headers.get("Authorization")
    if not authorization:
        raise AuthError("Authorization header is missing")

    if not authorization.lower().startswith(BEARER_PREFIX):
        raise AuthError("Authorization header must use the Bearer scheme")

    token = authorization[len(BEARER_PREFIX):].strip()
    if not token:
        raise AuthError("Bearer token is empty")
    return token


def validate_jwt(token: str, secret: str) -> str:
    """
    Validate a bearer JWT and return the user id it was issued to.

    Args:
        token: The JWT string.
        secret: Shared HS256 signing secret.

    Returns:
        str: The ``sub`` claim.

    Raises:
        AuthError: If the signature, expiry or issuer is invalid, or the subject is missing.
    """
    try:
        payload = jwt.decode(
            token,
            secret,
            algorithms=[JWT_ALGORITHM],
            issuer=TOKEN_ISSUER,
        )
    except ExpiredSignatureError as e:
        logger.warning("Rejected expired token")
        raise AuthError("Token has expired") from e
    except JWTError as e:
        logger.warning("Rejected invalid token: %s", e)
        raise AuthError("Invalid token") from e

    user_id = payload.get("sub")
    if not user_id:
        raise AuthError("Token has no subject")
    return str(user_id)


def create_access_token(user_id: str, settings: Settings) -> str:
    """
    Issue an HS256 access token for a user.

    Token claims:
    - iss: ``tubely-access``
    - sub: User ID
    - iat / exp: issue time and expiry (``jwt_expiration_hours`` later)
    """
    now = datetime.now(UTC)
    payload = {
        "iss": TOKEN_ISSUER,
        "sub": user_id,
        "iat": now,
        "exp": now + timedelta(hours=settings.jwt_expiration_hours),
    }
    return jwt.encode(payload, settings.jwt_secret, algorithm=JWT_ALGORITHM)


async def get_current_user_id(
    request: Request,
    settings: Settings = Depends(get_settings),
) -> str:
    """FastAPI dependency resolving the acting user from the bearer credential."""
    token = get_bearer_token(request.headers)
    return validate_jwt(token, settings.jwt_secret)
