"""Firebase ID token validation.

The frontend signs users in with Firebase Auth and sends the ID token as a
Bearer token. Tokens are RS256 JWTs signed by Google's securetoken service;
the signing keys are fetched (and cached) from its JWKS endpoint.
"""

import logging

import jwt
from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from config import settings

logger = logging.getLogger(__name__)

ALGORITHM = "RS256"
FIREBASE_JWKS_URL = (
    "https://www.googleapis.com/service_accounts/v1/jwk/securetoken@system.gserviceaccount.com"
)
MAX_UID_LENGTH = 128

_bearer_scheme = HTTPBearer()
_jwks_client: jwt.PyJWKClient | None = None


def _get_jwks_client() -> jwt.PyJWKClient:
    global _jwks_client
    if _jwks_client is None:
        _jwks_client = jwt.PyJWKClient(FIREBASE_JWKS_URL, cache_keys=True)
    return _jwks_client


def _signing_key(token: str):
    """Public key matching the token's ``kid`` header."""
    return _get_jwks_client().get_signing_key_from_jwt(token).key


def decode_token(token: str) -> str:
    """Validate a Firebase ID token and return the user's uid.

    Raises:
        HTTPException: If the token is invalid, expired, or issued for another project.
    """
    try:
        key = _signing_key(token)
    except jwt.PyJWKClientError as e:
        logger.warning("Could not resolve Firebase signing key: %s", e)
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid token")
    except jwt.InvalidTokenError:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid token")

    try:
        payload = jwt.decode(
            token,
            key,
            algorithms=[ALGORITHM],
            audience=settings.firebase_project_id,
            issuer=settings.firebase_issuer,
            options={"require": ["exp", "iat", "sub"]},
        )
    except jwt.ExpiredSignatureError:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Token expired")
    except jwt.InvalidTokenError:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid token")

    uid = payload.get("sub")
    if not isinstance(uid, str) or not uid or len(uid) > MAX_UID_LENGTH:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid token payload")
    return uid


async def get_current_user_id(
    credentials: HTTPAuthorizationCredentials = Depends(_bearer_scheme),
) -> str:
    """FastAPI dependency that extracts the Firebase uid from the Bearer token."""
    return decode_token(credentials.credentials)
