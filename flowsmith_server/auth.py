"""Bearer-token authentication.

Tokens are issued by the external auth provider. They are verified either
with a shared HS256 secret (FLOWSMITH_JWT_SECRET) or, when no secret is set,
against the provider's JWKS endpoint (SUPABASE_JWKS_URL). The ``sub`` claim
is the user id every owner-scoped query runs under.
"""

from __future__ import annotations

import logging
import os
from functools import lru_cache
from typing import Any, Dict

import jwt
from fastapi import Depends, Request

from flowsmith.errors import AuthRequiredError, ConfigurationError, ForbiddenError

logger = logging.getLogger(__name__)


@lru_cache(maxsize=4)
def get_jwks_client(jwks_url: str) -> jwt.PyJWKClient:
    return jwt.PyJWKClient(jwks_url, cache_keys=True)


def decode_token(token: str) -> Dict[str, Any]:
    """Verify a token and return its claims."""
    options = {"verify_aud": False}
    secret = os.getenv("FLOWSMITH_JWT_SECRET")
    jwks_url = os.getenv("SUPABASE_JWKS_URL")
    try:
        if secret:
            return jwt.decode(token, secret, algorithms=["HS256"], options=options)
        if not jwks_url:
            raise ConfigurationError("FLOWSMITH_JWT_SECRET or SUPABASE_JWKS_URL not set")
        signing_key = get_jwks_client(jwks_url).get_signing_key_from_jwt(token)
        return jwt.decode(
            token,
            signing_key.key,
            algorithms=[signing_key.algorithm],
            options=options,
        )
    except jwt.PyJWTError as exc:
        raise AuthRequiredError(f"Invalid token: {exc}") from exc


def get_current_user(request: Request) -> Dict[str, Any]:
    auth_header = request.headers.get("authorization")
    if not auth_header or not auth_header.lower().startswith("bearer "):
        raise AuthRequiredError("Missing bearer token")
    token = auth_header.split(" ", 1)[1].strip()
    claims = decode_token(token)
    request.state.token_claims = claims
    return claims


def require_user_id(claims: Dict[str, Any] = Depends(get_current_user)) -> str:
    sub = claims.get("sub")
    if not sub:
        raise AuthRequiredError("Token missing subject")
    return str(sub)


def admin_user_ids() -> set[str]:
    raw = os.getenv("FLOWSMITH_ADMIN_USERS", "")
    return {value.strip() for value in raw.split(",") if value.strip()}


def require_admin(user_id: str = Depends(require_user_id)) -> str:
    """Only privileged users may change server-wide settings."""
    if user_id not in admin_user_ids():
        logger.warning("user %s is not allowed to change server settings", user_id)
        raise ForbiddenError("Administrator privileges required")
    return user_id
