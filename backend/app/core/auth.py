import logging
import threading
from dataclasses import dataclass
from typing import Optional

import jwt
from fastapi import Header
from jwt import PyJWKClient

from app.core.config import get_settings
from app.core.errors import Unauthenticated

logger = logging.getLogger(__name__)

# Thread-safe JWKS client cache (initialised lazily, lives for process lifetime).
_jwks_client: Optional[PyJWKClient] = None
_jwks_lock = threading.Lock()


def _get_jwks_client(jwks_url: str) -> PyJWKClient:
    """Return a cached PyJWKClient (with built-in key caching)."""
    global _jwks_client
    if _jwks_client is not None:
        return _jwks_client
    with _jwks_lock:
        if _jwks_client is not None:
            return _jwks_client
        _jwks_client = PyJWKClient(jwks_url, cache_keys=True, lifespan=3600)
        return _jwks_client


@dataclass(frozen=True)
class CurrentUser:
    id: str
    email: Optional[str] = None


def _decode_options(settings):
    """Build shared audience kwargs + options dict."""
    audience = (settings.supabase_jwt_audience or "").strip()
    decode_kwargs = {}
    options = {}
    if audience:
        decode_kwargs["audience"] = audience
        options["verify_aud"] = True
    else:
        options["verify_aud"] = False
    return decode_kwargs, options


def _try_hs256(token: str, settings, decode_kwargs: dict, options: dict):
    """Attempt HS256 verification with supabase_jwt_secret. Returns payload or None."""
    try:
        return jwt.decode(
            token,
            settings.supabase_jwt_secret,
            algorithms=["HS256"],
            options=options,
            **decode_kwargs,
        )
    except jwt.InvalidTokenError:
        return None


def _try_es256(token: str, settings, decode_kwargs: dict, options: dict):
    """Attempt ES256 verification via Supabase JWKS endpoint. Returns payload or None."""
    supabase_url = (settings.supabase_url or "").rstrip("/")
    if not supabase_url:
        return None
    jwks_url = f"{supabase_url}/auth/v1/.well-known/jwks.json"
    try:
        client = _get_jwks_client(jwks_url)
        signing_key = client.get_signing_key_from_jwt(token)
        return jwt.decode(
            token,
            signing_key.key,
            algorithms=["ES256"],
            options=options,
            **decode_kwargs,
        )
    except (jwt.InvalidTokenError, jwt.PyJWKClientError) as exc:
        logger.debug("ES256 verification failed: %s", exc)
        return None


def resolve_identity(token: str) -> CurrentUser:
    """Resolve a bearer token to the user it was issued for.

    Pure with respect to request state: the same token always yields the
    same user (or the same failure).
    """
    token = (token or "").strip()
    if not token:
        raise Unauthenticated("Missing authorization header")

    settings = get_settings()
    if not settings.supabase_jwt_secret and not settings.supabase_url:
        logger.error("Token verification is not configured (SUPABASE_JWT_SECRET / SUPABASE_URL)")
        raise Unauthenticated()

    decode_kwargs, options = _decode_options(settings)

    # Peek at token header to choose strategy order (avoids unnecessary network calls)
    try:
        header = jwt.get_unverified_header(token)
    except jwt.DecodeError:
        raise Unauthenticated()

    alg = header.get("alg", "")

    payload = None
    if alg == "ES256":
        payload = _try_es256(token, settings, decode_kwargs, options)
        if payload is None and settings.supabase_jwt_secret:
            payload = _try_hs256(token, settings, decode_kwargs, options)
    else:
        if settings.supabase_jwt_secret:
            payload = _try_hs256(token, settings, decode_kwargs, options)
        if payload is None:
            payload = _try_es256(token, settings, decode_kwargs, options)

    if payload is None:
        raise Unauthenticated()

    user_id = payload.get("sub")
    if not user_id:
        raise Unauthenticated()

    return CurrentUser(id=str(user_id), email=payload.get("email"))


def get_current_user(
    authorization: Optional[str] = Header(None, alias="Authorization"),
) -> CurrentUser:
    if not authorization:
        raise Unauthenticated("Missing authorization header")
    if not authorization.startswith("Bearer "):
        raise Unauthenticated()
    return resolve_identity(authorization.split(" ", 1)[1])
