"""Verification of ID tokens issued by the federated identity provider.

Works for any OIDC issuer that publishes a discovery document, which covers
both Google accounts and Firebase Authentication projects.
"""

import logging
import time
from typing import Any

import httpx
from jose import JWTError, jwt

logger = logging.getLogger(__name__)

_jwks_cache: dict[str, dict[str, Any]] = {}
_jwks_cache_times: dict[str, float] = {}
JWKS_CACHE_TTL = 3600


async def fetch_jwks(issuer_url: str) -> dict[str, Any]:
    now = time.time()
    cached = _jwks_cache.get(issuer_url)
    if cached and (now - _jwks_cache_times.get(issuer_url, 0)) < JWKS_CACHE_TTL:
        return cached

    discovery_url = f"{issuer_url.rstrip('/')}/.well-known/openid-configuration"
    async with httpx.AsyncClient(timeout=10) as client:
        discovery = await client.get(discovery_url)
        discovery.raise_for_status()

        keys = await client.get(discovery.json()["jwks_uri"])
        keys.raise_for_status()
        jwks = keys.json()

    _jwks_cache[issuer_url] = jwks
    _jwks_cache_times[issuer_url] = now
    return jwks


def clear_jwks_cache() -> None:
    _jwks_cache.clear()
    _jwks_cache_times.clear()


async def verify_id_token(id_token: str, issuer_url: str, client_id: str) -> dict[str, Any]:
    """
    Check signature, audience, issuer and expiry of ``id_token``.

    Returns the token claims. Raises ValueError when the provider cannot be
    reached or the token is rejected.
    """
    try:
        jwks = await fetch_jwks(issuer_url)
    except (httpx.HTTPError, KeyError) as e:
        logger.error("Failed to fetch JWKS for issuer %s: %s", issuer_url, e)
        raise ValueError(f"Failed to contact identity provider: {e}") from None

    try:
        claims = jwt.decode(
            id_token,
            jwks,
            algorithms=["RS256"],
            audience=client_id,
            issuer=issuer_url,
            options={"verify_exp": True, "verify_at_hash": False},
        )
    except JWTError as e:
        logger.warning("Rejected ID token from issuer %s: %s", issuer_url, e)
        raise ValueError(f"Invalid ID token: {e}") from None

    return claims
