"""
JWT verification for tokens issued by the hosted auth service.

Tokens are HS256-signed with the project's shared secret and carry the
provider's user id in `sub` and the `authenticated` audience.
`create_access_token` mints equivalent tokens for scripts and tests.
"""

import logging
from datetime import datetime, timedelta, timezone
from typing import Optional, Dict, Any
from jose import JWTError, jwt
from backend.app.core.config import settings

logger = logging.getLogger("nexachain.auth")


def create_access_token(data: Dict[str, Any], expires_delta: Optional[timedelta] = None) -> str:
    """
    Sign a token the way the auth service does.

    Args:
        data: Claims to encode (normally `sub` and `email`)
        expires_delta: Lifetime; defaults to `access_token_expire_minutes`

    Example payload:
        {
            "sub": "3f1c2a9e-...",
            "email": "user@example.com",
            "aud": "authenticated",
            "iat": 1234564290,
            "exp": 1234567890
        }
    """
    issued_at = datetime.now(timezone.utc)
    lifetime = expires_delta if expires_delta is not None else timedelta(minutes=settings.access_token_expire_minutes)

    claims = dict(data)
    claims.setdefault("aud", settings.jwt_audience)
    claims.update({"iat": issued_at, "exp": issued_at + lifetime})

    return jwt.encode(claims, settings.secret_key, algorithm=settings.algorithm)


def decode_access_token(token: str) -> Optional[Dict[str, Any]]:
    """
    Verify signature, audience and expiry.

    Returns:
        The claims, or None for any invalid token
    """
    try:
        return jwt.decode(
            token,
            settings.secret_key,
            algorithms=[settings.algorithm],
            audience=settings.jwt_audience,
        )
    except JWTError as e:
        logger.debug("Rejected access token", extra={"reason": str(e)})
        return None
