"""Bearer token verification (tokens are issued by the account service)."""

import logging
import time
from typing import Optional

from authlib.jose import JsonWebToken
from authlib.jose.errors import JoseError

from history_time.config import JWT_SECRET, JWT_ALGORITHM

logger = logging.getLogger("HistoryTime.auth")

ACCESS_TOKEN_EXPIRE_SECONDS = 30 * 24 * 3600

# Only accept the configured algorithm, never "none"
jwt = JsonWebToken([JWT_ALGORITHM])


def create_access_token(
    user_id: str,
    name: Optional[str] = None,
    expires_in: int = ACCESS_TOKEN_EXPIRE_SECONDS,
) -> str:
    """Issue a token in the account service's format (used by tests and local tooling)."""
    now = int(time.time())
    payload = {"sub": user_id, "iat": now, "exp": now + expires_in}
    if name:
        payload["name"] = name
    return jwt.encode({"alg": JWT_ALGORITHM}, payload, JWT_SECRET).decode("ascii")


def decode_token(token: str) -> Optional[dict]:
    """Return the validated claims of ``token``, or None if it is unusable."""
    try:
        claims = jwt.decode(token, JWT_SECRET)
        claims.validate()
    except (JoseError, ValueError) as e:
        logger.debug(f"Rejected bearer token: {type(e).__name__}: {e}")
        return None
    if not claims.get("sub"):
        logger.debug("Rejected bearer token without a subject")
        return None
    return dict(claims)


def bearer_token(authorization: Optional[str]) -> Optional[str]:
    """Extract the token from an ``Authorization: Bearer ...`` header value."""
    if not authorization:
        return None
    scheme, _, token = authorization.partition(" ")
    if scheme.lower() != "bearer" or not token.strip():
        return None
    return token.strip()
