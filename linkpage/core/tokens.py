"""Identity tokens (HS256 JWT) used for session cookies and bearer auth."""

from __future__ import annotations

import time
from typing import Any, Dict, Optional

from jose import JWTError, jwt

ALGORITHM = "HS256"
DEFAULT_TTL_SECONDS = 60 * 60 * 24 * 30


def sign_token(payload: Dict[str, Any], secret: str, expires_in: int = DEFAULT_TTL_SECONDS) -> str:
    """Sign payload with iat/exp claims. Caller claims win over iat/exp."""
    now = int(time.time())
    claims = {"iat": now, "exp": now + expires_in}
    claims.update(payload)
    if "sub" in claims and claims["sub"] is not None:
        # RFC 7519 subject is a string; jose rejects anything else on decode.
        claims["sub"] = str(claims["sub"])
    return jwt.encode(claims, secret, algorithm=ALGORITHM)


def verify_token(token: str, secret: str) -> Optional[Dict[str, Any]]:
    """Return the claims of a valid, unexpired token, or None."""
    if not token:
        return None
    try:
        return jwt.decode(token, secret, algorithms=[ALGORITHM])
    except JWTError:
        return None


def extract_bearer_token(authorization: str | None) -> Optional[str]:
    if not authorization:
        return None
    parts = authorization.split()
    if len(parts) != 2 or parts[0].lower() != "bearer":
        return None
    return parts[1]
