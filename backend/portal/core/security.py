"""Bearer token handling for tokens issued by the backend's ``POST /jwt``.

Two modes: with ``JWT_SECRET`` configured the token is verified (HS256),
otherwise the claims are read unverified and every forwarded call lets the
backend decide.
"""

import time

from jose import JWTError, jwt

from portal.core.config import settings


def decode_access_token(token: str) -> dict:
    """Decode a backend-issued token. Returns the claims dict."""
    if settings.JWT_SECRET:
        return jwt.decode(
            token,
            settings.JWT_SECRET,
            algorithms=["HS256"],
            options={"verify_aud": False, "verify_iss": False},
        )
    claims = jwt.get_unverified_claims(token)
    exp = claims.get("exp")
    if exp is not None and int(exp) < int(time.time()):
        raise JWTError("Signature has expired.")
    return claims


def token_expiry(token: str) -> int | None:
    """Return the token's ``exp`` claim without verifying it."""
    exp = jwt.get_unverified_claims(token).get("exp")
    return int(exp) if exp is not None else None


def create_access_token(
    email: str,
    secret: str,
    expires_in: int = 3600,
) -> str:
    """Create an HS256 token shaped like the backend's. Used by tests and local dev."""
    payload = {
        "email": email,
        "iat": int(time.time()),
        "exp": int(time.time()) + expires_in,
    }
    return jwt.encode(payload, secret, algorithm="HS256")
