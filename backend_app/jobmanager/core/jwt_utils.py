"""
Access tokens.

Claims are convenience copies only: every request re-loads the user by
``sub``, and ``jti`` is what logout records as revoked.
"""
import uuid
from datetime import datetime, timedelta, timezone

from jose import ExpiredSignatureError, JWTError, jwt

from .config import get_config

# Claims the session layer relies on; a token without them cannot be rehydrated
REQUIRED_CLAIMS = ("sub", "exp")


class TokenDecodeError(Exception):
    pass


def create_access_token(user, *, expires_minutes=None) -> str:
    config = get_config()
    lifetime = timedelta(minutes=expires_minutes or config.jwt_access_token_expire_minutes)
    claims = {
        "sub": user.get("id"),
        "email": user.get("email"),
        "role": user.get("role"),
        "business_id": user.get("business_id"),
        "jti": uuid.uuid4().hex,
        "exp": datetime.now(timezone.utc) + lifetime,
    }
    return jwt.encode(claims, config.jwt_secret_key, algorithm=config.jwt_algorithm)


def decode_token(token: str) -> dict:
    """Verify signature and expiry. Raises ``TokenDecodeError`` with a short reason."""
    config = get_config()
    try:
        claims = jwt.decode(
            token,
            config.jwt_secret_key,
            algorithms=[config.jwt_algorithm],
            options={"require_sub": True, "require_exp": True},
        )
    except ExpiredSignatureError as e:
        raise TokenDecodeError("token has expired") from e
    except JWTError as e:
        raise TokenDecodeError(str(e)) from e

    missing = [name for name in REQUIRED_CLAIMS if not claims.get(name)]
    if missing:
        raise TokenDecodeError(f"missing claims: {', '.join(missing)}")
    return claims
