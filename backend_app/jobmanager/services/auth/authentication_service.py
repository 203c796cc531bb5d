"""
Authentication Service - login, session rehydration and logout

This service handles ONLY authentication-related operations:
- Password hashing and verification
- Issuing JWT access tokens on login
- Re-loading the user behind a token on every request
- Revoking tokens on logout

User management and activity logging are handled by separate services.
"""

from datetime import datetime, timezone
from typing import Dict, Any, Optional, TYPE_CHECKING

from fastapi import Request
from passlib.context import CryptContext

from ...core.errors import AuthenticationError
from ...core.jwt_utils import TokenDecodeError, create_access_token, decode_token
from ...utils.input_validation import InputValidator
from ...utils.logging_config import get_logger

if TYPE_CHECKING:
    from ..storage.gateway import DataGateway

pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")

USERS = "users"
REVOKED_TOKENS = "revoked_tokens"


def hash_password(password: str) -> str:
    return pwd_context.hash(password)


def verify_password(plain_password: str, hashed_password: Optional[str]) -> bool:
    if not hashed_password:
        return False
    try:
        return pwd_context.verify(plain_password, hashed_password)
    except ValueError:
        # Stored value is not a recognised hash
        return False


def extract_ip_address(request: Request) -> str:
    """
    Extract client IP address from request headers.

    Forwarded headers win over the socket peer (load balancers/proxies).
    """
    forwarded_for = request.headers.get("X-Forwarded-For")
    if forwarded_for:
        # X-Forwarded-For can contain multiple IPs, take the first one
        return forwarded_for.split(",")[0].strip()

    real_ip = request.headers.get("X-Real-IP")
    if real_ip:
        return real_ip.strip()

    return getattr(request.client, "host", "unknown") if request.client else "unknown"


def extract_user_agent(request: Request) -> str:
    return request.headers.get("User-Agent", "Unknown")


class AuthenticationService:
    """
    Dedicated service for authentication and sessions.

    NOT responsible for:
    - Creating or editing users (handled by UserService)
    - Activity records (handled by AuditLoggingService)
    """

    def __init__(self, gateway: "DataGateway"):
        self._gateway = gateway
        self.logger = get_logger(__name__)

    async def find_user_by_email(self, email: str) -> Optional[Dict[str, Any]]:
        """Case-insensitive email lookup."""
        normalized = InputValidator.normalize_email(email)
        if not normalized:
            return None
        return await self._gateway.find_one(
            USERS, lambda u: InputValidator.normalize_email(u.get("email")) == normalized
        )

    async def login(self, email: str, password: str) -> Dict[str, Any]:
        """
        Verify credentials and issue an access token.

        Returns:
            {"access_token", "token_type", "user"} where ``user`` is the stored document

        Raises:
            AuthenticationError: unknown email, inactive account or wrong password
        """
        user = await self.find_user_by_email(email)
        if user is None or not user.get("is_active", True):
            self.logger.info("Login rejected for %s: unknown or inactive account", email)
            raise AuthenticationError("Invalid email or password")
        if not verify_password(password, user.get("hashed_password")):
            self.logger.info("Login rejected for %s: bad password", email)
            raise AuthenticationError("Invalid email or password")

        token = create_access_token(user)
        self.logger.info("User %s logged in", user.get("id"), extra={"role": user.get("role")})
        return {"access_token": token, "token_type": "bearer", "user": user}

    async def is_token_revoked(self, jti: Optional[str]) -> bool:
        if not jti:
            return False
        return await self._gateway.get_item(REVOKED_TOKENS, jti) is not None

    async def resolve_session(self, token: str) -> Dict[str, Any]:
        """
        Rehydrate the session behind a token.

        The token alone is never trusted: the user is re-loaded from storage and
        must still exist and be active, and the token must not have been revoked.
        """
        try:
            payload = decode_token(token)
        except TokenDecodeError as e:
            raise AuthenticationError(f"Invalid token: {e}") from e

        user_id = payload.get("sub")
        if not user_id:
            raise AuthenticationError("Invalid token: missing subject")

        if await self.is_token_revoked(payload.get("jti")):
            raise AuthenticationError("Session has been logged out")

        user = await self._gateway.get_item(USERS, user_id)
        if user is None:
            raise AuthenticationError("User no longer exists")
        if not user.get("is_active", True):
            raise AuthenticationError("User account is inactive")

        return user

    async def logout(self, token_payload: Dict[str, Any]) -> bool:
        """Revoke the token's ``jti``. Returns False for tokens without one."""
        jti = token_payload.get("jti")
        if not jti:
            return False
        exp = token_payload.get("exp")
        expires_at = (
            datetime.fromtimestamp(exp, tz=timezone.utc).isoformat() if isinstance(exp, (int, float)) else None
        )
        await self._gateway.upsert_item(
            REVOKED_TOKENS,
            {
                "id": jti,
                "user_id": token_payload.get("sub"),
                "revoked_at": datetime.now(timezone.utc).isoformat(),
                "expires_at": expires_at,
            },
        )
        self.logger.info("Token revoked for user %s", token_payload.get("sub"))
        await self.prune_revoked_tokens()
        return True

    async def prune_revoked_tokens(self, now: Optional[datetime] = None) -> int:
        """Drop revocations for tokens that have expired anyway. Returns how many were removed."""
        cutoff = (now or datetime.now(timezone.utc)).isoformat()
        expired = await self._gateway.find(
            REVOKED_TOKENS, lambda r: bool(r.get("expires_at")) and r["expires_at"] < cutoff
        )
        for record in expired:
            await self._gateway.delete_item(REVOKED_TOKENS, record["id"])
        if expired:
            self.logger.info("Pruned %d expired token revocations", len(expired))
        return len(expired)
