"""Bearer-token authentication and approval checks.

Tokens are HS256 JWTs issued by the session provider; the ``sub`` claim is
the user id. Approval and the admin flag live in the ``profile`` table.
"""

import logging
import uuid
from dataclasses import dataclass
from typing import Annotated, Protocol

from fastapi import Depends, Header
from jose import JWTError, jwt
from sqlalchemy.ext.asyncio import AsyncSession

from backend.saintshelp.config import Settings, get_settings
from backend.saintshelp.db.context import RequestContext
from backend.saintshelp.db.engine import get_session
from backend.saintshelp.db.repositories import ProfileRepository, ProfileStatus
from backend.saintshelp.db.sql_repositories import SqlProfileRepository
from backend.saintshelp.errors import AuthError, ForbiddenError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class VerifiedUser:
    """Caller identity after token verification."""

    user_id: uuid.UUID
    status: ProfileStatus | None
    is_admin: bool = False
    email: str | None = None

    @property
    def approved(self) -> bool:
        return self.status == ProfileStatus.approved


class TokenVerifier(Protocol):
    """Protocol for bearer token verification."""

    async def verify(self, token: str) -> VerifiedUser:
        """Verify a bearer token and load the caller's approval state.

        Raises:
            AuthError: If the token is invalid or expired
        """
        ...


class JwtProfileVerifier:
    """Verifies session JWTs and looks up the caller's profile."""

    def __init__(self, settings: Settings, profiles: ProfileRepository) -> None:
        self._settings = settings
        self._profiles = profiles

    def decode_subject(self, token: str) -> uuid.UUID:
        """Verify the token signature and claims, returning the subject.

        Raises:
            AuthError: If the token cannot be verified or has no usable subject
        """
        secret = self._settings.jwt_secret
        if secret is None or not secret.get_secret_value():
            logger.error("JWT_SECRET is not configured; rejecting bearer token")
            raise AuthError("Invalid token")

        audience = self._settings.jwt_audience
        try:
            payload = jwt.decode(
                token,
                secret.get_secret_value(),
                algorithms=[self._settings.jwt_algorithm],
                audience=audience,
                options={"verify_aud": audience is not None},
            )
        except JWTError as e:
            logger.debug(f"Token verification failed: {e}")
            raise AuthError("Invalid token") from e

        try:
            return uuid.UUID(str(payload.get("sub", "")))
        except ValueError as e:
            raise AuthError("Invalid token") from e

    async def verify(self, token: str) -> VerifiedUser:
        """Verify token and load profile."""
        user_id = self.decode_subject(token)
        profile = await self._profiles.get_profile(user_id)

        if profile is None:
            return VerifiedUser(user_id=user_id, status=None)

        return VerifiedUser(
            user_id=user_id,
            status=profile.status,
            is_admin=profile.is_admin,
            email=profile.email,
        )


def get_token_verifier(
    session: Annotated[AsyncSession, Depends(get_session)],
) -> TokenVerifier:
    """FastAPI dependency for the token verifier."""
    return JwtProfileVerifier(get_settings(), SqlProfileRepository(session))


def bearer_token(authorization: str | None) -> str:
    """Extract the token from an ``Authorization: Bearer`` header.

    Raises:
        AuthError: If the header is missing or not a bearer header
    """
    if not authorization or not authorization.startswith("Bearer "):
        raise AuthError("Missing Bearer token")

    token = authorization[len("Bearer ") :].strip()
    if not token:
        raise AuthError("Missing Bearer token")
    return token


async def get_current_user(
    verifier: Annotated[TokenVerifier, Depends(get_token_verifier)],
    authorization: Annotated[str | None, Header()] = None,
) -> RequestContext:
    """Authenticate the caller and require an approved profile.

    Returns:
        RequestContext for the caller

    Raises:
        AuthError: Missing or invalid credentials (401)
        ForbiddenError: Missing profile or account not approved (403)
    """
    user = await verifier.verify(bearer_token(authorization))

    if user.status is None:
        raise ForbiddenError("Profile missing")
    if not user.approved:
        raise ForbiddenError("User not approved")

    return RequestContext(user_id=user.user_id, is_admin=user.is_admin)


async def require_admin(
    ctx: Annotated[RequestContext, Depends(get_current_user)],
) -> RequestContext:
    """Require an approved admin caller.

    Raises:
        ForbiddenError: If the caller is not an admin
    """
    if not ctx.is_admin:
        raise ForbiddenError("Admin only")
    return ctx
