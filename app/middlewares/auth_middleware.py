import logging
import uuid
from dataclasses import dataclass
from typing import Optional

from fastapi import Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from app.database.database import get_db
from app.exceptions.base_exception import (
    ForbiddenException,
    UnauthorizedException,
    MalformedTokenError,
)
from app.repositories.user_repository import UserRepository
from app.utils.token import verify_access_token

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class AuthIdentity:
    """Verified identity attached to the request for downstream handlers."""
    id: uuid.UUID
    email: str
    role: str


def extract_bearer_token(authorization: Optional[str]) -> str:
    """Pull the token out of an ``Authorization: Bearer <token>`` header."""
    if not authorization:
        raise UnauthorizedException("Access token is required", error_code="TOKEN_MISSING")

    parts = authorization.split(" ")
    if len(parts) != 2 or parts[0] != "Bearer":
        raise UnauthorizedException(
            "Invalid authorization header format. Expected: Bearer <token>",
            error_code="AUTH_HEADER_MALFORMED",
        )

    token = parts[1]
    if not token.strip():
        raise MalformedTokenError("Access token is required")
    return token


async def authenticate(authorization: Optional[str], db: AsyncSession) -> AuthIdentity:
    token = extract_bearer_token(authorization)
    try:
        claims = verify_access_token(token)
    except UnauthorizedException as e:
        logger.info("Token rejected: %s", e.error_code)
        raise

    # A token may outlive the account it was issued for
    user = await UserRepository.get_by_id(db, claims.user_id)
    if user is None:
        raise ForbiddenException("User account not found", error_code="ACCOUNT_NOT_FOUND")
    if not user.is_active:
        raise ForbiddenException("User account is deactivated", error_code="ACCOUNT_DEACTIVATED")

    return AuthIdentity(id=user.id, email=user.email, role=user.role)


async def get_current_user(request: Request, db: AsyncSession = Depends(get_db)) -> AuthIdentity:
    """Require a valid bearer token and an active account."""
    identity = await authenticate(request.headers.get("Authorization"), db)
    request.state.identity = identity
    return identity


async def get_current_user_optional(request: Request, db: AsyncSession = Depends(get_db)) -> Optional[AuthIdentity]:
    """Same checks as get_current_user, but any failure yields an anonymous caller."""
    try:
        identity = await authenticate(request.headers.get("Authorization"), db)
    except (UnauthorizedException, ForbiddenException):
        return None
    request.state.identity = identity
    return identity


def require_role(*allowed_roles: str):
    """Dependency factory enforcing role membership."""
    async def _check(identity: AuthIdentity = Depends(get_current_user)) -> AuthIdentity:
        if identity.role not in allowed_roles:
            raise ForbiddenException("Insufficient permissions")
        return identity
    return _check
