"""
Issue and verify the signed identity assertion (JWT) carried in
``Authorization: Bearer <token>`` headers.
"""
import logging
import uuid
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Optional

from jose import jwt
from jose.exceptions import ExpiredSignatureError, JWTClaimsError, JWTError

from app.configs.settings import settings
from app.exceptions.base_exception import (
    InvalidSignatureError,
    MalformedTokenError,
    TokenExpiredError,
    TokenNotYetValidError,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class TokenClaims:
    user_id: uuid.UUID
    email: str
    role: str


def issue_access_token(
    user,
    expires_delta: Optional[timedelta] = None,
    now: Optional[datetime] = None,
) -> str:
    """Sign a token embedding the user's id, email and role."""
    issued_at = now or datetime.now(timezone.utc)
    if expires_delta is None:
        expires_delta = timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES)

    to_encode = {
        "sub": str(user.id),
        "email": user.email,
        "role": user.role,
        "iat": issued_at,
        "exp": issued_at + expires_delta,
    }
    return jwt.encode(to_encode, settings.SECRET_KEY, algorithm=settings.ALGORITHM)


def verify_access_token(token: str) -> TokenClaims:
    """
    Validate signature and time claims of a token.

    Raises one of MalformedTokenError, InvalidSignatureError, TokenExpiredError
    or TokenNotYetValidError.
    """
    if not token or not token.strip():
        raise MalformedTokenError("Access token is required")

    # Structure first, so a garbled token is not reported as a bad signature
    try:
        jwt.get_unverified_claims(token)
    except JWTError:
        raise MalformedTokenError()

    try:
        payload = jwt.decode(token, settings.SECRET_KEY, algorithms=[settings.ALGORITHM])
    except ExpiredSignatureError:
        raise TokenExpiredError()
    except JWTClaimsError as e:
        if "not yet valid" in str(e):
            raise TokenNotYetValidError()
        raise MalformedTokenError()
    except JWTError:
        raise InvalidSignatureError()

    subject = payload.get("sub")
    try:
        user_id = uuid.UUID(str(subject))
    except (TypeError, ValueError):
        logger.warning("Token payload without a usable subject")
        raise MalformedTokenError("Invalid token payload")

    return TokenClaims(
        user_id=user_id,
        email=payload.get("email") or "",
        role=payload.get("role") or "customer",
    )
