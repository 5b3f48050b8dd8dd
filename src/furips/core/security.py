"""Authentication and authorization primitives."""

import logging
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from enum import Enum

import bcrypt
import jwt
from jwt.exceptions import ExpiredSignatureError, InvalidTokenError

from furips.core.config import settings
from furips.core.exceptions import AuthenticationError

logger = logging.getLogger(__name__)


class Role(str, Enum):
    """Closed set of user roles."""

    ADMIN = "ADMIN"  # Elevated administrator
    USER = "USER"  # Institution-scoped IPS user
    ANALYST = "ANALYST"  # Read-only analyst

    @property
    def can_upload(self) -> bool:
        match self:
            case Role.ADMIN | Role.USER:
                return True
            case Role.ANALYST:
                return False

    @property
    def sees_all_institutions(self) -> bool:
        match self:
            case Role.ADMIN | Role.ANALYST:
                return True
            case Role.USER:
                return False

    @property
    def can_change_envio_status(self) -> bool:
        match self:
            case Role.ADMIN:
                return True
            case Role.USER | Role.ANALYST:
                return False


@dataclass(frozen=True)
class Principal:
    """Authenticated caller."""

    id: str
    email: str
    role: Role
    codigo_habilitacion: str | None = None
    nombre: str | None = None


def hash_password(password: str) -> str:
    """Hash a password using bcrypt."""
    hashed = bcrypt.hashpw(password.encode("utf-8"), bcrypt.gensalt())
    return hashed.decode("utf-8")


def verify_password(password: str, password_hash: str) -> bool:
    """Verify a password against a bcrypt hash.

    Malformed stored hashes count as a mismatch.
    """
    try:
        return bcrypt.checkpw(password.encode("utf-8"), password_hash.encode("utf-8"))
    except ValueError:
        logger.warning("Stored password hash is not a valid bcrypt hash")
        return False


def create_access_token(principal: Principal, expires_minutes: int | None = None) -> str:
    """Issue a signed bearer token for the principal."""
    now = datetime.now(timezone.utc)
    ttl = expires_minutes if expires_minutes is not None else settings.AUTH_TOKEN_EXPIRE_MINUTES
    payload = {
        "sub": principal.id,
        "email": principal.email,
        "role": principal.role.value,
        "codigoHabilitacion": principal.codigo_habilitacion,
        "name": principal.nombre,
        "iat": now,
        "exp": now + timedelta(minutes=ttl),
    }
    return jwt.encode(payload, settings.AUTH_SECRET_KEY, algorithm=settings.AUTH_ALGORITHM)


def decode_access_token(token: str) -> Principal:
    """Validate a bearer token and rebuild the principal it was issued for.

    Raises:
        AuthenticationError: If the token is expired, tampered with, or
            lacks the identity claims every session must carry
    """
    try:
        claims = jwt.decode(
            token, settings.AUTH_SECRET_KEY, algorithms=[settings.AUTH_ALGORITHM]
        )
    except ExpiredSignatureError as e:
        raise AuthenticationError("Session expired") from e
    except InvalidTokenError as e:
        raise AuthenticationError("Invalid session token") from e

    if not claims.get("sub") or not claims.get("email") or not claims.get("role"):
        raise AuthenticationError("Invalid session token")

    try:
        role = Role(claims["role"])
    except ValueError as e:
        raise AuthenticationError("Invalid session token") from e

    return Principal(
        id=str(claims["sub"]),
        email=claims["email"],
        role=role,
        codigo_habilitacion=claims.get("codigoHabilitacion"),
        nombre=claims.get("name"),
    )
