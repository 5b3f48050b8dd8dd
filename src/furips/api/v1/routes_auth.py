"""Credentials login."""

import logging

from fastapi import APIRouter, Body, Depends
from sqlalchemy import select
from sqlalchemy.orm import Session

from furips.api.deps import get_current_principal
from furips.core.exceptions import AuthenticationError
from furips.core.security import Principal, Role, create_access_token, verify_password
from furips.db.models import User
from furips.db.session import get_db
from furips.models.auth import LoginRequest, LoginResponse, UserOut

router = APIRouter(prefix="/api/auth", tags=["auth"])
logger = logging.getLogger(__name__)


def _user_out(principal: Principal) -> UserOut:
    return UserOut(
        id=principal.id,
        email=principal.email,
        name=principal.nombre,
        role=principal.role.value,
        codigo_habilitacion=principal.codigo_habilitacion,
    )


@router.post("/login", response_model=LoginResponse)
async def login(
    request: LoginRequest = Body(...),
    db: Session = Depends(get_db),
) -> LoginResponse:
    """Exchange email and password for a bearer token."""
    if not request.email or not request.password:
        raise AuthenticationError("Invalid credentials")

    user = db.scalar(select(User).where(User.email == request.email))
    if user is None or not user.password or not verify_password(request.password, user.password):
        logger.info("Login rejected", extra={"email": request.email})
        raise AuthenticationError("Invalid credentials")

    try:
        role = Role(user.role)
    except ValueError:
        logger.warning("User has an unknown role", extra={"email": user.email, "role": user.role})
        raise AuthenticationError("Invalid credentials")

    principal = Principal(
        id=str(user.id),
        email=user.email,
        role=role,
        codigo_habilitacion=user.codigo_habilitacion,
        nombre=user.nombre,
    )
    logger.info("Login succeeded", extra={"email": user.email, "role": role.value})
    return LoginResponse(access_token=create_access_token(principal), user=_user_out(principal))


@router.get("/me", response_model=UserOut)
async def me(principal: Principal = Depends(get_current_principal)) -> UserOut:
    return _user_out(principal)
