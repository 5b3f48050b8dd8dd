"""Authentication models."""

from typing import Optional

from furips.models.common import CamelModel


class LoginRequest(CamelModel):
    email: str
    password: str


class UserOut(CamelModel):
    id: str
    email: str
    name: Optional[str] = None
    role: str
    codigo_habilitacion: Optional[str] = None


class LoginResponse(CamelModel):
    access_token: str
    token_type: str = "bearer"
    user: UserOut
