"""Tests for password hashing, tokens and roles."""

import jwt
import pytest

from furips.core.config import settings
from furips.core.exceptions import AuthenticationError
from furips.core.security import (
    Principal,
    Role,
    create_access_token,
    decode_access_token,
    hash_password,
    verify_password,
)

PRINCIPAL = Principal(
    id="42",
    email="ips@clinica.test",
    role=Role.USER,
    codigo_habilitacion="7600100001-01",
    nombre="Clinica Norte",
)


def test_password_roundtrip():
    hashed = hash_password("s3cret")

    assert hashed != "s3cret"
    assert verify_password("s3cret", hashed)
    assert not verify_password("wrong", hashed)


def test_verify_password_malformed_hash():
    assert not verify_password("s3cret", "not-a-bcrypt-hash")


def test_token_carries_identity():
    principal = decode_access_token(create_access_token(PRINCIPAL))

    assert principal == PRINCIPAL


def test_expired_token():
    token = create_access_token(PRINCIPAL, expires_minutes=-1)

    with pytest.raises(AuthenticationError) as exc_info:
        decode_access_token(token)

    assert exc_info.value.message == "Session expired"


def test_token_signed_with_other_key():
    token = jwt.encode(
        {"sub": "1", "email": "x@y.z", "role": "ADMIN"},
        "another-secret-key-0123456789-abcdefghijkl",
        algorithm="HS256",
    )

    with pytest.raises(AuthenticationError):
        decode_access_token(token)


def test_token_missing_role():
    token = jwt.encode(
        {"sub": "1", "email": "x@y.z"}, settings.AUTH_SECRET_KEY, algorithm="HS256"
    )

    with pytest.raises(AuthenticationError):
        decode_access_token(token)


def test_token_with_unknown_role():
    token = jwt.encode(
        {"sub": "1", "email": "x@y.z", "role": "SUPERUSER"},
        settings.AUTH_SECRET_KEY,
        algorithm="HS256",
    )

    with pytest.raises(AuthenticationError):
        decode_access_token(token)


def test_garbage_token():
    with pytest.raises(AuthenticationError):
        decode_access_token("not.a.token")


@pytest.mark.parametrize(
    "role,can_upload,sees_all,can_change_status",
    [
        (Role.ADMIN, True, True, True),
        (Role.USER, True, False, False),
        (Role.ANALYST, False, True, False),
    ],
)
def test_role_capabilities(role, can_upload, sees_all, can_change_status):
    assert role.can_upload is can_upload
    assert role.sees_all_institutions is sees_all
    assert role.can_change_envio_status is can_change_status
