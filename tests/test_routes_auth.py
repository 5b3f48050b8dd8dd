"""Tests for credentials login."""

from conftest import ADMIN, IPS_USER


def test_login_and_me(client, seeded_users):
    response = client.post(
        "/api/auth/login", json={"email": IPS_USER.email, "password": "ips-pass"}
    )

    assert response.status_code == 200
    body = response.json()
    assert body["tokenType"] == "bearer"
    assert body["user"]["role"] == "USER"
    assert body["user"]["codigoHabilitacion"] == IPS_USER.codigo_habilitacion

    me = client.get(
        "/api/auth/me", headers={"Authorization": f"Bearer {body['accessToken']}"}
    )
    assert me.status_code == 200
    assert me.json()["email"] == IPS_USER.email


def test_login_wrong_password(client, seeded_users):
    response = client.post("/api/auth/login", json={"email": ADMIN.email, "password": "nope"})

    assert response.status_code == 401
    assert response.json() == {"success": False, "error": "Invalid credentials"}


def test_login_unknown_user(client, seeded_users):
    response = client.post(
        "/api/auth/login", json={"email": "ghost@furips.test", "password": "x"}
    )

    assert response.status_code == 401


def test_me_requires_token(client):
    assert client.get("/api/auth/me").status_code == 401
