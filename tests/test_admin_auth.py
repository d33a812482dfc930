"""Tests for admin login and token handling."""
from greenghost.models.admin import Admin
from greenghost.utils.hash import hash_password
from greenghost.utils.token import create_access_token


def test_login_returns_working_token(client, admin):
    response = client.post("/api/admin/login", json={"username": "Admin", "password": "s3cret-pass"})

    assert response.status_code == 200
    token = response.json()["access_token"]
    assert response.json()["token_type"] == "bearer"

    me = client.get("/api/admin/me", headers={"Authorization": f"Bearer {token}"})
    assert me.status_code == 200
    assert me.json()["username"] == "admin"


def test_wrong_password(client, admin):
    response = client.post("/api/admin/login", json={"username": "admin", "password": "nope"})

    assert response.status_code == 401
    assert response.json()["error"] == "Incorrect username or password"


def test_unknown_user(client):
    response = client.post("/api/admin/login", json={"username": "ghost", "password": "whatever"})
    assert response.status_code == 401


def test_inactive_admin_cannot_log_in(client, db_session):
    db_session.add(Admin(
        username="retired",
        email="retired@greenghost.io",
        hashed_password=hash_password("old-pass"),
        is_active=False,
    ))
    db_session.commit()

    response = client.post("/api/admin/login", json={"username": "retired", "password": "old-pass"})
    assert response.status_code == 401


def test_token_without_admin_role_is_rejected(client, admin):
    token = create_access_token(data={"sub": "admin"})

    response = client.get("/api/admin/me", headers={"Authorization": f"Bearer {token}"})

    assert response.status_code == 401


def test_token_for_deleted_admin_is_rejected(client, admin, db_session):
    token = create_access_token(data={"sub": "admin", "role": "admin"})
    db_session.delete(admin)
    db_session.commit()

    response = client.get("/api/admin/me", headers={"Authorization": f"Bearer {token}"})

    assert response.status_code == 401
