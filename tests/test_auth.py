# tests/test_auth.py
# PURPOSE: register/login/me and resolving bearer tokens to identities.

from datetime import datetime, timedelta, timezone

import pytest
from jose import jwt

from taskboard.auth import create_access_token, decode_access_token, hash_password, resolve_identity, verify_password
from taskboard.config import settings
from taskboard.errors import Unauthenticated
from taskboard.store_db import UserRepository


def test_register_login_me(client):
    r = client.post(
        "/auth/register",
        json={"email": "carol@example.com", "username": "carol", "password": "secret-123"},
    )
    assert r.status_code == 201
    user = r.json()
    assert user["email"] == "carol@example.com"
    assert user["username"] == "carol"
    assert "password" not in user and "password_hash" not in user

    r = client.post("/auth/login", data={"username": "carol@example.com", "password": "secret-123"})
    assert r.status_code == 200
    token = r.json()["access_token"]
    assert r.json()["token_type"] == "bearer"

    me = client.get("/auth/me", headers={"Authorization": f"Bearer {token}"})
    assert me.status_code == 200
    assert me.json() == user


def test_register_duplicate_email(client, make_user):
    make_user("dup@example.com")
    r = client.post(
        "/auth/register",
        json={"email": "dup@example.com", "username": "someone", "password": "secret-123"},
    )
    assert r.status_code == 400
    assert r.json()["error"] == "Email already registered"


def test_register_validation(client):
    r = client.post("/auth/register", json={"email": "not-an-email", "username": "x", "password": "1"})
    assert r.status_code == 400
    locs = {tuple(d["loc"]) for d in r.json()["details"]}
    assert ("body", "email") in locs
    assert ("body", "username") in locs
    assert ("body", "password") in locs


def test_login_wrong_password(client, make_user):
    make_user("dave@example.com")
    r = client.post("/auth/login", data={"username": "dave@example.com", "password": "wrong-pass"})
    assert r.status_code == 401
    r = client.post("/auth/login", data={"username": "nobody@example.com", "password": "wrong-pass"})
    assert r.status_code == 401


def test_me_requires_token(client):
    assert client.get("/auth/me").status_code == 401
    assert client.get("/auth/me", headers={"Authorization": "Basic abc"}).status_code == 401


def test_password_hashing():
    hashed = hash_password("pw-123456")
    assert hashed != "pw-123456"
    assert verify_password("pw-123456", hashed)
    assert not verify_password("other", hashed)
    assert not verify_password("pw-123456", "not-a-bcrypt-hash")


def test_decode_rejects_bad_tokens():
    with pytest.raises(Unauthenticated):
        decode_access_token(None)
    with pytest.raises(Unauthenticated):
        decode_access_token("")
    with pytest.raises(Unauthenticated):
        decode_access_token("garbage.token.value")

    expired = create_access_token(1, expires_minutes=-1)
    with pytest.raises(Unauthenticated):
        decode_access_token(expired)

    foreign_key = jwt.encode(
        {"sub": "1", "exp": datetime.now(timezone.utc) + timedelta(minutes=5)},
        "some-other-secret",
        algorithm=settings.JWT_ALGORITHM,
    )
    with pytest.raises(Unauthenticated):
        decode_access_token(foreign_key)

    no_int_sub = jwt.encode(
        {"sub": "alice@example.com", "exp": datetime.now(timezone.utc) + timedelta(minutes=5)},
        settings.JWT_SECRET,
        algorithm=settings.JWT_ALGORITHM,
    )
    with pytest.raises(Unauthenticated):
        decode_access_token(no_int_sub)

    assert decode_access_token(create_access_token(42)) == 42


def test_resolve_identity(session, user_a):
    users = UserRepository(session)
    identity = resolve_identity(create_access_token(user_a.id), users)
    assert identity == user_a

    # valid signature, but the user is gone
    with pytest.raises(Unauthenticated):
        resolve_identity(create_access_token(user_a.id + 1000), users)


def test_expired_token_over_http(client, make_user):
    headers = make_user("erin@example.com")
    me = client.get("/auth/me", headers=headers).json()
    expired = create_access_token(me["id"], expires_minutes=-5)
    r = client.get("/tasks", headers={"Authorization": f"Bearer {expired}"})
    assert r.status_code == 401
