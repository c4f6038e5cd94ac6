from datetime import datetime, timedelta, timezone
from types import SimpleNamespace

import jwt
import pytest
from cryptography.hazmat.primitives.asymmetric import rsa

from typify.config import settings
from typify.models import User
from typify.security.auth import ALGORITHM, create_access_token, google_jwks, verify_google_id_token

ID_TOKEN_CLAIMS = {
    "iss": "https://accounts.google.com",
    "aud": "test-client-id",
    "sub": "g-42",
    "email": "kim@example.com",
    "email_verified": True,
    "name": "Kim",
    "picture": "https://example.com/kim.png",
    "given_name": "Kim",
    "family_name": "Lee",
}
LOGIN = {"credential": "good-token"}

@pytest.fixture
def id_token(monkeypatch):
    """Accepts the credential "good-token" as a Google ID token carrying the returned claims."""
    claims = dict(ID_TOKEN_CLAIMS)

    def verify(credential):
        if credential != "good-token":
            raise jwt.InvalidSignatureError("Signature verification failed")
        return claims

    monkeypatch.setattr("typify.routes.auth.verify_google_id_token", verify)
    return claims

def test_login_creates_user_and_returns_token(client, db, id_token):
    res = client.post("/api/auth/login", json=LOGIN)
    assert res.status_code == 200
    body = res.json()
    assert body["user"]["email"] == "kim@example.com"
    assert body["user"]["plan"] == "free"
    assert body["user"]["monthly_posts_limit"] == 10
    assert body["user"]["is_superadmin"] is False

    payload = jwt.decode(body["token"], settings.secret_key, algorithms=[ALGORITHM])
    assert payload["userId"] == body["user"]["id"]
    assert payload["email"] == "kim@example.com"
    lifetime = datetime.fromtimestamp(payload["exp"], timezone.utc) - datetime.now(timezone.utc)
    assert timedelta(days=6, hours=23) < lifetime <= timedelta(days=7)

    assert db.query(User).count() == 1

def test_login_updates_returning_user(client, db, make_user, id_token):
    existing = make_user(email="kim@example.com", name="Old Name", google_id=None, avatar_url=None)
    res = client.post("/api/auth/login", json={**LOGIN, "id": "g-42", "email": "KIM@example.com"})
    assert res.status_code == 200
    assert res.json()["user"]["id"] == existing.id

    db.refresh(existing)
    assert existing.name == "Kim"
    assert existing.google_id == "g-42"
    assert existing.avatar_url == ID_TOKEN_CLAIMS["picture"]
    assert db.query(User).count() == 1

@pytest.mark.parametrize("missing", ["sub", "email", "name"])
def test_login_rejects_incomplete_claims(client, id_token, missing):
    del id_token[missing]
    res = client.post("/api/auth/login", json=LOGIN)
    assert res.status_code == 400
    assert res.json()["detail"] == "Invalid user data"

def test_login_rejects_forged_profile(client, db, make_user, id_token):
    admin = make_user(email="admin@typify.test", google_id=None, is_superadmin=False)
    forged = {"id": "g-1", "email": "Admin@Typify.test", "name": "Admin"}

    res = client.post("/api/auth/login", json=forged)
    assert res.status_code == 401
    assert res.json()["detail"] == "Missing ID token"

    res = client.post("/api/auth/login", json={**forged, "credential": "forged-token"})
    assert res.status_code == 401
    assert res.json()["detail"] == "Invalid ID token"

    # A genuine token for another account cannot be pointed at the admin row
    res = client.post("/api/auth/login", json={**forged, "credential": "good-token"})
    assert res.status_code == 400
    assert "token" not in res.json()

    db.refresh(admin)
    assert admin.is_superadmin is False
    assert admin.google_id is None
    assert "access_token" not in client.cookies
    assert db.query(User).count() == 1

def test_login_rejects_unverified_email(client, db, id_token):
    id_token.update(email="admin@typify.test", email_verified=False)
    res = client.post("/api/auth/login", json=LOGIN)
    assert res.status_code == 403
    assert res.json()["detail"] == "Email not verified"
    assert db.query(User).count() == 0

def test_login_flags_verified_superadmin_email(client, id_token):
    id_token["email"] = "Admin@Typify.test"
    res = client.post("/api/auth/login", json=LOGIN)
    assert res.json()["user"]["is_superadmin"] is True

def test_verify_google_id_token(monkeypatch):
    key = rsa.generate_private_key(public_exponent=65537, key_size=2048)
    monkeypatch.setattr(google_jwks, "get_signing_key_from_jwt", lambda token: SimpleNamespace(key=key.public_key()))
    claims = {**ID_TOKEN_CLAIMS, "exp": datetime.now(timezone.utc) + timedelta(minutes=5)}

    assert verify_google_id_token(jwt.encode(claims, key, algorithm="RS256"))["sub"] == "g-42"

    for bad in ({"aud": "someone-else"}, {"iss": "https://evil.example"}, {"exp": datetime.now(timezone.utc) - timedelta(minutes=5)}):
        with pytest.raises(jwt.PyJWTError):
            verify_google_id_token(jwt.encode({**claims, **bad}, key, algorithm="RS256"))

    other_key = rsa.generate_private_key(public_exponent=65537, key_size=2048)
    with pytest.raises(jwt.InvalidSignatureError):
        verify_google_id_token(jwt.encode(claims, other_key, algorithm="RS256"))

    # Shared-secret tokens are not accepted as Google tokens
    with pytest.raises(jwt.PyJWTError):
        verify_google_id_token(create_access_token({"sub": "g-42"}))

def test_me_requires_bearer_header(client):
    res = client.get("/api/auth/me")
    assert res.status_code == 401
    assert res.json()["detail"] == "No valid authorization header"

    res = client.get("/api/auth/me", headers={"Authorization": "Token abc"})
    assert res.json()["detail"] == "No valid authorization header"

def test_me_rejects_bad_token(client):
    res = client.get("/api/auth/me", headers={"Authorization": "Bearer not-a-jwt"})
    assert res.status_code == 401
    assert res.json()["detail"] == "Invalid token"

    expired = create_access_token({"userId": 1}, expires_delta=timedelta(seconds=-10))
    res = client.get("/api/auth/me", headers={"Authorization": f"Bearer {expired}"})
    assert res.status_code == 401

def test_me_unknown_user(client):
    token = create_access_token({"userId": 999, "email": "ghost@example.com"})
    res = client.get("/api/auth/me", headers={"Authorization": f"Bearer {token}"})
    assert res.status_code == 404
    assert res.json()["detail"] == "User not found"

def test_me_returns_user(client, user, headers):
    res = client.get("/api/auth/me", headers=headers)
    assert res.status_code == 200
    assert res.json()["email"] == user.email

def test_session_and_logout(client, user, headers):
    assert client.get("/auth/session").json() == {"user": None}
    assert client.get("/auth/session", headers=headers).json()["user"]["id"] == user.id

    res = client.post("/auth/logout")
    assert res.status_code == 200
    assert 'access_token=""' in res.headers["set-cookie"] or "access_token=;" in res.headers["set-cookie"]

def test_login_cookie_authenticates_session(client, id_token):
    client.post("/api/auth/login", json=LOGIN)
    assert client.get("/auth/session").json()["user"]["email"] == "kim@example.com"

def test_inactive_user_is_anonymous(client, make_user, auth_for):
    inactive = make_user(is_active=False)
    assert client.get("/auth/session", headers=auth_for(inactive)).json() == {"user": None}
