import time

import pytest
from fastapi import HTTPException
from jose import jwt

from salonsphere import auth
from salonsphere.auth import decode_session_token, require_tenant, user_from_claims

SECRET = "test-secret"


@pytest.fixture(autouse=True)
def jwt_secret(monkeypatch):
    monkeypatch.setattr(auth, "SUPABASE_JWT_SECRET", SECRET)


def _token(secret=SECRET, expires_in=3600, **claims):
    payload = {
        "sub": "user-1",
        "aud": "authenticated",
        "email": "owner@beautysalon.nl",
        "exp": int(time.time()) + expires_in,
        "user_metadata": {"tenant_id": "tenant-1", "role": "admin"},
    }
    payload.update(claims)
    return jwt.encode(payload, secret, algorithm="HS256")


def test_session_token_yields_user():
    user = user_from_claims(decode_session_token(_token()))

    assert user.id == "user-1"
    assert user.tenant_id == "tenant-1"
    assert user.role == "admin"


def test_user_without_tenant_metadata():
    user = user_from_claims({"sub": "user-2"})
    assert user.tenant_id is None


def test_missing_subject():
    with pytest.raises(HTTPException) as exc:
        user_from_claims({"email": "x@example.nl"})
    assert exc.value.status_code == 401


def test_expired_token():
    with pytest.raises(HTTPException) as exc:
        decode_session_token(_token(expires_in=-60))
    assert exc.value.detail == "Token expired"


def test_token_with_wrong_signature():
    with pytest.raises(HTTPException) as exc:
        decode_session_token(_token(secret="other-secret"))
    assert exc.value.status_code == 401
    assert exc.value.detail == "Invalid token"


def test_unconfigured_secret(monkeypatch):
    monkeypatch.setattr(auth, "SUPABASE_JWT_SECRET", None)
    with pytest.raises(HTTPException) as exc:
        decode_session_token(_token())
    assert exc.value.status_code == 500


def test_require_tenant():
    assert require_tenant("tenant-1") == "tenant-1"
    with pytest.raises(HTTPException) as exc:
        require_tenant(None)
    assert exc.value.status_code == 403


def test_request_without_bearer_is_rejected():
    from fastapi.testclient import TestClient

    from salonsphere.main import app

    response = TestClient(app).get("/tenants/current")
    assert response.status_code in (401, 403)
