# tstar_feed/api/auth/test_auth_services.py
"""
인증 서비스 테스트
- LocalAuthProvider: 로컬 세션 저장/복원
- CloudAuthProvider: Firebase Admin SDK와 Identity Toolkit 호출을 monkeypatch로 대체

사용법: python -m pytest tstar_feed/api/auth/test_auth_services.py -v
"""
import re
from types import SimpleNamespace

import pytest
import requests

from tstar_feed.api.auth import services as auth_services
from tstar_feed.api.auth.services import CloudAuthProvider, LocalAuthProvider, email_prefix
from tstar_feed.core.context import CloudContext
from tstar_feed.core.errors import AuthenticationError
from tstar_feed.services.kv_store import StorageKeys


class FakeResponse:
    def __init__(self, status_code, payload):
        self.status_code = status_code
        self._payload = payload

    def json(self):
        return self._payload


@pytest.fixture
def cloud_auth(fake_db, fake_bucket):
    context = CloudContext(app=SimpleNamespace(name="test"), db=fake_db, bucket=fake_bucket, web_api_key="web-key")
    return CloudAuthProvider(context)


def test_email_prefix():
    assert email_prefix("ann@example.com") == "ann"
    assert email_prefix(None) == ""

def test_local_quick_sign_in_persists(store):
    provider = LocalAuthProvider(store)
    session = provider.quick_sign_in()

    assert re.match(r"^Trader\d{1,3}$", session.display_name)
    assert session.uid.startswith("u")
    assert LocalAuthProvider(store).restore() == session

def test_local_sign_up_and_sign_out(store):
    provider = LocalAuthProvider(store)
    assert provider.sign_up("bo@example.com", "pw").display_name == "bo"
    assert provider.sign_up("bo@example.com", "pw", "Bo").display_name == "Bo"

    provider.sign_out(provider.restore())
    assert provider.restore() is None
    assert store.load(StorageKeys.SESSION) is None

def test_local_restore_ignores_corrupt_session(store):
    store.save(StorageKeys.SESSION, {"displayName": "no uid"})
    assert LocalAuthProvider(store).restore() is None

def test_cloud_sign_in(cloud_auth, monkeypatch):
    calls = []
    def fake_post(url, params=None, json=None, timeout=None):
        calls.append((url, params, json))
        return FakeResponse(200, {"localId": "uid-1", "email": "ann@example.com", "displayName": "Ann"})
    monkeypatch.setattr(requests, "post", fake_post)

    session = cloud_auth.sign_in("ann@example.com", "pw")

    assert session.uid == "uid-1"
    assert session.display_name == "Ann"
    url, params, body = calls[0]
    assert url == CloudAuthProvider.SIGN_IN_URL
    assert params == {"key": "web-key"}
    assert body["email"] == "ann@example.com"
    assert body["returnSecureToken"] is True

def test_cloud_sign_in_rejected(cloud_auth, monkeypatch):
    monkeypatch.setattr(requests, "post", lambda *args, **kwargs: FakeResponse(
        400, {"error": {"message": "INVALID_PASSWORD"}}))
    with pytest.raises(AuthenticationError) as exc_info:
        cloud_auth.sign_in("ann@example.com", "wrong")
    assert str(exc_info.value) == "INVALID_PASSWORD"

def test_cloud_sign_in_network_error(cloud_auth, monkeypatch):
    def fail(*args, **kwargs):
        raise requests.ConnectionError("offline")
    monkeypatch.setattr(requests, "post", fail)
    with pytest.raises(AuthenticationError):
        cloud_auth.sign_in("ann@example.com", "pw")

def test_cloud_sign_in_requires_web_api_key(fake_db, fake_bucket):
    provider = CloudAuthProvider(CloudContext(app=None, db=fake_db, bucket=fake_bucket))
    with pytest.raises(AuthenticationError):
        provider.sign_in("ann@example.com", "pw")

def test_cloud_sign_up_creates_user_document(cloud_auth, fake_db, monkeypatch):
    created = []
    def fake_create_user(**kwargs):
        created.append(kwargs)
        return SimpleNamespace(uid="uid-9")
    monkeypatch.setattr(auth_services.firebase_auth, "create_user", fake_create_user)

    assert cloud_auth.sign_up("bo@example.com", "pw", "Bo") is None

    assert created[0]["email"] == "bo@example.com"
    assert created[0]["display_name"] == "Bo"
    (user_doc,) = fake_db.collection('users').docs.values()
    assert user_doc["uid"] == "uid-9"
    assert user_doc["displayName"] == "Bo"

def test_cloud_sign_up_failure(cloud_auth, monkeypatch):
    def fail(**kwargs):
        raise ValueError("EMAIL_EXISTS")
    monkeypatch.setattr(auth_services.firebase_auth, "create_user", fail)
    with pytest.raises(AuthenticationError):
        cloud_auth.sign_up("bo@example.com", "pw")

def test_cloud_user_document_failure_is_ignored(cloud_auth, fake_db, monkeypatch):
    monkeypatch.setattr(auth_services.firebase_auth, "create_user", lambda **kwargs: SimpleNamespace(uid="uid-9"))
    fake_db.failing.add("write")
    assert cloud_auth.sign_up("bo@example.com", "pw") is None

def test_cloud_quick_sign_in_unavailable(cloud_auth):
    with pytest.raises(AuthenticationError):
        cloud_auth.quick_sign_in()
    assert cloud_auth.restore() is None

def test_cloud_sign_out_is_best_effort(cloud_auth, monkeypatch):
    revoked = []
    monkeypatch.setattr(auth_services.firebase_auth, "revoke_refresh_tokens",
                        lambda uid, app=None: revoked.append(uid))
    cloud_auth.sign_out(SimpleNamespace(uid="uid-1"))
    cloud_auth.sign_out(None)
    assert revoked == ["uid-1"]

    def fail(uid, app=None):
        raise RuntimeError("network")
    monkeypatch.setattr(auth_services.firebase_auth, "revoke_refresh_tokens", fail)
    cloud_auth.sign_out(SimpleNamespace(uid="uid-1"))
