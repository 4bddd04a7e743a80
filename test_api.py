from datetime import datetime, timedelta, timezone

from jose import jwt

from otpvault.core.config import settings
from otpvault.core.errors import DeliveryError


def test_health(client):
    assert client.get("/health").json() == {"status": "ok"}


def test_otp_login_flow(client, notifier):
    r = client.post("/auth/otp/request", json={"email": "A@X.com"})
    assert r.status_code == 202
    assert r.json()["status"] == "sent"
    code = notifier.last_code("a@x.com")
    assert len(code) == 6

    r = client.post("/auth/otp/verify", json={"email": "a@x.com", "code": code})
    assert r.status_code == 200
    body = r.json()
    assert body["token_type"] == "bearer"
    assert body["new_account"] is True
    assert "password" not in body

    me = client.get("/auth/me", headers={"Authorization": f"Bearer {body['access_token']}"})
    assert me.status_code == 200
    assert me.json()["email"] == "a@x.com"
    assert me.json()["email_verified"] is True

    # second login reuses the account
    client.post("/auth/otp/request", json={"email": "a@x.com"})
    r = client.post("/auth/otp/verify", json={"email": "a@x.com", "code": notifier.last_code("a@x.com")})
    assert r.json()["new_account"] is False
    assert r.json()["account_id"] == body["account_id"]


def test_verify_rejects_reused_code(client, notifier):
    client.post("/auth/otp/request", json={"email": "a@x.com"})
    code = notifier.last_code("a@x.com")
    assert client.post("/auth/otp/verify", json={"email": "a@x.com", "code": code}).status_code == 200

    r = client.post("/auth/otp/verify", json={"email": "a@x.com", "code": code})
    assert r.status_code == 400
    assert r.json() == {"detail": "Invalid or expired OTP"}


def test_verify_input_validation(client):
    r = client.post("/auth/otp/verify", json={"email": "a@x.com", "code": "12ab56"})
    assert r.status_code == 422
    r = client.post("/auth/otp/request", json={"email": "nope"})
    assert r.status_code == 422
    r = client.post("/auth/otp/request", json={"email": "a@x.com", "extra": 1})
    assert r.status_code == 422


def test_verify_is_rate_limited(client, notifier):
    client.post("/auth/otp/request", json={"email": "a@x.com"})
    code = notifier.last_code("a@x.com")
    wrong = "000000" if code != "000000" else "000001"
    for _ in range(settings.AUTH_MAX_ATTEMPTS):
        assert client.post("/auth/otp/verify", json={"email": "a@x.com", "code": wrong}).status_code == 400

    r = client.post("/auth/otp/verify", json={"email": "a@x.com", "code": code})
    assert r.status_code == 429


def test_delivery_failure_is_502(client, notifier, monkeypatch):
    def boom(message):
        raise DeliveryError()

    monkeypatch.setattr(notifier, "send", boom)
    r = client.post("/auth/otp/request", json={"email": "a@x.com"})
    assert r.status_code == 502
    assert r.json() == {"detail": "Failed to send code"}


def test_files_require_auth(client):
    assert client.get("/files").status_code in (401, 403)
    r = client.get("/files", headers={"Authorization": "Bearer not-a-jwt"})
    assert r.status_code == 401


def test_upload_list_download_delete(client, login):
    headers = login("a@x.com")
    payload = b"hello, encrypted world"

    r = client.post("/files", headers=headers, files={"file": ("hello.txt", payload, "text/plain")})
    assert r.status_code == 201, r.text
    meta = r.json()
    assert meta["original_filename"] == "hello.txt"
    assert meta["file_size"] == len(payload)
    assert "encrypted_key" not in meta and "iv" not in meta

    listed = client.get("/files", headers=headers).json()
    assert [f["id"] for f in listed] == [meta["id"]]
    assert client.get(f"/files/{meta['id']}", headers=headers).json()["filename"] == meta["filename"]

    r = client.get(f"/files/{meta['id']}/download", headers=headers)
    assert r.status_code == 200
    assert r.content == payload
    assert r.headers["content-type"].startswith("text/plain")
    assert "hello.txt" in r.headers["content-disposition"]

    assert client.delete(f"/files/{meta['id']}", headers=headers).status_code == 204
    assert client.get(f"/files/{meta['id']}", headers=headers).status_code == 404
    assert client.get("/files", headers=headers).json() == []


def test_files_are_private_to_owner(client, login):
    alice = login("a@x.com")
    bob = login("b@y.com")
    file_id = client.post("/files", headers=alice, files={"file": ("a.bin", b"\x00\x01", "application/octet-stream")}).json()["id"]

    assert client.get(f"/files/{file_id}", headers=bob).status_code == 404
    assert client.get(f"/files/{file_id}/download", headers=bob).status_code == 404
    assert client.delete(f"/files/{file_id}", headers=bob).status_code == 404
    assert client.get("/files", headers=bob).json() == []


def test_oversized_upload_is_413(client, login, blobs, monkeypatch):
    headers = login("a@x.com")
    monkeypatch.setattr(settings, "MAX_UPLOAD_BYTES", 16)

    r = client.post("/files", headers=headers, files={"file": ("big.bin", b"x" * 17, "application/octet-stream")})
    assert r.status_code == 413
    assert list(blobs.iter_paths()) == []


def test_tampered_blob_download_is_500(client, login, blobs):
    headers = login("a@x.com")
    file_id = client.post("/files", headers=headers, files={"file": ("a.txt", b"abc", "text/plain")}).json()["id"]

    (path, _), = list(blobs.iter_paths())
    ct = bytearray(blobs.get(path))
    ct[-1] ^= 1
    blobs.put(path, bytes(ct))

    r = client.get(f"/files/{file_id}/download", headers=headers)
    assert r.status_code == 500
    assert r.json() == {"detail": "File integrity check failed"}


def test_logout_revokes_token(client, login):
    headers = login("a@x.com")
    assert client.get("/auth/me", headers=headers).status_code == 200

    r = client.post("/auth/logout", headers=headers)
    assert r.status_code == 200
    assert r.json()["status"] == "ok"

    assert client.get("/auth/me", headers=headers).status_code == 401
    assert client.get("/files", headers=headers).status_code == 401
    assert client.post("/auth/logout", headers=headers).status_code == 401

    # a new login issues a token that is not affected
    fresh = login("a@x.com")
    assert client.get("/auth/me", headers=fresh).status_code == 200


def test_logout_only_revokes_its_own_token(client, login):
    first = login("a@x.com")
    second = login("a@x.com")
    assert client.post("/auth/logout", headers=first).status_code == 200
    assert client.get("/auth/me", headers=first).status_code == 401
    assert client.get("/auth/me", headers=second).status_code == 200


def test_token_without_jti_is_rejected(client, login):
    account_id = client.get("/auth/me", headers=login()).json()["id"]
    now = datetime.now(timezone.utc)
    token = jwt.encode(
        {"sub": str(account_id), "otp": True, "exp": int((now + timedelta(minutes=5)).timestamp())},
        settings.JWT_SECRET,
        algorithm=settings.JWT_ALGORITHM,
    )
    r = client.get("/auth/me", headers={"Authorization": f"Bearer {token}"})
    assert r.status_code == 401


def test_timestamps_are_serialized_as_utc(client, notifier):
    r = client.post("/auth/otp/request", json={"email": "a@x.com"})
    expires_at = datetime.fromisoformat(r.json()["expires_at"].replace("Z", "+00:00"))
    assert expires_at.utcoffset() == timedelta(0)
    assert timedelta(minutes=9) < expires_at - datetime.now(timezone.utc) <= timedelta(minutes=10)

    r = client.post("/auth/otp/verify", json={"email": "a@x.com", "code": notifier.last_code("a@x.com")})
    headers = {"Authorization": f"Bearer {r.json()['access_token']}"}
    created_at = datetime.fromisoformat(client.get("/auth/me", headers=headers).json()["created_at"].replace("Z", "+00:00"))
    assert created_at.utcoffset() == timedelta(0)

    client.post("/files", headers=headers, files={"file": ("a.txt", b"hi", "text/plain")})
    (item,) = client.get("/files", headers=headers).json()
    uploaded_at = datetime.fromisoformat(item["uploaded_at"].replace("Z", "+00:00"))
    assert uploaded_at.utcoffset() == timedelta(0)
