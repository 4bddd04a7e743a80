from datetime import datetime, timedelta, timezone

from otpvault.core.security import decode_access_token
from otpvault.crud import revoked_tokens
from otpvault.models.revoked_token import RevokedToken
from otpvault.services import otp as otp_service
from otpvault.services import sessions as session_service
from otpvault.services.maintenance import run_cleanup

NOW = datetime(2026, 1, 1, 12, 0, 0)


def _claims(db, notifier, email="a@x.com"):
    otp = otp_service.request_code(db, email, notifier)
    return decode_access_token(otp_service.verify_code(db, email, otp.otp_code).access_token)


def test_sign_out_records_jti_until_expiry(db, notifier):
    claims = _claims(db, notifier)
    assert revoked_tokens.is_revoked(db, claims["jti"]) is False

    session_service.sign_out(db, claims)
    session_service.sign_out(db, claims)

    (row,) = db.query(RevokedToken).all()
    assert row.jti == claims["jti"]
    assert row.expires_at == datetime.fromtimestamp(claims["exp"], tz=timezone.utc).replace(tzinfo=None)
    assert revoked_tokens.is_revoked(db, claims["jti"]) is True


def test_purge_drops_only_expired_revocations(db):
    revoked_tokens.revoke(db, "old", NOW - timedelta(minutes=1))
    revoked_tokens.revoke(db, "live", NOW + timedelta(minutes=30))

    assert session_service.purge_revoked_tokens(db, now=NOW) == 1
    assert [r.jti for r in db.query(RevokedToken).all()] == ["live"]
    assert session_service.purge_revoked_tokens(db, now=NOW) == 0


def test_cleanup_reports_revoked_token_purge(db, blobs):
    revoked_tokens.revoke(db, "stale", datetime(2000, 1, 1))

    report = run_cleanup(db, blobs)
    assert report == {"otps": 0, "revoked_tokens": 1, "tombstones": 0, "orphans": 0}
    assert db.query(RevokedToken).count() == 0
