# backend/otpvault/services/maintenance.py
from __future__ import annotations

from sqlalchemy.orm import Session

from otpvault.core.errors import StorageError
from otpvault.core.logging_config import logger
from otpvault.services.files import purge_tombstones, reconcile_orphans
from otpvault.services.otp import purge_expired_otps
from otpvault.services.sessions import purge_revoked_tokens
from otpvault.storage.blobs import BlobStore


def run_cleanup(db: Session, blobs: BlobStore) -> dict[str, int]:
    """One sweep: stale OTPs, expired revocations, leftover tombstones, orphaned blobs. Each step runs even if another fails."""
    report = {"otps": 0, "revoked_tokens": 0, "tombstones": 0, "orphans": 0}
    try:
        report["otps"] = purge_expired_otps(db)
    except StorageError as e:
        logger.error(f"OTP purge failed: {e}")
    try:
        report["revoked_tokens"] = purge_revoked_tokens(db)
    except StorageError as e:
        logger.error(f"Revoked token purge failed: {e}")
    report["tombstones"] = purge_tombstones(db, blobs)
    try:
        report["orphans"] = reconcile_orphans(db, blobs)
    except StorageError as e:
        logger.error(f"Orphan sweep failed: {e}")
    return report
