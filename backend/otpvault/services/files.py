# backend/otpvault/services/files.py
"""
Envelope-encrypted file storage.

Upload: fresh key + nonce -> AES-256-GCM -> ciphertext to the blob store ->
metadata row carrying base64(key) and hex(nonce). Download reverses it. The
blob store only ever receives ciphertext.
"""
from __future__ import annotations

import re
import uuid
from dataclasses import dataclass
from datetime import datetime

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from otpvault.core.config import settings
from otpvault.core.errors import CryptoError, FileTooLarge, FormatError, StorageError
from otpvault.core.logging_config import logger
from otpvault.crud import files as files_crud
from otpvault.crypto.codec import b64_decode, b64_encode, hex_decode, hex_encode
from otpvault.crypto.symmetric import (
    decrypt,
    encrypt,
    export_key,
    generate_key,
    generate_nonce,
    import_key,
)
from otpvault.models._time import utcnow
from otpvault.models.file import FileRecord
from otpvault.security.sanitizer import InputSanitizer
from otpvault.storage.blobs import BlobStore, blob_age_seconds

_EXT_RE = re.compile(r'\A[A-Za-z0-9]{1,16}\Z')


@dataclass(frozen=True)
class DecryptedFile:
    filename: str
    mime_type: str
    data: bytes


def storage_location(owner_id: int, original_filename: str) -> tuple[str, str]:
    """Return ``(storage_filename, storage_path)``; the uuid makes both collision-free."""
    _, dot, ext = original_filename.rpartition('.')
    name = uuid.uuid4().hex
    if dot and _EXT_RE.match(ext):
        name = f"{name}.{ext.lower()}"
    return name, f"{owner_id}/{name}"


def check_size(size: int, max_bytes: int | None = None) -> None:
    limit = settings.MAX_UPLOAD_BYTES if max_bytes is None else max_bytes
    if size > limit:
        raise FileTooLarge(f"File too large (max {limit // (1024 * 1024)} MB)")


def upload(
    db: Session,
    blobs: BlobStore,
    data: bytes,
    filename: str | None,
    mime_type: str | None,
    owner_id: int,
    max_bytes: int | None = None,
) -> FileRecord:
    check_size(len(data), max_bytes)

    original = InputSanitizer.sanitize_filename(filename)
    mime = InputSanitizer.sanitize_mime_type(mime_type)

    key = generate_key()
    nonce = generate_nonce()
    ciphertext = encrypt(data, key, nonce)

    key_text = b64_encode(export_key(key))
    nonce_text = hex_encode(nonce)

    storage_name, path = storage_location(owner_id, original)
    blobs.put(path, ciphertext)

    record = FileRecord(
        owner_id=owner_id,
        filename=storage_name,
        original_filename=original,
        storage_path=path,
        file_size=len(data),
        mime_type=mime,
        encrypted_key=key_text,
        iv=nonce_text,
    )
    try:
        db.add(record)
        db.commit()
    except SQLAlchemyError as e:
        db.rollback()
        # compensate so no ciphertext is left without its key
        try:
            blobs.delete(path)
        except StorageError:
            logger.error(f"Could not remove blob {path} after metadata failure; left for the orphan sweep")
        raise StorageError("Failed to save file metadata") from e

    db.refresh(record)
    logger.info(f"Stored file id={record.id} owner={owner_id} size={record.file_size}")
    return record


def download(blobs: BlobStore, record: FileRecord) -> DecryptedFile:
    if record.deleted_at is not None:
        raise StorageError("File has been deleted")

    ciphertext = blobs.get(record.storage_path)

    try:
        key = import_key(b64_decode(record.encrypted_key))
        nonce = hex_decode(record.iv)
    except FormatError as e:
        raise CryptoError("Stored key material is malformed") from e

    # AuthenticationFailure is final: a mismatched key/nonce is never retried.
    plaintext = decrypt(ciphertext, key, nonce)
    return DecryptedFile(
        filename=record.original_filename,
        mime_type=record.mime_type,
        data=plaintext,
    )


def delete(db: Session, blobs: BlobStore, record: FileRecord, now: datetime | None = None) -> None:
    """Tombstone, remove the blob, then drop the row. A blob failure leaves the tombstone for the sweep."""
    try:
        if record.deleted_at is None:
            files_crud.tombstone(db, record, now or utcnow())
    except SQLAlchemyError as e:
        db.rollback()
        raise StorageError("Failed to delete file") from e

    file_id, owner_id = record.id, record.owner_id
    blobs.delete(record.storage_path)

    try:
        db.delete(record)
        db.commit()
    except SQLAlchemyError as e:
        db.rollback()
        raise StorageError("Failed to delete file metadata") from e
    logger.info(f"Deleted file id={file_id} owner={owner_id}")


def purge_tombstones(db: Session, blobs: BlobStore) -> int:
    purged = 0
    for record in files_crud.list_tombstoned(db):
        try:
            blobs.delete(record.storage_path)
            db.delete(record)
            db.commit()
        except (StorageError, SQLAlchemyError) as e:
            db.rollback()
            logger.warning(f"Tombstone purge for file id={record.id} failed: {e}")
            continue
        purged += 1
    if purged:
        logger.info(f"Purged {purged} tombstoned file(s)")
    return purged


def reconcile_orphans(db: Session, blobs: BlobStore, grace_seconds: float | None = None) -> int:
    """Delete blobs no FileRecord references, once they are older than the grace period."""
    grace = settings.ORPHAN_GRACE_MINUTES * 60 if grace_seconds is None else grace_seconds
    known = files_crud.known_storage_paths(db)
    removed = 0
    for path, mtime in list(blobs.iter_paths()):
        if path in known or blob_age_seconds(mtime) < grace:
            continue
        try:
            blobs.delete(path)
        except StorageError as e:
            logger.warning(f"Orphan blob {path} could not be removed: {e}")
            continue
        removed += 1
    if removed:
        logger.info(f"Removed {removed} orphaned blob(s)")
    return removed
