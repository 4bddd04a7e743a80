# backend/otpvault/crud/files.py
from __future__ import annotations

from datetime import datetime

from sqlalchemy import select
from sqlalchemy.orm import Session

from otpvault.models.file import FileRecord


def list_for_owner(db: Session, owner_id: int) -> list[FileRecord]:
    stmt = (
        select(FileRecord)
        .where(FileRecord.owner_id == owner_id, FileRecord.deleted_at.is_(None))
        .order_by(FileRecord.uploaded_at.desc(), FileRecord.id.desc())
    )
    return list(db.execute(stmt).scalars().all())


def get_for_owner(db: Session, file_id: int, owner_id: int) -> FileRecord | None:
    stmt = select(FileRecord).where(
        FileRecord.id == file_id,
        FileRecord.owner_id == owner_id,
        FileRecord.deleted_at.is_(None),
    )
    return db.execute(stmt).scalar_one_or_none()


def list_tombstoned(db: Session) -> list[FileRecord]:
    stmt = select(FileRecord).where(FileRecord.deleted_at.is_not(None))
    return list(db.execute(stmt).scalars().all())


def known_storage_paths(db: Session) -> set[str]:
    return set(db.execute(select(FileRecord.storage_path)).scalars().all())


def tombstone(db: Session, record: FileRecord, when: datetime) -> None:
    record.deleted_at = when
    db.add(record)
    db.commit()
