# backend/otpvault/models/file.py
from datetime import datetime

from sqlalchemy import DateTime, ForeignKey, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from otpvault.db.base import Base
from otpvault.models._time import utcnow


class FileRecord(Base):
    __tablename__ = "files"

    id: Mapped[int] = mapped_column(primary_key=True)

    owner_id: Mapped[int] = mapped_column(ForeignKey("accounts.id", ondelete="CASCADE"), index=True, nullable=False)

    filename: Mapped[str] = mapped_column(String(255), nullable=False)  # generated storage name
    original_filename: Mapped[str] = mapped_column(String(255), nullable=False)
    storage_path: Mapped[str] = mapped_column(String(512), unique=True, nullable=False)
    file_size: Mapped[int] = mapped_column(Integer, nullable=False)
    mime_type: Mapped[str] = mapped_column(String(127), nullable=False)

    # Must be byte-for-byte what upload produced, or the blob is unrecoverable.
    encrypted_key: Mapped[str] = mapped_column(Text, nullable=False)  # base64(raw key)
    iv: Mapped[str] = mapped_column(String(24), nullable=False)  # hex(nonce)

    uploaded_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow, nullable=False)
    deleted_at: Mapped[datetime | None] = mapped_column(DateTime, nullable=True, index=True)

    owner = relationship("Account", back_populates="files")
