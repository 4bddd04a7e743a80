from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, ConfigDict, field_serializer

from otpvault.models._time import as_utc


class FileOut(BaseModel):
    """File metadata; key material is never returned over the API."""
    model_config = ConfigDict(from_attributes=True)

    id: int
    filename: str
    original_filename: str
    file_size: int
    mime_type: str
    uploaded_at: datetime

    @field_serializer('uploaded_at')
    def serialize_uploaded_at(self, v: datetime) -> datetime:
        return as_utc(v)
