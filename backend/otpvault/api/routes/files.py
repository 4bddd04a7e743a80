# backend/otpvault/api/routes/files.py
from __future__ import annotations

from typing import List
from urllib.parse import quote

from fastapi import APIRouter, Depends, File, HTTPException, Response, UploadFile, status
from sqlalchemy.orm import Session
from starlette.concurrency import run_in_threadpool

from otpvault.api.deps import get_blob_store
from otpvault.core.security import get_current_user
from otpvault.crud import files as files_crud
from otpvault.db.session import get_db
from otpvault.models.account import Account
from otpvault.models.file import FileRecord
from otpvault.schemas.files import FileOut
from otpvault.services import files as file_service
from otpvault.storage.blobs import BlobStore

router = APIRouter(prefix="/files", tags=["files"])


def _own_file(db: Session, file_id: int, current_user: Account) -> FileRecord:
    record = files_crud.get_for_owner(db, file_id, current_user.id)
    if not record:
        raise HTTPException(status_code=404, detail="File not found")
    return record


@router.post("", response_model=FileOut, status_code=status.HTTP_201_CREATED)
async def upload_file(
    file: UploadFile = File(...),
    db: Session = Depends(get_db),
    blobs: BlobStore = Depends(get_blob_store),
    current_user: Account = Depends(get_current_user),
):
    """Encrypt and store a file. Oversized uploads are refused before any crypto work."""
    if file.size is not None:
        file_service.check_size(file.size)

    content = await file.read()
    # encryption is CPU bound; keep it off the event loop
    return await run_in_threadpool(
        file_service.upload,
        db,
        blobs,
        data=content,
        filename=file.filename,
        mime_type=file.content_type,
        owner_id=current_user.id,
    )


@router.get("", response_model=List[FileOut])
def list_files(
    db: Session = Depends(get_db),
    current_user: Account = Depends(get_current_user),
):
    return files_crud.list_for_owner(db, current_user.id)


@router.get("/{file_id}", response_model=FileOut)
def get_file(
    file_id: int,
    db: Session = Depends(get_db),
    current_user: Account = Depends(get_current_user),
):
    return _own_file(db, file_id, current_user)


@router.get("/{file_id}/download")
def download_file(
    file_id: int,
    db: Session = Depends(get_db),
    blobs: BlobStore = Depends(get_blob_store),
    current_user: Account = Depends(get_current_user),
):
    record = _own_file(db, file_id, current_user)
    result = file_service.download(blobs, record)
    return Response(
        content=result.data,
        media_type=result.mime_type,
        headers={"Content-Disposition": f"attachment; filename*=UTF-8''{quote(result.filename)}"},
    )


@router.delete("/{file_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_file(
    file_id: int,
    db: Session = Depends(get_db),
    blobs: BlobStore = Depends(get_blob_store),
    current_user: Account = Depends(get_current_user),
):
    record = _own_file(db, file_id, current_user)
    file_service.delete(db, blobs, record)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
