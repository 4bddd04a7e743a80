# backend/otpvault/api/deps.py
from functools import lru_cache

from otpvault.core.config import settings
from otpvault.services.notifier import Notifier, build_notifier
from otpvault.storage.blobs import BlobStore, LocalBlobStore


@lru_cache(maxsize=1)
def get_blob_store() -> BlobStore:
    return LocalBlobStore(settings.blob_root)


@lru_cache(maxsize=1)
def get_notifier() -> Notifier:
    return build_notifier(settings)
