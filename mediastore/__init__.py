from .client import ObjectHead, S3MediaStore, build_media_store
from .exceptions import MediaStoreError, ObjectNotFound, TransientStoreError

__all__ = [
    "ObjectHead",
    "S3MediaStore",
    "build_media_store",
    "MediaStoreError",
    "ObjectNotFound",
    "TransientStoreError",
]
