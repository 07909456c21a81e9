class MediaStoreError(Exception):
    reason = "store_error"


class ObjectNotFound(MediaStoreError):
    reason = "object_not_found"

    def __init__(self, key: str):
        super().__init__(f"object not found: {key}")
        self.key = key


class TransientStoreError(MediaStoreError):
    reason = "store_unavailable"
