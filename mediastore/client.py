import logging
from dataclasses import dataclass, field
from urllib.parse import quote

import boto3
from botocore.client import Config
from botocore.exceptions import BotoCoreError, ClientError
from django.conf import settings

from .exceptions import ObjectNotFound, TransientStoreError

logger = logging.getLogger(__name__)

_MISSING_CODES = ("NoSuchKey", "404", "NotFound")


@dataclass
class ObjectHead:
    size: int
    content_type: str
    metadata: dict = field(default_factory=dict)


def _is_missing(err: ClientError) -> bool:
    return err.response.get("Error", {}).get("Code") in _MISSING_CODES


class S3MediaStore:
    """
    Private-bucket object store over the S3 API (R2, Spaces, MinIO, AWS).

    Reads return the whole object as bytes. Every botocore failure is mapped
    to ObjectNotFound or TransientStoreError so callers never see boto types.
    """

    def __init__(self, client, bucket: str, public_base_url: str = ""):
        self.client = client
        self.bucket = bucket
        self.public_base_url = (public_base_url or "").rstrip("/")

    def get(self, key: str) -> bytes:
        try:
            obj = self.client.get_object(Bucket=self.bucket, Key=key)
            return obj["Body"].read()
        except ClientError as ce:
            if _is_missing(ce):
                raise ObjectNotFound(key) from ce
            raise TransientStoreError(f"get failed for {key}") from ce
        except BotoCoreError as e:
            raise TransientStoreError(f"get failed for {key}") from e

    def put(self, key: str, body, content_type: str, metadata: dict | None = None) -> None:
        """body may be bytes or a binary file object."""
        extra = {"ContentType": content_type}
        if metadata:
            extra["Metadata"] = {k: str(v) for k, v in metadata.items()}
        try:
            if isinstance(body, (bytes, bytearray)):
                self.client.put_object(Bucket=self.bucket, Key=key, Body=bytes(body), **extra)
            else:
                self.client.upload_fileobj(body, self.bucket, key, ExtraArgs=extra)
        except (ClientError, BotoCoreError) as e:
            raise TransientStoreError(f"put failed for {key}") from e
        logger.info("stored %s (%s)", key, content_type)

    def head(self, key: str) -> ObjectHead:
        try:
            resp = self.client.head_object(Bucket=self.bucket, Key=key)
        except ClientError as ce:
            if _is_missing(ce):
                raise ObjectNotFound(key) from ce
            raise TransientStoreError(f"head failed for {key}") from ce
        except BotoCoreError as e:
            raise TransientStoreError(f"head failed for {key}") from e
        return ObjectHead(
            size=int(resp.get("ContentLength") or 0),
            content_type=resp.get("ContentType") or "application/octet-stream",
            metadata=resp.get("Metadata") or {},
        )

    def presign_put(self, key: str, content_type: str, metadata: dict | None = None, ttl: int = 3600) -> str:
        params = {"Bucket": self.bucket, "Key": key, "ContentType": content_type}
        if metadata:
            params["Metadata"] = {k: str(v) for k, v in metadata.items()}
        try:
            return self.client.generate_presigned_url("put_object", Params=params, ExpiresIn=int(ttl))
        except (ClientError, BotoCoreError) as e:
            raise TransientStoreError(f"presign put failed for {key}") from e

    def presign_get(self, key: str, ttl: int = 3600) -> str:
        try:
            return self.client.generate_presigned_url(
                "get_object",
                Params={"Bucket": self.bucket, "Key": key},
                ExpiresIn=int(ttl),
            )
        except (ClientError, BotoCoreError) as e:
            raise TransientStoreError(f"presign get failed for {key}") from e

    def object_url(self, key: str) -> str:
        # Only meaningful when a public/CDN domain fronts the bucket.
        if not self.public_base_url:
            return ""
        return f"{self.public_base_url}/{quote(key)}"


def build_media_store(conf: dict | None = None) -> S3MediaStore:
    conf = conf or settings.MEDIA_STORE
    client = boto3.client(
        "s3",
        endpoint_url=conf.get("ENDPOINT_URL"),
        region_name=conf.get("REGION") or "auto",
        aws_access_key_id=conf.get("ACCESS_KEY_ID"),
        aws_secret_access_key=conf.get("SECRET_ACCESS_KEY"),
        config=Config(signature_version="s3v4"),
    )
    return S3MediaStore(client, conf["BUCKET"], conf.get("PUBLIC_BASE_URL", ""))
