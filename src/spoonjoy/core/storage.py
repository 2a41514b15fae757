import io
import logging
from dataclasses import dataclass
from functools import lru_cache
from pathlib import PurePosixPath

import boto3
from botocore.exceptions import BotoCoreError, ClientError

from spoonjoy.core.config import settings
from spoonjoy.core.exception.exceptions import StorageException

logger = logging.getLogger("spoonjoy.storage")

PHOTO_URL_PREFIX = "/photos/"
DEFAULT_CONTENT_TYPE = "image/jpeg"
MISSING_OBJECT_CODES = {"NoSuchKey", "404", "NotFound"}


class InvalidStorageKey(ValueError):
    pass


@dataclass
class StoredPhoto:
    data: bytes
    content_type: str


class PhotoStore:
    """Keeps uploaded photos in an S3-compatible bucket; the app serves them under ``/photos/<key>``.

    Calls are blocking, so async callers go through a thread pool.
    """

    def __init__(self, bucket: str, client):
        self.bucket = bucket
        self.s3 = client

    @classmethod
    def from_settings(cls) -> "PhotoStore":
        secret = settings.OBJECT_STORE_SECRET_ACCESS_KEY
        client = boto3.client(
            service_name="s3",
            endpoint_url=settings.OBJECT_STORE_ENDPOINT,
            aws_access_key_id=settings.OBJECT_STORE_ACCESS_KEY_ID,
            aws_secret_access_key=secret.get_secret_value() if secret else None,
            region_name=settings.OBJECT_STORE_REGION,
        )
        return cls(bucket=settings.OBJECT_STORE_BUCKET, client=client)

    @staticmethod
    def _check_key(key: str) -> str:
        if not key or key.startswith("/") or ".." in PurePosixPath(key).parts:
            raise InvalidStorageKey(f"Invalid storage key: {key!r}")
        return key

    def put_bytes(self, *, key: str, content_type: str, data: bytes) -> str:
        """Store ``data`` under ``key`` and return the URL it is served from."""
        self._check_key(key)
        try:
            self.s3.put_object(Bucket=self.bucket, Key=key, Body=io.BytesIO(data), ContentType=content_type)
        except (BotoCoreError, ClientError) as e:
            logger.error("Failed to store %s: %s", key, e)
            raise StorageException(detail="Failed to store photo")

        logger.info("Stored %d bytes at %s", len(data), key)
        return PHOTO_URL_PREFIX + key

    def get(self, key: str) -> StoredPhoto | None:
        self._check_key(key)
        try:
            obj = self.s3.get_object(Bucket=self.bucket, Key=key)
        except ClientError as e:
            if e.response.get("Error", {}).get("Code") in MISSING_OBJECT_CODES:
                return None
            logger.error("Failed to read %s: %s", key, e)
            raise StorageException(detail="Failed to read photo")
        except BotoCoreError as e:
            logger.error("Failed to read %s: %s", key, e)
            raise StorageException(detail="Failed to read photo")

        return StoredPhoto(data=obj["Body"].read(), content_type=obj.get("ContentType") or DEFAULT_CONTENT_TYPE)

    def delete(self, key: str) -> bool:
        try:
            self._check_key(key)
        except InvalidStorageKey:
            logger.warning("Refusing to delete invalid key %r", key)
            return False

        try:
            self.s3.delete_object(Bucket=self.bucket, Key=key)
        except (BotoCoreError, ClientError) as e:
            logger.error("Failed to delete %s: %s", key, e)
            return False

        logger.info("Deleted %s", key)
        return True

    def delete_url(self, url: str | None) -> bool:
        """Delete the object behind a URL previously returned by ``put_bytes``; other URLs are left alone."""
        if not url or not url.startswith(PHOTO_URL_PREFIX):
            return False
        return self.delete(url[len(PHOTO_URL_PREFIX):])


@lru_cache
def get_photo_store() -> PhotoStore:
    return PhotoStore.from_settings()
