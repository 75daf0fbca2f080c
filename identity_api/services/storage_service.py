"""
Storage service: image and document upload and deletion on S3-compatible
object storage (AWS S3, Cloudflare R2, MinIO) via boto3.

Uploads get a content-addressed key under the configured folder and are served
from the public base URL. Deletion takes that public URL back, so callers only
ever deal in URLs; URLs that don't point at our bucket are ignored.
"""
import hashlib
import logging
from datetime import datetime, timezone
from typing import Optional

import boto3
from botocore.config import Config
from botocore.exceptions import BotoCoreError, ClientError

from identity_api.config import settings
from identity_api.core.exceptions import UpstreamFailureException

logger = logging.getLogger(__name__)

MAX_FILE_SIZE_BYTES = 5 * 1024 * 1024  # 5 MB
MAX_DOCUMENT_SIZE_BYTES = 10 * 1024 * 1024  # 10 MB

ALLOWED_IMAGE_TYPES = {
    "image/png": ".png",
    "image/jpeg": ".jpg",
    "image/gif": ".gif",
    "image/webp": ".webp",
}

ALLOWED_DOCUMENT_TYPES = {
    "application/pdf": ".pdf",
}

FILE_EXTENSIONS = {**ALLOWED_IMAGE_TYPES, **ALLOWED_DOCUMENT_TYPES}


class S3BlobStore:
    def __init__(self, bucket: str, public_base_url: str, folder: str = "communities", client=None):
        self.bucket = bucket
        self.public_base_url = public_base_url.rstrip("/")
        self.folder = folder.strip("/")
        self._client = client

    @property
    def client(self):
        """Lazy-load the S3 client."""
        if self._client is None:
            if not settings.storage_configured:
                raise UpstreamFailureException("Missing storage configuration")
            kwargs = {
                "service_name": "s3",
                "region_name": settings.s3_region,
                "aws_access_key_id": settings.s3_access_key,
                "aws_secret_access_key": settings.s3_secret_key,
                "config": Config(signature_version="s3v4", retries={"max_attempts": 3, "mode": "standard"}),
            }
            # Custom endpoint for R2/MinIO
            if settings.s3_endpoint:
                kwargs["endpoint_url"] = settings.s3_endpoint
            self._client = boto3.client(**kwargs)
        return self._client

    def key_for(self, content: bytes, content_type: str, subfolder: str = "") -> str:
        digest = hashlib.sha256(content).hexdigest()[:16]
        day = datetime.now(timezone.utc).strftime("%Y%m%d")
        folder = f"{self.folder}/{subfolder}" if subfolder else self.folder
        return f"{folder}/{day}_{digest}{FILE_EXTENSIONS.get(content_type, '')}"

    def public_url(self, key: str) -> str:
        return f"{self.public_base_url}/{key}"

    def key_from_url(self, url: str) -> Optional[str]:
        """Inverse of public_url(); None for URLs outside our bucket."""
        prefix = self.public_base_url + "/"
        if not url.startswith(prefix):
            return None
        return url[len(prefix):].split("?", 1)[0] or None

    def upload_image(self, content: bytes, content_type: str) -> dict:
        """Returns {secure_url, public_id}."""
        return self._put(self.key_for(content, content_type), content, content_type, "image")

    def upload_document(self, content: bytes, content_type: str) -> dict:
        """Same as upload_image, but kept under the documents/ subfolder."""
        return self._put(self.key_for(content, content_type, "documents"), content, content_type, "document")

    def _put(self, key: str, content: bytes, content_type: str, kind: str) -> dict:
        try:
            self.client.put_object(
                Bucket=self.bucket,
                Key=key,
                Body=content,
                ContentType=content_type,
                CacheControl="public, max-age=31536000",
            )
        except (ClientError, BotoCoreError) as e:
            logger.error(f"Upload of {kind} {key} failed: {e}")
            raise UpstreamFailureException(f"Failed to upload {kind}")

        logger.info(f"Uploaded {kind} {key} ({len(content)} bytes)")
        return {"secure_url": self.public_url(key), "public_id": key}

    def delete_image(self, url: str) -> str:
        """
        Returns "ok", "not found", or "ignored" when the URL isn't one of ours.
        """
        key = self.key_from_url(url)
        if key is None:
            return "ignored"

        try:
            self.client.head_object(Bucket=self.bucket, Key=key)
        except ClientError as e:
            if e.response.get("Error", {}).get("Code") in ("404", "NoSuchKey", "NotFound"):
                return "not found"
            logger.error(f"Image lookup failed for {key}: {e}")
            raise UpstreamFailureException("Failed to delete image")

        try:
            self.client.delete_object(Bucket=self.bucket, Key=key)
        except (ClientError, BotoCoreError) as e:
            logger.error(f"Image delete failed for {key}: {e}")
            raise UpstreamFailureException("Failed to delete image")

        logger.info(f"Deleted image {key}")
        return "ok"


def get_blob_store() -> S3BlobStore:
    return S3BlobStore(
        bucket=settings.s3_bucket,
        public_base_url=settings.s3_public_base_url,
        folder=settings.storage_folder,
    )
