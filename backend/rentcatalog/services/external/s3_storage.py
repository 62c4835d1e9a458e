"""
S3 Media Storage.
Uploads listing photos to a public bucket and deletes them again.
URLs follow the fixed https://{bucket}.s3.{region}.amazonaws.com/{key} layout,
so changing it breaks every stored listing.
"""

import logging
import re
import secrets
import time
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import List, Optional, Sequence
from urllib.parse import unquote, urlparse

import boto3
from botocore.config import Config
from botocore.exceptions import BotoCoreError, ClientError

from rentcatalog.config import settings
from rentcatalog.errors import StorageFailure

logger = logging.getLogger(__name__)

_UNSAFE_CHARS = re.compile(r"[^A-Za-z0-9.-]")

# Used when the client sent no type or a generic one
_CONTENT_TYPES_BY_EXTENSION = {
    "jpg": "image/jpeg",
    "jpeg": "image/jpeg",
    "png": "image/png",
    "gif": "image/gif",
    "webp": "image/webp",
    "svg": "image/svg+xml",
}


@dataclass
class MediaFile:
    content: bytes
    filename: str
    content_type: Optional[str] = None


@dataclass
class UploadResult:
    url: str
    key: str
    warnings: List[str] = field(default_factory=list)


def sanitize_filename(name: str) -> str:
    """Strip every character outside [A-Za-z0-9.-]."""
    return _UNSAFE_CHARS.sub("", name or "") or "upload"


def build_object_key(namespace: str, original_name: str) -> str:
    """{namespace}/{ms-timestamp}-{random}-{sanitized name}; unique per upload."""
    prefix = f"{time.time_ns() // 1_000_000}-{secrets.randbelow(10**9)}"
    return f"{namespace}/{prefix}-{sanitize_filename(original_name)}"


def resolve_content_type(filename: str, content_type: Optional[str]) -> str:
    if content_type and content_type != "application/octet-stream":
        return content_type
    extension = filename.rsplit(".", 1)[-1].lower() if "." in filename else ""
    return _CONTENT_TYPES_BY_EXTENSION.get(extension, content_type or "application/octet-stream")


def key_from_url(url: str) -> str:
    """Recover the object key from a stored media URL."""
    path = unquote(urlparse(url).path)
    return path[1:] if path.startswith("/") else path


class S3MediaStorage:
    """Public-read media storage backed by an S3 bucket."""

    def __init__(
        self,
        bucket: Optional[str] = None,
        region: Optional[str] = None,
        client=None,
        cache_control: Optional[str] = None,
        max_workers: Optional[int] = None,
    ):
        self.bucket = bucket if bucket is not None else settings.aws_bucket_name
        self.region = region or settings.aws_region
        self.cache_control = cache_control or settings.media_cache_control
        self.max_workers = max_workers or settings.upload_max_workers
        self.client = client or boto3.client(
            "s3",
            region_name=self.region,
            aws_access_key_id=settings.aws_access_key_id,
            aws_secret_access_key=settings.aws_secret_access_key,
            config=Config(
                connect_timeout=settings.storage_connect_timeout_seconds,
                read_timeout=settings.storage_read_timeout_seconds,
                retries={"max_attempts": 3, "mode": "standard"},
            ),
        )

    def close(self) -> None:
        self.client.close()

    def url_for(self, key: str) -> str:
        return f"https://{self.bucket}.s3.{self.region}.amazonaws.com/{key}"

    def _require_bucket(self) -> None:
        if not self.bucket:
            raise StorageFailure(
                "AWS_BUCKET_NAME is not configured in environment variables", stage="media"
            )

    def upload(
        self,
        content: bytes,
        original_name: str,
        content_type: Optional[str],
        namespace: str,
    ) -> UploadResult:
        """
        Upload one object as public-read with a long-lived cache directive.

        A follow-up ACL call confirms visibility; its failure is reported in
        `warnings` and does not fail the upload.
        """
        self._require_bucket()
        if content is None:
            raise StorageFailure("Invalid file data - missing file content", stage="media")

        key = build_object_key(namespace, original_name)
        resolved_type = resolve_content_type(sanitize_filename(original_name), content_type)
        logger.info(f"Uploading {key} ({resolved_type}, {len(content)} bytes)")

        try:
            self.client.put_object(
                Bucket=self.bucket,
                Key=key,
                Body=content,
                ContentType=resolved_type,
                CacheControl=self.cache_control,
                ACL="public-read",
                ContentDisposition="inline",
                Metadata={
                    "original-filename": sanitize_filename(original_name),
                    "upload-date": datetime.now(timezone.utc).isoformat(),
                },
            )
        except (BotoCoreError, ClientError) as e:
            logger.error(f"Failed to upload {key}: {e}")
            raise StorageFailure(
                f"Failed to upload file to S3: {e}", stage="media", cause=e,
                details={"key": key, "filename": original_name},
            )

        warnings = []
        try:
            self.client.put_object_acl(Bucket=self.bucket, Key=key, ACL="public-read")
        except (BotoCoreError, ClientError) as e:
            message = f"Could not confirm public-read ACL for {key}: {e}"
            logger.warning(message)
            warnings.append(message)

        return UploadResult(url=self.url_for(key), key=key, warnings=warnings)

    def upload_many(self, files: Sequence[MediaFile], namespace: str) -> List[UploadResult]:
        """
        Upload a batch concurrently. Any single failure fails the whole batch;
        the error lists what did upload so it can be reconciled.
        """
        if not files:
            return []

        workers = min(len(files), self.max_workers)
        with ThreadPoolExecutor(max_workers=workers) as pool:
            futures = [
                pool.submit(self.upload, f.content, f.filename, f.content_type, namespace)
                for f in files
            ]

        results: List[UploadResult] = []
        first_error: Optional[StorageFailure] = None
        for future in futures:
            try:
                results.append(future.result())
            except StorageFailure as e:
                first_error = first_error or e

        if first_error is not None:
            uploaded = [r.url for r in results]
            raise StorageFailure(
                f"Error uploading files to S3: {first_error.message}",
                stage="media",
                cause=first_error,
                details={"uploaded": uploaded, "failed": len(files) - len(results)},
            )

        logger.info(f"Uploaded {len(results)} file(s) to {namespace}/")
        return results

    def delete(self, url: str) -> None:
        self._require_bucket()
        key = key_from_url(url)
        try:
            self.client.delete_object(Bucket=self.bucket, Key=key)
        except (BotoCoreError, ClientError) as e:
            logger.error(f"Failed to delete {key}: {e}")
            raise StorageFailure(
                f"Failed to delete file from S3: {e}", stage="media", cause=e,
                details={"url": url, "key": key},
            )
        logger.info(f"Deleted {key}")

    def delete_best_effort(self, urls: Sequence[str]) -> List[str]:
        """Delete concurrently, returning failure messages instead of raising."""
        if not urls:
            return []

        def _delete(url: str) -> Optional[str]:
            try:
                self.delete(url)
            except StorageFailure as e:
                return e.message
            return None

        with ThreadPoolExecutor(max_workers=min(len(urls), self.max_workers)) as pool:
            outcomes = list(pool.map(_delete, urls))
        return [message for message in outcomes if message]
