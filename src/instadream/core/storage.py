"""S3-compatible object storage for post images.

Generated images and uploaded reference images are stored in a single flat
bucket under ``<uuid4>.<ext>`` keys.  The store is any S3-compatible endpoint
(MinIO in development), so boto3 is used with an explicit ``endpoint_url``.

Public URLs are built as ``<scheme>://<endpoint>[:<port>]/<bucket>/<key>``;
the port is omitted when it is the scheme default.
"""

from __future__ import annotations

import base64
import binascii
import logging
import re
import uuid
from dataclasses import dataclass

import boto3
import httpx
from botocore.config import Config
from botocore.exceptions import BotoCoreError, ClientError

from instadream.core.config import InstadreamConfig

logger = logging.getLogger(__name__)

_DATA_URL_RE = re.compile(r"^data:(?P<content_type>[^;]+);base64,(?P<payload>.+)$", re.DOTALL)


class StorageError(Exception):
    """Raised when the object store or a source URL cannot be reached."""


@dataclass(frozen=True)
class StoredObject:
    """Location of an uploaded object."""

    storage_key: str
    image_url: str


def extension_for(content_type: str) -> str:
    """Return the file extension for a MIME type (``image/jpeg`` → ``jpeg``)."""
    _, _, subtype = content_type.partition("/")
    return subtype.split(";")[0].strip() or "png"


def decode_data_url(data_url: str) -> tuple[bytes, str] | None:
    """Split a ``data:<type>;base64,<payload>`` URL.

    Args:
        data_url: The data URL to decode.

    Returns:
        ``(data, content_type)``, or ``None`` if *data_url* is not a base64
        data URL or its payload is not valid base64.
    """
    match = _DATA_URL_RE.match(data_url)
    if not match:
        return None
    try:
        data = base64.b64decode(match.group("payload"), validate=True)
    except (binascii.Error, ValueError):
        return None
    return data, match.group("content_type")


class ObjectStorage:
    """Thin wrapper around an S3-compatible bucket.

    Args:
        endpoint: Host name of the object store.
        port: Port of the object store.
        use_ssl: Whether to use HTTPS.
        access_key: Access key id.
        secret_key: Secret access key.
        bucket: Bucket holding post images.
        region: Region used when creating the bucket.
        client: Pre-built S3 client; one is created from the settings above
            when omitted.
        http_client: ``httpx.Client`` used to fetch remote images.
    """

    def __init__(
        self,
        endpoint: str,
        port: int,
        *,
        use_ssl: bool = False,
        access_key: str = "",
        secret_key: str = "",
        bucket: str = "instadream",
        region: str = "us-east-1",
        client=None,
        http_client: httpx.Client | None = None,
    ):
        self.endpoint = endpoint
        self.port = port
        self.use_ssl = use_ssl
        self.bucket = bucket
        self.region = region
        self._client = client or boto3.client(
            "s3",
            endpoint_url=f"{self.scheme}://{endpoint}:{port}",
            aws_access_key_id=access_key,
            aws_secret_access_key=secret_key,
            region_name=region,
            config=Config(signature_version="s3v4", s3={"addressing_style": "path"}),
        )
        self._http = http_client or httpx.Client(timeout=60.0, follow_redirects=True)
        self._bucket_checked = False

    @classmethod
    def from_config(cls, config: InstadreamConfig) -> ObjectStorage:
        return cls(
            config.storage_endpoint,
            config.storage_port,
            use_ssl=config.storage_use_ssl,
            access_key=config.storage_access_key,
            secret_key=config.storage_secret_key,
            bucket=config.storage_bucket,
            region=config.storage_region,
        )

    @property
    def scheme(self) -> str:
        return "https" if self.use_ssl else "http"

    def ensure_bucket(self) -> None:
        """Create the bucket if it does not exist yet."""
        if self._bucket_checked:
            return
        try:
            try:
                self._client.head_bucket(Bucket=self.bucket)
            except ClientError as exc:
                code = exc.response.get("Error", {}).get("Code")
                if code not in ("404", "NoSuchBucket", "NotFound"):
                    raise
                create_args: dict = {"Bucket": self.bucket}
                # us-east-1 rejects an explicit location constraint
                if self.region != "us-east-1":
                    create_args["CreateBucketConfiguration"] = {
                        "LocationConstraint": self.region
                    }
                self._client.create_bucket(**create_args)
                logger.info(f"Bucket {self.bucket} created")
        except (BotoCoreError, ClientError) as exc:
            logger.error(f"Error ensuring bucket {self.bucket} exists: {exc}")
            raise StorageError(f"Could not access bucket {self.bucket}: {exc}") from exc
        self._bucket_checked = True

    def get_image_url(self, storage_key: str) -> str:
        """Build the public URL of a stored object."""
        default_port = 443 if self.use_ssl else 80
        host = self.endpoint if self.port == default_port else f"{self.endpoint}:{self.port}"
        return f"{self.scheme}://{host}/{self.bucket}/{storage_key}"

    def upload_image(self, data: bytes, content_type: str = "image/png") -> StoredObject:
        """Store *data* under a fresh UUID key.

        Args:
            data: Image bytes.
            content_type: MIME type; also determines the key extension.

        Returns:
            The storage key and public URL.

        Raises:
            StorageError: If the upload fails.
        """
        self.ensure_bucket()
        storage_key = f"{uuid.uuid4()}.{extension_for(content_type)}"
        try:
            self._client.put_object(
                Bucket=self.bucket,
                Key=storage_key,
                Body=data,
                ContentLength=len(data),
                ContentType=content_type,
            )
        except (BotoCoreError, ClientError) as exc:
            logger.error(f"Error uploading {storage_key}: {exc}")
            raise StorageError(f"Failed to upload image: {exc}") from exc

        logger.info(f"Uploaded {storage_key} ({len(data)} bytes)")
        return StoredObject(storage_key=storage_key, image_url=self.get_image_url(storage_key))

    def upload_image_from_url(self, image_url: str) -> StoredObject:
        """Download an image and store it.

        Raises:
            StorageError: If the download or the upload fails.
        """
        try:
            response = self._http.get(image_url)
            response.raise_for_status()
        except httpx.HTTPError as exc:
            logger.error(f"Error fetching image from {image_url}: {exc}")
            raise StorageError(f"Failed to fetch image: {exc}") from exc

        content_type = response.headers.get("content-type", "image/png")
        return self.upload_image(response.content, content_type)

    def download_image(self, storage_key: str) -> bytes:
        """Return the bytes stored under *storage_key*."""
        try:
            response = self._client.get_object(Bucket=self.bucket, Key=storage_key)
            return response["Body"].read()
        except (BotoCoreError, ClientError) as exc:
            logger.error(f"Error downloading {storage_key}: {exc}")
            raise StorageError(f"Failed to download image: {exc}") from exc

    def delete_image(self, storage_key: str) -> None:
        """Remove *storage_key* from the bucket."""
        try:
            self._client.delete_object(Bucket=self.bucket, Key=storage_key)
        except (BotoCoreError, ClientError) as exc:
            logger.error(f"Error deleting {storage_key}: {exc}")
            raise StorageError(f"Failed to delete image: {exc}") from exc
        logger.info(f"Deleted {storage_key}")

    def close(self) -> None:
        """Close the S3 client and the HTTP client used for remote images."""
        self._client.close()
        self._http.close()
