"""
Asynchronous S3 Client Service

This module provides an async-first S3/MinIO client that uses aioboto3 for
non-blocking S3 operations. The client is created once in the application
lifespan and handed to route handlers through dependency injection.
"""

import io
import logging
from typing import TYPE_CHECKING, BinaryIO
from urllib.parse import parse_qs, urlsplit

import aioboto3
import boto3
from boto3.s3.transfer import TransferConfig
from botocore.config import Config

from photoshare.minio_utils import S3Settings

logger = logging.getLogger(__name__)

if TYPE_CHECKING:
    from mypy_boto3_s3 import S3Client

# Query parameters that mark a URL as already carrying a read grant
ACCESS_TOKEN_PARAMS = ("x-amz-signature", "signature", "sig")


def has_access_token(url: str | None) -> bool:
    """Return True when the URL already carries a signature query parameter."""
    if not url:
        return False
    query = parse_qs(urlsplit(url).query, keep_blank_values=True)
    return any(name.lower() in ACCESS_TOKEN_PARAMS for name in query)


class AsyncS3Client:
    """Asynchronous S3 Client

    This client maintains a shared aioboto3.Session that is created once and
    reused for all operations. Individual S3 clients are created per operation
    using context managers to ensure proper resource cleanup.

    Presigning is a local computation, so it goes through a plain boto3
    client and never touches the network.
    """

    def __init__(self, settings: S3Settings | None = None):
        self.settings = settings or S3Settings()
        self._session: aioboto3.Session | None = None
        self._endpoint_url = self._get_endpoint_url()
        self._config = Config(
            signature_version=self.settings.signature_version,
            max_pool_connections=50,
            retries={"max_attempts": 3, "mode": "standard"},
            connect_timeout=10,
            read_timeout=60,
            s3={"addressing_style": "path"},
        )
        self._presign_client = None
        self._transfer_config = TransferConfig(
            multipart_threshold=8 * 1024 * 1024,
            multipart_chunksize=4 * 1024 * 1024,
            max_concurrency=10,
            use_threads=True,
        )
        logger.info(f"AsyncS3Client initialized: endpoint={self._endpoint_url}, bucket={self.settings.bucket}, region={self.settings.region}")

    def _get_endpoint_url(self) -> str:
        """Get the endpoint URL with protocol if needed."""
        endpoint = self.settings.endpoint
        if not endpoint.startswith(("http://", "https://")):
            protocol = "https" if self.settings.use_ssl else "http"
            return f"{protocol}://{endpoint}"
        return endpoint

    @property
    def session(self) -> aioboto3.Session:
        """Get or create the shared aioboto3 session."""
        if self._session is None:
            self._session = aioboto3.Session(
                aws_access_key_id=self.settings.access_key,
                aws_secret_access_key=self.settings.secret_key,
                region_name=self.settings.region,
            )
        return self._session

    def _get_s3_client(self) -> "S3Client":
        """Get configured S3 client context manager.

        Usage: async with self._get_s3_client() as s3:
        """
        return self.session.client("s3", endpoint_url=self._endpoint_url, config=self._config)

    def _get_presign_client(self):
        if self._presign_client is None:
            self._presign_client = boto3.client(
                "s3",
                endpoint_url=self._endpoint_url,
                aws_access_key_id=self.settings.access_key,
                aws_secret_access_key=self.settings.secret_key,
                region_name=self.settings.region,
                config=self._config,
            )
        return self._presign_client

    def object_url(self, key: str) -> str:
        """Canonical, unsigned URL of an object. This is what gets persisted."""
        return f"{self._endpoint_url}/{self.settings.bucket}/{key}"

    async def upload_fileobj(
        self,
        file_obj: BinaryIO | bytes,
        key: str,
        content_type: str | None = None,
        metadata: dict[str, str] | None = None,
    ) -> str:
        """Upload a file object to S3.

        Args:
            file_obj: File-like object or bytes to upload
            key: S3 object key
            content_type: Optional Content-Type header (e.g., 'image/jpeg')
            metadata: Optional metadata to attach to the object

        Returns:
            Canonical object URL
        """
        if isinstance(file_obj, bytes):
            file_obj = io.BytesIO(file_obj)
        elif hasattr(file_obj, "seek"):
            file_obj.seek(0)

        extra_args: dict[str, str | dict[str, str]] = {}
        if content_type:
            extra_args["ContentType"] = content_type
        if metadata:
            extra_args["Metadata"] = metadata

        try:
            async with self._get_s3_client() as s3:
                await s3.upload_fileobj(
                    file_obj,
                    self.settings.bucket,
                    key,
                    ExtraArgs=extra_args if extra_args else None,
                    Config=self._transfer_config,
                )
            logger.info(f"Successfully uploaded object: {key}")
            return self.object_url(key)
        except Exception as e:
            logger.error(f"Failed to upload object {key}: {e}")
            raise

    async def delete_file(self, key: str) -> None:
        """Delete a file from S3.

        Raises:
            Exception: If deletion fails
        """
        try:
            async with self._get_s3_client() as s3:
                await s3.delete_object(Bucket=self.settings.bucket, Key=key)
            logger.info(f"Successfully deleted object: {key}")
        except Exception as e:
            logger.error(f"Failed to delete object {key}: {e}")
            raise

    async def check_health(self) -> bool:
        """Return True when the bucket is reachable with our credentials."""
        try:
            async with self._get_s3_client() as s3:
                await s3.head_bucket(Bucket=self.settings.bucket)
            return True
        except Exception as e:
            logger.warning(f"S3 health check failed for bucket {self.settings.bucket}: {e}")
            return False

    async def close(self) -> None:
        """Close the session and clean up resources."""
        if self._session is not None:
            logger.info("Closing AsyncS3Client session")
            self._session = None
        self._presign_client = None

    def generate_presigned_url(self, key: str, expires_in: int | None = None) -> str:
        """Generate a read-only presigned URL for an object.

        Args:
            key: S3 object key
            expires_in: URL expiration time in seconds, defaults to the configured expiry

        Raises:
            Exception: If URL generation fails
        """
        expires_in = expires_in or self.settings.presigned_url_expires_in
        try:
            s3_client = self._get_presign_client()
            url = s3_client.generate_presigned_url(
                "get_object",
                Params={"Bucket": self.settings.bucket, "Key": key},
                ExpiresIn=expires_in,
            )
            logger.debug(f"Generated presigned URL for: {key}")
            return str(url)
        except Exception as e:
            logger.error(f"Failed to generate presigned URL for {key}: {e}")
            raise

    async def generate_presigned_urls_batch(self, keys: list[str], expires_in: int | None = None) -> dict[str, str]:
        """Generate presigned URLs for multiple objects.

        Keys that fail to sign are left out of the result; callers fall back
        to the stored URL for them.

        Returns:
            Dict mapping object_key to presigned URL
        """
        urls: dict[str, str] = {}
        for key in dict.fromkeys(keys):
            try:
                urls[key] = self.generate_presigned_url(key, expires_in)
            except Exception as e:
                logger.warning(f"Failed to generate presigned URL for {key}: {e}")
        return urls
