import io
import logging
import uuid
from typing import cast

from PIL import Image, UnidentifiedImageError
from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

# Configure logging - set botocore to WARNING level to reduce noise
logging.getLogger("botocore").setLevel(logging.WARNING)
logging.getLogger("boto3").setLevel(logging.WARNING)
logging.getLogger("urllib3").setLevel(logging.WARNING)

logger = logging.getLogger(__name__)

# SigV4 refuses presigned URLs that live longer than a week
MAX_PRESIGN_SECONDS = 7 * 24 * 60 * 60

CONTENT_TYPE_EXTENSIONS = {
    "image/jpeg": "jpg",
    "image/png": "png",
    "image/gif": "gif",
    "image/webp": "webp",
}

PIL_FORMAT_CONTENT_TYPES = {
    "JPEG": "image/jpeg",
    "PNG": "image/png",
    "GIF": "image/gif",
    "WEBP": "image/webp",
}


class S3Settings(BaseSettings):
    """Configuration for S3/MinIO client"""

    endpoint: str = "localhost:9000"
    access_key: str = Field(alias="MINIO_ROOT_USER", default="minioadmin")
    secret_key: str = Field(alias="MINIO_ROOT_PASSWORD", default="minioadmin")
    bucket: str = "photoshare"
    region: str = "us-east-1"
    use_ssl: bool = False
    signature_version: str = "s3v4"
    presigned_url_expires_in: int = Field(MAX_PRESIGN_SECONDS, ge=1, le=MAX_PRESIGN_SECONDS)

    model_config = SettingsConfigDict(
        env_prefix="S3_",
        env_file=".env",
        extra="ignore",
    )


class UploadSettings(BaseSettings):
    """Limits applied to photo uploads."""

    max_file_size: int = 10 * 1024 * 1024
    allowed_content_types: list[str] = list(CONTENT_TYPE_EXTENSIONS)

    model_config = SettingsConfigDict(env_prefix="UPLOAD_", env_file=".env", extra="ignore")


class InvalidImageError(ValueError):
    pass


def inspect_image(image_bytes: bytes) -> tuple[str, int, int]:
    """Verify that the bytes decode as an image.

    Returns:
        Tuple of (content_type, width, height), where content_type is derived
        from the decoded format rather than the client's header.

    Raises:
        InvalidImageError: If Pillow cannot decode the data or the format is not supported
    """
    try:
        image = cast(Image.Image, Image.open(io.BytesIO(image_bytes)))
        image_format = image.format
        width, height = image.size
        image.verify()
    except (UnidentifiedImageError, OSError, SyntaxError) as e:
        logger.info("Rejected upload that is not a decodable image: %s", e)
        raise InvalidImageError("Invalid image file") from e

    content_type = PIL_FORMAT_CONTENT_TYPES.get(image_format or "")
    if content_type is None:
        raise InvalidImageError(f"Unsupported image format: {image_format}")
    return content_type, width, height


def generate_blob_name(photo_id: uuid.UUID, content_type: str) -> str:
    """Object key for a photo, e.g. '<photo_id>.jpg'."""
    return f"{photo_id}.{CONTENT_TYPE_EXTENSIONS.get(content_type, 'jpg')}"
