"""S3 Storage Service for chef portfolio images.

Uploads are checked before they reach the bucket:
- JPEG, PNG or WEBP only
- at most 5MB
- at least 300x300 pixels (read with Pillow)
"""

import logging
import uuid
from io import BytesIO

import boto3
from botocore.config import Config
from botocore.exceptions import BotoCoreError, ClientError
from PIL import Image, UnidentifiedImageError

from app.config import settings
from app.core.exceptions import ExternalServiceError, InvalidRequest

logger = logging.getLogger(__name__)

# Content type -> (Pillow format, file extension)
IMAGE_FORMATS = {
    "image/jpeg": ("JPEG", "jpg"),
    "image/png": ("PNG", "png"),
    "image/webp": ("WEBP", "webp"),
}


class StorageService:
    """S3/MinIO storage service for file uploads."""

    ALLOWED_IMAGE_TYPES = frozenset(IMAGE_FORMATS)
    MAX_IMAGE_SIZE = 5 * 1024 * 1024  # 5MB

    def __init__(self, min_dimension: int = 300) -> None:
        self._client = None
        self._bucket = settings.s3_bucket_name
        self.min_dimension = min_dimension

    @property
    def client(self):
        """Lazy-load S3 client."""
        if self._client is None:
            config = Config(
                signature_version="s3v4",
                retries={"max_attempts": 3, "mode": "adaptive"},
            )
            self._client = boto3.client(
                "s3",
                aws_access_key_id=settings.aws_access_key_id,
                aws_secret_access_key=settings.aws_secret_access_key,
                region_name=settings.aws_region,
                endpoint_url=settings.s3_endpoint_url,  # For MinIO in dev
                config=config,
            )
        return self._client

    def public_url(self, key: str) -> str:
        if settings.s3_endpoint_url:
            # MinIO in development
            return f"{settings.s3_endpoint_url}/{self._bucket}/{key}"
        return f"https://{self._bucket}.s3.{settings.aws_region}.amazonaws.com/{key}"

    def validate_image(self, data: bytes, content_type: str | None) -> tuple[int, int]:
        """Check type, size and dimensions of an uploaded image.

        Args:
            data: Raw file bytes
            content_type: MIME type declared by the client

        Returns:
            tuple: (width, height) in pixels

        Raises:
            InvalidRequest: If any check fails
        """
        if content_type not in self.ALLOWED_IMAGE_TYPES:
            raise InvalidRequest("Only JPEG, PNG and WEBP images are allowed")
        if len(data) > self.MAX_IMAGE_SIZE:
            raise InvalidRequest(
                f"Image exceeds maximum size of {self.MAX_IMAGE_SIZE // 1024 // 1024}MB"
            )

        try:
            with Image.open(BytesIO(data)) as image:
                actual_format = image.format
                width, height = image.size
        except UnidentifiedImageError:
            raise InvalidRequest("File is not a readable image")

        if actual_format != IMAGE_FORMATS[content_type][0]:
            raise InvalidRequest("Image content does not match its declared type")
        if width < self.min_dimension or height < self.min_dimension:
            raise InvalidRequest(
                f"Image must be at least {self.min_dimension}x{self.min_dimension} pixels"
            )
        return width, height

    async def upload_chef_image(
        self, chef_id: uuid.UUID, data: bytes, content_type: str
    ) -> tuple[str, str]:
        """Upload a validated image to the chef's folder.

        Returns:
            tuple: (public URL, S3 key)
        """
        ext = IMAGE_FORMATS[content_type][1]
        key = f"chefs/{chef_id}/images/{uuid.uuid4().hex[:12]}.{ext}"
        try:
            self.client.upload_fileobj(
                BytesIO(data),
                self._bucket,
                key,
                ExtraArgs={"ContentType": content_type, "ACL": "public-read"},
            )
        except (BotoCoreError, ClientError) as e:
            logger.error(f"S3 upload failed for {key}: {e}")
            raise ExternalServiceError("storage", "image upload failed")
        return self.public_url(key), key


# Singleton instance
storage_service = StorageService(min_dimension=settings.min_image_dimension)
