"""
Image upload handling for SiteGuard
Validates uploaded site photos and keeps them in memory only
"""
import logging
from dataclasses import dataclass
from typing import List, Optional

from fastapi import UploadFile, HTTPException, status

from app.core.config import settings

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ImagePayload:
    data: bytes
    mime_type: str
    filename: Optional[str] = None


class ImageUploadHandler:
    """Validates image uploads against the configured type and size limits"""

    def __init__(self, allowed_types: Optional[List[str]] = None, max_size: Optional[int] = None):
        self.allowed_types = allowed_types or settings.ALLOWED_IMAGE_TYPES
        self.max_size = max_size or settings.MAX_FILE_SIZE

    def validate_type(self, content_type: Optional[str], filename: Optional[str] = None) -> None:
        if content_type not in self.allowed_types:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail=f"File type {content_type} not allowed for {filename or 'image'}"
            )

    def validate_size(self, size: int, filename: Optional[str] = None) -> None:
        if size == 0:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail=f"File {filename or 'image'} is empty"
            )
        if size > self.max_size:
            raise HTTPException(
                status_code=status.HTTP_413_REQUEST_ENTITY_TOO_LARGE,
                detail=f"File {filename or 'image'} exceeds maximum size of {self.max_size / (1024*1024)}MB"
            )

    async def read(self, upload_file: UploadFile) -> ImagePayload:
        """
        Validate and read an uploaded image

        Args:
            upload_file: FastAPI UploadFile object

        Returns:
            ImagePayload with the raw bytes and MIME type

        Raises:
            HTTPException if validation fails
        """
        self.validate_type(upload_file.content_type, upload_file.filename)
        # reject declared oversize bodies before buffering them
        if upload_file.size is not None and upload_file.size > self.max_size:
            self.validate_size(upload_file.size, upload_file.filename)
        data = await upload_file.read()
        self.validate_size(len(data), upload_file.filename)
        logger.info(f"Image received: {upload_file.filename} ({len(data)} bytes)")
        return ImagePayload(data=data, mime_type=upload_file.content_type, filename=upload_file.filename)

    def check(self, data: bytes, mime_type: str) -> ImagePayload:
        """Validate an image that arrived inline (e.g. a camera capture data URL)"""
        self.validate_type(mime_type)
        self.validate_size(len(data))
        return ImagePayload(data=data, mime_type=mime_type)
