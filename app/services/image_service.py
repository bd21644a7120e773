"""
OP-Blog API: Image Host Service
===============================

What:  Validates uploaded images and stores them on Cloudinary.
How:   The Cloudinary SDK is blocking, so every call runs in Starlette's
       threadpool. Failures of any kind surface as ImageHostError (500).
Who:   Called by PostService (post images) and UserService (profile photos).

Upload Rules:
    - multipart field `image`
    - content type must be image/*
    - at most `max_image_size` bytes (1 MB by default, inclusive)
"""

import io
import logging
from typing import Iterable, List, Optional

import cloudinary
import cloudinary.api
import cloudinary.uploader
from fastapi import UploadFile
from starlette.concurrency import run_in_threadpool

from app.config import settings
from app.exceptions import ImageHostError, ValidationError
from app.schemas.common import ImageRef

logger = logging.getLogger(__name__)


class ImageService:
    """Upload, destroy and bulk-delete against the image host."""

    def __init__(self):
        if settings.cloudinary_cloud_name:
            cloudinary.config(
                cloud_name=settings.cloudinary_cloud_name,
                api_key=settings.cloudinary_api_key,
                api_secret=settings.cloudinary_api_secret,
                secure=True,
            )

    async def read_image(self, upload: Optional[UploadFile], required: bool = True) -> Optional[bytes]:
        """
        Validate an uploaded file and return its bytes.

        Returns None when no file was sent and `required` is False.

        Raises:
            ValidationError: missing file, non-image content type or oversize
        """
        if upload is None or not upload.filename:
            if required:
                raise ValidationError.for_field("body", "image", "no image provided")
            return None

        content_type = (upload.content_type or "").lower()
        if not content_type.startswith("image/"):
            raise ValidationError.for_field("body", "image", "Only image files are allowed")

        # Read one byte past the limit so oversize files are detected
        # without buffering all of them
        content = await upload.read(settings.max_image_size + 1)
        if len(content) > settings.max_image_size:
            max_mb = settings.max_image_size / (1024 * 1024)
            raise ValidationError.for_field(
                "body", "image", f"Image size exceeds maximum of {max_mb:g}MB"
            )
        if not content:
            raise ValidationError.for_field("body", "image", "no image provided")
        return content

    async def upload(self, content: bytes) -> ImageRef:
        try:
            result = await run_in_threadpool(
                cloudinary.uploader.upload,
                io.BytesIO(content),
                resource_type="image",
                folder=settings.cloudinary_folder,
            )
        except Exception as e:
            logger.error("Image upload failed: %s", str(e))
            raise ImageHostError(
                message="Internal Server Error (cloudinary)",
                context={"error_type": type(e).__name__},
            )

        logger.info("Image uploaded: %s", result.get("public_id"))
        return ImageRef(url=result["secure_url"], public_id=result["public_id"])

    async def destroy(self, public_id: Optional[str]) -> None:
        if not public_id:
            return
        try:
            await run_in_threadpool(cloudinary.uploader.destroy, public_id)
        except Exception as e:
            logger.error("Image destroy failed for %s: %s", public_id, str(e))
            raise ImageHostError(
                message="Internal Server Error (cloudinary)",
                context={"public_id": public_id, "error_type": type(e).__name__},
            )
        logger.info("Image destroyed: %s", public_id)

    async def delete_many(self, public_ids: Iterable[Optional[str]]) -> None:
        ids: List[str] = [pid for pid in public_ids if pid]
        if not ids:
            return
        try:
            await run_in_threadpool(cloudinary.api.delete_resources, ids)
        except Exception as e:
            logger.error("Bulk image delete failed (%d ids): %s", len(ids), str(e))
            raise ImageHostError(
                message="Internal Server Error (cloudinary)",
                context={"count": len(ids), "error_type": type(e).__name__},
            )
        logger.info("Deleted %d images", len(ids))


# ── Singleton Instance ────────────────────────────────────────────────────
image_service = ImageService()
