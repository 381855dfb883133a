import logging
import os
import time
import uuid

from fastapi import UploadFile

from nss_portal.config import settings
from nss_portal.response import CustomHTTPException

logger = logging.getLogger(__name__)

IMAGE_EXTENSIONS = (".jpg", ".jpeg", ".png", ".gif", ".webp", ".svg")


async def save_image_upload(file: UploadFile, prefix: str) -> str:
    """Store an uploaded image under the upload dir and return its public path."""
    if not (file.content_type or "").startswith("image/"):
        raise CustomHTTPException(400, "Only image files are allowed!")

    extension = os.path.splitext(file.filename or "")[1].lower()
    if extension not in IMAGE_EXTENSIONS:
        raise CustomHTTPException(400, "Only image files are allowed!")

    content = await file.read()
    if len(content) > settings.MAX_UPLOAD_SIZE:
        raise CustomHTTPException(400, "File too large")

    os.makedirs(settings.UPLOAD_DIR, exist_ok=True)
    filename = f"{prefix}-{int(time.time() * 1000)}-{uuid.uuid4().hex[:9]}{extension}"
    with open(os.path.join(settings.UPLOAD_DIR, filename), "wb") as out:
        out.write(content)

    logger.info("Stored upload %s (%d bytes)", filename, len(content))
    return f"/uploads/{filename}"
