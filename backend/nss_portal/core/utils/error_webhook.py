import asyncio
import logging
import traceback

import httpx
from fastapi import Request

from nss_portal.config import settings
from nss_portal.core.utils.dates import now_ist

logger = logging.getLogger(__name__)


async def notify_error(request: Request, exc: Exception, track_id: str):
    """
    Post the traceback of an unhandled error to the configured webhook.
    """
    if not settings.ERROR_WEBHOOK:
        return
    error_details = {
        "track_id": track_id,
        "path": request.url.path,
        "method": request.method,
        "traceback": "".join(
            traceback.format_exception(type(exc), exc, exc.__traceback__)
        ),
    }

    await send_webhook_notification(error_details)


async def send_webhook_notification(
    error_details: dict, max_retries: int = 2, retry_delay: float = 1.0
):
    async with httpx.AsyncClient(timeout=10) as client:
        for attempt in range(max_retries):
            try:
                error_content = f"""
============================ ERROR DETAILS ============================

Timestamp: {now_ist().isoformat()}
Track ID: {error_details.get("track_id", "N/A")}
Path: {error_details.get("path", "N/A")}
Method: {error_details.get("method", "N/A")}

============================== TRACEBACK ==============================

{error_details.get("traceback", "")}

=======================================================================
"""

                files = {
                    "file": (
                        "traceback.txt",
                        error_content.encode("utf-8"),
                        "text/plain",
                    ),
                }

                response = await client.post(
                    settings.ERROR_WEBHOOK,
                    data={"content": "Internal Server Error Detected"},
                    files=files,
                )
                response.raise_for_status()
                return
            except httpx.HTTPError as e:
                logger.warning(
                    "Error webhook attempt %d failed: %s", attempt + 1, e
                )
                if attempt < max_retries - 1:
                    await asyncio.sleep(retry_delay * (2**attempt))

        logger.error("Failed to send error notification after all retries")
