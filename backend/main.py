import uvicorn
from nss_portal.config import settings

if __name__ == "__main__":
    uvicorn.run(
        "nss_portal.asgi:application",
        host="0.0.0.0",
        port=settings.PORT,
        workers=settings.WORKERS,
        reload=settings.DEBUG,
        log_level=settings.LOG_LEVEL.lower(),
    )
