from fastapi import APIRouter
from nss_portal.api.auth.router import router as auth_router
from nss_portal.api.admin.router import router as admin_router
from nss_portal.api.events.router import router as events_router
from nss_portal.api.attendance.router import router as attendance_router

api_router = APIRouter(
    prefix="/api",
    responses={404: {"description": "Not found"}},
)

api_router.include_router(router=auth_router, tags=["auth"])
api_router.include_router(router=admin_router, tags=["admin"])
api_router.include_router(router=events_router, tags=["events"])
api_router.include_router(router=attendance_router, tags=["attendance"])
