from datetime import date
from typing import List, Optional

from fastapi import APIRouter, Query

from nss_portal.api.users import service as user_service
from nss_portal.api.users.models import NSSApplicationStatus
from nss_portal.api.users.schemas import (
    ParticipationReport,
    VolunteerAdminView,
    VolunteerDetailResponse,
)
from nss_portal.core.auth.dependencies import AdminAuth
from nss_portal.db.core import SessionDep

router = APIRouter(prefix="/admin")


@router.get("/volunteers", summary="List volunteers")
async def list_volunteers(
    user: AdminAuth,
    session: SessionDep,
    status: Optional[NSSApplicationStatus] = Query(None),
) -> List[VolunteerAdminView]:
    return await user_service.list_volunteers(session, status=status)


@router.put("/volunteers/{volunteer_id}/approve-nss", summary="Approve an NSS application")
async def approve_nss(
    volunteer_id: int, user: AdminAuth, session: SessionDep
) -> VolunteerAdminView:
    return await user_service.review_nss_application(
        session, volunteer_id, NSSApplicationStatus.approved
    )


@router.put("/volunteers/{volunteer_id}/reject-nss", summary="Reject an NSS application")
async def reject_nss(
    volunteer_id: int, user: AdminAuth, session: SessionDep
) -> VolunteerAdminView:
    return await user_service.review_nss_application(
        session, volunteer_id, NSSApplicationStatus.rejected
    )


@router.put("/volunteers/{volunteer_id}/deactivate", summary="Block a volunteer from logging in")
async def deactivate_volunteer(
    volunteer_id: int, user: AdminAuth, session: SessionDep
) -> VolunteerAdminView:
    return await user_service.set_active(session, volunteer_id, False)


@router.put("/volunteers/{volunteer_id}/activate", summary="Re-enable a volunteer")
async def activate_volunteer(
    volunteer_id: int, user: AdminAuth, session: SessionDep
) -> VolunteerAdminView:
    return await user_service.set_active(session, volunteer_id, True)


@router.get("/volunteers/{volunteer_id}", summary="Volunteer details and attended events")
async def get_volunteer(
    volunteer_id: int, user: AdminAuth, session: SessionDep
) -> VolunteerDetailResponse:
    return await user_service.get_volunteer_detail(session, volunteer_id)


@router.get(
    "/reports/volunteer-participation",
    summary="Events attended and hours per approved volunteer",
)
async def volunteer_participation(
    user: AdminAuth,
    session: SessionDep,
    start_date: Optional[date] = Query(None),
    end_date: Optional[date] = Query(None),
) -> ParticipationReport:
    return await user_service.volunteer_participation_report(
        session, start_date, end_date
    )
