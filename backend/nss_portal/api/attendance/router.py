from datetime import date
from typing import List, Literal, Optional

from fastapi import APIRouter, File, Query, UploadFile

from nss_portal.api.attendance import service
from nss_portal.api.attendance.schemas import (
    AttendanceHistoryEntry,
    AttendanceReport,
    AttendanceStatsResponse,
    EventAttendanceResponse,
    ImportAttendanceResponse,
    MarkAttendanceRequest,
    MarkAttendanceResponse,
)
from nss_portal.core.auth.dependencies import AdminAuth, DependsAuth
from nss_portal.core.utils.excel import dataframe_response
from nss_portal.db.core import SessionDep

router = APIRouter(prefix="/attendance")


@router.get("/stats", summary="Attendance totals per event")
async def attendance_stats(
    user: AdminAuth,
    session: SessionDep,
    start_date: Optional[date] = Query(None),
    end_date: Optional[date] = Query(None),
) -> AttendanceStatsResponse:
    return await service.attendance_stats(session, start_date, end_date)


@router.get("/event/{event_id}", summary="Roster and attendance for an event")
async def get_event_attendance(
    event_id: int, user: AdminAuth, session: SessionDep
) -> EventAttendanceResponse:
    return await service.get_event_attendance(session, event_id)


@router.post("/event/{event_id}/mark", summary="Mark attendance")
async def mark_attendance(
    event_id: int,
    body: MarkAttendanceRequest,
    user: AdminAuth,
    session: SessionDep,
) -> MarkAttendanceResponse:
    attendance = await service.mark_attendance(
        session,
        event_id,
        body.attendance_data,
        marked_by=user.id,
        default_absent=body.default_absent,
    )
    return {"message": "Attendance marked successfully", "attendance": attendance}


@router.get(
    "/event/{event_id}/export",
    response_model=AttendanceReport,
    summary="Attendance report over all approved volunteers",
)
async def export_attendance(
    event_id: int,
    user: AdminAuth,
    session: SessionDep,
    format: Literal["json", "csv", "xlsx"] = Query("json"),
):
    report = await service.export_attendance_report(session, event_id)
    if format == "json":
        return report
    return dataframe_response(
        service.report_dataframe(report),
        filename=f"attendance-event-{event_id}",
        file_format=format,
        sheet_name="Attendance",
    )


@router.post("/event/{event_id}/import", summary="Re-import an attendance report")
async def import_attendance(
    event_id: int,
    user: AdminAuth,
    session: SessionDep,
    file: UploadFile = File(...),
) -> ImportAttendanceResponse:
    return await service.import_attendance_report(session, event_id, file, user.id)


@router.get("/volunteer/{volunteer_id}", summary="Attendance history of a volunteer")
async def attendance_history(
    volunteer_id: int, user: DependsAuth, session: SessionDep
) -> List[AttendanceHistoryEntry]:
    return await service.get_attendance_history(session, volunteer_id, user)
