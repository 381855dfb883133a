from typing import List, Optional

from fastapi import APIRouter, Depends, Query

from nss_portal.db.core import SessionDep
from nss_portal.api.events import service
from nss_portal.api.events.models import EventStatus, EventTypes
from nss_portal.api.events.schemas import (
    AttendedToggleRequest,
    AttendedToggleResponse,
    CategorizedEventsResponse,
    EventActionResponse,
    EventCreate,
    EventDetailResponse,
    EventEdit,
    EventListResponse,
    ParticipantsResponse,
    StatusSweepResponse,
)
from nss_portal.api.events.registration.router import router as registration_router
from nss_portal.api.users.schemas import MessageResponse
from nss_portal.core.auth.dependencies import AdminAuth, DependsAuth

router = APIRouter(prefix="/events")


@router.get("", summary="List events")
async def list_events(
    session: SessionDep,
    status: Optional[EventStatus] = Query(None),
    event_type: Optional[EventTypes] = Query(None),
    search: Optional[str] = Query(None),
    today: bool = Query(False),
    upcoming: bool = Query(False, description="starting within the next 7 days"),
    past: bool = Query(False),
) -> List[EventListResponse]:
    return await service.list_events(
        session,
        status=status,
        event_type=event_type,
        search=search,
        today=today,
        upcoming=upcoming,
        past=past,
    )


@router.post("", summary="Create a new event")
async def create_event(
    user: AdminAuth, session: SessionDep, event: EventCreate = Depends()
) -> EventActionResponse:
    created = await service.create_event(session, user.id, event)
    return {"event": created, "message": "Event created successfully!"}


@router.get("/categories", summary="Upcoming and past events")
async def categorized_events(session: SessionDep) -> CategorizedEventsResponse:
    return await service.categorized_events(session)


@router.post("/update-statuses", summary="Run the event status sweep now")
async def update_statuses(user: AdminAuth, session: SessionDep) -> StatusSweepResponse:
    ongoing, completed = await service.update_event_statuses(session)
    return {
        "message": "Event statuses updated successfully!",
        "ongoing": ongoing,
        "completed": completed,
    }


@router.get("/user/registered", summary="Events the current user registered for")
async def my_registered_events(
    user: DependsAuth, session: SessionDep
) -> List[EventListResponse]:
    return await service.my_registered_events(session, user.id)


router.include_router(registration_router)


@router.get("/{event_id}", summary="Get event info")
async def get_event(event_id: int, session: SessionDep) -> EventDetailResponse:
    return await service.get_event_or_404(session, event_id)


@router.put("/{event_id}", summary="Update an event")
async def update_event(
    event_id: int,
    user: AdminAuth,
    session: SessionDep,
    event: EventEdit = Depends(),
) -> EventActionResponse:
    updated, changes = await service.update_event(session, event_id, event)
    message = "Event updated successfully!"
    if changes:
        message = f"Event updated successfully! Changes: {', '.join(changes)}"
    return {"event": updated, "message": message}


@router.delete("/{event_id}", summary="Delete an event")
async def delete_event(
    event_id: int, user: AdminAuth, session: SessionDep
) -> MessageResponse:
    await service.delete_event(session, event_id)
    return {"message": "Event deleted successfully"}


@router.get("/{event_id}/participants", summary="Volunteers and external participants")
async def list_participants(
    event_id: int, user: DependsAuth, session: SessionDep
) -> ParticipantsResponse:
    return await service.list_participants(session, event_id, user)


@router.post("/{event_id}/send-reminder", summary="Remind registered volunteers")
async def send_reminder(
    event_id: int, user: DependsAuth, session: SessionDep
) -> EventActionResponse:
    event, count = await service.send_reminder(session, event_id, user)
    return {"event": event, "message": f"Reminder sent to {count} volunteers"}


@router.put("/{event_id}/attendance", summary="Toggle a participant's attended flag")
async def set_participant_attended(
    event_id: int,
    body: AttendedToggleRequest,
    user: DependsAuth,
    session: SessionDep,
) -> AttendedToggleResponse:
    participant = await service.set_participant_attended(session, event_id, user, body)
    state = "present" if body.attended else "absent"
    return {"participant": participant, "message": f"Attendance marked as {state}"}
