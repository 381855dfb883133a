from fastapi import APIRouter

from nss_portal.api.events.registration import service
from nss_portal.api.events.schemas import (
    EventActionResponse,
    ExternalParticipantCreate,
    ExternalRegistrationResponse,
    RegisterRequest,
)
from nss_portal.core.auth.dependencies import DependsAuth
from nss_portal.db.core import SessionDep

router = APIRouter()


@router.post("/{event_id}/register", summary="Register for an event")
async def register_event(
    event_id: int,
    user: DependsAuth,
    session: SessionDep,
    registration: RegisterRequest | None = None,
) -> EventActionResponse:
    role = (registration or RegisterRequest()).role
    event = await service.register(session, event_id, user.id, role=role)
    return {"event": event, "message": "Successfully registered for the event!"}


@router.delete("/{event_id}/unregister", summary="Withdraw from an event")
async def unregister_event(
    event_id: int, user: DependsAuth, session: SessionDep
) -> EventActionResponse:
    event = await service.unregister(session, event_id, user.id)
    return {"event": event, "message": "Successfully unregistered from the event"}


@router.post(
    "/{event_id}/external-register",
    status_code=201,
    summary="Register a non-member for a public event",
)
async def external_register(
    event_id: int, participant: ExternalParticipantCreate, session: SessionDep
) -> ExternalRegistrationResponse:
    created = await service.external_register(session, event_id, participant)
    return {"participant": created, "message": "Registration successful!"}
