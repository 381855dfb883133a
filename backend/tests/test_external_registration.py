import pytest
from faker import Faker
from httpx import AsyncClient

from nss_portal.api.events.models import RegistrationTypes

fake = Faker()


def student_payload(**overrides) -> dict:
    payload = {
        "role": "Student",
        "name": fake.name()[:100],
        "email": fake.unique.email(),
        "phone": fake.numerify("9#########"),
        "age": 20,
        "blood_group": "O+",
        "university_id": fake.bothify("UNI-####"),
        "course": "B.Tech",
        "year": 2,
    }
    payload.update(overrides)
    return payload


def staff_payload(**overrides) -> dict:
    payload = {
        "role": "Staff",
        "name": fake.name()[:100],
        "email": fake.unique.email(),
        "phone": fake.numerify("9#########"),
        "age": 42,
        "blood_group": "B+",
    }
    payload.update(overrides)
    return payload


@pytest.fixture
async def public_event(make_event):
    return await make_event(registration_type=RegistrationTypes.public, max_participants=2)


@pytest.mark.asyncio
async def test_student_registration(client: AsyncClient, public_event):
    payload = student_payload()

    response = await client.post(
        f"/api/events/{public_event.id}/external-register", json=payload
    )

    assert response.status_code == 201
    data = response.json()
    assert data["message"] == "Registration successful!"
    assert data["participant"]["email"] == payload["email"].lower()
    assert data["participant"]["course"] == "B.Tech"
    assert data["participant"]["year"] == 2

    event = (await client.get(f"/api/events/{public_event.id}")).json()
    assert event["current_participants"] == 1
    assert len(event["external_participants"]) == 1


@pytest.mark.asyncio
async def test_staff_does_not_need_academic_fields(client: AsyncClient, public_event):
    response = await client.post(
        f"/api/events/{public_event.id}/external-register", json=staff_payload()
    )

    assert response.status_code == 201
    participant = response.json()["participant"]
    assert participant["role"] == "Staff"
    assert participant["course"] == "N/A"
    assert participant["year"] is None


@pytest.mark.asyncio
async def test_student_missing_course_is_rejected(client: AsyncClient, public_event):
    payload = student_payload()
    del payload["course"]

    response = await client.post(
        f"/api/events/{public_event.id}/external-register", json=payload
    )

    assert response.status_code == 400
    body = response.json()
    assert body["error_code"] == "VALIDATION_ERROR"
    assert any("course" in key for key in body["errors"])


@pytest.mark.asyncio
async def test_unknown_role_is_rejected(client: AsyncClient, public_event):
    response = await client.post(
        f"/api/events/{public_event.id}/external-register",
        json=staff_payload(role="Alumni"),
    )

    assert response.status_code == 400


@pytest.mark.asyncio
async def test_internal_event_refuses_external_participants(
    client: AsyncClient, make_event
):
    event = await make_event()

    response = await client.post(
        f"/api/events/{event.id}/external-register", json=staff_payload()
    )

    assert response.status_code == 403
    assert response.json()["message"] == "This event does not allow external registration"


@pytest.mark.asyncio
async def test_missing_event(client: AsyncClient, db_session):
    response = await client.post("/api/events/404/external-register", json=staff_payload())

    assert response.status_code == 404


@pytest.mark.asyncio
async def test_duplicate_email_is_case_insensitive(client: AsyncClient, public_event):
    email = fake.unique.email()
    first = await client.post(
        f"/api/events/{public_event.id}/external-register",
        json=staff_payload(email=email),
    )
    assert first.status_code == 201

    response = await client.post(
        f"/api/events/{public_event.id}/external-register",
        json=student_payload(email=email.upper()),
    )

    assert response.status_code == 400
    assert response.json()["message"] == "Email already registered for this event"


@pytest.mark.asyncio
async def test_full_public_event(client: AsyncClient, public_event):
    for _ in range(2):
        response = await client.post(
            f"/api/events/{public_event.id}/external-register", json=staff_payload()
        )
        assert response.status_code == 201

    response = await client.post(
        f"/api/events/{public_event.id}/external-register", json=staff_payload()
    )

    assert response.status_code == 400
    assert response.json()["message"] == "Event is full"


@pytest.mark.asyncio
async def test_members_and_externals_share_capacity(
    client: AsyncClient, public_event, volunteer_headers
):
    await client.post(
        f"/api/events/{public_event.id}/external-register", json=staff_payload()
    )
    response = await client.post(
        f"/api/events/{public_event.id}/register", headers=volunteer_headers
    )
    assert response.status_code == 200
    assert response.json()["event"]["current_participants"] == 2

    response = await client.post(
        f"/api/events/{public_event.id}/external-register", json=staff_payload()
    )
    assert response.status_code == 400


@pytest.mark.asyncio
async def test_registration_timestamps_are_ist(client: AsyncClient, public_event):
    response = await client.post(
        f"/api/events/{public_event.id}/external-register",
        json=student_payload(),
    )

    assert response.status_code == 201
    participant = response.json()["participant"]
    assert participant["role"] == "Student"
    assert participant["registration_date"].endswith("+05:30")
