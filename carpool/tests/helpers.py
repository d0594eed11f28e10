"""
Shared test helpers: register users and offer trips through the API.
"""

from datetime import datetime, timedelta, timezone


async def register_user(client, email, name="Test User", password="password123"):
    """Register through the API; returns (user_id, auth headers)."""
    response = await client.post(
        "/v1/auth/register",
        json={"email": email, "password": password, "name": name},
    )
    assert response.status_code == 201, response.text
    data = response.json()
    return data["user"]["id"], {"Authorization": f"Bearer {data['access_token']}"}


async def create_trip(client, headers, seats=4, price=20.0, days_ahead=2, **extra):
    payload = {
        "origin": "Berlin",
        "destination": "Hamburg",
        "departure_at": (datetime.now(timezone.utc) + timedelta(days=days_ahead)).isoformat(),
        "price": price,
        "seats": seats,
    }
    payload.update(extra)
    response = await client.post("/v1/trips", json=payload, headers=headers)
    assert response.status_code == 201, response.text
    return response.json()


async def request_booking(client, headers, trip_id, seats=1):
    response = await client.post(
        f"/v1/trips/{trip_id}/requests",
        json={"type": "BOOKING", "seats_requested": seats},
        headers=headers,
    )
    assert response.status_code == 201, response.text
    return response.json()


async def act_on_request(client, headers, request_id, action):
    return await client.patch(f"/v1/requests/{request_id}", json={"action": action}, headers=headers)


async def move_trip_departure(db_session, trip_id, delta):
    """Shift a trip's departure relative to now (negative delta = in the past)."""
    from carpool.app.models.trip import Trip

    trip = await db_session.get(Trip, trip_id)
    trip.departure_at = datetime.now(timezone.utc) + delta
    await db_session.commit()
