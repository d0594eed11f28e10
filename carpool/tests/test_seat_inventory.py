"""
Seat inventory tests.

0 <= available_seats <= total_seats and is_full == (available_seats == 0),
whatever order requests are accepted in.
"""

from types import SimpleNamespace

import pytest

from carpool.app.core.exceptions import ConflictError
from carpool.app.services.seat_inventory import release_seats, reserve_seats
from carpool.tests.helpers import act_on_request, create_trip, register_user, request_booking


def _trip(total, available):
    return SimpleNamespace(id=1, total_seats=total, available_seats=available, is_full=available == 0)


def test_reserve_seats_sets_full_on_zero():
    trip = _trip(4, 2)
    reserve_seats(trip, 2)
    assert trip.available_seats == 0
    assert trip.is_full is True


def test_reserve_seats_conflicts():
    with pytest.raises(ConflictError) as exc:
        reserve_seats(_trip(4, 0), 1)
    assert exc.value.message == "Trip is now full"

    short = _trip(4, 1)
    with pytest.raises(ConflictError) as exc:
        reserve_seats(short, 2)
    assert exc.value.message == "Only 1 seats available now"
    # Nothing was taken
    assert short.available_seats == 1


def test_release_seats_never_exceeds_capacity():
    trip = _trip(3, 0)
    release_seats(trip, 1)
    assert trip.available_seats == 1
    assert trip.is_full is False

    release_seats(trip, 10)
    assert trip.available_seats == 3


@pytest.mark.asyncio
async def test_fully_booked_trip(client, trip, driver):
    """A 4-seat trip booked 2+2 is full; the next booking conflicts."""
    passengers = []
    for i in range(3):
        passengers.append(await register_user(client, f"rider{i}@test.com"))

    for _, headers in passengers[:2]:
        request = await request_booking(client, headers, trip["id"], seats=2)
        accepted = await act_on_request(client, driver["headers"], request["id"], "ACCEPT")
        assert accepted.status_code == 200

    detail = await client.get(f"/v1/trips/{trip['id']}", headers=driver["headers"])
    assert detail.json()["available_seats"] == 0
    assert detail.json()["is_full"] is True

    late = await client.post(
        f"/v1/trips/{trip['id']}/requests",
        json={"type": "BOOKING", "seats_requested": 1},
        headers=passengers[2][1],
    )
    assert late.status_code == 409
    assert late.json()["message"] == "Trip is already full"


@pytest.mark.asyncio
async def test_competing_accepts_never_over_decrement(client, trip, driver, passenger, other_passenger):
    """
    Two pending requests whose combined demand exceeds the seats: the first
    accept wins, the second conflicts and stays PENDING.
    """
    first = await request_booking(client, passenger["headers"], trip["id"], seats=3)
    second = await request_booking(client, other_passenger["headers"], trip["id"], seats=2)

    ok = await act_on_request(client, driver["headers"], first["id"], "ACCEPT")
    assert ok.status_code == 200

    conflict = await act_on_request(client, driver["headers"], second["id"], "ACCEPT")
    assert conflict.status_code == 409
    assert conflict.json()["message"] == "Only 1 seats available now"

    detail = await client.get(f"/v1/trips/{trip['id']}", headers=driver["headers"])
    assert detail.json()["available_seats"] == 1
    assert detail.json()["is_full"] is False

    # The failed accept rolled back completely
    listing = await client.get(f"/v1/trips/{trip['id']}/requests", headers=driver["headers"])
    statuses = {r["id"]: r["status"] for r in listing.json()}
    assert statuses[second["id"]] == "PENDING"


@pytest.mark.asyncio
async def test_accept_on_full_trip_conflicts(client, driver, passenger, other_passenger):
    trip = await create_trip(client, driver["headers"], seats=1)
    first = await request_booking(client, passenger["headers"], trip["id"])
    second = await request_booking(client, other_passenger["headers"], trip["id"])

    await act_on_request(client, driver["headers"], first["id"], "ACCEPT")
    conflict = await act_on_request(client, driver["headers"], second["id"], "ACCEPT")
    assert conflict.status_code == 409
    assert conflict.json()["message"] == "Trip is now full"
