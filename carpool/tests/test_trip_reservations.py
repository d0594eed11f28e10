"""
Trip reservation handshake and trip completion tests.
"""

from datetime import timedelta

import pytest

from carpool.tests.helpers import create_trip, move_trip_departure, register_user


async def _reserve(client, headers, trip_id):
    response = await client.post("/v1/trip-reservations", json={"trip_id": trip_id}, headers=headers)
    assert response.status_code == 201, response.text
    return response.json()


async def _confirmed_reservation(client, trip, driver, passenger):
    reservation = await _reserve(client, passenger["headers"], trip["id"])
    accepted = await client.post(
        f"/v1/trip-reservations/{reservation['id']}/accept", headers=driver["headers"]
    )
    assert accepted.status_code == 200, accepted.text
    return accepted.json()


async def _seats(client, trip_id, headers):
    detail = await client.get(f"/v1/trips/{trip_id}", headers=headers)
    return detail.json()["available_seats"], detail.json()["is_full"]


@pytest.mark.asyncio
async def test_request_and_accept_reservation(client, trip, driver, passenger):
    reservation = await _reserve(client, passenger["headers"], trip["id"])
    assert reservation["passenger_accepted"] is True
    assert reservation["driver_accepted"] is False
    assert reservation["is_confirmed"] is False

    accepted = await client.post(
        f"/v1/trip-reservations/{reservation['id']}/accept", headers=driver["headers"]
    )
    assert accepted.status_code == 200
    data = accepted.json()
    assert data["is_confirmed"] is True
    assert data["chat_id"] is not None

    assert await _seats(client, trip["id"], driver["headers"]) == (3, False)

    # Both parties are in the chat
    chat = await client.get(f"/v1/trips/{trip['id']}/chat", headers=passenger["headers"])
    assert sorted(chat.json()["member_ids"]) == sorted([driver["id"], passenger["id"]])

    # TEST: accepting twice conflicts
    again = await client.post(
        f"/v1/trip-reservations/{reservation['id']}/accept", headers=driver["headers"]
    )
    assert again.status_code == 409


@pytest.mark.asyncio
async def test_reservation_request_rules(client, trip, driver, passenger):
    own = await client.post("/v1/trip-reservations", json={"trip_id": trip["id"]}, headers=driver["headers"])
    assert own.status_code == 403

    missing = await client.post("/v1/trip-reservations", json={"trip_id": 999}, headers=passenger["headers"])
    assert missing.status_code == 404

    await _reserve(client, passenger["headers"], trip["id"])
    duplicate = await client.post(
        "/v1/trip-reservations", json={"trip_id": trip["id"]}, headers=passenger["headers"]
    )
    assert duplicate.status_code == 409


@pytest.mark.asyncio
async def test_reservation_on_full_trip(client, driver, passenger, other_passenger):
    trip = await create_trip(client, driver["headers"], seats=1)
    first = await _reserve(client, passenger["headers"], trip["id"])
    second = await _reserve(client, other_passenger["headers"], trip["id"])

    await client.post(f"/v1/trip-reservations/{first['id']}/accept", headers=driver["headers"])
    assert await _seats(client, trip["id"], driver["headers"]) == (0, True)

    # Accepting the second one would over-book
    conflict = await client.post(f"/v1/trip-reservations/{second['id']}/accept", headers=driver["headers"])
    assert conflict.status_code == 409

    # New reservations are refused outright
    _, late_headers = await register_user(client, "late@test.com")
    late = await client.post("/v1/trip-reservations", json={"trip_id": trip["id"]}, headers=late_headers)
    assert late.status_code == 409
    assert late.json()["message"] == "Trip is already full"


@pytest.mark.asyncio
async def test_only_driver_accepts_or_rejects(client, trip, passenger):
    reservation = await _reserve(client, passenger["headers"], trip["id"])

    accept = await client.post(f"/v1/trip-reservations/{reservation['id']}/accept", headers=passenger["headers"])
    assert accept.status_code == 403

    reject = await client.post(f"/v1/trip-reservations/{reservation['id']}/reject", headers=passenger["headers"])
    assert reject.status_code == 403


@pytest.mark.asyncio
async def test_reject_deletes_pending_reservation(client, trip, driver, passenger):
    reservation = await _reserve(client, passenger["headers"], trip["id"])

    rejected = await client.post(f"/v1/trip-reservations/{reservation['id']}/reject", headers=driver["headers"])
    assert rejected.status_code == 200

    # Deleted, so the passenger may ask again
    again = await _reserve(client, passenger["headers"], trip["id"])
    assert again["id"] != reservation["id"]


@pytest.mark.asyncio
async def test_confirmed_reservation_cannot_be_rejected(client, trip, driver, passenger):
    reservation = await _confirmed_reservation(client, trip, driver, passenger)
    response = await client.post(f"/v1/trip-reservations/{reservation['id']}/reject", headers=driver["headers"])
    assert response.status_code == 409


@pytest.mark.asyncio
async def test_cancel_confirmed_reservation_releases_seat(client, driver, passenger):
    trip = await create_trip(client, driver["headers"], seats=1)
    reservation = await _confirmed_reservation(client, trip, driver, passenger)
    assert await _seats(client, trip["id"], driver["headers"]) == (0, True)

    cancelled = await client.post(
        f"/v1/trip-reservations/{reservation['id']}/cancel", headers=passenger["headers"]
    )
    assert cancelled.status_code == 200
    assert await _seats(client, trip["id"], driver["headers"]) == (1, False)


@pytest.mark.asyncio
async def test_cancel_rules(client, trip, driver, passenger, other_passenger, db_session):
    pending = await _reserve(client, passenger["headers"], trip["id"])

    # TEST 1: only confirmed reservations can be cancelled
    not_confirmed = await client.post(
        f"/v1/trip-reservations/{pending['id']}/cancel", headers=passenger["headers"]
    )
    assert not_confirmed.status_code == 400

    await client.post(f"/v1/trip-reservations/{pending['id']}/accept", headers=driver["headers"])

    # TEST 2: outsiders cannot cancel
    outsider = await client.post(
        f"/v1/trip-reservations/{pending['id']}/cancel", headers=other_passenger["headers"]
    )
    assert outsider.status_code == 403

    # TEST 3: not after departure
    await move_trip_departure(db_session, trip["id"], timedelta(hours=-1))
    late = await client.post(f"/v1/trip-reservations/{pending['id']}/cancel", headers=driver["headers"])
    assert late.status_code == 400
    assert late.json()["message"] == "Cannot cancel a reservation after departure"


@pytest.mark.asyncio
async def test_completion_before_departure_rejected(client, trip, driver, passenger):
    reservation = await _confirmed_reservation(client, trip, driver, passenger)

    response = await client.post(
        f"/v1/trip-reservations/{reservation['id']}/complete/driver", headers=driver["headers"]
    )
    assert response.status_code == 400
    assert response.json()["message"] == "Trip date has not passed yet"


@pytest.mark.asyncio
async def test_completion_requires_both_sides(client, trip, driver, passenger, db_session):
    reservation = await _confirmed_reservation(client, trip, driver, passenger)
    await move_trip_departure(db_session, trip["id"], timedelta(hours=-2))

    # TEST 1: driver first; trip not completed yet
    by_driver = await client.post(
        f"/v1/trip-reservations/{reservation['id']}/complete/driver", headers=driver["headers"]
    )
    assert by_driver.status_code == 200
    assert by_driver.json()["trip"]["completed_by_driver"] is True
    assert by_driver.json()["trip"]["is_completed"] is False

    # TEST 2: passenger second; now completed
    by_passenger = await client.post(
        f"/v1/trip-reservations/{reservation['id']}/complete/passenger", headers=passenger["headers"]
    )
    assert by_passenger.status_code == 200
    assert by_passenger.json()["trip"]["is_completed"] is True

    # TEST 3: dashboard files it under past.completed
    dashboard = await client.get("/v1/trips/dashboard", headers=driver["headers"])
    assert [t["id"] for t in dashboard.json()["past"]["completed"]] == [trip["id"]]


@pytest.mark.asyncio
async def test_completion_wrong_side_and_unconfirmed(client, trip, driver, passenger, db_session):
    reservation = await _reserve(client, passenger["headers"], trip["id"])
    await move_trip_departure(db_session, trip["id"], timedelta(hours=-2))

    wrong_side = await client.post(
        f"/v1/trip-reservations/{reservation['id']}/complete/driver", headers=passenger["headers"]
    )
    assert wrong_side.status_code == 403

    unconfirmed = await client.post(
        f"/v1/trip-reservations/{reservation['id']}/complete/passenger", headers=passenger["headers"]
    )
    assert unconfirmed.status_code == 400
    assert unconfirmed.json()["message"] == "Reservation must be mutually accepted to complete"
