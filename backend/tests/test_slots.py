"""
Tests for availability endpoints: per-slot status, overall status,
weekly status and booking options.
"""

import asyncio
from datetime import date, time

import pytest
from httpx import AsyncClient

DAY = date(2025, 3, 10)
SLOTS = ["09:00", "09:30", "10:00", "10:30", "11:00", "11:30", "12:00", "15:00", "15:30", "16:00"]


@pytest.mark.asyncio
async def test_empty_day(client: AsyncClient):
    response = await client.get("/api/slots/2025-03-10")
    assert response.status_code == 200
    data = response.json()
    assert data["date"] == "2025-03-10"
    assert data["allSlots"] == SLOTS
    assert data["availableSlots"] == SLOTS
    assert data["fullyBookedSlots"] == []
    assert data["totalBookings"] == 0
    assert data["maxBookings"] == 1200
    assert len(data["slotStatus"]) == 10
    assert data["slotStatus"][0] == {
        "time": "09:00",
        "bookingCount": 0,
        "maxCapacity": 120,
        "isAvailable": True,
        "isFullyBooked": False,
        "availableSpots": 120,
    }


@pytest.mark.asyncio
async def test_counts_per_slot_sum_to_total(client: AsyncClient, seed_bookings):
    await seed_bookings(DAY, "09:00", count=3)
    await seed_bookings(DAY, "15:30", count=2)
    await seed_bookings(date(2025, 3, 11), "09:00", count=4)  # other day

    data = (await client.get("/api/slots/2025-03-10")).json()
    counts = {s["time"]: s["bookingCount"] for s in data["slotStatus"]}
    assert counts["09:00"] == 3
    assert counts["15:30"] == 2
    assert sum(counts.values()) == data["totalBookings"] == 5


@pytest.mark.asyncio
async def test_full_slot_reported(client: AsyncClient, seed_bookings):
    await seed_bookings(DAY, "10:00", count=120)

    data = (await client.get("/api/slots/2025-03-10")).json()
    slot = next(s for s in data["slotStatus"] if s["time"] == "10:00")
    assert slot["isFullyBooked"] is True
    assert slot["isAvailable"] is False
    assert slot["availableSpots"] == 0
    assert data["fullyBookedSlots"] == ["10:00"]
    assert "10:00" not in data["availableSlots"]


@pytest.mark.asyncio
async def test_one_below_capacity_still_available(client: AsyncClient, seed_bookings):
    await seed_bookings(DAY, "10:00", count=119)

    data = (await client.get("/api/slots/2025-03-10")).json()
    slot = next(s for s in data["slotStatus"] if s["time"] == "10:00")
    assert slot["isAvailable"] is True
    assert slot["availableSpots"] == 1


@pytest.mark.asyncio
async def test_stored_seconds_normalized(client: AsyncClient, seed_bookings):
    """A row stored as 09:30:45 is counted in the 09:30 slot."""
    await seed_bookings(DAY, "09:30", time_slot=time(9, 30, 45))

    data = (await client.get("/api/slots/2025-03-10")).json()
    slot = next(s for s in data["slotStatus"] if s["time"] == "09:30")
    assert slot["bookingCount"] == 1


@pytest.mark.asyncio
@pytest.mark.parametrize("bad_date", ["2025-3-10", "10-03-2025", "2025-02-30", "today"])
async def test_malformed_date(client: AsyncClient, bad_date):
    response = await client.get(f"/api/slots/{bad_date}")
    assert response.status_code == 400
    assert response.json()["detail"] == "Invalid date format"


@pytest.mark.asyncio
async def test_overall_status(client: AsyncClient, seed_bookings):
    await seed_bookings(DAY, "09:00", count=60)

    response = await client.get("/api/slots/status/overall", params={"date": "2025-03-10"})
    assert response.status_code == 200
    assert response.json() == {
        "date": "2025-03-10",
        "availableSlots": 1140,
        "totalBookings": 60,
        "maxSlots": 1200,
        "utilizationRate": "5.0",
    }


@pytest.mark.asyncio
async def test_overall_status_defaults_to_today(client: AsyncClient):
    response = await client.get("/api/slots/status/overall", params={"date": "garbage"})
    assert response.status_code == 200
    assert response.json()["date"] == date.today().isoformat()


@pytest.mark.asyncio
async def test_weekly_status_requires_phone(client: AsyncClient):
    response = await client.get("/api/user/weekly-status")
    assert response.status_code == 400
    assert response.json()["detail"] == "Phone number is required"


@pytest.mark.asyncio
async def test_weekly_status_free(client: AsyncClient):
    response = await client.get(
        "/api/user/weekly-status", params={"phone": "+911234567890", "date": "2025-03-10"}
    )
    assert response.status_code == 200
    assert response.json() == {
        "hasBookedThisWeek": False,
        "weeklyBookings": 0,
        "canBook": True,
        "message": "You can book a slot this week",
    }


@pytest.mark.asyncio
async def test_weekly_status_booked(client: AsyncClient, seed_bookings):
    await seed_bookings(date(2025, 3, 14), "11:00", phone="+911234567890")

    response = await client.get(
        "/api/user/weekly-status", params={"phone": "+911234567890", "date": "2025-03-10"}
    )
    data = response.json()
    assert data["hasBookedThisWeek"] is True
    assert data["weeklyBookings"] == 1
    assert data["canBook"] is False

    next_week = await client.get(
        "/api/user/weekly-status", params={"phone": "+911234567890", "date": "2025-03-17"}
    )
    assert next_week.json()["canBook"] is True


@pytest.mark.asyncio
async def test_booking_options(client: AsyncClient):
    response = await client.get("/api/booking-options")
    assert response.status_code == 200
    data = response.json()
    assert data["timeSlots"] == SLOTS
    assert "Grocery" in data["purposes"]
    assert "Dehradun" in data["locations"]
    assert data["slotCapacity"] == 120
    assert data["maxSlotsPerDay"] == 1200


@pytest.mark.asyncio
async def test_health_and_root(client: AsyncClient):
    health = await client.get("/api/health")
    assert health.status_code == 200
    assert health.json()["status"] == "healthy"
    assert health.json()["cache"] == {"status": "disabled"}
    assert "X-Request-ID" in health.headers

    root = await client.get("/")
    assert root.json()["endpoints"]["bookings"] == "/api/bookings"


@pytest.mark.asyncio
async def test_request_id_echoed(client: AsyncClient):
    response = await client.get("/api/booking-options", headers={"X-Request-ID": "trace-123"})
    assert response.headers["X-Request-ID"] == "trace-123"


@pytest.mark.asyncio
async def test_metrics_exposed(client: AsyncClient, booking_payload):
    await client.post("/api/bookings", json=booking_payload)
    response = await client.get("/metrics")
    assert response.status_code == 200
    assert "booking_attempts_total" in response.text


@pytest.mark.asyncio
async def test_slot_status_served_from_cache(client: AsyncClient, fake_redis, seed_bookings):
    first = (await client.get("/api/slots/2025-03-10")).json()
    assert "slots:status:2025-03-10" in fake_redis.store

    await seed_bookings(DAY, "09:00")  # bypasses invalidation
    second = (await client.get("/api/slots/2025-03-10")).json()
    assert second == first


@pytest.mark.asyncio
async def test_booking_invalidates_cached_status(client: AsyncClient, fake_redis, booking_payload):
    await client.get("/api/slots/2025-03-10")
    await client.post("/api/bookings", json=booking_payload)

    data = (await client.get("/api/slots/2025-03-10")).json()
    slot = next(s for s in data["slotStatus"] if s["time"] == "09:00")
    assert slot["bookingCount"] == 1


@pytest.mark.asyncio
async def test_poll_counted_before_booking_is_not_cached(client: AsyncClient, fake_redis, booking_payload):
    """
    A poll that counted rows before a booking committed must not store its
    result after the booking invalidated the date.
    """
    fake_redis.script_gate = asyncio.Event()
    poll = asyncio.create_task(client.get("/api/slots/2025-03-10"))
    await fake_redis.script_entered.wait()

    booked = await client.post("/api/bookings", json=booking_payload)
    assert booked.status_code == 201

    fake_redis.script_gate.set()
    assert (await poll).json()["totalBookings"] == 0
    assert "slots:status:2025-03-10" not in fake_redis.store

    fresh = (await client.get("/api/slots/2025-03-10")).json()
    slot = next(s for s in fresh["slotStatus"] if s["time"] == "09:00")
    assert slot["bookingCount"] == 1


@pytest.mark.asyncio
async def test_admin_delete_invalidates_cached_status(
    client: AsyncClient, fake_redis, seed_bookings, auth_headers
):
    [booking] = await seed_bookings(DAY, "10:00")
    assert (await client.get("/api/slots/2025-03-10")).json()["totalBookings"] == 1

    await client.delete(f"/api/admin/bookings/{booking.id}", headers=auth_headers)
    assert (await client.get("/api/slots/2025-03-10")).json()["totalBookings"] == 0
