"""
Locust Load Test Suite

Run scenarios:
  locust -f locustfile.py --tags concurrency  # Test slot overbooking
  locust -f locustfile.py --tags polling      # Test slot status cache
  locust -f locustfile.py --tags edge         # Test bad input
  locust -f locustfile.py                     # All tests

After a concurrency run, verify:
  SELECT COUNT(*) FROM bookings WHERE date = '<CONCURRENCY_DATE>' AND time_slot = '09:00';
Should be <= 120. Repeat with BOOKING_LOCK_STRATEGY=none to see the race.
"""

import os
import random
from datetime import date, timedelta

from locust import HttpUser, task, between, tag

TIME_SLOTS = ["09:00", "09:30", "10:00", "10:30", "11:00", "11:30", "12:00", "15:00", "15:30", "16:00"]
PURPOSES = ["Liquor", "Grocery", "Both"]
LOCATIONS = ["Almora", "Dehradun", "Haridwar", "Nainital"]

# A date far enough ahead that real traffic does not touch it
CONCURRENCY_DATE = os.getenv(
    "CONCURRENCY_DATE",
    (date.today() + timedelta(days=180)).isoformat(),
)


def random_phone() -> str:
    return "+91" + str(random.randint(6000000000, 9999999999))


def booking_payload(day: str, slot: str) -> dict:
    return {
        "name": f"Load User {random.randint(1, 99999)}",
        "phone": random_phone(),
        "purpose": random.choice(PURPOSES),
        "location": random.choice(LOCATIONS),
        "date": day,
        "time_slot": slot,
    }


class ConcurrencyUser(HttpUser):
    """
    TEST 1: Concurrency - many users -> one slot with 120 seats

    Run: locust -f locustfile.py --tags concurrency -u 300 -r 100 --run-time 30s
    """
    wait_time = between(0, 0.1)

    @tag("concurrency")
    @task
    def book_same_slot(self):
        """Every user fights for the 09:00 slot on the same date."""
        with self.client.post(
            "/api/bookings",
            json=booking_payload(CONCURRENCY_DATE, "09:00"),
            name="/api/bookings [contended]",
            catch_response=True,
        ) as resp:
            if resp.status_code in (201, 409):
                resp.success()  # 409: slot full or phone already booked
            else:
                resp.failure(f"Unexpected: {resp.status_code}")


class PollingUser(HttpUser):
    """
    TEST 2: Polling - booking forms refreshing slot status

    Run twice, with and without Redis, and compare P95 latency.
    """
    wait_time = between(0.1, 0.5)

    @tag("polling", "read")
    @task(10)
    def slot_status(self):
        day = (date.today() + timedelta(days=random.randint(0, 6))).isoformat()
        self.client.get(f"/api/slots/{day}", name="/api/slots/{date}")

    @tag("polling", "read")
    @task(3)
    def weekly_status(self):
        self.client.get(
            "/api/user/weekly-status",
            params={"phone": random_phone(), "date": date.today().isoformat()},
            name="/api/user/weekly-status",
        )

    @tag("polling")
    @task(1)
    def health_check(self):
        self.client.get("/api/health")


class EdgeCaseUser(HttpUser):
    """
    TEST 3: Edge cases - Bad input handling

    Run: locust -f locustfile.py --tags edge -u 20 -r 5 --run-time 30s

    System should NOT crash, return proper error codes.
    """
    wait_time = between(0.5, 1.5)

    def _expect(self, resp, codes):
        if resp.status_code in codes:
            resp.success()
        else:
            resp.failure(f"Expected {codes}, got {resp.status_code}")

    @tag("edge")
    @task
    def slot_not_offered(self):
        with self.client.post(
            "/api/bookings",
            json=booking_payload(date.today().isoformat(), "13:00"),
            catch_response=True,
        ) as resp:
            self._expect(resp, (400,))

    @tag("edge")
    @task
    def bad_phone(self):
        payload = booking_payload(date.today().isoformat(), "09:00")
        payload["phone"] = "0123"
        with self.client.post("/api/bookings", json=payload, catch_response=True) as resp:
            self._expect(resp, (400,))

    @tag("edge")
    @task
    def malformed_date(self):
        with self.client.get("/api/slots/2025-13-45", name="/api/slots/{bad}", catch_response=True) as resp:
            self._expect(resp, (400,))

    @tag("edge")
    @task
    def malformed_json(self):
        with self.client.post(
            "/api/bookings",
            data="not json at all",
            headers={"Content-Type": "application/json"},
            catch_response=True,
        ) as resp:
            self._expect(resp, (400,))

    @tag("edge")
    @task
    def admin_without_token(self):
        with self.client.get("/api/admin/bookings", catch_response=True) as resp:
            self._expect(resp, (401,))


class RealisticUser(HttpUser):
    """
    TEST 4: Realistic mixed workload

    Run: locust -f locustfile.py -u 200 -r 20 --run-time 120s

    Visitors check availability, check their weekly status, then book.
    """
    wait_time = between(1, 3)

    def on_start(self):
        self.phone = random_phone()
        self.day = (date.today() + timedelta(days=random.randint(1, 14))).isoformat()

    @task(50)
    def browse_slots(self):
        self.client.get(f"/api/slots/{self.day}", name="/api/slots/{date}")

    @task(20)
    def check_week(self):
        self.client.get(
            "/api/user/weekly-status",
            params={"phone": self.phone, "date": self.day},
            name="/api/user/weekly-status",
        )

    @task(10)
    def book(self):
        resp = self.client.get(f"/api/slots/{self.day}", name="/api/slots/{date}")
        if resp.status_code != 200:
            return
        available = resp.json().get("availableSlots") or TIME_SLOTS
        payload = booking_payload(self.day, random.choice(available))
        payload["phone"] = self.phone
        with self.client.post("/api/bookings", json=payload, catch_response=True) as booking:
            if booking.status_code in (201, 409):
                booking.success()
            else:
                booking.failure(f"Unexpected: {booking.status_code}")
