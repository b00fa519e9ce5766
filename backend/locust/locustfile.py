"""
Locust Load Test Suite

Run scenarios:
  locust -f locustfile.py --tags seats      # Hammer one event's seat counter
  locust -f locustfile.py --tags catalog    # Full catalog reads (cache)
  locust -f locustfile.py --tags edge       # Bad input
  locust -f locustfile.py                   # All tests
"""

import random

import httpx
from locust import HttpUser, task, between, tag, events

API = "/api/v1"

# Shared state, filled on test start
SEAT_EVENT_ID = None
SEAT_CAPACITY = 50


@events.test_start.add_listener
def on_test_start(environment, **kwargs):
    """Setup: one track with one small event that every seat user fights over."""
    global SEAT_EVENT_ID
    if not environment.host:
        return

    with httpx.Client(base_url=environment.host) as http:
        track = http.post(f"{API}/event-tracks/", json={"name": "Load test"}).json()
        event = http.post(
            f"{API}/events/",
            json={
                "track_id": track["id"],
                "name": "Contended event",
                "capacity": SEAT_CAPACITY,
                "available_seats": SEAT_CAPACITY,
            },
        ).json()
        SEAT_EVENT_ID = event["id"]
    print(f"\nSETUP: event {SEAT_EVENT_ID} with {SEAT_CAPACITY} seats")


@events.test_stop.add_listener
def on_test_stop(environment, **kwargs):
    """
    After the run, verify:
      GET /api/v1/events/{id} -> 0 <= available_seats <= capacity
    """
    if SEAT_EVENT_ID is None or not environment.host:
        return

    with httpx.Client(base_url=environment.host) as http:
        seats = http.get(f"{API}/events/{SEAT_EVENT_ID}").json()["available_seats"]
    status = "OK" if 0 <= seats <= SEAT_CAPACITY else "BROKEN"
    print(f"\nSEAT CHECK: available_seats={seats} capacity={SEAT_CAPACITY} -> {status}")


class SeatUser(HttpUser):
    """
    Many users taking and releasing seats on the same event.
    The counter must never leave [0, capacity].

    Run: locust -f locustfile.py --tags seats -u 200 -r 50 --run-time 30s
    """

    wait_time = between(0, 0.05)

    @tag("seats")
    @task(3)
    def take_seat(self):
        if SEAT_EVENT_ID is None:
            return
        with self.client.post(
            f"{API}/events/{SEAT_EVENT_ID}/decrement-seat",
            name="/events/[id]/decrement-seat",
            catch_response=True,
        ) as resp:
            if resp.status_code != 200 or resp.json()["available_seats"] < 0:
                resp.failure(f"bad decrement: {resp.status_code} {resp.text}")

    @tag("seats")
    @task(1)
    def release_seat(self):
        if SEAT_EVENT_ID is None:
            return
        with self.client.post(
            f"{API}/events/{SEAT_EVENT_ID}/increment-seat",
            name="/events/[id]/increment-seat",
            catch_response=True,
        ) as resp:
            if resp.status_code != 200 or resp.json()["available_seats"] > SEAT_CAPACITY:
                resp.failure(f"bad increment: {resp.status_code} {resp.text}")


class CatalogReader(HttpUser):
    """
    Read-heavy traffic against the cached full catalog, with the occasional
    write that invalidates it.

    Run: locust -f locustfile.py --tags catalog -u 100 -r 20 --run-time 60s
    """

    wait_time = between(0.1, 0.5)

    @tag("catalog")
    @task(10)
    def full_catalog(self):
        self.client.get(f"{API}/catalog/", name="/catalog")

    @tag("catalog")
    @task(1)
    def leave_feedback(self):
        if SEAT_EVENT_ID is None:
            return
        self.client.post(
            f"{API}/feedbacks/",
            json={"event_id": SEAT_EVENT_ID, "stars": random.randint(1, 5), "user_id": "locust"},
            name="/feedbacks",
        )


class EdgeCaseUser(HttpUser):
    """Malformed requests must come back as 4xx, never 5xx."""

    wait_time = between(0.5, 1)

    def _expect(self, resp, *codes):
        if resp.status_code in codes:
            resp.success()
        else:
            resp.failure(f"expected {codes}, got {resp.status_code}")

    @tag("edge")
    @task
    def track_without_name(self):
        with self.client.post(f"{API}/event-tracks/", json={}, catch_response=True) as resp:
            self._expect(resp, 400)

    @tag("edge")
    @task
    def feedback_out_of_range(self):
        with self.client.post(
            f"{API}/feedbacks/", json={"event_id": 1, "stars": 9}, catch_response=True
        ) as resp:
            self._expect(resp, 400)

    @tag("edge")
    @task
    def malformed_speakers(self):
        with self.client.post(
            f"{API}/events/", json={"name": "x", "speakers": "[oops"}, catch_response=True
        ) as resp:
            self._expect(resp, 400)

    @tag("edge")
    @task
    def missing_event_seat(self):
        with self.client.post(
            f"{API}/events/999999/decrement-seat", name="/events/[missing]/decrement-seat", catch_response=True
        ) as resp:
            self._expect(resp, 404)
