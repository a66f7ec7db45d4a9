"""
Locust Load Test Suite

Run scenarios:
  locust -f locustfile.py --tags concurrency  # Race for a small event
  locust -f locustfile.py --tags throughput   # Upcoming listing (cache)
  locust -f locustfile.py                     # All tests

After a concurrency run, verify:
  SELECT COUNT(*) FROM event_registrations WHERE event_id = '<id>';
Must equal the event capacity (10), never more.
"""

import random
from datetime import datetime, timezone, timedelta

import httpx
from locust import HttpUser, task, between, tag, events

API = "/api/v1"
CONCURRENCY_CAPACITY = 10
CONCURRENCY_EVENT_ID = None


@events.test_start.add_listener
def on_test_start(environment, **kwargs):
    """Create the contended event once, before any user starts."""
    global CONCURRENCY_EVENT_ID
    if environment.host is None:
        return

    when = (datetime.now(timezone.utc) + timedelta(days=30)).isoformat()
    resp = httpx.post(
        f"{environment.host}{API}/events",
        json={
            "title": "Concurrency Test Event",
            "event_datetime": when,
            "location": "Load Lab",
            "capacity": CONCURRENCY_CAPACITY,
        },
    )
    if resp.status_code == 201:
        CONCURRENCY_EVENT_ID = resp.json()["id"]
        print(f"\nCreated event {CONCURRENCY_EVENT_ID} with {CONCURRENCY_CAPACITY} places\n")


class ConcurrencyUser(HttpUser):
    """
    Many users fight for the same 10 places.

    Run: locust -f locustfile.py --tags concurrency -u 100 -r 50 --run-time 30s
    """
    wait_time = between(0, 0.1)

    def on_start(self):
        resp = self.client.post(f"{API}/users", json={
            "name": f"load-{random.randint(10000, 99999)}",
            "email": f"load_{random.randint(10000, 99999)}@example.com",
        })
        self.user_id = resp.json()["id"] if resp.status_code == 201 else None

    @tag("concurrency")
    @task
    def register_for_limited_event(self):
        if not CONCURRENCY_EVENT_ID or not self.user_id:
            return

        with self.client.post(
            f"{API}/events/{CONCURRENCY_EVENT_ID}/register",
            json={"user_id": self.user_id},
            name="/events/[id]/register",
            catch_response=True,
        ) as resp:
            if resp.status_code == 201:
                resp.success()
            elif resp.status_code == 409:
                resp.success()  # event_full / already_registered are expected
            elif resp.status_code == 503:
                resp.success()  # busy: retryable back-pressure, not a bug
            else:
                resp.failure(f"Unexpected: {resp.status_code}")


class ThroughputUser(HttpUser):
    """
    Upcoming listing under read load; compare runs with and without Redis.

    Run: locust -f locustfile.py --tags throughput -u 100 -r 20 --run-time 60s
    """
    wait_time = between(0.1, 0.5)

    @tag("throughput")
    @task(5)
    def list_upcoming(self):
        self.client.get(f"{API}/events/upcoming")

    @tag("throughput")
    @task(1)
    def event_stats(self):
        if CONCURRENCY_EVENT_ID:
            self.client.get(f"{API}/events/{CONCURRENCY_EVENT_ID}/stats", name="/events/[id]/stats")
