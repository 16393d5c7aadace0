"""
Locust Load Test Suite

Run scenarios:
  locust -f locustfile.py --tags concurrency  # Test overselling
  locust -f locustfile.py --tags throughput   # Test listing cache
  locust -f locustfile.py --tags edge         # Test bad input
  locust -f locustfile.py                     # All tests
"""

import random
import string

from locust import HttpUser, between, tag, task

# Shared state
TICKET_IDS = []
CONCURRENCY_TICKET_ID = None
CONCURRENCY_ALLOCATION = 10


def random_user_id():
    return "u_" + "".join(random.choices(string.ascii_lowercase, k=8))


class ConcurrencyUser(HttpUser):
    """
    TEST 1: Concurrency - 100 users -> 10 tickets

    Run: locust -f locustfile.py --tags concurrency -u 100 -r 50 --run-time 30s

    After test, verify:
      SELECT COALESCE(SUM(quantity), 0) FROM purchases WHERE ticket_id = X;
    Should be exactly 10, and tickets.allocation should be 0.
    """
    wait_time = between(0, 0.1)

    def on_start(self):
        global CONCURRENCY_TICKET_ID
        self.user_id = random_user_id()

        if not CONCURRENCY_TICKET_ID:
            resp = self.client.post("/tickets", json={
                "name": "Concurrency Test Ticket",
                "desc": f"{CONCURRENCY_ALLOCATION} tickets only",
                "allocation": CONCURRENCY_ALLOCATION,
            })
            if resp.status_code == 201:
                CONCURRENCY_TICKET_ID = resp.json()["id"]
                print(f"\nCreated ticket {CONCURRENCY_TICKET_ID} with {CONCURRENCY_ALLOCATION} allocation\n")

    @tag("concurrency")
    @task
    def purchase_limited_tickets(self):
        """All users fight for the same allocation."""
        if not CONCURRENCY_TICKET_ID:
            return

        with self.client.post(f"/tickets/{CONCURRENCY_TICKET_ID}/purchases",
            json={"quantity": 1, "user_id": self.user_id},
            name="/tickets/{id}/purchases [contended]",
            catch_response=True
        ) as resp:
            if resp.status_code == 200:
                resp.success()
            elif resp.status_code == 400:
                resp.success()  # Expected: sold out
            else:
                resp.failure(f"Unexpected: {resp.status_code}")


class ThroughputUser(HttpUser):
    """
    TEST 2: Throughput - Cache effectiveness

    Run twice:
      1. With Redis: locust -f locustfile.py --tags throughput -u 100 -r 20 --run-time 60s
      2. With REDIS_ENABLED=false, run again

    Compare avg response time, requests/sec and P95/P99 latency.
    """
    wait_time = between(0.1, 0.5)

    @tag("throughput", "read")
    @task(10)
    def list_tickets_cached(self):
        resp = self.client.get("/tickets", name="/tickets [cached]")
        if resp.status_code == 200:
            for ticket in resp.json():
                if ticket["id"] not in TICKET_IDS:
                    TICKET_IDS.append(ticket["id"])

    @tag("throughput", "read")
    @task(3)
    def get_ticket_detail(self):
        if TICKET_IDS:
            self.client.get(f"/tickets/{random.choice(TICKET_IDS)}", name="/tickets/{id}")

    @tag("throughput")
    @task(1)
    def health_check(self):
        self.client.get("/health")


class EdgeCaseUser(HttpUser):
    """
    TEST 3: Edge cases - Bad input handling

    Run: locust -f locustfile.py --tags edge -u 20 -r 5 --run-time 30s

    System should NOT crash, return proper error codes.
    """
    wait_time = between(0.5, 1.5)

    def _expect(self, method, path, expected, **kwargs):
        with self.client.request(method, path, catch_response=True, **kwargs) as resp:
            if resp.status_code in expected:
                resp.success()
            else:
                resp.failure(f"Expected {expected}, got {resp.status_code}")

    @tag("edge")
    @task
    def invalid_ticket_id(self):
        self._expect("POST", "/tickets/999999/purchases", [404],
            json={"quantity": 1, "user_id": "edge"}, name="/tickets/{missing}/purchases")

    @tag("edge")
    @task
    def non_numeric_ticket_id(self):
        self._expect("GET", "/tickets/abc", [400], name="/tickets/{bad}")

    @tag("edge")
    @task
    def negative_quantity(self):
        self._expect("POST", "/tickets/1/purchases", [400],
            json={"quantity": -5, "user_id": "edge"}, name="/tickets/{id}/purchases [negative]")

    @tag("edge")
    @task
    def zero_quantity(self):
        self._expect("POST", "/tickets/1/purchases", [400],
            json={"quantity": 0, "user_id": "edge"}, name="/tickets/{id}/purchases [zero]")

    @tag("edge")
    @task
    def huge_quantity(self):
        self._expect("POST", "/tickets/1/purchases", [400, 404],
            json={"quantity": 999999, "user_id": "edge"}, name="/tickets/{id}/purchases [huge]")

    @tag("edge")
    @task
    def malformed_json(self):
        self._expect("POST", "/tickets/1/purchases", [400],
            data="not json at all", headers={"Content-Type": "application/json"},
            name="/tickets/{id}/purchases [garbage]")

    @tag("edge")
    @task
    def empty_ticket_name(self):
        self._expect("POST", "/tickets", [400],
            json={"name": "", "desc": "x", "allocation": 1}, name="/tickets [empty name]")


class RealisticUser(HttpUser):
    """
    TEST 4: Realistic mixed workload

    Run: locust -f locustfile.py -u 200 -r 20 --run-time 120s

    Mostly browsing, some purchases, rare creates.
    """
    wait_time = between(1, 3)

    def on_start(self):
        self.user_id = random_user_id()

    @task(50)
    def browse_tickets(self):
        resp = self.client.get("/tickets")
        if resp.status_code == 200:
            for ticket in resp.json():
                if ticket["id"] not in TICKET_IDS:
                    TICKET_IDS.append(ticket["id"])

    @task(20)
    def view_ticket(self):
        if TICKET_IDS:
            self.client.get(f"/tickets/{random.choice(TICKET_IDS)}", name="/tickets/{id}")

    @task(10)
    def purchase(self):
        if TICKET_IDS:
            self.client.post(f"/tickets/{random.choice(TICKET_IDS)}/purchases",
                json={"quantity": random.randint(1, 3), "user_id": self.user_id},
                name="/tickets/{id}/purchases")

    @task(3)
    def create_ticket(self):
        resp = self.client.post("/tickets", json={
            "name": f"Ticket {random.randint(1, 10000)}",
            "desc": "Load test ticket",
            "allocation": random.randint(10, 500),
        })
        if resp.status_code == 201:
            TICKET_IDS.append(resp.json()["id"])
