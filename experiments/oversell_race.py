#!/usr/bin/env python3
"""
Oversell race against a running Ticket Inventory API.

Creates one ticket with a small allocation, fires many single-unit purchases
at it at once, then checks that successes never exceed the allocation and
that the ticket's remaining allocation matches the purchase history.

Usage: API_URL=http://localhost:8080 python experiments/oversell_race.py
"""

import asyncio
import os
import time

import aiohttp

API_URL = os.environ.get("API_URL", "http://localhost:8080")
CONCURRENT_USERS = int(os.environ.get("CONCURRENT_USERS", "50"))
ALLOCATION = int(os.environ.get("ALLOCATION", "10"))


class OversellRace:
    def __init__(self):
        self.results = {
            "successful_purchases": 0,
            "sold_out": 0,
            "failed_purchases": 0,
            "errors": 0,
            "response_times": []
        }
        self.ticket_id = None

    async def create_test_ticket(self, session: aiohttp.ClientSession):
        async with session.post(f"{API_URL}/tickets", json={
            "name": f"Race Ticket {int(time.time())}",
            "desc": "Testing concurrent purchases",
            "allocation": ALLOCATION,
        }) as resp:
            if resp.status == 201:
                data = await resp.json()
                self.ticket_id = data["id"]
                print(f"✓ Created ticket {self.ticket_id} with allocation {ALLOCATION}")

    async def purchase(self, session: aiohttp.ClientSession, user_num: int):
        start = time.time()
        try:
            async with session.post(f"{API_URL}/tickets/{self.ticket_id}/purchases",
                json={"quantity": 1, "user_id": f"race-user-{user_num}"}
            ) as resp:
                elapsed = (time.time() - start) * 1000
                self.results["response_times"].append(elapsed)

                if resp.status == 200:
                    self.results["successful_purchases"] += 1
                elif resp.status == 400:
                    self.results["sold_out"] += 1
                else:
                    self.results["failed_purchases"] += 1
                    print(f"✗ User {user_num} failed: {resp.status} ({elapsed:.0f}ms)")
        except aiohttp.ClientError as e:
            self.results["errors"] += 1
            print(f"✗ User {user_num} error: {e}")

    async def verify(self, session: aiohttp.ClientSession) -> bool:
        async with session.get(f"{API_URL}/tickets/{self.ticket_id}") as resp:
            remaining = (await resp.json())["allocation"]
        async with session.get(f"{API_URL}/tickets/{self.ticket_id}/purchases") as resp:
            sold = sum(p["quantity"] for p in await resp.json())

        print(f"Remaining allocation: {remaining}")
        print(f"Recorded quantity:    {sold}")
        return (
            self.results["successful_purchases"] <= ALLOCATION
            and remaining >= 0
            and remaining + sold == ALLOCATION
        )

    async def run(self):
        print(f"\n{'='*60}")
        print(f"OVERSELL RACE: {CONCURRENT_USERS} users → allocation {ALLOCATION}")
        print(f"{'='*60}\n")

        async with aiohttp.ClientSession() as session:
            await self.create_test_ticket(session)
            if not self.ticket_id:
                print("✗ Failed to create ticket")
                return

            start_time = time.time()
            await asyncio.gather(*(self.purchase(session, i) for i in range(CONCURRENT_USERS)))
            total_time = time.time() - start_time

            print("\n" + "="*60)
            print("RESULTS")
            print("="*60)
            print(f"Total time:           {total_time:.2f}s")
            print(f"Successful purchases: {self.results['successful_purchases']}")
            print(f"Sold out (400):       {self.results['sold_out']}")
            print(f"Failed purchases:     {self.results['failed_purchases']}")
            print(f"Errors:               {self.results['errors']}")

            if self.results["response_times"]:
                times = sorted(self.results["response_times"])
                print("\nResponse times:")
                print(f"  Avg: {sum(times)/len(times):.0f}ms")
                print(f"  P50: {times[len(times)//2]:.0f}ms")
                print(f"  P95: {times[int(len(times)*0.95)]:.0f}ms")
                print(f"  P99: {times[int(len(times)*0.99)]:.0f}ms")

            print("\n" + "="*60)
            if await self.verify(session):
                print("✓ PASS: No overselling, allocation matches purchase history")
            else:
                print("✗ FAIL: OVERSELL OR ALLOCATION DRIFT DETECTED")
            print("="*60 + "\n")


if __name__ == "__main__":
    asyncio.run(OversellRace().run())
