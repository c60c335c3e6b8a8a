#!/usr/bin/env python3
"""
Book a chef end to end against a running API.

Only orchestrates API calls; every rule lives in the backend.

Usage:
    python scripts/flow_book_chef.py --chef-id <UUID> --date 2026-12-12
    python scripts/flow_book_chef.py --chef-id <UUID> --date 2026-12-12 --party-size 6 --skip-complete

Flow:
    1. Login as customer
    2. Fetch the chef's free slots for the date
    3. Quote the booking
    4. Create the booking in the first free slot
    5. Login as chef and confirm
    6. Complete the booking
"""

import argparse
import json
import os
import sys

import httpx

BASE_URL = os.environ.get("CHEFCONNECT_URL", "http://localhost:8000")
API = f"{BASE_URL}/api/v1"

CUSTOMER_EMAIL = os.environ.get("CUSTOMER_EMAIL", "customer@chefconnect.co.za")
CUSTOMER_PASSWORD = os.environ.get("CUSTOMER_PASSWORD", "Test@1234")
CHEF_EMAIL = os.environ.get("CHEF_EMAIL", "chef@chefconnect.co.za")
CHEF_PASSWORD = os.environ.get("CHEF_PASSWORD", "Test@1234")


def login(client: httpx.Client, email: str, password: str) -> dict[str, str]:
    response = client.post(f"{API}/auth/login", json={"email": email, "password": password})
    if response.status_code != 200:
        print(f"ERROR: Login failed for {email}: {response.status_code}")
        print(response.text)
        sys.exit(1)
    return {"Authorization": f"Bearer {response.json()['access_token']}"}


def step(number: int, title: str) -> None:
    print(f"\n{'=' * 60}")
    print(f"STEP {number}: {title}")
    print("=" * 60)


def check(response: httpx.Response, fields: list[str] | None = None) -> dict | list:
    """Print a response and exit on an error status."""
    data = response.json() if response.text else {}
    if response.status_code >= 400:
        print(f"ERROR ({response.status_code}): {json.dumps(data, indent=2)}")
        sys.exit(1)
    if fields and isinstance(data, dict):
        data_shown = {k: data.get(k) for k in fields}
    else:
        data_shown = data
    print(f"Status: {response.status_code}")
    print(json.dumps(data_shown, indent=2))
    return data


def main() -> None:
    parser = argparse.ArgumentParser(description="Book a private chef end to end")
    parser.add_argument("--chef-id", required=True, help="Chef user UUID")
    parser.add_argument("--date", required=True, help="Event date (YYYY-MM-DD)")
    parser.add_argument("--party-size", type=int, default=4)
    parser.add_argument("--address", default="12 Long Street, Cape Town, 8001")
    parser.add_argument("--skip-complete", action="store_true", help="Stop after confirming")
    args = parser.parse_args()

    with httpx.Client(timeout=10.0, follow_redirects=True) as client:
        step(1, "Login as customer")
        customer = login(client, CUSTOMER_EMAIL, CUSTOMER_PASSWORD)
        print(f"Logged in as {CUSTOMER_EMAIL}")

        step(2, "Check availability")
        slots = check(client.get(f"{API}/chefs/{args.chef_id}/availability", params={"date": args.date}))
        if not slots:
            print("ERROR: Chef has no free slots on that date")
            sys.exit(1)

        step(3, "Quote")
        quote = check(
            client.get(
                f"{API}/bookings/quote",
                params={"chef_id": args.chef_id, "event_date": args.date, "party_size": args.party_size},
            )
        )

        step(4, f"Create booking at {slots[0]}")
        booking = check(
            client.post(
                f"{API}/bookings/",
                headers=customer,
                json={
                    "chef_id": args.chef_id,
                    "event_date": args.date,
                    "event_time": slots[0],
                    "party_size": args.party_size,
                    "event_address": args.address,
                },
            ),
            ["id", "status", "subtotal", "service_fee", "processing_fee", "total_amount"],
        )

        step(5, "Login as chef and confirm")
        chef = login(client, CHEF_EMAIL, CHEF_PASSWORD)
        check(
            client.put(f"{API}/bookings/{booking['id']}/status", headers=chef, json={"status": "confirmed"}),
            ["id", "status", "confirmed_at"],
        )

        if not args.skip_complete:
            step(6, "Complete booking")
            check(
                client.put(f"{API}/bookings/{booking['id']}/status", headers=chef, json={"status": "completed"}),
                ["id", "status", "completed_at"],
            )

    print(f"\n{'=' * 60}")
    print("FLOW COMPLETE")
    print("=" * 60)
    print(f"Booking:  {booking['id']}")
    print(f"Total:    R{quote['total']} (service R{quote['service_fee']}, processing R{quote['processing_fee']})")


if __name__ == "__main__":
    main()
