#!/usr/bin/env python3
"""Wassenger webhook simulator for testing Aurora locally.

Posts fake `message:in:new` webhooks to a running Aurora server, so the
admission gate can be exercised without deploying.

Usage:
    python scripts/simulate_wassenger.py "hola"
    python scripts/simulate_wassenger.py --conversation
    python scripts/simulate_wassenger.py --burst 6

Env:
    AURORA_BASE_URL (default http://localhost:3000)
"""

from __future__ import annotations

import argparse
import os
import sys
import time
from datetime import datetime, timezone

import requests

BASE_URL = os.environ.get("AURORA_BASE_URL", "http://localhost:3000")
HTTP_TIMEOUT = 10

TEST_PHONE = "+593987770788"
TEST_NAME = "Diego Test"

CONVERSATION = (
    "hola",
    "necesito una sala para mañana a las 3pm",
    "mi email es diego@test.com",
    "confirmar",
)


def build_payload(message: str, phone: str = TEST_PHONE, name: str = TEST_NAME) -> dict:
    """Build a Wassenger inbound message payload."""
    now = datetime.now(timezone.utc)
    return {
        "event": "message:in:new",
        "data": {
            "id": f"test-{int(now.timestamp() * 1000)}",
            "fromNumber": phone,
            "fromName": name,
            "body": message,
            "timestamp": now.isoformat(),
            "type": "text",
            "device": {"id": "test-device", "alias": "Test Device"},
        },
    }


def send_message(message: str, phone: str = TEST_PHONE) -> requests.Response:
    url = f"{BASE_URL}/webhooks/wassenger"
    print(f"\n-> {message!r} ({url})")
    response = requests.post(
        url,
        json=build_payload(message, phone=phone),
        headers={"User-Agent": "Wassenger-Webhook-Test/1.0"},
        timeout=HTTP_TIMEOUT,
    )
    print(f"   status: {response.status_code}")
    if "Retry-After" in response.headers:
        print(f"   retry-after: {response.headers['Retry-After']}s")
    print(f"   body:   {response.text}")
    return response


def main() -> int:
    parser = argparse.ArgumentParser(description="Simulate Wassenger webhooks")
    parser.add_argument("message", nargs="?", help="message text to send")
    parser.add_argument("--phone", default=TEST_PHONE, help="sender phone number")
    parser.add_argument("--conversation", action="store_true", help="send a full booking conversation")
    parser.add_argument("--burst", type=int, default=0, help="send N messages back to back")
    parser.add_argument("--delay", type=float, default=2.0, help="seconds between conversation messages")
    args = parser.parse_args()

    try:
        if args.conversation:
            for msg in CONVERSATION:
                send_message(msg, phone=args.phone)
                time.sleep(args.delay)
        elif args.burst > 0:
            statuses = [send_message(f"mensaje {i + 1}", phone=args.phone).status_code for i in range(args.burst)]
            print(f"\nstatuses: {statuses}")
        elif args.message:
            send_message(args.message, phone=args.phone)
        else:
            parser.print_usage()
            return 2
    except requests.ConnectionError:
        print(f"\nERROR: server is not running at {BASE_URL}")
        print("Start it with: uvicorn aurora.api.app:app --port 3000")
        return 1

    return 0


if __name__ == "__main__":
    sys.exit(main())
