"""
Order Load Simulation Script

Fires concurrent orders (and chat webhook calls) at a running server, then
checks that every stored order total matches its line snapshots.
Run from project root: python scripts/simulate.py --orders 50
"""

import argparse
import asyncio
import random
import sys
import time
from datetime import datetime
from decimal import Decimal
from typing import Any

import httpx

# Configuration
API_BASE_URL = "http://localhost:8001"
TOTAL_ORDERS = 50
UNKNOWN_MENU_ITEM_ID = 999_999


def generate_random_items(menu: list[dict], include_unknown: bool = False) -> list[dict]:
    """Pick 1-4 random menu lines, optionally with one unknown item."""
    items = [
        {"menuItemId": random.choice(menu)["id"], "quantity": random.randint(1, 3)}
        for _ in range(random.randint(1, 4))
    ]
    if include_unknown:
        items.append({"menuItemId": UNKNOWN_MENU_ITEM_ID, "quantity": 1})
    return items


# =============================================================================
# REQUESTS
# =============================================================================

async def fetch_menu(client: httpx.AsyncClient) -> list[dict]:
    """Return the menu of the first restaurant."""
    response = await client.get(f"{API_BASE_URL}/api/restaurants")
    response.raise_for_status()
    restaurants = response.json()
    if not restaurants:
        return []

    response = await client.get(
        f"{API_BASE_URL}/api/restaurants/{restaurants[0]['id']}/menu-items"
    )
    response.raise_for_status()
    return response.json()


async def send_order(
    client: httpx.AsyncClient,
    order_num: int,
    menu: list[dict],
) -> dict[str, Any]:
    """Place a single order."""
    include_unknown = random.random() < 0.1
    payload = {"items": generate_random_items(menu, include_unknown)}
    start_time = time.time()

    try:
        response = await client.post(
            f"{API_BASE_URL}/api/orders",
            json=payload,
            timeout=30.0
        )
        elapsed = round(time.time() - start_time, 3)

        if response.status_code == 201:
            data = response.json()
            return {
                "order_num": order_num,
                "success": True,
                "order_id": data["id"],
                "total": Decimal(data["totalAmount"]),
                "requested_lines": len(payload["items"]),
                "stored_lines": len(data["items"]),
                "time": elapsed,
                "mode": "order",
            }
        return {
            "order_num": order_num,
            "success": False,
            "error": response.text[:100],
            "time": elapsed,
            "mode": "order",
        }
    except httpx.HTTPError as e:
        elapsed = round(time.time() - start_time, 3)
        return {
            "order_num": order_num,
            "success": False,
            "error": str(e)[:100],
            "time": elapsed,
            "mode": "order",
        }


async def send_webhook(client: httpx.AsyncClient, order_num: int) -> dict[str, Any]:
    """Post a WhatsApp-style message notification to the chat webhook."""
    payload = {
        "object": "whatsapp_business_account",
        "entry": [{"changes": [{"value": {"messages": [{
            "from": f"98{random.randint(10000000, 99999999)}",
            "text": {"body": random.choice(["menu", "2 momo please", "order status?"])},
        }]}}]}],
    }
    start_time = time.time()

    try:
        response = await client.post(f"{API_BASE_URL}/api/chat/webhook", json=payload, timeout=30.0)
        elapsed = round(time.time() - start_time, 3)
        return {
            "order_num": order_num,
            "success": response.status_code == 200,
            "error": None if response.status_code == 200 else response.text[:100],
            "time": elapsed,
            "mode": "webhook",
        }
    except httpx.HTTPError as e:
        elapsed = round(time.time() - start_time, 3)
        return {
            "order_num": order_num,
            "success": False,
            "error": str(e)[:100],
            "time": elapsed,
            "mode": "webhook",
        }


# =============================================================================
# VERIFICATION
# =============================================================================

async def verify_orders(client: httpx.AsyncClient) -> bool:
    """Check that every stored total equals the sum of its line snapshots."""
    response = await client.get(f"{API_BASE_URL}/api/orders", timeout=60.0)
    response.raise_for_status()
    orders = response.json()

    mismatched = []
    for order in orders:
        lines_total = sum(
            (Decimal(line["price"]) * line["quantity"] for line in order["items"]),
            Decimal("0"),
        )
        if lines_total != Decimal(order["totalAmount"]):
            mismatched.append(order["id"])

    print(f"\nStored orders: {len(orders)}")
    if mismatched:
        print(f"Totals not matching their lines: {mismatched[:10]}")
        return False

    print("All order totals match their line snapshots")
    return True


# =============================================================================
# MAIN SIMULATION RUNNER
# =============================================================================

async def run_simulation(
    mode: str = "both",
    num_orders: int = TOTAL_ORDERS
) -> dict[str, Any]:
    """
    Run the load simulation.

    Args:
        mode: "orders", "webhook", or "both"
        num_orders: Number of requests to send
    """
    print("=" * 70)
    print("ORDER LOAD SIMULATION")
    print("=" * 70)
    print(f"Total Requests: {num_orders}")
    print(f"Target: {API_BASE_URL}")
    print(f"Mode: {mode}")
    print(f"Started: {datetime.now().strftime('%H:%M:%S')}")
    print("=" * 70)

    start_time = time.time()

    async with httpx.AsyncClient() as client:
        menu = await fetch_menu(client)
        if not menu and mode != "webhook":
            print("\nNo menu items found. Start the server with SEED_ON_STARTUP=true.")
            return {"total": num_orders, "successful": 0, "failed": num_orders, "results": []}

        tasks = []
        for i in range(num_orders):
            if mode == "orders" or (mode == "both" and i % 4 != 3):
                tasks.append(send_order(client, i + 1, menu))
            else:
                tasks.append(send_webhook(client, i + 1))
        results = await asyncio.gather(*tasks)

        total_time = round(time.time() - start_time, 2)
        consistent = await verify_orders(client) if mode != "webhook" else True

    successful = [r for r in results if r["success"]]
    failed = [r for r in results if not r["success"]]
    orders = [r for r in successful if r["mode"] == "order"]

    print("\n" + "=" * 70)
    print("SIMULATION RESULTS")
    print("=" * 70)
    print(f"\nSuccessful Requests: {len(successful)}/{num_orders}")
    print(f"Failed Requests: {len(failed)}/{num_orders}")
    print(f"Total Time: {total_time}s")

    if successful:
        avg_time = round(sum(r["time"] for r in successful) / len(successful), 3)
        print(f"\nPerformance Metrics:")
        print(f"   Average Response: {avg_time}s")
        print(f"   Fastest: {min(r['time'] for r in successful)}s")
        print(f"   Slowest: {max(r['time'] for r in successful)}s")

    if orders:
        revenue = sum((r["total"] for r in orders), Decimal("0"))
        dropped = sum(r["requested_lines"] - r["stored_lines"] for r in orders)
        print(f"   Orders Placed: {len(orders)}")
        print(f"   Total Revenue: {revenue:.2f}")
        print(f"   Lines Dropped (unknown menu items): {dropped}")

    if failed:
        print(f"\nFailed Request Details (showing first 5):")
        for f in failed[:5]:
            print(f"   #{f['order_num']} [{f['mode']}]: {f.get('error', 'Unknown error')}")

    print("=" * 70)

    return {
        "total": num_orders,
        "successful": len(successful),
        "failed": len(failed),
        "consistent": consistent,
        "total_time": total_time,
        "results": results,
    }


async def preflight_checks() -> bool:
    """Make sure the server answers before the load starts."""
    async with httpx.AsyncClient() as client:
        try:
            response = await client.get(f"{API_BASE_URL}/health")
        except httpx.HTTPError as e:
            print(f"Server not reachable: {e}")
            return False

        if response.status_code != 200:
            print(f"Health check failed: {response.text}")
            return False

        data = response.json()
        print(f"Status: {data.get('status')} (storage: {data.get('storage_backend')})")
        return data.get("status") == "operational"


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Order Load Simulation")
    parser.add_argument("--orders-only", action="store_true", help="Only place orders")
    parser.add_argument("--webhook-only", action="store_true", help="Only call the chat webhook")
    parser.add_argument("--orders", type=int, default=TOTAL_ORDERS, help="Number of requests")
    parser.add_argument("--url", default=API_BASE_URL, help="Server base URL")
    args = parser.parse_args()

    API_BASE_URL = args.url.rstrip("/")

    if args.orders_only:
        mode = "orders"
    elif args.webhook_only:
        mode = "webhook"
    else:
        mode = "both"

    if not asyncio.run(preflight_checks()):
        print("\nPre-flight checks failed. Fix issues before running simulation.")
        sys.exit(1)

    summary = asyncio.run(run_simulation(mode=mode, num_orders=args.orders))
    sys.exit(0 if summary["failed"] == 0 and summary.get("consistent", True) else 1)
