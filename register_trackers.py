"""
Register every stored shipment with Ship24 so its webhooks start arriving.
"""
import asyncio
import sys

import httpx

from purchase_tracker.database import SessionLocal, engine
from purchase_tracker import services
from purchase_tracker.ship24_client import Ship24Client, Ship24Error


async def register_all(client: Ship24Client) -> int:
    db = SessionLocal()
    try:
        shipments = services.get_all_shipments(db)
        print(f"📝 Shipments to register: {len(shipments)}")

        failed = 0
        for idx, shipment in enumerate(shipments, 1):
            print(f"\n🔍 #{idx}: {shipment.tracking_number} ({shipment.courier or 'no courier'})")
            if not shipment.courier:
                print("  ⚠️ Courier is empty, skipping")
                failed += 1
                continue
            try:
                await client.create_tracker(shipment.tracking_number, shipment.courier)
                print("  ✅ Registered")
            except (Ship24Error, httpx.HTTPError) as e:
                print(f"  ❌ {e}")
                failed += 1
        return failed
    finally:
        db.close()


def main():
    if engine is None:
        print("❌ DATABASE_URL is not set")
        sys.exit(1)

    client = Ship24Client()
    if not client.api_key:
        print("❌ SHIP24_API_KEY is not set")
        sys.exit(1)

    print("=" * 70)
    print("📦 Registering trackers with Ship24")
    print("=" * 70)

    failed = asyncio.run(register_all(client))

    print("\n" + "=" * 70)
    if failed:
        print(f"⚠️ Finished with {failed} failures")
        sys.exit(1)
    print("✅ All trackers registered")


if __name__ == "__main__":
    main()
