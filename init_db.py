from purchase_tracker.database import Base, SessionLocal, engine
from purchase_tracker.models import Shipment
from purchase_tracker import services

test_shipments = [
    {"store_name": "Example Store", "order_id": "ORDER-1001", "tracking_number": "1Z999AA10123456784", "courier": "ups"},
]


def init_test_data():
    if engine is None:
        print("DATABASE_URL is not set, nothing to initialize.")
        return

    Base.metadata.create_all(bind=engine)
    print("Tables created.")

    db = SessionLocal()
    try:
        existing_count = db.query(Shipment).count()

        if existing_count > 0:
            print(f"Database already holds {existing_count} shipments.")
            print("Skipping test data.")
            return

        print("Adding test purchases...")

        for item in test_shipments:
            purchase = services.create_purchase(db, item["store_name"], item["order_id"])
            services.create_shipment(db, purchase.id, item["tracking_number"], item["courier"])
            print(f"  ✓ Added {item['order_id']} with tracking number {item['tracking_number']}")

        print(f"\nAdded {len(test_shipments)} test purchases.")
        print("\nRun register_trackers.py so Ship24 starts sending webhooks for them.")

    except Exception as e:
        print(f"Initialization failed: {e}")
        db.rollback()
    finally:
        db.close()


if __name__ == "__main__":
    init_test_data()
