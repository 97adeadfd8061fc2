"""
Tests for the JSON API in purchase_tracker/main.py other than the webhook:
notify, track, stats, shipment listings and the manual status override.
"""
from datetime import datetime, timezone
from unittest.mock import AsyncMock, MagicMock

import pytest

from purchase_tracker import services
from purchase_tracker.database import get_db
from purchase_tracker.main import app
from purchase_tracker.models import Checkpoint
from purchase_tracker.ship24_client import Ship24APIError, Ship24Client, Ship24ConfigError, get_ship24_client


@pytest.fixture
def mock_ship24():
    ship24 = MagicMock(spec=Ship24Client)
    ship24.create_tracker = AsyncMock(return_value={"data": {"tracker": {"trackerId": "t-1"}}})
    app.dependency_overrides[get_ship24_client] = lambda: ship24
    return ship24


class TestHealth:
    def test_health(self, client):
        assert client.get("/health").json() == {"status": "ok"}


class TestNotify:
    def test_sends_message(self, client, mock_notifier):
        response = client.post("/api/notify", json={"message": "<b>Refund approved</b>"})

        assert response.status_code == 200
        assert response.json() == {"success": True, "message": "Notification sent."}
        mock_notifier.send_message.assert_awaited_once_with("<b>Refund approved</b>")

    @pytest.mark.parametrize("body", [{}, {"message": ""}, {"message": "   "}])
    def test_message_required(self, client, mock_notifier, body):
        response = client.post("/api/notify", json=body)

        assert response.status_code == 400
        assert response.json() == {"error": "Message is required."}
        mock_notifier.send_message.assert_not_awaited()

    def test_unexpected_error(self, client, mock_notifier):
        mock_notifier.send_message.side_effect = RuntimeError("boom")

        response = client.post("/api/notify", json={"message": "hi"})

        assert response.status_code == 500
        assert response.json() == {"error": "An internal server error occurred."}


class TestTrack:
    def test_creates_tracker(self, client, mock_ship24):
        response = client.post("/api/track", json={"tracking_number": "1Z999", "courier": "ups"})

        assert response.status_code == 200
        assert response.json() == {"data": {"tracker": {"trackerId": "t-1"}}}
        mock_ship24.create_tracker.assert_awaited_once_with("1Z999", "ups")

    @pytest.mark.parametrize("body", [{}, {"tracking_number": "1Z999"}, {"courier": "ups"}])
    def test_fields_required(self, client, mock_ship24, body):
        response = client.post("/api/track", json=body)

        assert response.status_code == 400
        assert response.json() == {"error": "Tracking number and courier are required."}

    def test_provider_error_is_passed_through(self, client, mock_ship24):
        mock_ship24.create_tracker.side_effect = Ship24APIError(422, {"errors": ["bad courier"]})

        response = client.post("/api/track", json={"tracking_number": "1Z999", "courier": "xyz"})

        assert response.status_code == 422
        assert response.json() == {
            "error": "Failed to create tracker with Ship24.",
            "details": {"errors": ["bad courier"]},
        }

    def test_missing_api_key(self, client, mock_ship24):
        mock_ship24.create_tracker.side_effect = Ship24ConfigError("Ship24 API key is not configured.")

        response = client.post("/api/track", json={"tracking_number": "1Z999", "courier": "ups"})

        assert response.status_code == 500
        assert response.json() == {"error": "An internal server error occurred."}


class TestStats:
    def test_counts(self, client, db, purchase):
        services.create_shipment(db, purchase.id, "A1", "ups", status="in_transit")
        services.create_shipment(db, purchase.id, "A2", "ups", status="out_for_delivery")
        services.create_shipment(db, purchase.id, "A3", "ups", status="delivered")
        services.create_shipment(db, purchase.id, "A4", "ups", status="customs_hold")
        services.create_refund(db, purchase.id, status="requested")
        services.create_refund(db, purchase.id, status="approved")
        services.create_refund(db, purchase.id, status="paid")

        response = client.get("/api/stats")

        assert response.status_code == 200
        assert response.json() == {
            "in_transit_count": 2,
            "delivered_count": 1,
            "refunds_in_progress_count": 2,
            "purchases_count": 1,
        }

    def test_no_database(self, client):
        app.dependency_overrides[get_db] = lambda: None

        assert client.get("/api/stats").status_code == 503


class TestShipments:
    def test_list_with_latest_checkpoint(self, client, db, shipment):
        db.add_all([
            Checkpoint(shipment_id=shipment.id, description="Label", time=datetime(2024, 1, 1, tzinfo=timezone.utc)),
            Checkpoint(shipment_id=shipment.id, description="Sorted", time=datetime(2024, 1, 3, tzinfo=timezone.utc)),
            Checkpoint(shipment_id=shipment.id, description="Picked up", time=datetime(2024, 1, 2, tzinfo=timezone.utc)),
        ])
        db.commit()

        data = client.get("/api/shipments").json()

        assert len(data) == 1
        assert data[0]["tracking_number"] == "1Z999"
        assert data[0]["store_name"] == "Amazon"
        assert data[0]["status"] == "pending"
        assert data[0]["latest_checkpoint"]["description"] == "Sorted"

    def test_checkpoints_ordered_by_time(self, client, db, shipment):
        db.add_all([
            Checkpoint(shipment_id=shipment.id, description="Second", time=datetime(2024, 1, 2, tzinfo=timezone.utc)),
            Checkpoint(shipment_id=shipment.id, description="First", time=datetime(2024, 1, 1, tzinfo=timezone.utc)),
        ])
        db.commit()

        data = client.get(f"/api/shipments/{shipment.id}/checkpoints").json()

        assert [c["description"] for c in data] == ["First", "Second"]

    def test_checkpoints_unknown_shipment(self, client):
        assert client.get("/api/shipments/999/checkpoints").status_code == 404


class TestStatusOverride:
    def test_override(self, client, db, shipment, mock_notifier):
        response = client.patch(f"/api/shipments/{shipment.id}/status", json={"status": "return_in_progress"})

        assert response.status_code == 200
        assert response.json() == {"id": shipment.id, "status": "return_in_progress"}
        db.refresh(shipment)
        assert shipment.status == "return_in_progress"
        mock_notifier.send_message.assert_awaited_once()

    def test_invalid_status(self, client, shipment):
        response = client.patch(f"/api/shipments/{shipment.id}/status", json={"status": "teleported"})
        assert response.status_code == 422

    def test_unknown_shipment(self, client):
        response = client.patch("/api/shipments/999/status", json={"status": "delivered"})
        assert response.status_code == 404
