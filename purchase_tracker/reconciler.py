"""
Apply a normalized webhook to the stored shipment it refers to.

Every step is best-effort and commits on its own: the status overwrite, the
checkpoint insert and the notification. A failure in one step is logged and
does not undo or block the others.

Known consistency gap: the steps are not one transaction. If the process dies
between them, the status may be updated without its checkpoints (or the
reverse). Concurrent deliveries for the same shipment are not ordered either;
the last write wins.
"""
import logging
from dataclasses import dataclass
from typing import Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from purchase_tracker.models import Checkpoint, Shipment
from purchase_tracker.normalizer import NormalizedPayload
from purchase_tracker.telegram import TelegramNotifier, format_shipment_update

logger = logging.getLogger(__name__)

OUTCOME_UPDATED = "updated"
OUTCOME_NO_TRACKING_NUMBER = "no_tracking_number"
OUTCOME_NOT_FOUND = "shipment_not_found"
OUTCOME_PERSISTENCE_DISABLED = "persistence_disabled"
OUTCOME_LOOKUP_FAILED = "lookup_failed"


@dataclass
class ReconcileResult:
    outcome: str
    shipment_id: Optional[int] = None
    status: Optional[str] = None
    checkpoints_added: int = 0


class ShipmentReconciler:
    def __init__(self, db: Optional[Session], notifier: Optional[TelegramNotifier] = None):
        self.db = db
        self.notifier = notifier

    def find_shipment(self, tracking_number: str, carrier: Optional[str] = None) -> Optional[Shipment]:
        query = self.db.query(Shipment).filter(Shipment.tracking_number == tracking_number)
        if carrier:
            query = query.filter(Shipment.courier == carrier)
        # Several rows may share tracking number and carrier; whichever the store returns first is used
        return query.first()

    def _update_status(self, shipment: Shipment, status: str) -> bool:
        shipment_id = shipment.id
        try:
            shipment.status = status
            self.db.commit()
            logger.info(f"✅ Shipment {shipment_id} status -> {status}")
            return True
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(f"❌ Failed to update status of shipment {shipment_id}: {e}")
            return False

    def _insert_checkpoints(self, shipment_id: int, payload: NormalizedPayload) -> int:
        if not payload.checkpoints:
            return 0

        rows = [
            Checkpoint(
                shipment_id=shipment_id,
                description=cp.description,
                location=cp.location,
                time=cp.time,
            )
            for cp in payload.checkpoints
        ]
        try:
            self.db.add_all(rows)
            self.db.commit()
            logger.info(f"✅ Added {len(rows)} checkpoints to shipment {shipment_id}")
            return len(rows)
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(f"❌ Failed to insert checkpoints for shipment {shipment_id}: {e}")
            return 0

    async def _notify(self, shipment_id: int, tracking_number: str, status: Optional[str]):
        if self.notifier is None:
            return

        try:
            shipment = self.db.get(Shipment, shipment_id)
            purchase = shipment.purchase if shipment else None
            message = format_shipment_update(
                store_name=purchase.store_name if purchase else None,
                order_id=purchase.order_id if purchase else None,
                tracking_number=tracking_number,
                status=status or (shipment.status if shipment else None),
            )
            await self.notifier.send_message(message)
        except Exception as e:
            logger.error(f"❌ Notification for shipment {shipment_id} failed: {e}")

    async def apply(self, payload: NormalizedPayload) -> ReconcileResult:
        if not payload.tracking_number:
            logger.info("Webhook carries no tracking number, nothing to reconcile")
            return ReconcileResult(outcome=OUTCOME_NO_TRACKING_NUMBER)

        if self.db is None:
            logger.warning(f"⚠️ Persistence is disabled, skipping update for {payload.tracking_number}")
            return ReconcileResult(outcome=OUTCOME_PERSISTENCE_DISABLED)

        try:
            shipment = self.find_shipment(payload.tracking_number, payload.carrier)
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(f"❌ Shipment lookup failed for {payload.tracking_number}: {e}")
            return ReconcileResult(outcome=OUTCOME_LOOKUP_FAILED)

        if shipment is None:
            logger.warning(
                f"⚠️ Shipment not found: tracking_number={payload.tracking_number}, "
                f"carrier={payload.carrier}"
            )
            return ReconcileResult(outcome=OUTCOME_NOT_FOUND)

        shipment_id = shipment.id
        applied_status = None
        if payload.status and self._update_status(shipment, payload.status):
            applied_status = payload.status

        added = self._insert_checkpoints(shipment_id, payload)

        if applied_status is not None or added:
            await self._notify(shipment_id, payload.tracking_number, applied_status)
        else:
            logger.info(f"Nothing applied to shipment {shipment_id}, notification skipped")

        return ReconcileResult(
            outcome=OUTCOME_UPDATED,
            shipment_id=shipment_id,
            status=applied_status,
            checkpoints_added=added,
        )
