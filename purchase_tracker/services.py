from sqlalchemy.orm import Session
from sqlalchemy import func
from typing import List, Dict, Any, Optional
from purchase_tracker.models import Purchase, Shipment, Checkpoint, Refund, ShipmentStatus, RefundStatus


IN_TRANSIT_STATUSES = [ShipmentStatus.IN_TRANSIT.value, ShipmentStatus.OUT_FOR_DELIVERY.value]
REFUND_IN_PROGRESS_STATUSES = [RefundStatus.REQUESTED.value, RefundStatus.APPROVED.value]


def get_all_shipments(db: Session) -> List[Shipment]:
    return db.query(Shipment).order_by(Shipment.id).all()


def get_shipment(db: Session, shipment_id: int) -> Optional[Shipment]:
    return db.get(Shipment, shipment_id)


def create_purchase(db: Session, store_name: str, order_id: str, **fields) -> Purchase:
    purchase = Purchase(store_name=store_name, order_id=order_id, **fields)
    db.add(purchase)
    db.commit()
    db.refresh(purchase)
    return purchase


def create_shipment(
    db: Session,
    purchase_id: int,
    tracking_number: str,
    courier: Optional[str] = None,
    status: str = ShipmentStatus.PENDING.value
) -> Shipment:
    shipment = Shipment(
        purchase_id=purchase_id,
        tracking_number=tracking_number,
        courier=courier,
        status=status
    )
    db.add(shipment)
    db.commit()
    db.refresh(shipment)
    return shipment


def create_refund(db: Session, purchase_id: int, status: str = RefundStatus.REQUESTED.value, **fields) -> Refund:
    refund = Refund(purchase_id=purchase_id, status=status, **fields)
    db.add(refund)
    db.commit()
    db.refresh(refund)
    return refund


def set_shipment_status(db: Session, shipment: Shipment, status: ShipmentStatus) -> Shipment:
    # Manual override; any status may replace any other
    shipment.status = status.value
    db.commit()
    db.refresh(shipment)
    return shipment


def get_checkpoints(db: Session, shipment_id: int) -> List[Checkpoint]:
    return (
        db.query(Checkpoint)
        .filter(Checkpoint.shipment_id == shipment_id)
        .order_by(Checkpoint.time, Checkpoint.id)
        .all()
    )


def get_latest_checkpoint(shipment: Shipment) -> Optional[Checkpoint]:
    if not shipment.checkpoints:
        return None
    return max(shipment.checkpoints, key=lambda c: c.time)


def get_dashboard_statistics(db: Session) -> Dict[str, int]:
    in_transit = db.query(func.count(Shipment.id)).filter(
        Shipment.status.in_(IN_TRANSIT_STATUSES)
    ).scalar()
    delivered = db.query(func.count(Shipment.id)).filter(
        Shipment.status == ShipmentStatus.DELIVERED.value
    ).scalar()
    refunds_in_progress = db.query(func.count(Refund.id)).filter(
        Refund.status.in_(REFUND_IN_PROGRESS_STATUSES)
    ).scalar()
    purchases = db.query(func.count(Purchase.id)).scalar()

    return {
        "in_transit_count": in_transit or 0,
        "delivered_count": delivered or 0,
        "refunds_in_progress_count": refunds_in_progress or 0,
        "purchases_count": purchases or 0
    }


def serialize_checkpoint(checkpoint: Checkpoint) -> Dict[str, Any]:
    return {
        "id": checkpoint.id,
        "description": checkpoint.description,
        "location": checkpoint.location,
        "time": checkpoint.time.isoformat()
    }


def get_shipments_with_details(db: Session) -> List[Dict[str, Any]]:
    shipments = get_all_shipments(db)
    result = []

    for shipment in shipments:
        latest_checkpoint = get_latest_checkpoint(shipment)
        purchase = shipment.purchase

        shipment_data = {
            "id": shipment.id,
            "purchase_id": shipment.purchase_id,
            "store_name": purchase.store_name if purchase else None,
            "order_id": purchase.order_id if purchase else None,
            "tracking_number": shipment.tracking_number,
            "courier": shipment.courier,
            "status": shipment.status,
            "latest_checkpoint": None
        }

        if latest_checkpoint:
            shipment_data["latest_checkpoint"] = serialize_checkpoint(latest_checkpoint)

        result.append(shipment_data)

    return result
