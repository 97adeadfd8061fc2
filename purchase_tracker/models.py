import enum
from datetime import datetime, timezone

from sqlalchemy import Column, Integer, String, DateTime, Date, ForeignKey, Numeric, Text
from sqlalchemy.orm import relationship

from purchase_tracker.database import Base


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class ShipmentStatus(str, enum.Enum):
    PENDING = "pending"
    IN_TRANSIT = "in_transit"
    OUT_FOR_DELIVERY = "out_for_delivery"
    DELIVERED = "delivered"
    FAILED_ATTEMPT = "failed_attempt"
    EXCEPTION = "exception"
    RETURN_IN_PROGRESS = "return_in_progress"
    RETURN_DELIVERED = "return_delivered"


class RefundStatus(str, enum.Enum):
    REQUESTED = "requested"
    APPROVED = "approved"
    PAID = "paid"
    DENIED = "denied"


class ClaimStatus(str, enum.Enum):
    INITIATED = "initiated"
    ITEM_SENT = "item_sent"
    ITEM_RECEIVED_BY_SELLER = "item_received_by_seller"
    RESOLUTION_OFFERED = "resolution_offered"
    RESOLVED_CLOSED = "resolved_closed"
    DENIED = "denied"


class Purchase(Base):
    __tablename__ = "purchases"

    id = Column(Integer, primary_key=True, index=True)
    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)
    user_id = Column(String(100), nullable=True, index=True)
    store_name = Column(String(200), nullable=False)
    order_id = Column(String(100), nullable=False)
    order_date = Column(Date, nullable=True)
    amount = Column(Numeric(12, 2), nullable=True)
    payment_method = Column(String(100), nullable=True)
    email_used = Column(String(200), nullable=True)
    phone_number = Column(String(50), nullable=True)
    shipping_address = Column(Text, nullable=True)
    notes = Column(Text, nullable=True)

    shipments = relationship("Shipment", back_populates="purchase", cascade="all, delete-orphan")
    refunds = relationship("Refund", back_populates="purchase", cascade="all, delete-orphan")
    claims = relationship("Claim", back_populates="purchase", cascade="all, delete-orphan")


class Shipment(Base):
    __tablename__ = "shipments"

    id = Column(Integer, primary_key=True, index=True)
    purchase_id = Column(Integer, ForeignKey("purchases.id", ondelete="CASCADE"), nullable=False, index=True)
    tracking_number = Column(String(100), nullable=False, index=True)
    courier = Column(String(100), nullable=True)
    # Free text: unknown provider statuses are kept as passthrough tokens
    status = Column(Text, nullable=False, default=ShipmentStatus.PENDING.value)
    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)

    purchase = relationship("Purchase", back_populates="shipments")
    checkpoints = relationship("Checkpoint", back_populates="shipment", cascade="all, delete-orphan")


class Checkpoint(Base):
    __tablename__ = "checkpoints"

    id = Column(Integer, primary_key=True, index=True)
    shipment_id = Column(Integer, ForeignKey("shipments.id", ondelete="CASCADE"), nullable=False, index=True)
    description = Column(Text, nullable=False)
    location = Column(Text, nullable=True)
    time = Column(DateTime(timezone=True), nullable=False)

    shipment = relationship("Shipment", back_populates="checkpoints")


class Refund(Base):
    __tablename__ = "refunds"

    id = Column(Integer, primary_key=True, index=True)
    purchase_id = Column(Integer, ForeignKey("purchases.id", ondelete="CASCADE"), nullable=False, index=True)
    status = Column(String(50), nullable=False, default=RefundStatus.REQUESTED.value)
    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)
    approved_at = Column(DateTime(timezone=True), nullable=True)
    paid_at = Column(DateTime(timezone=True), nullable=True)
    amount = Column(Numeric(12, 2), nullable=True)
    platform = Column(String(100), nullable=True)
    reason = Column(Text, nullable=True)
    rma_number = Column(String(100), nullable=True)
    refund_start_date = Column(Date, nullable=True)
    return_tracking_number = Column(String(100), nullable=True)
    return_courier = Column(String(100), nullable=True)

    purchase = relationship("Purchase", back_populates="refunds")


class Claim(Base):
    __tablename__ = "claims"

    id = Column(Integer, primary_key=True, index=True)
    purchase_id = Column(Integer, ForeignKey("purchases.id", ondelete="CASCADE"), nullable=False, index=True)
    status = Column(String(50), nullable=False, default=ClaimStatus.INITIATED.value)
    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)
    updated_at = Column(DateTime(timezone=True), default=utcnow, onupdate=utcnow, nullable=False)
    reason = Column(Text, nullable=True)
    rma_number = Column(String(100), nullable=True)
    tracking_number_to_seller = Column(String(100), nullable=True)
    tracking_number_from_seller = Column(String(100), nullable=True)
    resolution_details = Column(Text, nullable=True)

    purchase = relationship("Purchase", back_populates="claims")
