from typing import Optional

from pydantic import BaseModel

from purchase_tracker.models import ShipmentStatus


class NotifyRequest(BaseModel):
    message: Optional[str] = None


class TrackRequest(BaseModel):
    tracking_number: Optional[str] = None
    courier: Optional[str] = None


class StatusOverrideRequest(BaseModel):
    status: ShipmentStatus
