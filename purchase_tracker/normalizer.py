"""
Normalization of inbound tracking webhooks.

The provider does not commit to one payload shape: fields may sit at the top
level or under a ``data``, ``shipment`` or ``tracking`` wrapper, and several
key names are in use for the same thing. Each logical field is therefore an
ordered tuple of probe paths; the first path holding a non-null value wins.
Nothing here raises on missing or oddly typed data.
"""
import json
import re
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, List, Optional, Sequence

from purchase_tracker.models import ShipmentStatus


def _paths(wrappers: Sequence[Optional[str]], keys: Sequence[str]) -> tuple:
    return tuple(
        f"{wrapper}.{key}" if wrapper else key
        for wrapper in wrappers
        for key in keys
    )


TRACKING_NUMBER_PATHS = _paths(
    ("data", "shipment", None),
    ("trackingNumber", "tracking_number", "trackingNo", "trackingno"),
)
STATUS_PATHS = _paths(
    ("data", "shipment", None),
    ("status", "currentStatus", "event", "type"),
)
CARRIER_PATHS = _paths(
    ("data", "shipment", None),
    ("courier", "carrier"),
)
CHECKPOINT_LIST_PATHS = _paths(
    ("data", "tracking", "shipment", None),
    ("events", "checkpoints"),
)

DESCRIPTION_KEYS = ("description", "status", "event")
LOCATION_PART_KEYS = ("city", "state", "country")
TIME_KEYS = ("time", "date", "datetime", "timestamp", "eventTime", "scanTime")

DEFAULT_DESCRIPTION = "Scan"

# Epoch values above this are milliseconds
_EPOCH_MS_THRESHOLD = 10 ** 12


@dataclass
class NormalizedCheckpoint:
    description: str
    location: Optional[str]
    time: datetime


@dataclass
class NormalizedPayload:
    tracking_number: Optional[str] = None
    raw_status: Optional[str] = None
    status: Optional[str] = None
    carrier: Optional[str] = None
    checkpoints: List[NormalizedCheckpoint] = field(default_factory=list)


def get_path(value: Any, path: str) -> Any:
    """Walk a dotted path through nested dicts, None on any miss."""
    current = value
    for part in path.split("."):
        if not isinstance(current, dict):
            return None
        current = current.get(part)
        if current is None:
            return None
    return current


def _as_text(value: Any) -> Optional[str]:
    if value is None or isinstance(value, (dict, list)):
        return None
    if isinstance(value, bool):
        value = str(value).lower()
    text = str(value)
    if not text.strip():
        return None
    return text


def _first_text(value: Any, paths: Sequence[str]) -> Optional[str]:
    for path in paths:
        text = _as_text(get_path(value, path))
        if text is not None:
            return text
    return None


def map_status(raw_status: Optional[str]) -> Optional[str]:
    """
    Map a provider status string onto the internal status vocabulary.

    Rules are substring checks applied in a fixed order and the first match
    wins. Unknown strings pass through lowercased with whitespace runs turned
    into underscores.
    """
    if raw_status is None or not raw_status.strip():
        return None

    s = raw_status.lower()
    if "delivered" in s:
        return ShipmentStatus.DELIVERED.value
    if "out_for_delivery" in s or "out-for-delivery" in s:
        return ShipmentStatus.OUT_FOR_DELIVERY.value
    if "transit" in s:
        return ShipmentStatus.IN_TRANSIT.value
    if "failed" in s and "attempt" in s:
        return ShipmentStatus.FAILED_ATTEMPT.value
    if "exception" in s or "error" in s:
        return ShipmentStatus.EXCEPTION.value
    if "return" in s and "progress" in s:
        return ShipmentStatus.RETURN_IN_PROGRESS.value
    if "return" in s and "delivered" in s:
        return ShipmentStatus.RETURN_DELIVERED.value
    if "pending" in s or "created" in s:
        return ShipmentStatus.PENDING.value
    return re.sub(r"\s+", "_", s)


def _join_location_parts(value: dict) -> Optional[str]:
    parts = [_as_text(value.get(key)) for key in LOCATION_PART_KEYS]
    parts = [part.strip() for part in parts if part]
    return ", ".join(parts) if parts else None


def _normalize_location(event: dict) -> Optional[str]:
    location = event.get("location")
    if isinstance(location, dict):
        joined = _join_location_parts(location)
        if joined:
            return joined
    else:
        text = _as_text(location)
        if text:
            return text

    joined = _join_location_parts(event)
    if joined:
        return joined

    return _as_text(event.get("address"))


def parse_event_time(value: Any) -> Optional[datetime]:
    if value is None or isinstance(value, bool):
        return None

    if isinstance(value, (int, float)):
        seconds = value / 1000 if value > _EPOCH_MS_THRESHOLD else value
        try:
            return datetime.fromtimestamp(seconds, tz=timezone.utc)
        except (OverflowError, OSError, ValueError):
            return None

    if not isinstance(value, str) or not value.strip():
        return None

    try:
        parsed = datetime.fromisoformat(value.strip().replace("Z", "+00:00"))
    except ValueError:
        return None

    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def normalize_checkpoint(event: dict) -> NormalizedCheckpoint:
    description = DEFAULT_DESCRIPTION
    for key in DESCRIPTION_KEYS:
        text = _as_text(event.get(key))
        if text:
            description = text
            break

    event_time = None
    for key in TIME_KEYS:
        event_time = parse_event_time(event.get(key))
        if event_time is not None:
            break

    return NormalizedCheckpoint(
        description=description,
        location=_normalize_location(event),
        time=event_time or datetime.now(timezone.utc),
    )


def _find_checkpoint_list(payload: Any) -> Optional[list]:
    for path in CHECKPOINT_LIST_PATHS:
        found = get_path(payload, path)
        if isinstance(found, list):
            return found
    return None


def parse_payload(raw: bytes) -> dict:
    """Best-effort JSON parse; anything that is not a JSON object becomes {}."""
    try:
        payload = json.loads(raw) if raw else {}
    except (ValueError, RecursionError):
        return {}
    return payload if isinstance(payload, dict) else {}


def normalize_payload(payload: Any) -> NormalizedPayload:
    if not isinstance(payload, dict):
        payload = {}

    raw_status = _first_text(payload, STATUS_PATHS)

    events = _find_checkpoint_list(payload)
    if events is not None:
        checkpoints = [normalize_checkpoint(e) for e in events if isinstance(e, dict)]
    elif raw_status is not None:
        # A bare status update is recorded as one scan
        checkpoints = [normalize_checkpoint({"description": raw_status})]
    else:
        checkpoints = []

    return NormalizedPayload(
        tracking_number=_first_text(payload, TRACKING_NUMBER_PATHS),
        raw_status=raw_status,
        status=map_status(raw_status),
        carrier=_first_text(payload, CARRIER_PATHS),
        checkpoints=checkpoints,
    )
