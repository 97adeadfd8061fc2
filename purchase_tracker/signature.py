import hashlib
import hmac
import logging
from typing import Mapping, Optional

logger = logging.getLogger(__name__)

SIGNATURE_HEADERS = ("x-ship24-signature", "x-signature")


def compute_signature(secret: str, body: bytes) -> str:
    return hmac.new(secret.encode("utf-8"), body, hashlib.sha256).hexdigest()


def extract_signature(headers: Mapping[str, str]) -> Optional[str]:
    for name in SIGNATURE_HEADERS:
        value = headers.get(name)
        if value:
            return value.strip()
    return None


def verify_signature(body: bytes, signature: Optional[str], secret: Optional[str]) -> bool:
    """
    Check the HMAC-SHA256 hex digest of the raw body against the header value.

    With no secret configured every request passes. That is the insecure
    test mode and it is logged on each call.
    """
    if not secret:
        logger.warning("⚠️ SHIP24_WEBHOOK_SECRET is not set, accepting webhook without verification")
        return True

    if not signature:
        logger.warning("❌ Webhook signature header is missing")
        return False

    expected = compute_signature(secret, body)
    if not hmac.compare_digest(expected.encode("utf-8"), signature.lower().encode("utf-8")):
        logger.warning("❌ Webhook signature mismatch")
        return False

    return True
