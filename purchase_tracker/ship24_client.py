import json
import logging
from typing import Any, Dict, Optional

import httpx

from purchase_tracker.config import settings

logger = logging.getLogger(__name__)


class Ship24Error(Exception):
    pass


class Ship24ConfigError(Ship24Error):
    pass


class Ship24APIError(Ship24Error):
    def __init__(self, status_code: int, details: Any):
        super().__init__(f"Ship24 API returned {status_code}")
        self.status_code = status_code
        self.details = details


class Ship24Client:
    def __init__(self, api_key: Optional[str] = None, base_url: Optional[str] = None):
        self.api_key = api_key if api_key is not None else settings.ship24_api_key
        self.base_url = base_url or settings.ship24_api_url

    async def create_tracker(self, tracking_number: str, courier: str) -> Dict[str, Any]:
        """Register a tracking number so the provider starts sending webhooks for it."""
        if not self.api_key:
            raise Ship24ConfigError("Ship24 API key is not configured.")

        logger.info(f"📦 Registering tracker: {tracking_number} ({courier})")

        url = f"{self.base_url}/trackers"
        async with httpx.AsyncClient(timeout=30.0) as client:
            response = await client.post(
                url,
                headers={
                    "Authorization": f"Bearer {self.api_key}",
                    "Content-Type": "application/json",
                },
                json={"trackingNumber": tracking_number, "courier": courier},
            )

        logger.debug(f"Response status: {response.status_code}")

        try:
            data = response.json()
        except ValueError:
            data = {"raw": response.text}

        if response.status_code >= 400:
            logger.error(f"❌ Ship24 API error for {tracking_number}: {response.status_code}")
            logger.error(f"Details: {json.dumps(data, indent=2, ensure_ascii=False)}")
            raise Ship24APIError(response.status_code, data)

        logger.info(f"✅ Tracker registered for {tracking_number}")
        return data


ship24_client = Ship24Client()


def get_ship24_client() -> Ship24Client:
    return ship24_client
