import html
import logging
from typing import Optional

import httpx

from purchase_tracker.config import settings

logger = logging.getLogger(__name__)


class TelegramNotifier:
    def __init__(
        self,
        bot_token: Optional[str] = None,
        chat_id: Optional[str] = None,
        api_url: Optional[str] = None,
    ):
        self.bot_token = bot_token if bot_token is not None else settings.telegram_bot_token
        self.chat_id = chat_id if chat_id is not None else settings.telegram_chat_id
        self.api_url = api_url or settings.telegram_api_url

    @property
    def configured(self) -> bool:
        return bool(self.bot_token and self.chat_id)

    async def send_message(self, message: str) -> bool:
        """Send an HTML-formatted message to the configured chat. Never raises."""
        if not self.configured:
            logger.error("❌ Telegram bot token or chat id is not configured")
            return False

        url = f"{self.api_url}/bot{self.bot_token}/sendMessage"
        body = {
            "chat_id": self.chat_id,
            "text": message,
            "parse_mode": "HTML",
        }

        try:
            async with httpx.AsyncClient(timeout=10.0) as client:
                response = await client.post(url, json=body)
                data = response.json()
        except (httpx.HTTPError, ValueError) as e:
            logger.error(f"❌ Error sending Telegram message: {e}")
            return False

        if not isinstance(data, dict) or not data.get("ok"):
            logger.error(f"❌ Telegram rejected the message: {data}")
            return False

        logger.info("✅ Telegram message sent")
        return True


def format_shipment_update(
    store_name: Optional[str],
    order_id: Optional[str],
    tracking_number: str,
    status: Optional[str],
) -> str:
    def esc(value) -> str:
        return html.escape(str(value)) if value is not None else "-"

    return (
        "📦 <b>Shipment update</b>\n"
        f"Store: {esc(store_name)}\n"
        f"Order: {esc(order_id)}\n"
        f"Tracking: <code>{esc(tracking_number)}</code>\n"
        f"Status: <b>{esc(status)}</b>"
    )


telegram_notifier = TelegramNotifier()


def get_notifier() -> TelegramNotifier:
    return telegram_notifier
