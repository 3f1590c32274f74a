"""Telegram Bot API delivery adapter.

Implements DeliveryPort by posting HTML-formatted messages to a chat
through the Bot API's sendMessage method.
"""

import logging

import httpx

from relwatch.core.ports import DeliveryPort

logger = logging.getLogger(__name__)


class TelegramDeliveryAdapter(DeliveryPort):
    """Sends payloads to a Telegram chat via a bot."""

    def __init__(
        self,
        bot_token: str,
        chat_id: str,
        api_url: str = "https://api.telegram.org",
        timeout: float = 30.0,
        client: httpx.AsyncClient | None = None,
    ):
        """Initialize Telegram delivery adapter.

        Args:
            bot_token: Bot token issued by BotFather.
            chat_id: Target chat ID or @channel username.
            api_url: Base URL for the Bot API.
            timeout: Request timeout in seconds.
            client: Preconfigured client, mainly for tests.

        Raises:
            ValueError: If the bot token or chat ID is empty.
        """
        if not bot_token or not bot_token.strip():
            raise ValueError("Telegram bot token must be provided and non-empty")
        if not str(chat_id).strip():
            raise ValueError("Telegram chat ID must be provided and non-empty")
        self.bot_token = bot_token
        self.chat_id = chat_id
        self.api_url = api_url.rstrip("/")
        self._client = client or httpx.AsyncClient(timeout=timeout)

    def _endpoint(self) -> str:
        return f"{self.api_url}/bot{self.bot_token}/sendMessage"

    async def close(self) -> None:
        """Close the HTTP client."""
        await self._client.aclose()

    async def send(self, payload: str) -> bool:
        """Send one HTML message; True only if Telegram accepted it."""
        try:
            response = await self._client.post(
                self._endpoint(),
                json={
                    "chat_id": self.chat_id,
                    "text": payload,
                    "parse_mode": "HTML",
                    "disable_web_page_preview": True,
                },
            )
        except httpx.HTTPError as e:
            logger.error(f"Telegram request failed: {e}")
            return False

        if response.status_code != 200:
            logger.error(
                f"Telegram API error {response.status_code}",
                extra={"chat_id": self.chat_id, "response": response.text[:200]},
            )
            return False

        try:
            ok = bool(response.json().get("ok"))
        except ValueError:
            logger.error("Telegram API returned a non-JSON response")
            return False

        if not ok:
            logger.error(
                "Telegram API rejected the message",
                extra={"chat_id": self.chat_id, "response": response.text[:200]},
            )
        return ok
