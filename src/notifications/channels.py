"""Notification channels for collected-item digests.

``WebhookNotifier`` posts a plain-text chat message::

    {"msg_type": "text", "content": {"text": "..."}}

Creates a new ``httpx.AsyncClient`` per call, matching the project's HTTP
pattern. Delivery failures are logged and reported as ``False``.
"""

import logging
from abc import ABC, abstractmethod
from datetime import datetime

import httpx

from src.items.schemas import CollectedItem

logger = logging.getLogger(__name__)


class Notifier(ABC):
    """Abstract base for digest delivery channels."""

    @property
    @abstractmethod
    def name(self) -> str:
        """Unique identifier for this channel."""

    @abstractmethod
    async def send(self, title: str, items: list[CollectedItem]) -> bool:
        """Deliver a digest of ``items``.

        Returns:
            True if delivery succeeded, False otherwise.
        """


def format_digest(
    title: str,
    items: list[CollectedItem],
    max_display: int = 10,
    now: datetime | None = None,
) -> str:
    """Render items as a plain-text digest, listing at most ``max_display``."""
    now = now or datetime.now()
    lines = [
        f"📢 {title}",
        "",
        f"🕐 {now:%Y-%m-%d %H:%M:%S}",
        f"📊 {len(items)} new item(s)",
        "",
    ]
    for item in items[:max_display]:
        published = f"{item.published_at:%Y-%m-%d %H:%M}" if item.published_at else "-"
        lines.append(f"📄 {item.title}")
        lines.append(f"   👤 {item.source_name} | 📅 {published}")
        if item.summary:
            lines.append(f"   💬 {item.summary}")
        lines.append(f"   🔗 {item.content_url}")
        lines.append("")
    if len(items) > max_display:
        lines.append(f"... and {len(items) - max_display} more not shown")
    return "\n".join(lines).rstrip("\n")


class WebhookNotifier(Notifier):
    """Delivers digests as text messages to a chat webhook."""

    def __init__(
        self,
        url: str,
        timeout: float = 10.0,
        max_display: int = 10,
    ) -> None:
        self._url = url
        self._timeout = timeout
        self._max_display = max_display

    @property
    def name(self) -> str:
        return "webhook"

    async def send(self, title: str, items: list[CollectedItem]) -> bool:
        if not items:
            return True
        text = format_digest(title, items, self._max_display)
        return await self.send_text(text)

    async def send_test(self) -> bool:
        """Post a short message confirming the webhook is reachable."""
        text = (
            "📢 Notification test\n\n"
            f"🕐 {datetime.now():%Y-%m-%d %H:%M:%S}\n"
            "✅ Webhook is configured correctly."
        )
        return await self.send_text(text)

    async def send_text(self, text: str) -> bool:
        if not self._url:
            logger.warning("Webhook URL not configured, dropping message")
            return False

        payload = {"msg_type": "text", "content": {"text": text}}
        try:
            async with httpx.AsyncClient(timeout=self._timeout) as client:
                resp = await client.post(self._url, json=payload)
        except httpx.TimeoutException:
            logger.warning("Webhook %s timed out", self._url)
            return False
        except httpx.HTTPError as e:
            logger.warning("Webhook %s failed: %s", self._url, e)
            return False

        if not resp.is_success:
            logger.warning("Webhook %s returned %d", self._url, resp.status_code)
            return False

        try:
            body = resp.json()
        except ValueError:
            body = {}
        code = body.get("code", 0) if isinstance(body, dict) else 0
        if code:
            logger.warning(
                "Webhook %s rejected message: code=%s msg=%s",
                self._url, code, body.get("msg", ""),
            )
            return False

        logger.info("Webhook message delivered")
        return True
