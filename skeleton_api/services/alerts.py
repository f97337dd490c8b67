"""
Alert Notifier

Posts a text alert to a chat webhook (Feishu/Lark style body) when the
recovery middleware intercepts an unhandled fault.

Delivery is fire-and-forget: dispatch() schedules the POST on the running
event loop and returns immediately. A failed delivery is logged and never
reaches the request that triggered it.
"""

import asyncio
import logging
from datetime import datetime

import httpx

logger = logging.getLogger(__name__)

MAX_STACK_CHARS = 4096


class AlertNotifier:
    """
    Fire-and-forget webhook alerts.

    Args:
        webhook_url: Target URL; None disables alerting
        timeout: HTTP timeout in seconds
    """

    def __init__(self, webhook_url: str | None, timeout: float = 5.0) -> None:
        self.webhook_url = webhook_url
        self.timeout = timeout
        # Strong references so pending tasks are not garbage collected
        self._tasks: set[asyncio.Task] = set()

    @property
    def enabled(self) -> bool:
        return bool(self.webhook_url)

    @staticmethod
    def build_message(
        method: str,
        path: str,
        client_ip: str,
        error: str,
        stack: str,
    ) -> dict:
        """Build the webhook body for a fault."""
        text = (
            "Service fault alert\n"
            f"Time: {datetime.now().strftime('%Y-%m-%d %H:%M:%S')}\n"
            f"Path: {method} {path}\n"
            f"IP: {client_ip}\n"
            f"Error: {error}\n"
            f"Stack: {stack[-MAX_STACK_CHARS:]}"
        )
        return {"msg_type": "text", "content": {"text": text}}

    async def send(self, message: dict) -> bool:
        """
        POST one alert. Never raises.

        Returns:
            True if the webhook answered 200, False otherwise
        """
        if not self.webhook_url:
            return False

        try:
            async with httpx.AsyncClient(timeout=self.timeout) as client:
                response = await client.post(self.webhook_url, json=message)
        except httpx.HTTPError as e:
            logger.error(f"Failed to send alert: {e}")
            return False

        if response.status_code != 200:
            logger.error(f"Alert webhook answered with status {response.status_code}")
            return False

        return True

    def dispatch(self, message: dict) -> asyncio.Task | None:
        """
        Schedule send() without waiting for it.

        Returns:
            The background task, or None when alerting is disabled
        """
        if not self.enabled:
            return None

        task = asyncio.get_running_loop().create_task(self.send(message))
        self._tasks.add(task)
        task.add_done_callback(self._on_done)
        return task

    def _on_done(self, task: asyncio.Task) -> None:
        self._tasks.discard(task)
        if not task.cancelled() and task.exception() is not None:
            logger.error(f"Alert task failed: {task.exception()!r}")

    async def drain(self) -> None:
        """Wait for in-flight alerts (used on shutdown)."""
        if self._tasks:
            await asyncio.gather(*self._tasks, return_exceptions=True)
