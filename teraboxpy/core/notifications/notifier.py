"""
Operator notifications.

Terminal upload failures are pushed to a webhook (DingTalk markdown
envelope). Delivery problems are logged and never escalated.
"""
from dataclasses import dataclass
from datetime import datetime
from typing import Optional, Protocol, Callable
import asyncio
import logging

import aiohttp

from ..logging import human_size

logger = logging.getLogger('teraboxpy.notify')


@dataclass(frozen=True)
class FailureReport:
    """
    Structured summary of a failed upload.

    Attributes:
        file_name: Local file name
        file_size: Size in bytes
        error_code: Remote errno or local error code (None when absent)
        error_message: Human readable reason
        target_folder: Remote folder the file was headed to
        stage: Pipeline stage that failed (precreate, transfer, finalize, ...)
    """
    file_name: str
    file_size: int
    error_code: Optional[int]
    error_message: str
    target_folder: str
    stage: str = 'upload'

    @property
    def title(self) -> str:
        if self.stage == 'precreate':
            return 'TeraBox upload preparation failed'
        return 'TeraBox upload failed'

    def to_markdown(self) -> str:
        code = self.error_code if self.error_code is not None else 'n/a'
        lines = [
            f"**File:** `{self.file_name}`",
            f"**Size:** {human_size(self.file_size)}",
            f"**Error code:** {code}",
            f"**Error message:** {self.error_message}",
            f"**Target folder:** {self.target_folder}",
        ]
        if self.stage == 'precreate':
            lines.append(
                "**Likely cause:** credentials expired or verification required, "
                "update TERABOX_JSTOKEN, TERABOX_COOKIE, TERABOX_BDSTOKEN"
            )
        return '\n\n'.join(lines)


class NotificationSink(Protocol):
    """Protocol for failure notification channels."""

    async def notify(self, report: FailureReport) -> bool:
        """Deliver a report; returns True on success, never raises."""
        ...


class NullNotifier:
    """Sink used when no webhook is configured."""

    async def notify(self, report: FailureReport) -> bool:
        logger.debug("Notification webhook not configured, skipping notification")
        return False


class WebhookNotifier:
    """
    Posts failure reports to a webhook as a DingTalk markdown message.

    Example:
        >>> notifier = WebhookNotifier("https://oapi.dingtalk.com/robot/send?access_token=...")
        >>> await notifier.notify(report)
    """

    def __init__(
        self,
        webhook_url: str,
        timeout: float = 15.0,
        clock: Callable[[], datetime] = datetime.now
    ):
        """
        Initialize notifier.

        Args:
            webhook_url: Endpoint receiving the JSON payload
            timeout: Total request timeout in seconds
            clock: Timestamp source
        """
        self._webhook_url = webhook_url
        self._timeout = timeout
        self._clock = clock

    def build_payload(self, report: FailureReport) -> dict:
        """Build the {title, text, timestamp} markdown envelope."""
        timestamp = self._clock().strftime('%Y-%m-%d %H:%M:%S')
        text = (
            f"### {report.title}\n\n{report.to_markdown()}\n\n---\n\n"
            f"**Time:** {timestamp}"
        )
        return {
            'msgtype': 'markdown',
            'markdown': {
                'title': report.title,
                'text': text,
            }
        }

    async def notify(self, report: FailureReport) -> bool:
        payload = self.build_payload(report)
        timeout = aiohttp.ClientTimeout(total=self._timeout)
        try:
            async with aiohttp.ClientSession(timeout=timeout) as session:
                async with session.post(self._webhook_url, json=payload) as resp:
                    if resp.status != 200:
                        body = await resp.text()
                        logger.warning(
                            f"Failed to send notification (HTTP {resp.status}): {body[:200]}"
                        )
                        return False
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            logger.warning(f"Failed to send notification: {e}")
            return False

        logger.info("Notification sent successfully")
        return True


def create_notifier(webhook_url: Optional[str]) -> NotificationSink:
    """Webhook notifier when a URL is configured, otherwise a no-op sink."""
    if webhook_url:
        return WebhookNotifier(webhook_url)
    return NullNotifier()
