"""
Discord webhook client.

Sends notifications as rich embeds through an incoming webhook.
https://discord.com/developers/docs/resources/webhook#execute-webhook
"""

import logging
import time
from typing import Any, Dict, Optional, Sequence

import requests

from librus_bot.config import get_settings
from librus_bot.models import COLOR_DEFAULT, NotificationPayload

logger = logging.getLogger(__name__)

# Discord accepts at most this many embeds per message
MAX_EMBEDS = 10


def payload_to_embed(payload: NotificationPayload) -> Dict[str, Any]:
    """Map a payload onto the Discord embed object."""
    embed: Dict[str, Any] = {
        "title": payload.title,
        "description": payload.body,
        "color": payload.color if payload.color is not None else COLOR_DEFAULT,
    }
    if payload.url:
        embed["url"] = payload.url
    if payload.author:
        embed["author"] = {"name": payload.author[:256]}
    if payload.footer:
        embed["footer"] = {"text": payload.footer[:2048]}
    if payload.timestamp:
        embed["timestamp"] = payload.timestamp.isoformat()
    return embed


class WebhookNotifier:
    """
    Discord webhook client for sending notifications.

    One call to ``send`` posts one message carrying up to ten embeds.
    """

    def __init__(self, url: Optional[str] = None):
        """
        Initialize webhook notifier.

        Args:
            url: Discord webhook URL
        """
        self.url = url or get_settings().webhook_url
        self.session = requests.Session()

    def send(self, payloads: Sequence[NotificationPayload]) -> bool:
        """
        Post a batch of payloads as one webhook message.

        A 429 response is retried once after the advertised delay.

        Args:
            payloads: At most ten payloads

        Returns:
            bool: True if the message was accepted
        """
        if len(payloads) > MAX_EMBEDS:
            raise ValueError(f"At most {MAX_EMBEDS} embeds per message, got {len(payloads)}")

        body = {"embeds": [payload_to_embed(p) for p in payloads]}

        try:
            response = self._post(body)

            if response.status_code == 429:
                retry_after = self._retry_after(response)
                logger.warning(f"Webhook rate limited, retrying in {retry_after:.1f}s")
                time.sleep(retry_after)
                response = self._post(body)

            if response.ok:
                logger.info(f"Webhook message sent with {len(payloads)} embed(s)")
                return True

            logger.error(f"Webhook error: {response.status_code} - {response.text}")
            return False

        except requests.exceptions.Timeout:
            logger.error("Webhook request timed out")
            return False
        except requests.exceptions.RequestException as e:
            logger.error(f"Webhook request failed: {e}")
            return False

    def _post(self, body: Dict[str, Any]) -> requests.Response:
        return self.session.post(self.url, json=body, timeout=30)

    @staticmethod
    def _retry_after(response: requests.Response) -> float:
        """Seconds to wait before retrying, from the body or headers, 1s if neither is usable."""
        try:
            return float(response.json().get("retry_after", 1.0))
        except (ValueError, TypeError, AttributeError):
            pass
        try:
            return float(response.headers.get("Retry-After", 1.0))
        except (ValueError, TypeError):
            return 1.0
