"""Discord webhook alerts for website-less places and run outcomes."""

import logging
import time
from typing import Any, Dict, Iterable, Optional

import requests

from prospector.core.errors import DeliveryFailure
from prospector.models import RunStatus

logger = logging.getLogger(__name__)

REQUEST_TIMEOUT = 10
MISSING_VALUE = "Non disponible"
SUCCESS_COLOR = 3066993
FAILURE_COLOR = 15158332


def build_missing_website_message(
    name: str, categories: Iterable[str], phone: Optional[str], map_link: Optional[str]
) -> Dict[str, Any]:
    return {
        "content": "Nouvel établissement sans site web détecté !",
        "embeds": [
            {
                "title": name,
                "description": f"Type: {', '.join(categories)}",
                "fields": [
                    {"name": "Téléphone", "value": phone or MISSING_VALUE},
                    {"name": "Google Maps", "value": map_link or MISSING_VALUE},
                ],
            }
        ],
    }


def build_run_outcome_message(status: RunStatus, summary: str) -> Dict[str, Any]:
    return {
        "content": "Le script de prospection a terminé son exécution.",
        "embeds": [
            {
                "title": f"État : {status.value}",
                "description": summary,
                "color": SUCCESS_COLOR if status is RunStatus.SUCCESS else FAILURE_COLOR,
            }
        ],
    }


class DiscordAlertSink:
    """Posts embeds to a Discord webhook.

    Delivery errors are raised as DeliveryFailure; the caller decides whether
    a missed alert matters. Each missing-website alert is followed by a fixed
    pause so consecutive alerts stay under the webhook rate limit.
    """

    def __init__(
        self,
        webhook_url: str,
        delay_seconds: float = 2.0,
        timeout: float = REQUEST_TIMEOUT,
        session: Optional[requests.Session] = None,
    ) -> None:
        self._webhook_url = webhook_url
        self._delay_seconds = delay_seconds
        self._timeout = timeout
        self._session = session or requests.Session()

    @property
    def enabled(self) -> bool:
        return bool(self._webhook_url)

    def deliver(self, message: Dict[str, Any]) -> None:
        try:
            response = self._session.post(self._webhook_url, json=message, timeout=self._timeout)
            response.raise_for_status()
        except requests.RequestException as exc:
            raise DeliveryFailure(f"Discord webhook delivery failed: {exc}") from exc

    def notify_missing_website(
        self, name: str, categories: Iterable[str], phone: Optional[str], map_link: Optional[str]
    ) -> None:
        if not self.enabled:
            logger.warning("DISCORD_WEBHOOK_URL missing; skipping alert for %s", name)
            return
        message = build_missing_website_message(name, categories, phone, map_link)
        try:
            self.deliver(message)
            logger.info("Sent missing-website alert for %s", name)
        finally:
            time.sleep(self._delay_seconds)

    def notify_run_outcome(self, status: RunStatus, summary: str) -> None:
        if not self.enabled:
            logger.warning("DISCORD_WEBHOOK_URL missing; skipping run outcome (%s): %s", status.value, summary)
            return
        self.deliver(build_run_outcome_message(status, summary))
        logger.info("Sent run outcome notification status=%s", status.value)
