"""Best-effort fan-out of deployment messages to chat channels.

Each configured channel is attempted independently. A channel that fails
raises NotificationDeliveryError, which the Notifier logs and drops so the
remaining channels (and the deployment itself) are unaffected.
"""

from abc import ABC, abstractmethod
from urllib.parse import urlsplit

import requests

from src.deployhook.errors import NotificationDeliveryError
from src.deployhook.logging import get_logger
from src.deployhook.models import NotificationConfig, SlackConfig, TelegramConfig

logger = get_logger(__name__)

TELEGRAM_API_BASE = "https://api.telegram.org"


class Channel(ABC):
    """A single notification destination."""

    name: str = "channel"

    def __init__(self, session: requests.Session, timeout: float = 10.0) -> None:
        self.session = session
        self.timeout = timeout

    @abstractmethod
    def send(self, message: str) -> None:
        """Deliver message.

        Raises:
            NotificationDeliveryError: On network error or non-2xx response.
        """

    def redact(self, text: str) -> str:
        """Strip credentials from text before it is logged."""
        return text

    def _post(self, url: str, payload: dict) -> None:
        try:
            resp = self.session.post(url, json=payload, timeout=self.timeout)
        except requests.RequestException as e:
            raise NotificationDeliveryError(self.name, self.redact(str(e))) from e
        if not 200 <= resp.status_code < 300:
            raise NotificationDeliveryError(
                self.name, self.redact(f"HTTP {resp.status_code}: {resp.text[:200]}")
            )


class SlackChannel(Channel):
    """Slack-compatible incoming webhook."""

    name = "slack"

    def __init__(
        self, config: SlackConfig, session: requests.Session, timeout: float = 10.0
    ) -> None:
        super().__init__(session, timeout)
        self.config = config

    def redact(self, text: str) -> str:
        # The webhook path is the credential
        path = urlsplit(self.config.webhook_url).path
        return text.replace(path, "/***") if path.strip("/") else text

    def send(self, message: str) -> None:
        self._post(
            self.config.webhook_url,
            {"channel": self.config.channel, "text": message},
        )


class TelegramChannel(Channel):
    """Telegram Bot API sendMessage."""

    name = "telegram"

    def __init__(
        self, config: TelegramConfig, session: requests.Session, timeout: float = 10.0
    ) -> None:
        super().__init__(session, timeout)
        self.config = config

    @property
    def url(self) -> str:
        return f"{TELEGRAM_API_BASE}/bot{self.config.bot_token}/sendMessage"

    def redact(self, text: str) -> str:
        return text.replace(self.config.bot_token, "***")

    def send(self, message: str) -> None:
        self._post(
            self.url,
            {
                "chat_id": self.config.chat_id,
                "text": message,
                "parse_mode": "HTML",
            },
        )


def build_channels(
    config: NotificationConfig | None,
    session: requests.Session | None = None,
    timeout: float = 10.0,
) -> list[Channel]:
    """Create a channel for every enabled entry in the notification config.

    Channels whose required fields are missing or empty are skipped.
    """
    if config is None:
        return []

    session = session if session is not None else requests.Session()
    channels: list[Channel] = []
    if config.slack is not None and config.slack.enabled:
        channels.append(SlackChannel(config.slack, session, timeout))
    if config.telegram is not None and config.telegram.enabled:
        channels.append(TelegramChannel(config.telegram, session, timeout))
    return channels


class Notifier:
    """Sends a message to every channel, tolerating per-channel failure."""

    def __init__(self, channels: list[Channel] | None = None) -> None:
        self.channels = tuple(channels or ())

    @property
    def channel_names(self) -> list[str]:
        return [channel.name for channel in self.channels]

    def notify(self, message: str) -> None:
        """Attempt delivery on each channel in turn. Never raises."""
        for channel in self.channels:
            try:
                channel.send(message)
            except NotificationDeliveryError as e:
                logger.warning(
                    "notification_failed", channel=channel.name, error=e.detail
                )
            except Exception:
                logger.exception("notification_error", channel=channel.name)
            else:
                logger.debug("notification_sent", channel=channel.name)
