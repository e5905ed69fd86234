"""Pydantic models for the deployment configuration document.

All models are frozen: the configuration is loaded once at startup and is
read-only for the rest of the process. Collections are frozen too (steps
become a tuple, deployments a read-only mapping).
"""

from collections.abc import Mapping
from types import MappingProxyType

from pydantic import BaseModel, ConfigDict, Field, field_validator


def _as_text(value):
    # An unset ${VAR} leaves "key:" in the YAML, which parses as null;
    # numeric chat ids parse as int
    if value is None:
        return ""
    if isinstance(value, int) and not isinstance(value, bool):
        return str(value)
    return value


class Step(BaseModel):
    """One named shell command of a deployment."""

    model_config = ConfigDict(frozen=True)

    name: str  # Human-readable label, shown in notifications
    run: str  # Shell command line, executed with the deployment path as cwd
    timeout: float | None = Field(default=None, gt=0)  # Seconds; None = runner default


class DeploymentConfig(BaseModel):
    """Working directory plus the ordered steps for one application."""

    model_config = ConfigDict(frozen=True)

    path: str
    steps: tuple[Step, ...] = ()


class SlackConfig(BaseModel):
    """Chat webhook channel: incoming-webhook URL and target channel."""

    model_config = ConfigDict(frozen=True)

    webhook_url: str = ""
    channel: str = ""

    @field_validator("webhook_url", "channel", mode="before")
    @classmethod
    def blank_if_unset(cls, value):
        return _as_text(value)

    @property
    def enabled(self) -> bool:
        return bool(self.webhook_url and self.channel)


class TelegramConfig(BaseModel):
    """Bot message channel: bot token and target chat."""

    model_config = ConfigDict(frozen=True)

    bot_token: str = ""
    chat_id: str = ""

    @field_validator("bot_token", "chat_id", mode="before")
    @classmethod
    def blank_if_unset(cls, value):
        return _as_text(value)

    @property
    def enabled(self) -> bool:
        return bool(self.bot_token and self.chat_id)


class NotificationConfig(BaseModel):
    model_config = ConfigDict(frozen=True)

    slack: SlackConfig | None = None
    telegram: TelegramConfig | None = None

    def enabled_channels(self) -> list[str]:
        """Names of the channel kinds whose required fields are all set."""
        names = []
        if self.slack is not None and self.slack.enabled:
            names.append("slack")
        if self.telegram is not None and self.telegram.enabled:
            names.append("telegram")
        return names


class AppConfig(BaseModel):
    """Root of the configuration document."""

    model_config = ConfigDict(frozen=True)

    notifications: NotificationConfig | None = None
    deployments: Mapping[str, DeploymentConfig] = Field(
        default_factory=dict, validate_default=True
    )

    @field_validator("deployments", mode="after")
    @classmethod
    def read_only_deployments(
        cls, value: Mapping[str, DeploymentConfig]
    ) -> Mapping[str, DeploymentConfig]:
        return MappingProxyType(dict(value))

    def get_deployment(self, app_name: str) -> DeploymentConfig | None:
        return self.deployments.get(app_name)
