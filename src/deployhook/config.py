"""Webhook server settings loaded from environment variables.

The deployment document itself (apps, steps, channels) lives in YAML and is
handled by src.deployhook.loader; this module only covers process-level knobs.
"""

from pydantic import Field
from pydantic_settings import BaseSettings


class WebhookSettings(BaseSettings):
    """Server settings loaded from environment variables.

    Settings are loaded from environment variables with sensible defaults.
    For local development, create a .env file in the project root.
    """

    # HTTP listener
    webhook_port: int = Field(
        default=9000,
        description="Port the webhook server listens on",
    )
    webhook_host: str = Field(
        default="0.0.0.0",
        description="Address the webhook server binds to",
    )
    webhook_secret: str = Field(
        default="",
        description="Shared secret used to verify x-hub-signature-256",
    )

    # Deployment document
    webhook_config: str = Field(
        default="config.yml",
        description="Path to the YAML deployment configuration",
    )

    # Execution
    step_timeout: float | None = Field(
        default=None,
        gt=0,
        description="Default per-step timeout in seconds (unset = no limit)",
    )
    notification_timeout: float = Field(
        default=10.0,
        gt=0,
        description="HTTP timeout in seconds for each notification channel",
    )
    serialize_deployments: bool = Field(
        default=False,
        description="Hold a per-app lock so runs of the same app never overlap",
    )

    # Logging
    log_json: bool = Field(
        default=False,
        description="Output logs in JSON format (for production)",
    )
    log_level: str = Field(
        default="INFO",
        description="Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)",
    )

    model_config = {
        "env_prefix": "",
        "case_sensitive": False,
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "extra": "ignore",
    }


# Singleton pattern
_settings: WebhookSettings | None = None


def get_settings() -> WebhookSettings:
    """Get the webhook settings singleton.

    Returns:
        WebhookSettings: Settings instance
    """
    global _settings
    if _settings is None:
        _settings = WebhookSettings()
    return _settings
