"""Command-line entry point for the deploy webhook server."""

import argparse
import sys

from src.deployhook.config import get_settings
from src.deployhook.errors import ConfigurationError
from src.deployhook.loader import load_app_config
from src.deployhook.logging import get_logger, setup_logging
from src.deployhook.server import build_service, create_server

logger = get_logger(__name__)


def _parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    """Parse CLI arguments; unset flags fall back to environment settings."""
    parser = argparse.ArgumentParser(
        description="Run deployment steps on signed webhook calls",
    )
    parser.add_argument(
        "--config",
        help="Path to the YAML deployment config (default: $WEBHOOK_CONFIG or config.yml)",
    )
    parser.add_argument(
        "--host",
        help="Bind address (default: $WEBHOOK_HOST or 0.0.0.0)",
    )
    parser.add_argument(
        "--port",
        type=int,
        help="Listening port (default: $WEBHOOK_PORT or 9000)",
    )
    return parser.parse_args(argv)


def main(argv: list[str] | None = None) -> int:
    args = _parse_args(argv)
    settings = get_settings()
    setup_logging(json_output=settings.log_json, log_level=settings.log_level)

    if not settings.webhook_secret:
        logger.error("startup_failed", reason="WEBHOOK_SECRET is not set")
        return 1

    config_path = args.config or settings.webhook_config
    try:
        config = load_app_config(config_path)
    except ConfigurationError as e:
        logger.error("startup_failed", reason=str(e))
        return 1

    host = args.host or settings.webhook_host
    port = args.port if args.port is not None else settings.webhook_port
    service = build_service(settings, config)
    server = create_server(host, port, service)

    logger.info("webhook_server_listening", host=host, port=server.server_address[1])
    logger.info("configured_deployments", apps=sorted(config.deployments))
    if config.notifications is not None:
        logger.info(
            "notifications_enabled",
            channels=config.notifications.enabled_channels(),
        )

    try:
        server.serve_forever()
    except KeyboardInterrupt:
        logger.info("webhook_server_stopping")
    finally:
        server.server_close()
    return 0


if __name__ == "__main__":
    sys.exit(main())
