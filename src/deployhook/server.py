"""HTTP surface of the deploy webhook.

    POST /webhook/<app>   signed deployment trigger
    GET  /health          liveness probe

WebhookService holds the request handling logic and knows nothing about
http.server; WebhookRequestHandler only translates between the two.
"""

import json
import re
from dataclasses import dataclass
from http.server import BaseHTTPRequestHandler, ThreadingHTTPServer
from urllib.parse import unquote, urlsplit

from src.deployhook.auth import SIGNATURE_HEADER, verify
from src.deployhook.config import WebhookSettings
from src.deployhook.errors import (
    AuthenticationError,
    StepExecutionError,
    UnknownApplicationError,
)
from src.deployhook.logging import get_logger
from src.deployhook.models import AppConfig
from src.deployhook.notify import Notifier, build_channels
from src.deployhook.runner import DeploymentLocks, DeploymentRunner

logger = get_logger(__name__)

_WEBHOOK_PATH = re.compile(r"/webhook/([^/]+)/?")


@dataclass(frozen=True)
class WebhookResponse:
    status: int
    body: bytes
    content_type: str = "text/plain; charset=utf-8"

    @classmethod
    def text(cls, status: int, message: str) -> "WebhookResponse":
        return cls(status, message.encode("utf-8"))

    @classmethod
    def json(cls, status: int, payload: dict) -> "WebhookResponse":
        return cls(status, json.dumps(payload).encode("utf-8"), "application/json")


class WebhookService:
    """Looks up, authenticates and runs deployments for incoming webhooks."""

    def __init__(
        self, config: AppConfig, secret: str, runner: DeploymentRunner
    ) -> None:
        self.config = config
        self.secret = secret
        self.runner = runner

    def _authenticate(self, signatures: list[str] | None, raw_body: bytes) -> None:
        if not signatures or len(signatures) != 1:
            raise AuthenticationError("No signature")
        if not verify(signatures[0], raw_body, self.secret):
            raise AuthenticationError("Invalid signature")

    def handle_webhook(
        self, app_name: str, signatures: list[str] | None, raw_body: bytes
    ) -> WebhookResponse:
        """Handle one deployment trigger.

        Args:
            app_name: Application name taken from the request path.
            signatures: Every value of the signature header (None if absent).
            raw_body: Request body exactly as received; this is what was signed.

        Returns:
            404 for an unknown app (checked before authentication), 401 for a
            missing or bad signature, 500 if a step failed, 200 otherwise.
        """
        try:
            deployment = self.config.get_deployment(app_name)
            if deployment is None:
                raise UnknownApplicationError(app_name)
            self._authenticate(signatures, raw_body)
        except UnknownApplicationError:
            logger.info("webhook_rejected", app=app_name, reason="unknown_app")
            return WebhookResponse.text(404, "Deployment not configured")
        except AuthenticationError as e:
            logger.warning("webhook_rejected", app=app_name, reason=str(e))
            return WebhookResponse.text(401, str(e))

        try:
            self.runner.run(app_name, deployment)
        except StepExecutionError as e:
            # Already notified by the runner; the caller only gets a generic body
            logger.error("deployment_error", app=app_name, step=e.step, error=e.detail)
            return WebhookResponse.text(500, "Deployment failed")
        return WebhookResponse.text(200, "Deployed successfully")

    def health(self) -> WebhookResponse:
        return WebhookResponse.json(200, {"status": "ok"})


class WebhookRequestHandler(BaseHTTPRequestHandler):
    server: "WebhookServer"

    def _send(self, response: WebhookResponse) -> None:
        self.send_response(response.status)
        self.send_header("Content-Type", response.content_type)
        self.send_header("Content-Length", str(len(response.body)))
        self.end_headers()
        self.wfile.write(response.body)

    def _read_body(self) -> bytes | None:
        try:
            length = int(self.headers.get("Content-Length", 0))
        except ValueError:
            return None
        if length < 0:
            return None
        return self.rfile.read(length) if length else b""

    def do_POST(self):
        match = _WEBHOOK_PATH.fullmatch(urlsplit(self.path).path)
        if match is None:
            self._send(WebhookResponse.text(404, "Not found"))
            return

        service = self.server.service
        app_name = unquote(match.group(1))
        if service.config.get_deployment(app_name) is None:
            # 404 regardless of body or signature
            self._send(service.handle_webhook(app_name, None, b""))
            return

        body = self._read_body()
        if body is None:
            self._send(WebhookResponse.text(400, "Invalid Content-Length"))
            return

        response = service.handle_webhook(
            app_name, self.headers.get_all(SIGNATURE_HEADER), body
        )
        self._send(response)

    def do_GET(self):
        if urlsplit(self.path).path == "/health":
            self._send(self.server.service.health())
            return
        self._send(WebhookResponse.text(404, "Not found"))

    def log_message(self, format, *args):
        logger.debug("http_request", client=self.client_address[0], line=format % args)


class WebhookServer(ThreadingHTTPServer):
    """Threaded server; each request (and its deployment) gets its own thread."""

    daemon_threads = True

    def __init__(self, address: tuple[str, int], service: WebhookService) -> None:
        super().__init__(address, WebhookRequestHandler)
        self.service = service


def build_service(settings: WebhookSettings, config: AppConfig) -> WebhookService:
    """Wire notifier, runner and locks from settings and the loaded config."""
    notifier = Notifier(
        build_channels(config.notifications, timeout=settings.notification_timeout)
    )
    runner = DeploymentRunner(
        notifier,
        step_timeout=settings.step_timeout,
        locks=DeploymentLocks() if settings.serialize_deployments else None,
    )
    return WebhookService(config, settings.webhook_secret, runner)


def create_server(host: str, port: int, service: WebhookService) -> WebhookServer:
    return WebhookServer((host, port), service)
