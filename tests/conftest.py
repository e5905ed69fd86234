"""Shared fixtures for deploy webhook tests."""

import threading

import pytest
import requests

from src.deployhook.models import AppConfig, DeploymentConfig, Step
from src.deployhook.notify import Notifier


class FakeResponse:
    def __init__(self, status_code: int = 200, text: str = "ok") -> None:
        self.status_code = status_code
        self.text = text


class FakeSession:
    """Stands in for requests.Session; records posts, fails on chosen URLs."""

    def __init__(self, fail_urls=(), status_by_url=None) -> None:
        self.fail_urls = set(fail_urls)
        self.status_by_url = status_by_url or {}
        self.posts: list[tuple[str, dict, float]] = []
        self._lock = threading.Lock()

    def post(self, url, json=None, timeout=None):
        if url in self.fail_urls:
            raise requests.ConnectionError(f"cannot reach {url}")
        with self._lock:
            self.posts.append((url, json, timeout))
        return FakeResponse(self.status_by_url.get(url, 200))


class RecordingNotifier(Notifier):
    """Notifier that keeps every message instead of sending it."""

    def __init__(self) -> None:
        super().__init__([])
        self.messages: list[str] = []
        self._lock = threading.Lock()

    def notify(self, message: str) -> None:
        with self._lock:
            self.messages.append(message)


@pytest.fixture
def fake_session() -> FakeSession:
    return FakeSession()


@pytest.fixture
def notifier() -> RecordingNotifier:
    return RecordingNotifier()


@pytest.fixture
def workdir(tmp_path):
    path = tmp_path / "app"
    path.mkdir()
    return path


@pytest.fixture
def app_config(workdir) -> AppConfig:
    return AppConfig(
        deployments={
            "web": DeploymentConfig(
                path=str(workdir),
                steps=[
                    Step(name="Build", run="echo built > build.txt"),
                    Step(name="Restart", run="true"),
                ],
            ),
            "broken": DeploymentConfig(
                path=str(workdir),
                steps=[
                    Step(name="Fetch", run="true"),
                    Step(name="Migrate", run="exit 1"),
                    Step(name="Restart", run="touch restarted"),
                ],
            ),
        }
    )
