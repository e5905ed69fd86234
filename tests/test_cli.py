import pytest

from src.deployhook import cli
from src.deployhook import config as config_module

CONFIG_YAML = """
deployments:
  web:
    path: /srv/web
    steps:
      - name: Pull
        run: git pull
"""


class StubServer:
    server_address = ("127.0.0.1", 9123)

    def __init__(self):
        self.closed = False

    def serve_forever(self):
        raise KeyboardInterrupt

    def server_close(self):
        self.closed = True


@pytest.fixture(autouse=True)
def fresh_settings(monkeypatch, tmp_path):
    monkeypatch.chdir(tmp_path)  # keep a developer's .env out of the way
    monkeypatch.setattr(config_module, "_settings", None)
    for var in ("WEBHOOK_SECRET", "WEBHOOK_CONFIG", "WEBHOOK_PORT", "WEBHOOK_HOST"):
        monkeypatch.delenv(var, raising=False)
    yield
    config_module._settings = None


def test_missing_secret_refuses_to_start():
    assert cli.main([]) == 1


def test_unreadable_config_refuses_to_start(monkeypatch, tmp_path):
    monkeypatch.setenv("WEBHOOK_SECRET", "s")
    assert cli.main(["--config", str(tmp_path / "missing.yml")]) == 1


def test_starts_and_stops_cleanly(monkeypatch, tmp_path):
    config_file = tmp_path / "config.yml"
    config_file.write_text(CONFIG_YAML, encoding="utf-8")
    monkeypatch.setenv("WEBHOOK_SECRET", "s")
    monkeypatch.setenv("WEBHOOK_CONFIG", str(config_file))

    seen = {}
    stub = StubServer()

    def fake_create_server(host, port, service):
        seen.update(host=host, port=port, service=service)
        return stub

    monkeypatch.setattr(cli, "create_server", fake_create_server)

    assert cli.main(["--port", "9123", "--host", "127.0.0.1"]) == 0
    assert seen["host"] == "127.0.0.1"
    assert seen["port"] == 9123
    assert list(seen["service"].config.deployments) == ["web"]
    assert stub.closed


def test_port_falls_back_to_environment(monkeypatch, tmp_path):
    config_file = tmp_path / "config.yml"
    config_file.write_text(CONFIG_YAML, encoding="utf-8")
    monkeypatch.setenv("WEBHOOK_SECRET", "s")
    monkeypatch.setenv("WEBHOOK_PORT", "9555")

    seen = {}
    monkeypatch.setattr(
        cli,
        "create_server",
        lambda host, port, service: seen.update(port=port) or StubServer(),
    )
    assert cli.main(["--config", str(config_file)]) == 0
    assert seen["port"] == 9555
