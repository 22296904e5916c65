import pytest

typer = pytest.importorskip("typer")
from click.testing import CliRunner

import cli
from backend.app import create_app
from core.config import Settings
from core.config_store import remember_server
from core.contact import ContactTransport, TransportResponse
from core.runtime import HealthProbe

runner = CliRunner()
command = typer.main.get_command(cli.main)


@pytest.fixture(autouse=True)
def _in_tmp(monkeypatch, tmp_path):
    monkeypatch.chdir(tmp_path)


class FakeRelay:
    def __init__(self):
        self.sent = []

    def send(self, contact):
        self.sent.append(contact)


class AppTransport(ContactTransport):
    def __init__(self, client, calls):
        self.client = client
        self.calls = calls

    def post(self, payload):
        self.calls.append(payload)
        response = self.client.post("/api/contact", json=payload)
        return TransportResponse(status_code=response.status_code, data=response.get_json() or {})


def _use_app_transport(monkeypatch, relay):
    client = create_app(Settings(), relay=relay).test_client()
    calls = []
    urls = []

    def factory(base_url, timeout):
        urls.append(base_url)
        return AppTransport(client, calls)

    monkeypatch.setattr("cli.HttpContactTransport", factory)
    return calls, urls


def test_health_uses_stored_server_url(monkeypatch, tmp_path):
    remember_server(tmp_path, "http://localhost:4555", "development")
    seen = []

    def fake_probe(base_url):
        seen.append(base_url)
        return HealthProbe(url=base_url + "/health", status_code=200, status="ok", timestamp="T")

    monkeypatch.setattr("cli.probe_health", fake_probe)

    result = runner.invoke(command, ["health"])

    assert result.exit_code == 0
    assert seen == ["http://localhost:4555"]
    assert "ok" in result.stdout


def test_health_unreachable(monkeypatch):
    monkeypatch.setattr(
        "cli.probe_health",
        lambda base_url: HealthProbe(url=base_url + "/health", error="connection refused"),
    )

    result = runner.invoke(command, ["health", "--url", "http://localhost:1/"])

    assert result.exit_code == 1
    assert "Unreachable" in result.stdout
    assert "connection refused" in result.stdout


def test_contact_command_sends_message(monkeypatch):
    relay = FakeRelay()
    calls, urls = _use_app_transport(monkeypatch, relay)

    result = runner.invoke(
        command,
        ["contact", "--name", "Ada", "--email", "ada@example.org", "--message", "Hi"],
    )

    assert result.exit_code == 0
    assert "Message sent successfully!" in result.stdout
    assert urls == ["http://localhost:3000"]
    assert calls == [{"name": "Ada", "email": "ada@example.org", "message": "Hi"}]
    assert relay.sent[0].email == "ada@example.org"


def test_contact_command_validates_before_sending(monkeypatch):
    relay = FakeRelay()
    calls, _urls = _use_app_transport(monkeypatch, relay)

    result = runner.invoke(command, ["contact", "--name", "Ada", "--email", "ada@example.org"])

    assert result.exit_code == 1
    assert "Please fill in all required fields" in result.stdout
    assert calls == []


def test_preview_walks_carousel(monkeypatch):
    keys = iter(["l", "\x1b[C", "\x1b[C", "1", "q"])
    seen = []
    original = cli._dispatch_key

    def recording_dispatch(carousel, key):
        keep_going = original(carousel, key)
        seen.append(carousel.active_index)
        return keep_going

    monkeypatch.setattr("cli.click.getchar", lambda: next(keys))
    monkeypatch.setattr("cli._dispatch_key", recording_dispatch)

    result = runner.invoke(command, ["preview"])

    assert result.exit_code == 0
    assert seen == [1, 2, 2, 0, 0]


def test_preview_missing_page(tmp_path):
    result = runner.invoke(command, ["preview", "--page", str(tmp_path / "nope.html")])

    assert result.exit_code == 1
    assert "Page not found" in result.stdout
