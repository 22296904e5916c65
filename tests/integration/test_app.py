import logging
import re

import pytest

from backend.app import create_app
from core.config import Settings
from core.errors import RelayFailure, RelayUnreachable
from core.logs import ACCESS_LOGGER
from core.page import parse_page


class FakeRelay:
    def __init__(self, error=None):
        self.error = error
        self.sent = []

    def send(self, contact):
        self.sent.append(contact)
        if self.error is not None:
            raise self.error


def make_client(relay=None, env="development"):
    app = create_app(Settings(env=env), relay=relay or FakeRelay())
    return app, app.test_client()


@pytest.fixture
def relay():
    return FakeRelay()


@pytest.fixture
def client(relay):
    _app, client = make_client(relay)
    return client


def test_health_reports_iso_timestamp(client):
    response = client.get("/health")

    assert response.status_code == 200
    data = response.get_json()
    assert data["status"] == "ok"
    assert re.fullmatch(r"\d{4}-\d\d-\d\dT\d\d:\d\d:\d\d\.\d{3}Z", data["timestamp"])


def test_index_is_served(client):
    response = client.get("/")

    assert response.status_code == 200
    assert b"contact-form" in response.data


def test_static_file_is_served(client):
    response = client.get("/index.html")

    assert response.status_code == 200
    assert response.mimetype == "text/html"


def test_contact_success(client, relay):
    response = client.post(
        "/api/contact",
        json={"name": " Ada ", "email": "ada@example.org", "message": "Hello"},
    )

    assert response.status_code == 200
    assert response.get_json() == {"success": True, "message": "Message sent successfully!"}
    assert relay.sent[0].name == "Ada"
    assert relay.sent[0].to_relay_payload()["_subject"] == "Portfolio Contact: Ada"


def test_contact_accepts_form_encoding(client, relay):
    response = client.post(
        "/api/contact",
        data={"name": "Ada", "email": "ada@example.org", "message": "Hello"},
    )

    assert response.status_code == 200
    assert len(relay.sent) == 1


@pytest.mark.parametrize(
    "payload",
    [
        {"name": "Ada", "email": "ada@example.org"},
        {"name": "Ada", "email": "ada@example.org", "message": "   "},
        {"name": "", "email": "ada@example.org", "message": "Hello"},
        {},
    ],
)
def test_contact_missing_fields(client, relay, payload):
    response = client.post("/api/contact", json=payload)

    assert response.status_code == 400
    assert response.get_json() == {"error": "All fields required"}
    assert relay.sent == []


def test_contact_relay_rejection():
    _app, client = make_client(FakeRelay(RelayFailure(status_code=422, detail="form disabled")))

    response = client.post(
        "/api/contact", json={"name": "Ada", "email": "ada@example.org", "message": "Hello"}
    )

    assert response.status_code == 500
    assert response.get_json() == {"error": "Failed to send message. Please try again."}


def test_contact_relay_unreachable():
    _app, client = make_client(FakeRelay(RelayUnreachable(detail="timed out")))

    response = client.post(
        "/api/contact", json={"name": "Ada", "email": "ada@example.org", "message": "Hello"}
    )

    assert response.status_code == 500
    assert response.get_json() == {"error": "Network error. Please try again."}


def test_cors_headers_on_api(client):
    response = client.post(
        "/api/contact",
        json={"name": "Ada", "email": "ada@example.org", "message": "Hello"},
        headers={"Origin": "https://elsewhere.test"},
    )

    assert response.headers.get("Access-Control-Allow-Origin") == "*"


def test_unknown_path_returns_html_404(client):
    response = client.get("/no/such/page")

    assert response.status_code == 404
    assert response.mimetype == "text/html"
    assert b"Page not found" in response.data
    assert b'href="/"' in response.data


@pytest.mark.parametrize(
    "env, expected",
    [("development", "kaboom"), ("production", "Internal server error")],
)
def test_unexpected_error_detail_depends_on_env(env, expected):
    app, client = make_client(env=env)

    @app.route("/explode")
    def explode():
        raise RuntimeError("kaboom")

    response = client.get("/explode")

    assert response.status_code == 500
    assert response.get_json() == {"error": expected}


def test_static_cache_age_depends_on_env():
    dev_app, _ = make_client(env="development")
    prod_app, _ = make_client(env="production")

    assert dev_app.config["SEND_FILE_MAX_AGE_DEFAULT"] == 0
    assert prod_app.config["SEND_FILE_MAX_AGE_DEFAULT"] == 86400


def test_access_log_formats(caplog):
    _dev_app, dev_client = make_client(env="development")
    _prod_app, prod_client = make_client(env="production")

    with caplog.at_level(logging.INFO, logger=ACCESS_LOGGER):
        dev_client.get("/health")
        prod_client.get("/health", headers={"User-Agent": "probe/1.0"})

    lines = [record.getMessage() for record in caplog.records if record.name == ACCESS_LOGGER]
    assert re.fullmatch(r"GET /health 200 \d+\.\d{3} ms - \d+", lines[0])
    assert re.search(r'"GET /health HTTP/1\.1" 200 \d+ "-" "probe/1\.0"$', lines[1])


def test_served_contact_form_posts_to_api(client, relay):
    page = parse_page(client.get("/").get_data(as_text=True))

    assert page.form_action == "/api/contact"
    assert page.form_method == "post"

    response = client.open(
        page.form_action,
        method=page.form_method.upper(),
        data={"name": "Ada", "email": "ada@example.org", "message": "Hello"},
    )

    assert response.status_code == 200
    assert relay.sent[0].message == "Hello"


@pytest.mark.parametrize("method", ["get", "put", "delete"])
def test_unsupported_method_on_api_returns_html_404(client, relay, method):
    response = getattr(client, method)("/api/contact")

    assert response.status_code == 404
    assert response.mimetype == "text/html"
    assert b"Page not found" in response.data
    assert relay.sent == []
