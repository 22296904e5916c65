"""Client side of the contact pipeline.

``ContactSubmitter.submit`` mirrors what the page does when the form is
submitted: guard against double submission, validate, POST to the local
``/api/contact`` endpoint, map the response to a :class:`ContactResult`,
show a notification and always restore the submit control.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, Mapping, Optional, Pattern

import requests

from .errors import ContactError, InvalidEmailError, MissingFieldsError, NetworkError, RelayFailure, ServerError
from .notifications import NotificationPresenter
from .types import ERROR, SUCCESS, ContactRequest, ContactResult, FormField, SubmitControl


logger = logging.getLogger(__name__)

EMAIL_PATTERN = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")
REQUIRED_FIELDS = ("name", "email", "message")

CONTACT_PATH = "/api/contact"
DEFAULT_TIMEOUT = 10.0

BUSY_LABEL = "Sending..."
BUSY_OPACITY = 0.7
SUCCESS_MESSAGE = "Message sent successfully! I will get back to you soon."

INVALID_COLOR = "#e74c3c"
VALID_COLOR = "#27ae60"
FOCUS_COLOR = "#4a90e2"


def is_valid_email(value: str, pattern: Pattern[str] = EMAIL_PATTERN) -> bool:
    return bool(pattern.match(value))


def validate_contact(values: Mapping[str, Any], pattern: Pattern[str] = EMAIL_PATTERN) -> ContactRequest:
    """Return a trimmed :class:`ContactRequest` or raise on the first failure."""

    trimmed = {}
    for name in REQUIRED_FIELDS:
        value = values.get(name)
        trimmed[name] = value.strip() if isinstance(value, str) else ""
    if not all(trimmed.values()):
        raise MissingFieldsError()
    if not is_valid_email(trimmed["email"], pattern):
        raise InvalidEmailError()
    return ContactRequest(**trimmed)


def _default_fields() -> Dict[str, FormField]:
    return {
        "name": FormField(name="name", type="text", required=True),
        "email": FormField(name="email", type="email", required=True),
        "message": FormField(name="message", type="textarea", required=True),
    }


class ContactForm:
    """In-memory model of the contact form and its submit control."""

    def __init__(
        self,
        fields: Optional[Iterable[FormField]] = None,
        *,
        submit_label: str = "Send Message",
        email_pattern: Pattern[str] = EMAIL_PATTERN,
    ) -> None:
        if fields is None:
            self.fields = _default_fields()
        else:
            self.fields = {item.name: item for item in fields}
        self.submit = SubmitControl(label=submit_label)
        self.email_pattern = email_pattern

    def set(self, name: str, value: str) -> None:
        self.fields[name].value = value

    def fill(self, **values: str) -> None:
        for name, value in values.items():
            self.set(name, value)

    def values(self) -> Dict[str, str]:
        return {name: item.value for name, item in self.fields.items()}

    def reset(self) -> None:
        for item in self.fields.values():
            item.value = ""

    def blur(self, name: str) -> Optional[str]:
        """Recolor ``name`` to show whether its value looks acceptable."""

        item = self.fields[name]
        if item.required and not item.value.strip():
            item.border_color = INVALID_COLOR
        elif item.type == "email" and item.value:
            item.border_color = VALID_COLOR if is_valid_email(item.value, self.email_pattern) else INVALID_COLOR
        elif item.value:
            item.border_color = VALID_COLOR
        return item.border_color

    def focus(self, name: str) -> str:
        self.fields[name].border_color = FOCUS_COLOR
        return FOCUS_COLOR


@dataclass
class TransportResponse:
    status_code: int
    data: Dict[str, Any] = field(default_factory=dict)

    @property
    def ok(self) -> bool:
        return 200 <= self.status_code < 300


class ContactTransport:
    """Sends a contact payload. Subclasses raise :class:`NetworkError` when
    no response is received."""

    def post(self, payload: Dict[str, str]) -> TransportResponse:
        raise NotImplementedError


class HttpContactTransport(ContactTransport):
    def __init__(
        self,
        base_url: str,
        *,
        timeout: float = DEFAULT_TIMEOUT,
        session: Optional[requests.Session] = None,
    ) -> None:
        self.url = base_url.rstrip("/") + CONTACT_PATH
        self.timeout = timeout
        self.session = session or requests.Session()

    def post(self, payload: Dict[str, str]) -> TransportResponse:
        try:
            response = self.session.post(self.url, json=payload, timeout=self.timeout)
        except requests.exceptions.RequestException as exc:
            raise NetworkError() from exc
        try:
            data = response.json()
        except ValueError:
            data = {}
        return TransportResponse(status_code=response.status_code, data=data if isinstance(data, dict) else {})


def _error_kind(status_code: int) -> str:
    if status_code == 400:
        return MissingFieldsError.kind
    if status_code >= 500:
        return RelayFailure.kind
    return ServerError.kind


class ContactSubmitter:
    def __init__(
        self,
        transport: ContactTransport,
        presenter: Optional[NotificationPresenter] = None,
    ) -> None:
        self.transport = transport
        self.presenter = presenter or NotificationPresenter()

    def submit(self, form: ContactForm) -> Optional[ContactResult]:
        """Run one attempt. Returns ``None`` when an attempt is already in flight."""

        control = form.submit
        if control.disabled:
            logger.debug("Submission ignored: previous attempt still pending")
            return None

        original_label = control.label
        control.disabled = True
        control.label = BUSY_LABEL
        control.opacity = BUSY_OPACITY
        try:
            result = self._attempt(form)
            self.presenter.show_result(result)
            return result
        finally:
            control.disabled = False
            control.label = original_label
            control.opacity = 1.0

    def _attempt(self, form: ContactForm) -> ContactResult:
        try:
            request = validate_contact(form.values(), form.email_pattern)
        except ContactError as exc:
            return ContactResult(kind=ERROR, text=exc.message, error_kind=exc.kind)

        try:
            response = self.transport.post(request.to_payload())
        except NetworkError as exc:
            logger.warning("Form submission error: %s", exc.__cause__ or exc)
            return ContactResult(kind=ERROR, text=exc.message, error_kind=exc.kind)

        if response.ok:
            form.reset()
            return ContactResult(kind=SUCCESS, text=SUCCESS_MESSAGE)

        message = response.data.get("error")
        if not isinstance(message, str) or not message:
            message = RelayFailure.user_message
        return ContactResult(kind=ERROR, text=message, error_kind=_error_kind(response.status_code))
