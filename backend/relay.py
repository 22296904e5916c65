"""Outbound client for the third-party mail relay (Formspree)."""

from __future__ import annotations

import logging
from typing import Optional

import requests

from core.config import DEFAULT_RELAY_TIMEOUT, DEFAULT_RELAY_URL
from core.errors import RelayFailure, RelayUnreachable
from core.types import ContactRequest


logger = logging.getLogger(__name__)

_HEADERS = {"Content-Type": "application/json", "Accept": "application/json"}


class MailRelay:
    def __init__(
        self,
        url: str = DEFAULT_RELAY_URL,
        *,
        timeout: float = DEFAULT_RELAY_TIMEOUT,
        session: Optional[requests.Session] = None,
    ) -> None:
        self.url = url
        self.timeout = timeout
        # shared by all server worker threads, so no Session is kept by default
        self.session = session

    def send(self, contact: ContactRequest) -> None:
        """Forward ``contact`` to the relay.

        Raises :class:`RelayUnreachable` when no response arrives and
        :class:`RelayFailure` when the relay answers with a non-2xx status.
        The relay's own error text stays in ``detail`` and is never meant
        for the caller.
        """

        http = self.session or requests
        try:
            response = http.post(
                self.url,
                json=contact.to_relay_payload(),
                headers=_HEADERS,
                timeout=self.timeout,
            )
        except requests.exceptions.RequestException as exc:
            raise RelayUnreachable(detail=str(exc)) from exc

        if not response.ok:
            raise RelayFailure(status_code=response.status_code, detail=response.text)

        logger.info("Contact form submission sent to relay: name=%s email=%s", contact.name, contact.email)
