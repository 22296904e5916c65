"""Error taxonomy shared by the contact pipeline and the server runtime."""

from __future__ import annotations

from typing import Optional


class PortfolioError(Exception):
    """Base class for errors that carry a user-facing message."""

    kind = "error"
    user_message = "Something went wrong. Please try again."

    def __init__(self, message: Optional[str] = None) -> None:
        super().__init__(message or self.user_message)
        self.message = message or self.user_message


class ConfigError(PortfolioError):
    kind = "config"
    user_message = "Invalid configuration"


class ContactError(PortfolioError):
    kind = "contact"


class MissingFieldsError(ContactError):
    kind = "missing_fields"
    user_message = "Please fill in all required fields"


class InvalidEmailError(ContactError):
    kind = "invalid_email"
    user_message = "Please enter a valid email address"


class NetworkError(ContactError):
    """No response was received from the contact endpoint."""

    kind = "network"
    user_message = "Network error. Please check your connection and try again."


class RelayFailure(ContactError):
    """The mail relay rejected the message or could not be reached."""

    kind = "relay"
    user_message = "Failed to send message. Please try again."

    def __init__(self, message: Optional[str] = None, *, status_code: Optional[int] = None, detail: str = "") -> None:
        super().__init__(message)
        self.status_code = status_code
        self.detail = detail


class ServerError(ContactError):
    kind = "server"
    user_message = "Internal server error"


class RelayUnreachable(RelayFailure):
    """No response came back from the mail relay."""

    kind = "relay_unreachable"
    user_message = "Network error. Please try again."
