"""Error kinds raised by the OAuth client flow.

Every error carries a message that is safe to show to the user. The HTTP
layer renders them as the error page; none of them should take the process
down.
"""

from typing import Optional


class OAuthClientError(Exception):
    """Base class for errors surfaced to the user as an error page."""

    status_code = 400
    user_message = "OAuth request failed."

    def __init__(self, message: Optional[str] = None):
        super().__init__(message or self.user_message)
        if message:
            self.user_message = message


class RegistrationError(OAuthClientError):
    status_code = 502
    user_message = "Unable to register client."


class StateMismatchError(OAuthClientError):
    user_message = "State value did not match"


class ExchangeError(OAuthClientError):
    """Token endpoint answered with a non-2xx status or an unusable body."""

    status_code = 502

    def __init__(self, status: Optional[int] = None, message: Optional[str] = None):
        self.status = status
        if message is None:
            message = f"Unable to fetch access token, server response: {status}"
        super().__init__(message)


class TransportError(OAuthClientError):
    """Connection refused, timeout or other network failure."""

    status_code = 502
    user_message = "Unable to reach the authorization server."


class TokenValidationError(OAuthClientError):
    """ID token rejected. ``stage`` names the check that failed, for logs only."""

    user_message = "ID token invalid"

    def __init__(self, stage: str, reason: str):
        super().__init__()
        self.stage = stage
        self.reason = reason

    def __str__(self) -> str:
        return f"{self.stage}: {self.reason}"


class RefreshError(OAuthClientError):
    status_code = 401

    def __init__(self, status: Optional[int] = None):
        self.status = status
        super().__init__(f"Unable to refresh access token, server response: {status}")
