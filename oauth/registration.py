"""OAuth 2.0 Dynamic Client Registration (RFC 7591), client side.

Registration only runs when no client_id is configured. A failed attempt is
logged and left for the caller to detect by re-checking ``client_id``.
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Optional

import httpx

logger = logging.getLogger(__name__)

DEFAULT_CLIENT_NAME = "OIDC Reference Dynamic Test Client"
REGISTRATION_SCOPE = "openid profile email address phone"


@dataclass
class ClientRegistration:
    """Credentials and redirect settings of this client. Mutated in place on registration."""

    client_id: Optional[str] = None
    client_secret: Optional[str] = None
    redirect_uris: list[str] = field(default_factory=list)
    scope: str = ""
    base_url: str = ""
    extra: dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_dict(cls, data: dict) -> "ClientRegistration":
        registration = cls(base_url=data.get("baseUrl", ""))
        registration.merge(data)
        return registration

    @property
    def redirect_uri(self) -> Optional[str]:
        return self.redirect_uris[0] if self.redirect_uris else None

    def merge(self, data: dict) -> None:
        """Copy every field of ``data`` onto this registration, overwriting existing values."""
        for key, value in data.items():
            if key == "baseUrl":
                self.base_url = value
            elif key == "redirect_uris":
                self.redirect_uris = list(value or [])
            elif key in ("client_id", "client_secret", "scope"):
                setattr(self, key, value)
            else:
                self.extra[key] = value

    def to_dict(self) -> dict:
        data = dict(self.extra)
        data.update({
            "client_id": self.client_id,
            "client_secret": self.client_secret,
            "redirect_uris": list(self.redirect_uris),
            "scope": self.scope,
            "baseUrl": self.base_url,
        })
        return data


class ClientRegistrar:
    """Registers the client with the authorization server when it has no client_id."""

    def __init__(
        self,
        registration_endpoint: str,
        client_name: str = DEFAULT_CLIENT_NAME,
        timeout: float = 10.0,
    ):
        self.registration_endpoint = registration_endpoint
        self.client_name = client_name
        self.timeout = timeout

    def registration_request(self, registration: ClientRegistration) -> dict:
        return {
            "client_name": self.client_name,
            "client_uri": f"{registration.base_url}/",
            "redirect_uris": [f"{registration.base_url}/callback"],
            "grant_types": ["authorization_code"],
            "response_types": ["code"],
            "token_endpoint_auth_method": "secret_basic",
            "scope": REGISTRATION_SCOPE,
        }

    async def register_if_needed(self, registration: ClientRegistration) -> None:
        """Register the client unless it already has a client_id.

        On HTTP 201 with a client_id in the body, all returned fields are
        merged into ``registration``. Any other outcome leaves it unchanged.
        """
        if registration.client_id:
            return

        if not self.registration_endpoint:
            logger.warning("[REGISTER] No registration endpoint configured")
            return

        template = self.registration_request(registration)
        logger.info(f"[REGISTER] Registering client at {self.registration_endpoint}")

        try:
            async with httpx.AsyncClient(timeout=self.timeout) as client:
                response = await client.post(
                    self.registration_endpoint,
                    json=template,
                    headers={"Accept": "application/json"},
                )
        except httpx.HTTPError as e:
            logger.warning(f"[REGISTER] Registration request failed: {e}")
            return

        if response.status_code != 201:
            logger.warning(f"[REGISTER] Registration rejected with status {response.status_code}")
            return

        try:
            body = response.json()
        except ValueError:
            logger.warning("[REGISTER] Registration response is not valid JSON")
            return

        if not isinstance(body, dict) or not body.get("client_id"):
            logger.warning("[REGISTER] Registration response has no client_id")
            return

        logger.info(f"[REGISTER] Got registered client: {body['client_id']}")
        registration.merge(body)
        if not registration.redirect_uri:
            registration.redirect_uris = list(template["redirect_uris"])
