"""Token endpoint client: authorization code and refresh token grants."""

import base64
import logging
from dataclasses import dataclass, replace
from typing import Optional
from urllib.parse import quote

import httpx

from logging_config import redact
from oauth.errors import ExchangeError, RefreshError, TransportError
from oauth.jwt_utils import IdTokenClaims
from oauth.registration import ClientRegistration

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class TokenResponse:
    """Fields read from a successful token endpoint response."""

    access_token: str
    refresh_token: Optional[str] = None
    scope: Optional[str] = None
    id_token: Optional[str] = None

    @classmethod
    def from_json(cls, body: dict) -> "TokenResponse":
        return cls(
            access_token=body["access_token"],
            refresh_token=body.get("refresh_token") or None,
            scope=body.get("scope"),
            id_token=body.get("id_token") or None,
        )


@dataclass(frozen=True)
class TokenSet:
    """Tokens held by a session. Replaced as a whole, never edited in place."""

    access_token: str
    refresh_token: Optional[str] = None
    scope: Optional[str] = None
    id_token: Optional[IdTokenClaims] = None

    @classmethod
    def from_exchange(
        cls,
        response: TokenResponse,
        id_token: Optional[IdTokenClaims] = None,
        previous: Optional["TokenSet"] = None,
    ) -> "TokenSet":
        refresh_token = response.refresh_token
        if refresh_token is None and previous is not None:
            refresh_token = previous.refresh_token
        return cls(
            access_token=response.access_token,
            refresh_token=refresh_token,
            scope=response.scope,
            id_token=id_token,
        )

    def refreshed(self, response: TokenResponse) -> "TokenSet":
        """TokenSet after a refresh grant; keeps the old refresh token if none was issued."""
        return replace(
            self,
            access_token=response.access_token,
            refresh_token=response.refresh_token or self.refresh_token,
            scope=response.scope,
        )


def basic_auth_header(client_id: str, client_secret: str) -> str:
    """HTTP Basic credentials with form-encoded id and secret (RFC 6749 section 2.3.1)."""
    credentials = f"{quote(client_id or '', safe='')}:{quote(client_secret or '', safe='')}"
    return "Basic " + base64.b64encode(credentials.encode()).decode()


class TokenExchanger:
    """Talks to the token endpoint. Never retries; callers decide what to do on failure."""

    def __init__(self, token_endpoint: str, timeout: float = 10.0):
        self.token_endpoint = token_endpoint
        self.timeout = timeout

    async def _post(self, form: dict, headers: dict) -> httpx.Response:
        try:
            async with httpx.AsyncClient(timeout=self.timeout) as client:
                return await client.post(self.token_endpoint, data=form, headers=headers)
        except httpx.HTTPError as e:
            logger.error(f"[TOKEN] Request to {self.token_endpoint} failed: {e}")
            raise TransportError() from e

    @staticmethod
    def _parse(response: httpx.Response) -> TokenResponse:
        try:
            body = response.json()
        except ValueError:
            raise ExchangeError(response.status_code, "Token endpoint returned a malformed response.")

        if not isinstance(body, dict) or not body.get("access_token"):
            raise ExchangeError(response.status_code, "Token endpoint response has no access token.")
        return TokenResponse.from_json(body)

    async def exchange_code(self, code: str, registration: ClientRegistration) -> TokenResponse:
        """Exchange an authorization code for tokens.

        The redirect_uri sent here is the same one used in the authorization
        request; servers reject the exchange if they differ.

        Raises:
            ExchangeError: Non-2xx status, or a body without an access token
            TransportError: The token endpoint could not be reached
        """
        form = {
            "grant_type": "authorization_code",
            "code": code,
            "redirect_uri": registration.redirect_uri,
        }
        headers = {
            "Content-Type": "application/x-www-form-urlencoded",
            "Authorization": basic_auth_header(registration.client_id, registration.client_secret),
        }

        logger.info(f"[TOKEN] Requesting access token for code {redact(code)}")
        response = await self._post(form, headers)

        if not 200 <= response.status_code < 300:
            logger.warning(f"[TOKEN] Token endpoint returned {response.status_code}")
            raise ExchangeError(response.status_code)

        tokens = self._parse(response)
        logger.info(f"[TOKEN] Got access token: {redact(tokens.access_token)}")
        if tokens.refresh_token:
            logger.info(f"[TOKEN] Got refresh token: {redact(tokens.refresh_token)}")
        logger.info(f"[TOKEN] Got scope: {tokens.scope}")
        return tokens

    async def refresh(self, refresh_token: str, registration: ClientRegistration) -> TokenResponse:
        """Use a refresh token to get a new access token.

        Raises:
            RefreshError: The server rejected the refresh token
            TransportError: The token endpoint could not be reached
        """
        form = {
            "grant_type": "refresh_token",
            "refresh_token": refresh_token,
            "client_id": registration.client_id,
            "client_secret": registration.client_secret,
        }
        headers = {"Content-Type": "application/x-www-form-urlencoded"}

        logger.info(f"[TOKEN] Refreshing token {redact(refresh_token)}")
        response = await self._post(form, headers)

        if not 200 <= response.status_code < 300:
            logger.warning(f"[TOKEN] Refresh rejected with status {response.status_code}")
            raise RefreshError(response.status_code)

        try:
            tokens = self._parse(response)
        except ExchangeError as e:
            raise RefreshError(response.status_code) from e

        logger.info(f"[TOKEN] Got refreshed access token: {redact(tokens.access_token)}")
        return tokens
