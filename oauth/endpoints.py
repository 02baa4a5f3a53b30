"""OAuth client endpoints.

This module contains the browser-facing side of the client:
- Home page with the current session's tokens (/)
- Start of the authorization code flow (/authorize)
- Redirect target of the authorization server (/callback)
- Protected resource access and token refresh (/fetch_resource, /refresh)
- Configuration overview (/config)
"""

import asyncio
import html
import json
import logging
import os
from typing import Optional

import httpx
from fastapi import APIRouter, Request
from fastapi.responses import HTMLResponse, JSONResponse, RedirectResponse

from config import Config
from logging_config import redact
from oauth.authorize import build_authorization_url
from oauth.errors import (
    OAuthClientError,
    RefreshError,
    RegistrationError,
    StateMismatchError,
    TokenValidationError,
    TransportError,
)
from oauth.jwt_utils import IdTokenVerifier
from oauth.registration import ClientRegistrar, ClientRegistration
from oauth.stores import SessionState, SessionStore
from oauth.templates import DATA_PAGE, ERROR_PAGE, INDEX_PAGE
from oauth.tokens import TokenExchanger, TokenSet

logger = logging.getLogger(__name__)

SESSION_COOKIE = "oidc_client_session"

# Router for OAuth client endpoints
router = APIRouter(tags=["oauth"])

# These will be set by init_oauth_routes()
_config: Optional[Config] = None
_client: Optional[ClientRegistration] = None
_registrar: Optional[ClientRegistrar] = None
_exchanger: Optional[TokenExchanger] = None
_sessions: Optional[SessionStore] = None
_registration_lock: Optional[asyncio.Lock] = None
_http_timeout: float = 10.0
_leeway: int = 0


def init_oauth_routes(config: Config, sessions: SessionStore = None):
    """Initialize OAuth routes with the loaded configuration.

    Must be called before including the router in the app.
    """
    global _config, _client, _registrar, _exchanger, _sessions, _registration_lock
    global _http_timeout, _leeway
    _http_timeout = float(os.getenv("HTTP_TIMEOUT", "10"))
    _leeway = int(os.getenv("ID_TOKEN_LEEWAY", "0"))
    _config = config
    _client = ClientRegistration.from_dict(config.client)
    _registrar = ClientRegistrar(config.registration_endpoint, timeout=_http_timeout)
    _exchanger = TokenExchanger(config.token_endpoint, timeout=_http_timeout)
    _sessions = sessions if sessions is not None else SessionStore()
    _registration_lock = asyncio.Lock()


def get_client() -> Optional[ClientRegistration]:
    return _client


def get_sessions() -> Optional[SessionStore]:
    return _sessions


# ============== Rendering ==============

def render_error(message: str, status_code: int = 400) -> HTMLResponse:
    return HTMLResponse(ERROR_PAGE.format(error=html.escape(message)), status_code=status_code)


def render_index(session: Optional[SessionState]) -> HTMLResponse:
    def show(value) -> str:
        return html.escape(str(value)) if value else "NONE"

    id_token = session.id_token if session else None
    return HTMLResponse(INDEX_PAGE.format(
        access_token=show(session.access_token if session else None),
        refresh_token=show(session.refresh_token if session else None),
        scope=show(session.scope if session else None),
        id_token_subject=show(id_token.sub if id_token else None),
        id_token_issuer=show(id_token.iss if id_token else None),
    ))


def _current_session(request: Request) -> Optional[SessionState]:
    return _sessions.get(request.cookies.get(SESSION_COOKIE))


def _set_session_cookie(response, session: SessionState) -> None:
    response.set_cookie(
        SESSION_COOKIE,
        session.session_id,
        httponly=True,
        samesite="lax",
        secure=_client.base_url.startswith("https://"),
    )


# ============== Home ==============

@router.get("/")
async def index(request: Request):
    """Show the tokens held by this browser session."""
    return render_index(_current_session(request))


# ============== Authorization Flow ==============

@router.get("/authorize")
async def authorize(request: Request):
    """Start a new authorization: reset the session, register if needed, redirect.

    A new session is only stored once the redirect is ready, so failed
    attempts leave nothing behind in the session store.
    """
    session = _sessions.get(request.cookies.get(SESSION_COOKIE))
    is_new = session is None
    if is_new:
        session = SessionState()

    async with session.lock:
        session.reset()

        # Concurrent first requests share a single registration
        async with _registration_lock:
            await _registrar.register_if_needed(_client)
        if not _client.client_id:
            raise RegistrationError()
        if not _client.redirect_uri:
            logger.error("[AUTHORIZE] Client has no redirect URI")
            raise RegistrationError("Client has no redirect URI.")

        state = session.state.issue()
        authorize_url = build_authorization_url(_config.authorization_endpoint, {
            "response_type": "code",
            "scope": _client.scope,
            "client_id": _client.client_id,
            "redirect_uri": _client.redirect_uri,
            "state": state,
        })

    if is_new:
        _sessions.add(session)

    logger.info(f"[AUTHORIZE] Redirecting to {authorize_url}")
    response = RedirectResponse(url=authorize_url, status_code=302)
    _set_session_cookie(response, session)
    return response


@router.get("/callback")
async def callback(request: Request, code: str = "", state: str = "", error: str = ""):
    """Authorization server redirect target: check state, exchange code, verify ID token."""
    if error:
        logger.info(f"[CALLBACK] Authorization server returned error: {error}")
        return render_error(error)

    session = _current_session(request)
    if session is None:
        logger.warning("[CALLBACK] No session for callback")
        raise StateMismatchError()

    id_token_error = None
    async with session.lock:
        if not session.state.validate(state):
            raise StateMismatchError()

        if not code:
            return render_error("No authorization code returned.")

        tokens = await _exchanger.exchange_code(code, _client)

        claims = None
        if tokens.id_token:
            logger.info(f"[CALLBACK] Got ID token: {redact(tokens.id_token, keep=12)}")
            verifier = IdTokenVerifier(
                _config.verification_key,
                _config.issuer,
                _client.client_id,
                leeway=_leeway,
            )
            try:
                claims = verifier.verify(tokens.id_token)
            except TokenValidationError as e:
                id_token_error = e

        session.apply(TokenSet.from_exchange(tokens, claims, previous=session.tokens))

    if id_token_error is not None:
        raise id_token_error

    return render_index(session)


# ============== Refresh ==============

async def _refresh_session(session: SessionState) -> bool:
    """Refresh the session's access token. Clears the tokens if the server refuses."""
    async with session.lock:
        if not session.refresh_token:
            return False
        try:
            response = await _exchanger.refresh(session.refresh_token, _client)
        except RefreshError:
            logger.info("[TOKEN] Refresh failed, asking the user to get a new access token")
            session.apply(None)
            return False
        session.apply(session.tokens.refreshed(response))
    return True


@router.get("/refresh")
async def refresh(request: Request):
    """Refresh the access token, or restart the flow if that is not possible."""
    session = _current_session(request)
    if session is None or not await _refresh_session(session):
        return RedirectResponse(url="/authorize", status_code=302)
    return RedirectResponse(url="/", status_code=302)


# ============== Protected Resource ==============

@router.get("/fetch_resource")
async def fetch_resource(request: Request, retried: str = ""):
    """Call the protected resource with the session's access token."""
    session = _current_session(request)

    if session is None or not session.access_token:
        if session is not None and session.refresh_token:
            if await _refresh_session(session):
                return RedirectResponse(url="/fetch_resource?retried=1", status_code=302)
            return RedirectResponse(url="/authorize", status_code=302)
        return render_error("Missing access token.")

    resource_url = _config.protected_resource_endpoints.get("resource")
    if not resource_url:
        return render_error("No protected resource configured.", status_code=500)

    logger.info(f"[RESOURCE] Making request with access token {redact(session.access_token)}")
    try:
        async with httpx.AsyncClient(timeout=_http_timeout) as client:
            response = await client.post(
                resource_url,
                headers={"Authorization": f"Bearer {session.access_token}"},
            )
    except httpx.HTTPError as e:
        logger.error(f"[RESOURCE] Request to {resource_url} failed: {e}")
        raise TransportError("Unable to reach the protected resource.") from e

    if 200 <= response.status_code < 300:
        try:
            resource = json.dumps(response.json(), indent=2)
        except ValueError:
            resource = response.text
        return HTMLResponse(DATA_PAGE.format(resource=html.escape(resource)))

    if response.status_code == 401 and session.refresh_token and not retried:
        logger.info("[RESOURCE] Access token rejected, trying refresh")
        if await _refresh_session(session):
            return RedirectResponse(url="/fetch_resource?retried=1", status_code=302)
        return RedirectResponse(url="/authorize", status_code=302)

    return render_error(f"Server returned response code: {response.status_code}", status_code=502)


# ============== Configuration ==============

@router.get("/config")
async def config_overview():
    """Authorization server metadata, keys, scopes and endpoints this client uses."""
    return JSONResponse({
        "discovery": _config.discovery_document(),
        "jwks": _config.jwks(),
        "scopes": _config.scopes,
        "endpoints": {
            "auth": _config.auth_server_endpoints,
            "resource": _config.protected_resource_endpoints,
        },
    })


async def oauth_error_handler(request: Request, exc: OAuthClientError):
    """Render any OAuthClientError as the error page."""
    logger.info(f"[ERROR] {type(exc).__name__}: {exc}")
    return render_error(exc.user_message, status_code=exc.status_code)
