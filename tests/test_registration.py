"""Tests for dynamic client registration."""

from __future__ import annotations

import json

import httpx
import pytest
import respx

from oauth.registration import ClientRegistrar, ClientRegistration

REGISTRATION_ENDPOINT = "http://auth.example/register"


def _unregistered() -> ClientRegistration:
    return ClientRegistration.from_dict({
        "client_id": "",
        "client_secret": "",
        "redirect_uris": ["http://localhost:9000/callback"],
        "scope": "openid profile email",
        "baseUrl": "http://localhost:9000",
    })


@pytest.mark.asyncio
@respx.mock
async def test_register_merges_server_response():
    route = respx.post(REGISTRATION_ENDPOINT).respond(
        201, json={"client_id": "abc", "client_secret": "xyz", "client_id_issued_at": 1700000000}
    )
    registration = _unregistered()

    await ClientRegistrar(REGISTRATION_ENDPOINT).register_if_needed(registration)

    assert route.called is True
    assert registration.client_id == "abc"
    assert registration.client_secret == "xyz"
    assert registration.extra["client_id_issued_at"] == 1700000000
    assert registration.redirect_uris == ["http://localhost:9000/callback"]


@pytest.mark.asyncio
@respx.mock
async def test_registration_request_body():
    route = respx.post(REGISTRATION_ENDPOINT).respond(201, json={"client_id": "abc"})

    await ClientRegistrar(REGISTRATION_ENDPOINT).register_if_needed(_unregistered())

    request = route.calls.last.request
    body = json.loads(request.content)
    assert request.headers["Content-Type"] == "application/json"
    assert request.headers["Accept"] == "application/json"
    assert body["client_uri"] == "http://localhost:9000/"
    assert body["redirect_uris"] == ["http://localhost:9000/callback"]
    assert body["grant_types"] == ["authorization_code"]
    assert body["response_types"] == ["code"]
    assert body["token_endpoint_auth_method"] == "secret_basic"
    assert body["scope"] == "openid profile email address phone"


@pytest.mark.asyncio
@respx.mock
async def test_server_redirect_uris_take_precedence():
    respx.post(REGISTRATION_ENDPOINT).respond(
        201, json={"client_id": "abc", "redirect_uris": ["http://localhost:9000/cb2"]}
    )
    registration = _unregistered()

    await ClientRegistrar(REGISTRATION_ENDPOINT).register_if_needed(registration)

    assert registration.redirect_uri == "http://localhost:9000/cb2"


@pytest.mark.asyncio
@respx.mock
async def test_rejected_registration_leaves_client_id_unset():
    respx.post(REGISTRATION_ENDPOINT).respond(400, json={"error": "invalid_client_metadata"})
    registration = _unregistered()

    await ClientRegistrar(REGISTRATION_ENDPOINT).register_if_needed(registration)

    assert not registration.client_id


@pytest.mark.asyncio
@respx.mock
async def test_malformed_body_leaves_client_id_unset():
    respx.post(REGISTRATION_ENDPOINT).respond(201, text="not json")
    registration = _unregistered()

    await ClientRegistrar(REGISTRATION_ENDPOINT).register_if_needed(registration)

    assert not registration.client_id


@pytest.mark.asyncio
@respx.mock
async def test_body_without_client_id_is_ignored():
    respx.post(REGISTRATION_ENDPOINT).respond(201, json={"client_secret": "xyz"})
    registration = _unregistered()

    await ClientRegistrar(REGISTRATION_ENDPOINT).register_if_needed(registration)

    assert not registration.client_id
    assert not registration.client_secret


@pytest.mark.asyncio
@respx.mock
async def test_transport_error_leaves_client_id_unset():
    respx.post(REGISTRATION_ENDPOINT).mock(side_effect=httpx.ConnectError("refused"))
    registration = _unregistered()

    await ClientRegistrar(REGISTRATION_ENDPOINT).register_if_needed(registration)

    assert not registration.client_id


@pytest.mark.asyncio
async def test_configured_client_is_not_registered():
    registration = ClientRegistration(client_id="existing", client_secret="s")

    with respx.mock(assert_all_called=False) as router:
        route = router.post(REGISTRATION_ENDPOINT).respond(201, json={"client_id": "abc"})
        await ClientRegistrar(REGISTRATION_ENDPOINT).register_if_needed(registration)

    assert route.called is False
    assert registration.client_id == "existing"


@pytest.mark.asyncio
@respx.mock
async def test_requested_redirect_uri_kept_when_server_omits_it():
    respx.post(REGISTRATION_ENDPOINT).respond(201, json={"client_id": "abc"})
    registration = ClientRegistration.from_dict({"baseUrl": "http://localhost:9000"})

    await ClientRegistrar(REGISTRATION_ENDPOINT).register_if_needed(registration)

    assert registration.redirect_uri == "http://localhost:9000/callback"
