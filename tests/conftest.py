"""Shared fixtures: RSA keys, ID tokens and a client configuration."""

from __future__ import annotations

import json
import time

import jwt as pyjwt
import pytest
from cryptography.hazmat.primitives.asymmetric import rsa
from jwt.algorithms import RSAAlgorithm

from config import Config

ISSUER = "http://auth.example/"
CLIENT_ID = "client123"
CLIENT_SECRET = "secret456"
AUTHORIZATION_ENDPOINT = "http://auth.example/authorize"
TOKEN_ENDPOINT = "http://auth.example/token"
REGISTRATION_ENDPOINT = "http://auth.example/register"
RESOURCE_ENDPOINT = "http://resource.example/resource"


@pytest.fixture(scope="session")
def signing_key():
    return rsa.generate_private_key(public_exponent=65537, key_size=2048)


@pytest.fixture(scope="session")
def other_signing_key():
    return rsa.generate_private_key(public_exponent=65537, key_size=2048)


@pytest.fixture(scope="session")
def public_jwk(signing_key) -> dict:
    jwk = json.loads(RSAAlgorithm.to_jwk(signing_key.public_key()))
    jwk.update({"kid": "authserver", "alg": "RS256"})
    return jwk


@pytest.fixture
def make_id_token(signing_key):
    def _make(key=None, **overrides) -> str:
        now = int(time.time())
        payload = {
            "iss": ISSUER,
            "sub": "9XE3-JI34-00132A",
            "aud": CLIENT_ID,
            "iat": now - 10,
            "exp": now + 300,
        }
        payload.update(overrides)
        payload = {k: v for k, v in payload.items() if v is not None}
        return pyjwt.encode(payload, key or signing_key, algorithm="RS256")

    return _make


@pytest.fixture
def config_data(public_jwk) -> dict:
    return {
        "authServer": {
            "issuer": ISSUER,
            "baseUrl": "http://auth.example",
            "port": 9001,
            "endpoints": {
                "authorization": AUTHORIZATION_ENDPOINT,
                "token": TOKEN_ENDPOINT,
                "registration": REGISTRATION_ENDPOINT,
            },
        },
        "rsaKey": {"public": public_jwk},
        "clients": [
            {
                "client_id": CLIENT_ID,
                "client_secret": CLIENT_SECRET,
                "redirect_uris": ["http://localhost:9000/callback"],
                "scope": "openid profile email",
                "baseUrl": "http://localhost:9000",
                "port": 9000,
            }
        ],
        "protectedResource": {"port": 9002, "endpoints": {"resource": RESOURCE_ENDPOINT}},
        "scopes": {"openid": "Identity", "profile": "Profile", "email": "Email"},
    }


@pytest.fixture
def config(config_data) -> Config:
    return Config(config_data)
