"""Config management for the OIDC reference client.

Settings come from a JSON file (``oauth-config.json`` next to the working
directory, or ``OAUTH_CONFIG_PATH``). Ports can be overridden from the
environment.
"""
import json
import os
from pathlib import Path
from typing import Optional

from oauth.jwt_utils import load_verification_key


CONFIG_FILE = Path("oauth-config.json")

# Client entry used when the config lists several
DEFAULT_CLIENT = "oauth-client-1"

DEFAULT_PORTS = {"auth": 9001, "client": 9000, "resource": 9002}
PORT_ENV = {
    "auth": "AUTH_SERVER_PORT",
    "client": "CLIENT_PORT",
    "resource": "RESOURCE_SERVER_PORT",
}


class ConfigError(Exception):
    """Configuration file missing, unreadable or incomplete."""


class Config:
    """Read-only view over the OAuth configuration."""

    def __init__(self, data: dict = None, client_name: str = DEFAULT_CLIENT):
        self.data = data or {}
        self.client_name = client_name
        self._verification_key = None

    # Authorization server

    @property
    def auth_server(self) -> dict:
        return self.data.get("authServer", {})

    @property
    def auth_server_endpoints(self) -> dict:
        return self.auth_server.get("endpoints", {})

    @property
    def authorization_endpoint(self) -> Optional[str]:
        return self.auth_server_endpoints.get("authorization")

    @property
    def token_endpoint(self) -> Optional[str]:
        return self.auth_server_endpoints.get("token")

    @property
    def registration_endpoint(self) -> Optional[str]:
        return self.auth_server_endpoints.get("registration")

    @property
    def issuer(self) -> Optional[str]:
        return self.auth_server.get("issuer")

    @property
    def verification_key(self):
        """The server's RSA public key, parsed on first access and cached."""
        if self._verification_key is None:
            material = self.data.get("rsaKey", {}).get("public")
            if not material:
                raise ConfigError("rsaKey.public is not configured")
            try:
                self._verification_key = load_verification_key(material)
            except ValueError as e:
                raise ConfigError(f"Invalid rsaKey.public: {e}") from e
        return self._verification_key

    # Client

    @property
    def clients(self) -> list:
        return self.data.get("clients", [])

    @property
    def client(self) -> dict:
        """Copy of the configured client record (empty if none matches)."""
        for client in self.clients:
            if client.get("client_id") == self.client_name:
                return dict(client)
        return dict(self.clients[0]) if self.clients else {}

    # Protected resource

    @property
    def protected_resource_endpoints(self) -> dict:
        return self.data.get("protectedResource", {}).get("endpoints", {})

    @property
    def scopes(self) -> dict:
        return self.data.get("scopes", {})

    def port(self, component: str) -> int:
        if component not in DEFAULT_PORTS:
            raise ValueError(f"Unknown component: {component}")

        env_port = os.getenv(PORT_ENV[component])
        if env_port:
            return int(env_port)

        if component == "auth":
            configured = self.auth_server.get("port")
        elif component == "client":
            configured = self.client.get("port")
        else:
            configured = self.data.get("protectedResource", {}).get("port")
        return int(configured or DEFAULT_PORTS[component])

    def jwks(self) -> dict:
        public_key = self.data.get("rsaKey", {}).get("public")
        return {"keys": [public_key] if isinstance(public_key, dict) else []}

    def discovery_document(self) -> dict:
        """Authorization server metadata in the RFC 8414 shape."""
        endpoints = self.auth_server_endpoints
        return {
            "issuer": self.issuer,
            "authorization_endpoint": endpoints.get("authorization"),
            "token_endpoint": endpoints.get("token"),
            "userinfo_endpoint": endpoints.get("userInfo"),
            "jwks_uri": f"{self.auth_server.get('baseUrl', '')}/.well-known/jwks.json",
            "registration_endpoint": endpoints.get("registration"),
            "introspection_endpoint": endpoints.get("introspection"),
            "revocation_endpoint": endpoints.get("revocation"),
            "scopes_supported": list(self.scopes.keys()),
            "response_types_supported": ["code", "token"],
            "grant_types_supported": ["authorization_code", "implicit", "refresh_token", "client_credentials"],
            "token_endpoint_auth_methods_supported": ["client_secret_basic", "client_secret_post"],
            "subject_types_supported": ["public"],
            "id_token_signing_alg_values_supported": ["RS256"],
        }

    def validate(self) -> None:
        """Raise ConfigError if anything the login flow needs is missing."""
        missing = [
            name for name, value in (
                ("authServer.issuer", self.issuer),
                ("authServer.endpoints.authorization", self.authorization_endpoint),
                ("authServer.endpoints.token", self.token_endpoint),
            ) if not value
        ]
        if not self.clients:
            missing.append("clients")
        elif self.client.get("client_id") and not (self.client.get("redirect_uris") or [None])[0]:
            # Clients without a client_id get their redirect URI from registration
            missing.append("clients[].redirect_uris")
        if missing:
            raise ConfigError(f"Missing configuration: {', '.join(missing)}")
        # Parse the key now so a bad one fails at startup
        self.verification_key


def load_config(path: Path = None) -> Config:
    """Load config from file."""
    path = Path(path or os.getenv("OAUTH_CONFIG_PATH") or CONFIG_FILE)
    if not path.exists():
        raise ConfigError(f"Config file not found: {path}")

    try:
        with open(path, "r") as f:
            data = json.load(f)
    except (json.JSONDecodeError, IOError) as e:
        raise ConfigError(f"Failed to load OAuth configuration: {e}") from e

    return Config(data)
