"""OIDC Reference Client - web application.

This app runs the client side of the OAuth 2.0 authorization code flow:
- Sends the user to the authorization server (/authorize)
- Exchanges the returned code for tokens and verifies the ID token (/callback)
- Uses and refreshes the access token (/fetch_resource, /refresh)

The authorization server and protected resource are separate services,
configured in oauth-config.json.
"""
import logging
import os
from pathlib import Path

from dotenv import load_dotenv
from fastapi import FastAPI

from config import Config, load_config
from logging_config import setup_logging
from oauth.endpoints import init_oauth_routes, oauth_error_handler, router as oauth_router
from oauth.errors import OAuthClientError

VERSION = "1.0.0"

logger = logging.getLogger(__name__)


def load_environment() -> None:
    """Load .env from the working directory if present."""
    env_file = Path(".env")
    if env_file.exists():
        load_dotenv(env_file)


def create_app(config: Config) -> FastAPI:
    """Build the client app for the given configuration."""
    config.validate()

    app = FastAPI(
        title="OIDC Reference Client",
        description="OAuth 2.0 authorization code client with OpenID Connect ID token verification",
        version=VERSION,
    )

    init_oauth_routes(config)
    app.include_router(oauth_router)
    app.add_exception_handler(OAuthClientError, oauth_error_handler)

    @app.get("/health")
    async def health_check():
        """Health check endpoint."""
        return {"status": "healthy", "service": "oidc-client", "version": VERSION}

    logger.info(f"[STARTUP] Authorization endpoint: {config.authorization_endpoint}")
    logger.info(f"[STARTUP] Token endpoint: {config.token_endpoint}")
    logger.info(f"[STARTUP] Issuer: {config.issuer}")
    return app


# ============== Main Entry Point ==============

if __name__ == "__main__":
    import uvicorn

    load_environment()
    setup_logging()
    config = load_config()
    host = os.getenv("CLIENT_HOST", "localhost")
    port = config.port("client")
    logger.info(f"OAuth Client is listening at http://{host}:{port}")
    uvicorn.run(create_app(config), host=host, port=port)
