"""CLI entry point for the OIDC reference client.

Runs the client web app locally and optionally opens the browser at
/authorize to start a login.
"""
import argparse
import json
import logging
import os
import sys
import threading
import webbrowser

import uvicorn

from config import ConfigError, load_config
from logging_config import setup_logging
from main import VERSION, create_app, load_environment

logger = logging.getLogger(__name__)


# ============== Commands ==============

def cmd_start(config_path: str = None, open_browser: bool = False) -> int:
    """Start the client web app."""
    setup_logging()
    try:
        config = load_config(config_path)
        app = create_app(config)
    except ConfigError as e:
        print(f"[X] {e}", file=sys.stderr)
        return 1

    host = os.getenv("CLIENT_HOST", "localhost")
    port = config.port("client")
    logger.info(f"OAuth Client is listening at http://{host}:{port}")

    if open_browser:
        url = f"http://{host}:{port}/authorize"
        # Give uvicorn a moment to bind before the browser hits it
        threading.Timer(1.0, webbrowser.open, args=(url,)).start()

    uvicorn.run(app, host=host, port=port)
    return 0


def cmd_config(config_path: str = None) -> int:
    """Print the endpoints and client this app would use."""
    try:
        config = load_config(config_path)
    except ConfigError as e:
        print(f"[X] {e}", file=sys.stderr)
        return 1

    client = config.client
    print(json.dumps({
        "issuer": config.issuer,
        "authorization_endpoint": config.authorization_endpoint,
        "token_endpoint": config.token_endpoint,
        "registration_endpoint": config.registration_endpoint,
        "client": {
            "client_id": client.get("client_id") or None,
            "redirect_uris": client.get("redirect_uris", []),
            "scope": client.get("scope"),
        },
        "port": config.port("client"),
    }, indent=2))
    return 0


def cmd_version() -> int:
    """Show version."""
    print(f"oidc-client v{VERSION}")
    return 0


# ============== Main Entry Point ==============

def main(argv=None) -> int:
    """Main entry point for CLI."""
    load_environment()

    parser = argparse.ArgumentParser(
        prog="oidc-client",
        description="OIDC Reference Client - OAuth 2.0 authorization code flow",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Commands:
  start     Start the client web app (default)
  config    Show the configured endpoints and client
  version   Show version

Examples:
  oidc-client start --open
  oidc-client config --config ./oauth-config.json
"""
    )

    parser.add_argument(
        "command",
        nargs="?",
        default="start",
        choices=["start", "config", "version"],
        help="Command to run (default: start)"
    )
    parser.add_argument("--config", dest="config_path", help="Path to oauth-config.json")
    parser.add_argument("--open", dest="open_browser", action="store_true",
                        help="Open the browser at /authorize after starting")

    args = parser.parse_args(argv)

    if args.command == "start":
        return cmd_start(args.config_path, args.open_browser)
    elif args.command == "config":
        return cmd_config(args.config_path)
    return cmd_version()


if __name__ == "__main__":
    sys.exit(main())
