"""Register (or update) the Api4Com webhook integration pointing at this gateway."""
from __future__ import annotations

import argparse
import pathlib
import sys

ROOT = pathlib.Path(__file__).resolve().parents[2]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from backend.gateway import create_app
from backend.gateway.providers import Api4ComClient, ProviderError


def _parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description=__doc__)
    parser.add_argument("--gateway", help="Integration gateway name (defaults to API4COM_GATEWAY_NAME)")
    parser.add_argument("--url", help="Callback URL (defaults to WEBHOOK_URL)")
    return parser.parse_args(argv)


def register(client: Api4ComClient, gateway: str, webhook_url: str) -> int:
    """Register the webhook and report the outcome; returns a process exit code."""

    try:
        payload, existing_id = client.register_webhook(gateway, webhook_url)
    except ProviderError as exc:
        print(f"Failed to configure integration: {exc.payload or exc.message}", file=sys.stderr)
        return 1

    if existing_id:
        print(f"Existing integration {existing_id} updated")
    else:
        print("New integration created")
    print(f"Payload: {payload}")
    print(f"Webhook URL configured: {webhook_url}")
    return 0


def main(argv: list[str] | None = None) -> int:
    args = _parse_args(argv)
    app = create_app()
    with app.app_context():
        client: Api4ComClient | None = app.extensions.get("api4com")
        if client is None:
            print("Api4Com API is disabled (ENABLE_API4COM_API=false)", file=sys.stderr)
            return 1
        gateway = args.gateway or app.config["API4COM_GATEWAY_NAME"]
        webhook_url = args.url or app.config["API4COM_WEBHOOK_URL"]
        return register(client, gateway, webhook_url)


if __name__ == "__main__":
    raise SystemExit(main())
