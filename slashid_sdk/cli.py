"""CLI entrypoints for webhook and token operations."""

from __future__ import annotations

import argparse
import json
import sys
from collections.abc import Callable, Sequence
from typing import Any

import httpx
from pydantic import ValidationError

from slashid_sdk.client import SlashIdClient
from slashid_sdk.config import configure_structlog, get_settings
from slashid_sdk.exceptions import SDKError
from slashid_sdk.types import WebhookOptions


def _webhooks_list(client: SlashIdClient, args: argparse.Namespace) -> Any:
    del args
    return client.webhook.find_all()


def _webhooks_register(client: SlashIdClient, args: argparse.Namespace) -> Any:
    options: WebhookOptions = {}
    if args.description is not None:
        options["description"] = args.description
    if args.timeout is not None:
        options["timeout"] = args.timeout
    return client.webhook.register(args.url, args.name, args.trigger, options)


def _webhooks_delete(client: SlashIdClient, args: argparse.Namespace) -> Any:
    client.webhook.delete_by_url(args.url)
    return {"deleted": args.url}


def _webhooks_triggers(client: SlashIdClient, args: argparse.Namespace) -> Any:
    return client.webhook.get_triggers(args.webhook_id)


def _token_validate(client: SlashIdClient, args: argparse.Namespace) -> Any:
    return {"valid": client.token.validate(args.token)}


def _token_subject(client: SlashIdClient, args: argparse.Namespace) -> Any:
    return {"sub": client.token.extract_subject(args.token)}


_Handler = Callable[[SlashIdClient, argparse.Namespace], Any]


def _build_parser() -> argparse.ArgumentParser:
    """Build command-line parser for supported commands."""
    parser = argparse.ArgumentParser(prog="slashid")
    groups = parser.add_subparsers(dest="group", required=True)

    webhooks = groups.add_parser("webhooks").add_subparsers(dest="command", required=True)
    webhooks.add_parser("list").set_defaults(handler=_webhooks_list)

    register = webhooks.add_parser("register")
    register.add_argument("url")
    register.add_argument("name")
    register.add_argument(
        "--trigger", action="append", default=[], help="Trigger name; repeat for several."
    )
    register.add_argument("--description", default=None)
    register.add_argument("--timeout", default=None, help='Duration string, e.g. "30s".')
    register.set_defaults(handler=_webhooks_register)

    delete = webhooks.add_parser("delete")
    delete.add_argument("url")
    delete.set_defaults(handler=_webhooks_delete)

    triggers = webhooks.add_parser("triggers")
    triggers.add_argument("webhook_id")
    triggers.set_defaults(handler=_webhooks_triggers)

    token = groups.add_parser("token").add_subparsers(dest="command", required=True)
    for name, handler in (("validate", _token_validate), ("subject", _token_subject)):
        command = token.add_parser(name)
        command.add_argument("token")
        command.set_defaults(handler=handler)
    return parser


def main(argv: Sequence[str] | None = None, client: SlashIdClient | None = None) -> int:
    """Run CLI command."""
    parser = _build_parser()
    args = parser.parse_args(argv)
    handler: _Handler = args.handler

    try:
        if client is None:
            settings = get_settings()
            configure_structlog(settings)
            client = SlashIdClient.from_settings(settings)
        with client:
            result = handler(client, args)
    except (SDKError, httpx.HTTPError, ValidationError) as exc:
        print(json.dumps({"error": type(exc).__name__, "detail": str(exc)}), file=sys.stderr)
        return 1
    print(json.dumps(result))
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
