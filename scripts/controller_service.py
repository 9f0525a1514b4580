"""Command line access to controller service updates and verification.

Usage::

    python -m scripts.controller_service --base-url https://nifi:8443 \
        --service-id <id> verify
"""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
import sys

from controller_sync import ControllerServiceEditor, ControllerSyncConfig, ControllerSyncError
from controller_sync.const import BULLETIN_LEVELS

_LOGGER = logging.getLogger(__name__)


def _parse_property(raw: str) -> tuple[str, str]:
    key, sep, value = raw.partition("=")
    if not sep or not key.strip():
        raise argparse.ArgumentTypeError(f"expected KEY=VALUE, got {raw!r}")
    return key.strip(), value


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Update and verify a controller service")
    parser.add_argument("--base-url", required=True, help="Backend base URL")
    parser.add_argument("--service-id", required=True, help="Controller service identifier")
    parser.add_argument("--token", help="Bearer token sent with every request")
    parser.add_argument("--timeout", type=float, default=30.0, help="Per-request timeout in seconds")
    parser.add_argument("--max-retries", type=int, default=3, help="Conflict retries after the first attempt")
    parser.add_argument("--insecure", action="store_true", help="Skip TLS certificate verification")
    parser.add_argument("--log-level", default="INFO", help="Logging level")

    sub = parser.add_subparsers(dest="command", required=True)
    sub.add_parser("show", help="Print the current service configuration")

    update = sub.add_parser("update", help="Change settings, retrying revision conflicts")
    update.add_argument("--comments", help="New comments")
    update.add_argument("--bulletin-level", choices=BULLETIN_LEVELS, help="New bulletin level")
    update.add_argument(
        "--property",
        dest="properties",
        action="append",
        type=_parse_property,
        default=[],
        metavar="KEY=VALUE",
        help="Property override; may be repeated",
    )

    sub.add_parser("enable", help="Enable the service")
    sub.add_parser("disable", help="Disable the service")
    sub.add_parser("references", help="List components that reference the service")
    sub.add_parser("verify", help="Run a configuration verification and print the results")
    return parser


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    return build_parser().parse_args(argv)


async def run_command(editor: ControllerServiceEditor, args: argparse.Namespace) -> int:
    await editor.async_load()

    if args.command == "show":
        print(json.dumps(editor.details, indent=2, sort_keys=True))
        return 0

    if args.command == "update":
        properties = dict(args.properties) if args.properties else None
        ok = await editor.apply_update(
            bulletin_level=args.bulletin_level,
            comments=args.comments,
            properties=properties,
        )
        if not ok:
            print(editor.last_update_error, file=sys.stderr)
            return 1
        print(f"Updated {editor.name} ({editor.orchestrator.last_attempts} attempt(s))")
        return 0

    if args.command == "references":
        refs = await editor.async_references()
        if not refs:
            print(f"{editor.name} has no referencing components")
        for ref in refs:
            print(f"{ref.name} ({ref.type or 'UNKNOWN'}): {ref.state or 'UNKNOWN'}")
        return 0

    if args.command in {"enable", "disable"}:
        ok = await editor.set_enabled(args.command == "enable")
        if not ok:
            print(editor.last_update_error, file=sys.stderr)
            return 1
        print(f"{editor.name}: {editor.state}")
        return 0

    await editor.start_verification()
    if editor.last_verification_error:
        print(editor.last_verification_error, file=sys.stderr)
        return 1
    print(editor.format_verification_results())
    return 0


async def main_async(args: argparse.Namespace) -> int:
    logging.basicConfig(level=getattr(logging, args.log_level.upper(), logging.INFO))
    try:
        config = ControllerSyncConfig.from_options(
            {
                "base_url": args.base_url,
                "access_token": args.token,
                "verify_ssl": not args.insecure,
                "request_timeout": args.timeout,
                "max_retries": args.max_retries,
            }
        )
        editor = ControllerServiceEditor.from_config(config, args.service_id)
    except ControllerSyncError as err:
        print(f"error: {err}", file=sys.stderr)
        return 1

    try:
        return await run_command(editor, args)
    except ControllerSyncError as err:
        print(f"error: {err}", file=sys.stderr)
        return 1
    finally:
        await editor.async_close()


def main(argv: list[str] | None = None) -> int:
    args = parse_args(argv)
    try:
        return asyncio.run(main_async(args))
    except KeyboardInterrupt:  # pragma: no cover - manual interruption
        _LOGGER.info("Interrupted")
        return 130


if __name__ == "__main__":
    sys.exit(main())
