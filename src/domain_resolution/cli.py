"""
Command-line interface for the domain resolution system.

This module provides the main CLI entry point with commands for:
- resolve: Resolve a domain into addresses and ownership metadata
- address: Look up one currency address of a domain
- reverse: Find the domain registered for an address
- record: Read resolver records of a domain
- supported: Check whether a domain is supported

Results are printed as JSON on stdout; logs go to stderr.
"""

import argparse
import asyncio
import json
import sys
from dataclasses import replace
from pathlib import Path
from typing import Awaitable, Callable, Optional

from dotenv import load_dotenv

from . import __version__
from .audit_logger import AuditLogger
from .config import (
    ResolutionConfig,
    apply_env_overrides,
    create_default_config,
    load_config_from_file,
)
from .dispatcher import ResolutionDispatcher
from .enums import LogLevel
from .exceptions import DomainResolutionError


def load_config(config_path: Optional[str]) -> Optional[ResolutionConfig]:
    """
    Load configuration from a file or defaults, then apply the environment.

    Returns:
        The configuration, or None if the given file could not be loaded
    """
    if config_path:
        config = load_config_from_file(Path(config_path))
        if config is None:
            print(f"Error: Could not load config from {config_path}", file=sys.stderr)
            return None
    else:
        config = create_default_config()
    return apply_env_overrides(config)


def create_logger(config: ResolutionConfig, verbose: bool) -> AuditLogger:
    logging_config = config.logging
    if verbose:
        logging_config = replace(logging_config, level=LogLevel.DEBUG.value)
    return AuditLogger.from_config(logging_config)


def print_json(value) -> None:
    print(json.dumps(value, indent=2, ensure_ascii=False))


async def run_with_dispatcher(
    args: argparse.Namespace,
    action: Callable[[ResolutionDispatcher], Awaitable[int]],
) -> int:
    """
    Build a dispatcher from the CLI configuration and run one action on it.

    Resolution, transport and configuration failures are printed as JSON
    and produce exit code 1.
    """
    config = load_config(args.config)
    if config is None:
        return 1

    try:
        logger = create_logger(config, args.verbose)
        async with ResolutionDispatcher.from_config(config, logger=logger) as dispatcher:
            return await action(dispatcher)
    except DomainResolutionError as e:
        print_json({"error": e.to_dict()})
        return 1
    except ValueError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1


def cmd_resolve(args: argparse.Namespace) -> int:
    """Execute the resolve command."""
    async def action(dispatcher: ResolutionDispatcher) -> int:
        resolution = await dispatcher.resolve(args.domain)
        print_json(resolution.to_dict())
        return 0

    return asyncio.run(run_with_dispatcher(args, action))


def cmd_address(args: argparse.Namespace) -> int:
    """Execute the address command."""
    async def action(dispatcher: ResolutionDispatcher) -> int:
        address = await dispatcher.address_or_throw(args.domain, args.ticker)
        print_json({"domain": args.domain, "ticker": args.ticker.upper(), "address": address})
        return 0

    return asyncio.run(run_with_dispatcher(args, action))


def cmd_reverse(args: argparse.Namespace) -> int:
    """Execute the reverse command."""
    async def action(dispatcher: ResolutionDispatcher) -> int:
        domain = await dispatcher.reverse(args.address, args.ticker)
        print_json({"address": args.address, "domain": domain})
        return 0 if domain else 1

    return asyncio.run(run_with_dispatcher(args, action))


def cmd_record(args: argparse.Namespace) -> int:
    """Execute the record command."""
    async def action(dispatcher: ResolutionDispatcher) -> int:
        if len(args.keys) == 1:
            value = await dispatcher.record(args.domain, args.keys[0])
            print_json({args.keys[0]: value})
            return 0
        values = await dispatcher.records(args.domain, args.keys)
        print_json(values)
        return 0 if any(values.values()) else 1

    return asyncio.run(run_with_dispatcher(args, action))


def cmd_supported(args: argparse.Namespace) -> int:
    """Execute the supported command."""
    async def action(dispatcher: ResolutionDispatcher) -> int:
        supported = dispatcher.is_supported_domain(args.domain)
        print_json({
            "domain": args.domain,
            "supported": supported,
            "supported_in_network": dispatcher.is_supported_domain_in_network(args.domain),
        })
        return 0 if supported else 1

    return asyncio.run(run_with_dispatcher(args, action))


def create_parser() -> argparse.ArgumentParser:
    """Create the argument parser."""
    parser = argparse.ArgumentParser(
        prog="domain-resolution",
        description="Resolve blockchain domains (ENS, CNS, ZNS) into addresses",
    )
    parser.add_argument(
        "--version",
        action="version",
        version=f"%(prog)s {__version__}",
    )
    parser.add_argument(
        "-c", "--config",
        help="Path to a JSON configuration file",
    )
    parser.add_argument(
        "-v", "--verbose",
        action="store_true",
        help="Log every contract call",
    )

    subparsers = parser.add_subparsers(dest="command", help="Commands")

    resolve_parser = subparsers.add_parser("resolve", help="Resolve a domain")
    resolve_parser.add_argument("domain", help="Domain to resolve (e.g., brad.crypto)")
    resolve_parser.set_defaults(func=cmd_resolve)

    address_parser = subparsers.add_parser("address", help="Look up a currency address")
    address_parser.add_argument("domain", help="Domain to resolve")
    address_parser.add_argument("ticker", help="Currency ticker (e.g., ETH, ZIL, BTC)")
    address_parser.set_defaults(func=cmd_address)

    reverse_parser = subparsers.add_parser("reverse", help="Find the domain of an address")
    reverse_parser.add_argument("address", help="0x-prefixed address")
    reverse_parser.add_argument(
        "--ticker",
        default="ETH",
        help="Currency of the address (default: ETH)",
    )
    reverse_parser.set_defaults(func=cmd_reverse)

    record_parser = subparsers.add_parser("record", help="Read resolver records")
    record_parser.add_argument("domain", help="Domain to read")
    record_parser.add_argument("keys", nargs="+", help="Record keys (e.g., ipfs.html.value)")
    record_parser.set_defaults(func=cmd_record)

    supported_parser = subparsers.add_parser("supported", help="Check domain support")
    supported_parser.add_argument("domain", help="Domain to check")
    supported_parser.set_defaults(func=cmd_supported)

    return parser


def main(argv: Optional[list[str]] = None) -> int:
    """Main entry point."""
    load_dotenv()
    parser = create_parser()
    args = parser.parse_args(argv)

    if not getattr(args, "func", None):
        parser.print_help()
        return 0

    return args.func(args)


if __name__ == "__main__":
    sys.exit(main())
