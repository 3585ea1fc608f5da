"""
interfaces/cli.py
──────────────────────────────────────────────────────────────────────────────
Command-line interface for the CEP customer registry.

Usage:
  # Serve the HTTP API
  python -m cep_registry.interfaces.cli serve --port 8000

  # Resolve one postal code through the configured lookup service
  python -m cep_registry.interfaces.cli lookup 01310-100

  # JSON output
  python -m cep_registry.interfaces.cli lookup 01310100 --json

  # List stored customers
  python -m cep_registry.interfaces.cli list

  # Via installed entry-point (pyproject.toml [project.scripts])
  cep-registry lookup 01310-100

Exit codes:
  0 — success
  1 — classified or fatal error (not found, lookup down, DB, etc.)
  2 — argument error
"""
from __future__ import annotations

import argparse
import json
import logging
import sys

from cep_registry.config.settings import get_settings
from cep_registry.domain import mapping
from cep_registry.domain.exceptions import CustomerRegistryError
from cep_registry.services.container import close_customer_service, get_customer_service
from cep_registry.services.error_classifier import classify, log_failure

logger = logging.getLogger(__name__)

LOG_FORMAT = "%(asctime)s  %(levelname)-8s  %(name)s  %(message)s"


# ── Argument parser ────────────────────────────────────────────────────────

def _build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(
        prog="cep-registry",
        description="Customer registry with addresses resolved from the CEP.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    p.add_argument(
        "--verbose", "-v",
        action="store_true",
        help="Enable debug logging.",
    )
    sub = p.add_subparsers(dest="command", metavar="COMMAND")

    serve = sub.add_parser("serve", help="Run the HTTP API with uvicorn.")
    serve.add_argument("--host", default=None, help="Bind address. (default: API_HOST)")
    serve.add_argument("--port", type=int, default=None, help="Bind port. (default: API_PORT)")

    lookup = sub.add_parser("lookup", help="Resolve a postal code to an address.")
    lookup.add_argument("postal_code", metavar="CEP", help="Postal code, punctuation allowed.")
    lookup.add_argument("--json", action="store_true", dest="json_output",
                        help="Output the address as JSON.")

    listing = sub.add_parser("list", help="List stored customers ordered by name.")
    listing.add_argument("--json", action="store_true", dest="json_output",
                         help="Output customers as JSON.")
    return p


# ── Formatting helpers ─────────────────────────────────────────────────────

def _print_address_text(address) -> None:
    print(f"\n{'─' * 60}")
    print(f"CEP      : {address.postal_code}")
    print(f"Street   : {address.street}")
    if address.complement:
        print(f"Extra    : {address.complement}")
    if address.district:
        print(f"District : {address.district}")
    print(f"City     : {address.city}/{address.region}")
    print(f"{'─' * 60}\n")


def _print_customers_text(customers) -> None:
    if not customers:
        print("No customers.")
        return
    for c in customers:
        print(f"  #{c.id:<5} {c.name:<30} {c.email:<30} {c.postal_code}  {c.city or '—'}/{c.region or '—'}")


def _print_error(error: CustomerRegistryError) -> None:
    envelope = classify(error, expose_details=not get_settings().is_production)
    body = envelope.to_dict()
    print(f"ERROR [{body['type']}]: {body['message']}", file=sys.stderr)
    if "details" in body:
        print(f"       {body['details']}", file=sys.stderr)


# ── Commands ───────────────────────────────────────────────────────────────

def _serve(args: argparse.Namespace) -> int:
    import uvicorn

    settings = get_settings()
    uvicorn.run(
        "cep_registry.interfaces.api:app",
        host=args.host or settings.api_host,
        port=args.port or settings.api_port,
        log_level=settings.log_level.lower(),
    )
    return 0


def _lookup(args: argparse.Namespace) -> int:
    address = get_customer_service().resolve_address(args.postal_code)
    if args.json_output:
        print(json.dumps(address.model_dump(mode="json"), indent=2, ensure_ascii=False))
    else:
        _print_address_text(address)
    return 0


def _list(args: argparse.Namespace) -> int:
    customers = get_customer_service().list_customers()
    if args.json_output:
        payload = [r.to_dict() for r in mapping.to_responses(customers)]
        print(json.dumps(payload, indent=2, ensure_ascii=False))
    else:
        _print_customers_text(customers)
    return 0


_COMMANDS = {
    "serve": _serve,
    "lookup": _lookup,
    "list": _list,
}


def run(args: argparse.Namespace) -> int:
    """Execute the selected command.

    Returns:
        Exit code (0 = success, 1 = error).
    """
    try:
        return _COMMANDS[args.command](args)
    except CustomerRegistryError as exc:
        log_failure(exc, f"command {args.command}")
        _print_error(exc)
        return 1
    except Exception as exc:
        logger.exception("Command %r failed", args.command)
        print(f"ERROR: {exc}", file=sys.stderr)
        return 1


def main() -> None:
    """Entry point for the cep-registry console script."""
    parser = _build_parser()
    args = parser.parse_args()

    log_level = logging.DEBUG if args.verbose else get_settings().log_level.upper()
    logging.basicConfig(level=log_level, format=LOG_FORMAT)

    if not args.command:
        parser.print_help()
        sys.exit(2)

    try:
        code = run(args)
    finally:
        close_customer_service()
    sys.exit(code)


if __name__ == "__main__":
    main()
