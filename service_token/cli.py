#!/usr/bin/env python3
"""
Command line entry point for the bank token service.

    bank-token                # run the HTTP service (default)
    bank-token issue          # print a fresh token
    bank-token call           # issue a token and call the sandbox info endpoint
    bank-token verify TOKEN   # verify a token against the configured key
"""

import argparse
import json
import sys
from typing import List, Optional

from shared.logging import configure_logging
from service_token.app.client import BankApiClient
from service_token.app.config import TokenServiceConfig
from service_token.app.engine import TokenEngine
from service_token.app.errors import TokenServiceError


def _parse_args(argv: Optional[List[str]]) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Issue and verify bank API bearer tokens.")
    parser.add_argument(
        "--key",
        action="append",
        dest="keys",
        help="Private key location (file path, resource:<pkg>/<name> or env:<VAR>); repeatable",
    )
    sub = parser.add_subparsers(dest="command")
    sub.add_parser("serve", help="Run the HTTP token service (default)")
    sub.add_parser("issue", help="Print a freshly signed token")
    sub.add_parser("call", help="Issue a token and call /api/bank-sample/info")
    verify = sub.add_parser("verify", help="Verify a token")
    verify.add_argument("token")
    verify.add_argument("--issuer", default=None)
    verify.add_argument("--audience", default=None)
    return parser.parse_args(argv)


def main(argv: Optional[List[str]] = None) -> int:
    args = _parse_args(argv)
    overrides = {"private_key_locations": args.keys} if args.keys else {}
    config = TokenServiceConfig(**overrides)
    configure_logging("token", config.log_level)

    if args.command in (None, "serve"):
        from service_token.app.main import TokenService
        TokenService(config).run()
        return 0

    try:
        engine = TokenEngine.from_config(config)
    except TokenServiceError as e:
        print(f"Error: {e.message}", file=sys.stderr)
        return 1

    if args.command == "issue":
        print(engine.issue_token())
        return 0

    if args.command == "call":
        with BankApiClient(engine) as client:
            print(json.dumps(client.sample_info(), indent=2))
        return 0

    result = engine.verify_token(args.token, args.issuer, args.audience)
    print(json.dumps({
        "valid": result.valid,
        "failure_kind": result.failure_kind.value if result.failure_kind else None,
        "message": result.message,
        "claims": result.claims,
    }, indent=2))
    return 0 if result.valid else 1


if __name__ == "__main__":
    sys.exit(main())
