from __future__ import annotations

import argparse
import logging
import sys
from typing import Sequence

import httpx

from xads import __version__
from xads.auth import auth_status, describe_failure, run_auth
from xads.config import DEFAULT_ENV_FILE, Settings
from xads.errors import XAdsError


REAUTH_HINT = 'Authentication failed. Run "x-ads auth" to re-authenticate.'


def _report(exc: BaseException) -> None:
    for line in describe_failure(exc):
        print(line, file=sys.stderr)


def cmd_login(settings: Settings, args: argparse.Namespace) -> int:
    try:
        run_auth(settings)
    except (XAdsError, httpx.HTTPError, OSError) as exc:
        _report(exc)
        return 1
    return 0


def cmd_status(settings: Settings, args: argparse.Namespace) -> int:
    try:
        auth_status(settings, account_id=getattr(args, "account_id", None))
    except (XAdsError, httpx.HTTPError, OSError) as exc:
        _report(exc)
        print(REAUTH_HINT, file=sys.stderr)
        return 1
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="x-ads", description="CLI tool for managing X (Twitter) ad campaigns")
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    parser.add_argument("--env-file", default=DEFAULT_ENV_FILE, help="credential file to read and update (default: .env)")
    parser.add_argument("-v", "--verbose", action="store_true", help="log requests and OAuth state changes")
    commands = parser.add_subparsers(dest="command", required=True)

    auth = commands.add_parser("auth", help="Authenticate with X (OAuth 1.0a)")
    auth.set_defaults(handler=cmd_login)
    auth_commands = auth.add_subparsers(dest="auth_command")

    login = auth_commands.add_parser("login", help="Run OAuth 1.0a 3-legged flow to obtain access tokens")
    login.set_defaults(handler=cmd_login)

    status = auth_commands.add_parser("status", help="Verify tokens work and list accessible ad accounts")
    status.add_argument("--account-id", default=None, help="ad account to highlight (default: X_AD_ACCOUNT_ID)")
    status.set_defaults(handler=cmd_status)
    return parser


def configure_logging(settings: Settings, verbose: bool) -> None:
    level = logging.INFO if verbose else getattr(logging, settings.log_level, logging.WARNING)
    logging.basicConfig(level=level, format="%(asctime)s %(levelname)s %(message)s")


def main(argv: Sequence[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    settings = Settings.from_env(args.env_file)
    configure_logging(settings, args.verbose)
    try:
        return args.handler(settings, args)
    except KeyboardInterrupt:
        print("Interrupted.", file=sys.stderr)
        return 130


if __name__ == "__main__":
    sys.exit(main())
