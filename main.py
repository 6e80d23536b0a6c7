#!/usr/bin/env python3
"""
Account Service -- operator command line.

Usage:
  python main.py serve
  python main.py serve --host 0.0.0.0 --port 8080
  python main.py issue-token --email admin@example.com --audience admin
  python main.py issue-token --email ada@example.com

Admin-audience tokens are never issued over HTTP. issue-token is the only way
to mint one: it looks the account up in the user directory and signs its
name and email with the requested audience's secret.

Environment variables (see core/config.py):
  USER_TOKEN_SECRET, ADMIN_TOKEN_SECRET   Signing secrets (32+ chars, distinct).
  DATABASE_URL                            SQLAlchemy URL of the user directory.
  DEBUG                                   true = generate missing secrets.
"""

import argparse
import logging
import sys
from typing import Optional

from auth.models import Audience, TokenClaims
from auth.store import UserStore
from auth.tokens import TokenSigner
from core.config import Settings, get_settings

logger = logging.getLogger("accounts.cli")


def _serve(args: argparse.Namespace, settings: Settings) -> int:
    import uvicorn

    from api.main import create_app

    uvicorn.run(create_app(settings), host=args.host, port=args.port, log_level=settings.log_level.lower())
    return 0


def _issue_token(args: argparse.Namespace, settings: Settings) -> int:
    store = UserStore(settings.database_url)
    try:
        user = store.get_by_email(args.email)
    finally:
        store.close()
    if user is None:
        print(f"  [!] No user registered with email '{args.email}'.", file=sys.stderr)
        return 1

    signer = TokenSigner(
        user_secret=settings.user_token_secret,
        admin_secret=settings.admin_token_secret,
        expire_seconds=settings.token_expire_seconds,
    )
    audience = Audience(args.audience)
    token = signer.issue(TokenClaims(name=user.name, email=user.email), audience)
    logger.info("Issued %s token for user %s", audience.value, user.id)
    print(token)
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="accounts",
        description="Account service: HTTP server and token tooling.",
    )
    sub = parser.add_subparsers(dest="command", required=True)

    serve = sub.add_parser("serve", help="Run the HTTP API with uvicorn.")
    serve.add_argument("--host", default="127.0.0.1")
    serve.add_argument("--port", type=int, default=8000)
    serve.set_defaults(handler=_serve)

    issue = sub.add_parser("issue-token", help="Print a signed token for a registered user.")
    issue.add_argument("--email", required=True, help="Email of a registered user.")
    issue.add_argument(
        "--audience",
        choices=[a.value for a in Audience],
        default=Audience.USER.value,
        help="Token audience (default: user).",
    )
    issue.set_defaults(handler=_issue_token)
    return parser


def main(argv: Optional[list[str]] = None, settings: Optional[Settings] = None) -> int:
    args = build_parser().parse_args(argv)
    settings = settings or get_settings()
    logging.basicConfig(
        level=settings.log_level.upper(),
        format="%(asctime)s %(levelname)-5s %(name)s %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )
    return args.handler(args, settings)


if __name__ == "__main__":
    sys.exit(main())
