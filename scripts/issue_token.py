"""Print a bearer token for local testing.

Usage:
    JWT_SECRET=... python scripts/issue_token.py --role manager --sub 42
"""
from __future__ import annotations
import argparse
import os
import sys
from pathlib import Path

SCRIPT_DIR = Path(__file__).parent
PROJECT_ROOT = SCRIPT_DIR.parent
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from erp_api.config.settings import parse_duration
from erp_api.core.models import UserRole
from erp_api.core.tokens import generate_token


def main(argv: list[str] | None = None) -> int:
    """Command-line entry point."""
    parser = argparse.ArgumentParser(description="Issue an HS256 bearer token")
    parser.add_argument("--sub", default="dev-user-id")
    parser.add_argument("--email", default="dev@example.com")
    parser.add_argument("--name", default="Development User")
    parser.add_argument("--role", choices=[role.value for role in UserRole], default=UserRole.USER.value)
    parser.add_argument("--expires-in", default=os.environ.get("JWT_EXPIRES_IN", "24h"))
    parser.add_argument("--secret", default=os.environ.get("JWT_SECRET"))
    args = parser.parse_args(argv)

    if not args.secret:
        parser.error("JWT_SECRET not set (use --secret or the environment)")

    token = generate_token(
        {"sub": args.sub, "email": args.email, "name": args.name, "role": args.role},
        args.secret,
        parse_duration(args.expires_in),
    )
    print(token)
    return 0


if __name__ == "__main__":
    sys.exit(main())
