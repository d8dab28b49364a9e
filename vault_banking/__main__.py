"""
Command line entry point

    python -m vault_banking serve [--host HOST] [--port PORT] [--reload]
    python -m vault_banking reset-admin-password --email EMAIL --password PASSWORD
    python -m vault_banking create-admin --first-name F --last-name L --phone P --email E --password PW
"""

import argparse
import sys
from typing import List, Optional

from .accounts import AccountRole
from .config import get_config
from .exceptions import BankingError
from .logging_config import setup_logging
from .system import BankingSystem


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="vault_banking",
        description="Vault banking backend"
    )
    commands = parser.add_subparsers(dest="command", required=True)

    serve = commands.add_parser("serve", help="Run the HTTP API")
    serve.add_argument("--host", type=str, default=None, help="Bind address (default: VAULT_API_HOST)")
    serve.add_argument("--port", type=int, default=None, help="Port (default: VAULT_API_PORT)")
    serve.add_argument("--reload", action="store_true", help="Reload on code changes")

    reset = commands.add_parser("reset-admin-password", help="Overwrite an account's password")
    reset.add_argument("--email", type=str, required=True)
    reset.add_argument("--password", type=str, required=True)

    admin = commands.add_parser("create-admin", help="Register an administrator account")
    admin.add_argument("--first-name", type=str, required=True)
    admin.add_argument("--last-name", type=str, required=True)
    admin.add_argument("--phone", type=str, required=True)
    admin.add_argument("--email", type=str, required=True)
    admin.add_argument("--password", type=str, required=True)

    return parser


def main(argv: Optional[List[str]] = None, system: Optional[BankingSystem] = None) -> int:
    """Main entry point."""
    args = build_parser().parse_args(argv)
    config = get_config()
    setup_logging(config.log_level, config.log_format)

    if args.command == "serve":
        from .api import run_server
        run_server(
            host=args.host or config.api_host,
            port=args.port or config.api_port,
            debug=args.reload
        )
        return 0

    owns_system = system is None
    system = system or BankingSystem(config)
    try:
        if args.command == "reset-admin-password":
            account = system.identity.set_password(args.email, args.password)
            print(f"Password updated for {account.email}")
        else:
            account = system.identity.register(
                first_name=args.first_name,
                last_name=args.last_name,
                phone=args.phone,
                email=args.email,
                secret=args.password,
                role=AccountRole.ADMIN
            )
            print(f"Admin created: {account.email} (account {account.account_number})")
    except BankingError as e:
        print(f"Error: {e.message}", file=sys.stderr)
        return 1
    finally:
        if owns_system:
            system.close()
    return 0


if __name__ == "__main__":
    sys.exit(main())
