"""Roost CLI: route listing and password hashing.

Entry point registered as ``roost`` in ``pyproject.toml``::

    [project.scripts]
    roost = "roost.cli:main"
"""

import argparse
import sys


def main(argv: list[str] | None = None) -> None:
    """CLI entry point for the ``roost`` command."""
    parser = argparse.ArgumentParser(
        prog="roost",
        description="Roost: an admin panel for dataclass models.",
    )
    subparsers = parser.add_subparsers(dest="command")

    # -- roost routes -----------------------------------------------------
    routes_parser = subparsers.add_parser("routes", help="List the admin route table")
    routes_parser.add_argument(
        "site",
        help="Import string for an AdminSite or AdminApp (e.g. myproject.admin:site)",
    )

    # -- roost hash-password ----------------------------------------------
    hash_parser = subparsers.add_parser("hash-password", help="Print an argon2 hash for a password")
    hash_parser.add_argument(
        "--stdin",
        action="store_true",
        help="Read the password from stdin instead of prompting",
    )

    args = parser.parse_args(argv)

    if args.command is None:
        parser.print_help()
        sys.exit(0)

    if args.command == "routes":
        from roost.cli._routes import run_routes

        run_routes(args)
    elif args.command == "hash-password":
        from roost.cli._hashpassword import run_hash_password

        run_hash_password(args)
