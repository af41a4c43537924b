"""``roost hash-password``: hash a password for a ``UserStore`` record."""

import argparse
import getpass
import sys

from roost.security.passwords import hash_password


def run_hash_password(args: argparse.Namespace) -> None:
    if args.stdin:
        password = sys.stdin.readline().rstrip("\r\n")
    else:
        password = getpass.getpass("Password: ")
        if getpass.getpass("Password (again): ") != password:
            print("Error: passwords do not match", file=sys.stderr)
            raise SystemExit(1)
    try:
        print(hash_password(password))
    except ValueError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        raise SystemExit(1) from exc
