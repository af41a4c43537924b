"""``roost routes``: print the site's route table in dispatch order."""

import argparse
import sys

from roost.cli._resolve import resolve_site


def run_routes(args: argparse.Namespace) -> None:
    """Resolve ``args.site`` and print NAME, PATH, and VIEW columns."""
    try:
        site = resolve_site(args.site)
    except (ModuleNotFoundError, AttributeError, TypeError) as exc:
        print(f"Error: {exc}", file=sys.stderr)
        raise SystemExit(1) from exc

    rows = [
        (route.name, route.template, getattr(route.handler, "__name__", str(route.handler)))
        for route in site.routes
    ]

    width_name = max(max(len(r[0]) for r in rows), 4)
    width_path = max(max(len(r[1]) for r in rows), 4)

    fmt = f"{{:<{width_name}}}  {{:<{width_path}}}  {{}}"
    print(fmt.format("NAME", "PATH", "VIEW"))
    sep_len = width_name + width_path + 4 + max(len(r[2]) for r in rows)
    print("-" * min(sep_len, 80))
    for name, path, view in rows:
        print(fmt.format(name, path, view))
