"""``lynx routes`` — list registered routes.

Prints METHOD, PATH, HANDLER, NAME and an API marker for every route
layer, in dispatch order.
"""

import argparse
import sys

from lynx.cli._resolve import resolve_app


def run_routes(args: argparse.Namespace) -> None:
    try:
        app = resolve_app(args.app)
    except (ModuleNotFoundError, AttributeError, TypeError) as exc:
        print(f"Error: {exc}", file=sys.stderr)
        raise SystemExit(1) from exc

    layers = app.router.routes
    if not layers:
        print("No routes registered.")
        return

    rows: list[tuple[str, str, str, str, str]] = []
    for layer in layers:
        route = layer.route
        handler = f"{type(layer.owner).__name__}.{route.method_name}" if route else "?"
        name = (route.name if route else None) or ""
        api = "api" if route is not None and route.is_api else ""
        rows.append((layer.method or "*", layer.path, handler, name, api))

    headers = ("METHOD", "PATH", "HANDLER", "NAME", "")
    widths = [max(len(h), *(len(r[i]) for r in rows)) for i, h in enumerate(headers)]
    fmt = "  ".join(f"{{:<{w}}}" for w in widths)
    print(fmt.format(*headers).rstrip())
    print("-" * min(sum(widths) + 2 * (len(widths) - 1), 80))
    for row in rows:
        print(fmt.format(*row).rstrip())
