"""``lynx run`` — serve an app with pounce."""

import argparse
import sys

from lynx.cli._resolve import resolve_app


def run_server(args: argparse.Namespace) -> None:
    """Resolve ``args.app`` and serve it (reload with ``--reload`` or debug)."""
    try:
        app = resolve_app(args.app)
    except (ModuleNotFoundError, AttributeError, TypeError) as exc:
        print(f"Error: {exc}", file=sys.stderr)
        raise SystemExit(1) from exc

    from lynx.server.dev import run_server as serve

    app._ensure_frozen()
    serve(
        app,
        args.host or app.config.host,
        args.port or app.config.port,
        reload=args.reload or app.config.debug,
        app_path=args.app,
    )
