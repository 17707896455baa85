"""Serve a lynx App with pounce.

Pounce's ``run()`` takes an import string, but we hold a live ``App``
object, so ``pounce.Server`` is driven directly with the ASGI callable.
"""


def run_server(
    app: object,
    host: str,
    port: int,
    *,
    reload: bool = False,
    app_path: str | None = None,
) -> None:
    """Start a single-worker pounce server.

    Args:
        app: ASGI callable (lynx App instance).
        host: Bind host address.
        port: Bind port number.
        reload: Restart on file changes (development).
        app_path: Optional ``"module:attribute"`` import string, so a
            reload picks up code changes from disk.
    """
    from pounce.config import ServerConfig
    from pounce.server import Server

    config = ServerConfig(
        host=host,
        port=port,
        workers=1,
        reload=reload,
    )
    server = Server(config, app, app_path=app_path)
    server.run()
