"""Middleware: class-based path mounts and pipeline wrappers.

- ``BaseMiddleware`` + ``@middleware(path)``: mounted in the layer stack,
  sees the ``ResponseWriter``, may stop the chain with ``BLOCK_CHAIN``.
- Pipeline middleware (``SessionMiddleware``, ``CORSMiddleware``,
  ``StaticFiles``): wraps the whole stack, sees the wire ``Response``.
"""

from lynx.middlewares.auth import UserAuthMiddleware
from lynx.middlewares.base import BLOCK_CHAIN, BaseMiddleware
from lynx.middlewares.cors import CORSMiddleware
from lynx.middlewares.protocol import Middleware, Next
from lynx.middlewares.sessions import SessionConfig, SessionMiddleware, get_session
from lynx.middlewares.static import StaticFiles

__all__ = [
    "BLOCK_CHAIN",
    "BaseMiddleware",
    "CORSMiddleware",
    "Middleware",
    "Next",
    "SessionConfig",
    "SessionMiddleware",
    "StaticFiles",
    "UserAuthMiddleware",
    "get_session",
]
