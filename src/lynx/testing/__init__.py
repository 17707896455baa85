"""Test utilities for lynx applications::

    from lynx.testing import TestClient
"""

from lynx.testing.client import TestClient

__all__ = ["TestClient"]
