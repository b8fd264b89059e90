"""Test utilities for nsoap applications.

Provides an in-process ASGI test client::

    from nsoap.testing import TestClient
"""

from nsoap.testing.client import StreamResult, TestClient

__all__ = [
    "StreamResult",
    "TestClient",
]
