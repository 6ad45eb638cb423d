"""
blueprintmock Mock Server Module

Mock HTTP server functionality for serving API Blueprint examples.

This module provides:
- FastAPI-based mock server
- Route table derived from blueprints
- Response resolver with happy-path and interactive modes
- Interactive session for the WebSocket control client
"""

from .server import MockServer, MockConfig, MockMetrics, create_mock_server
from .routes import RouteTable, RouteEntry, Endpoint
from .resolver import ResponseResolver, ResolvedResponse
from .session import InteractiveSession, Question

__all__ = [
    # Server
    'MockServer',
    'MockConfig',
    'MockMetrics',
    'create_mock_server',

    # Routes
    'RouteTable',
    'RouteEntry',
    'Endpoint',

    # Resolver
    'ResponseResolver',
    'ResolvedResponse',

    # Session
    'InteractiveSession',
    'Question',
]
