"""
blueprintmock Mock Server

FastAPI-based HTTP mock server that serves canned responses described in
API Blueprints.

Features:
- One route per blueprint action, CORS preflight routes
- Interactive response selection over a WebSocket control channel
- Happy-path mode that always serves the first response
- Admin API for routes, pending questions and metrics
"""

from __future__ import annotations  # Enable forward references for type hints

import time
from dataclasses import dataclass, field
from datetime import datetime
from typing import List, Dict, Any, Optional
import logging

from fastapi import FastAPI, Request, Response, WebSocket
from fastapi.responses import JSONResponse
import uvicorn

from .routes import RouteTable, RouteEntry, preflight
from .resolver import ResponseResolver
from .session import InteractiveSession

from ..common import BlueprintLoader
from ..model import API

# Statuses that must not carry a body
BODYLESS_STATUSES = {204, 304}


@dataclass
class MockConfig:
    """Configuration for mock server behavior."""

    # Blueprint source
    directory: str = "./api"
    drafter_path: Optional[str] = None
    strict_status: bool = False  # Fail the load on response names that are not status codes

    # Response behavior
    cors: bool = True  # Answer OPTIONS preflight requests
    stick_to_happy_path: bool = False  # Always serve the first response, never ask
    answer_timeout: Optional[float] = 30.0  # Seconds to wait for the control client (None = forever)
    fallback_status: int = 200

    # Server options
    host: str = "127.0.0.1"
    port: int = 3000
    log_level: str = "info"

    # Control channel
    control_path: str = "/ws"

    # Admin API
    admin_enabled: bool = True
    admin_prefix: str = "/__admin__"

    def __post_init__(self):
        if not 100 <= self.fallback_status <= 599:
            raise ValueError(f"fallback_status must be an HTTP status code (100-599), got {self.fallback_status}")
        if self.answer_timeout is not None and self.answer_timeout <= 0:
            raise ValueError(f"answer_timeout must be positive or None, got {self.answer_timeout}")


@dataclass
class MockMetrics:
    """Track mock server metrics."""

    total_requests: int = 0
    interactive_requests: int = 0
    answered_requests: int = 0  # Control client picked a declared variant
    fallback_statuses: int = 0
    preflight_requests: int = 0
    start_time: str = field(default_factory=lambda: datetime.now().isoformat())

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary."""
        uptime_seconds = (datetime.now() - datetime.fromisoformat(self.start_time)).total_seconds()
        return {
            'total_requests': self.total_requests,
            'interactive_requests': self.interactive_requests,
            'answered_requests': self.answered_requests,
            'fallback_statuses': self.fallback_statuses,
            'preflight_requests': self.preflight_requests,
            'uptime_seconds': round(uptime_seconds, 2),
            'start_time': self.start_time
        }


class MockServer:
    """
    FastAPI-based mock server for API Blueprints.

    Loads every blueprint in a directory and serves each action's example
    responses. When an action has several responses, the request waits
    while a control client connected to the WebSocket picks one.

    Example:
        # Load blueprints and start server
        server = MockServer('./api')
        server.start(port=3000)

        # Always serve the happy path
        config = MockConfig(stick_to_happy_path=True, cors=False)
        server = MockServer('./api', config=config)
        server.start()
    """

    def __init__(
        self,
        directory: Optional[str] = None,
        config: Optional[MockConfig] = None,
        apis: Optional[List[API]] = None,
        session: Optional[InteractiveSession] = None
    ):
        """
        Initialize mock server.

        Args:
            directory: Blueprint directory (overrides config.directory)
            config: Optional MockConfig for server behavior
            apis: Already loaded blueprints (skips loading from disk)
            session: Optional InteractiveSession instance (will create if None)

        Raises:
            BlueprintLoadError: If the blueprints cannot be loaded
        """
        self.config = config or MockConfig()
        if directory is not None:
            self.config.directory = directory
        self.metrics = MockMetrics()

        # Setup logging first (before loading blueprints)
        self.logger = logging.getLogger("blueprintmock.mock")
        self.logger.setLevel(getattr(logging, self.config.log_level.upper()))

        self.apis = apis if apis is not None else self._load_blueprints()

        self.session = session or InteractiveSession(answer_timeout=self.config.answer_timeout)
        self.resolver = ResponseResolver(
            session=self.session,
            stick_to_happy_path=self.config.stick_to_happy_path,
            fallback_status=self.config.fallback_status
        )
        self.routes = RouteTable(
            self.apis,
            cors=self.config.cors,
            stick_to_happy_path=self.config.stick_to_happy_path
        )

        # Setup FastAPI app
        self.app = self._create_app()

    def _load_blueprints(self) -> List[API]:
        """Load blueprints from the configured directory."""
        loader = BlueprintLoader(
            self.config.directory,
            drafter_path=self.config.drafter_path,
            strict_status=self.config.strict_status
        )
        apis = loader.load()
        for api in apis:
            self.logger.info(f"√ Read API {api.name or api.source} from {api.source}")
        return apis

    def _create_app(self) -> FastAPI:
        """Create FastAPI application with routes."""
        # Blueprint paths must not collide with generated docs routes
        app = FastAPI(
            title="blueprintmock",
            description="Mock HTTP server serving API Blueprint examples",
            version="1.0.0",
            docs_url=None,
            redoc_url=None,
            openapi_url=None
        )

        # Admin API routes
        if self.config.admin_enabled:
            @app.get(f"{self.config.admin_prefix}/metrics")
            async def get_metrics():
                """Get server metrics."""
                return JSONResponse(content={
                    **self.metrics.to_dict(),
                    'session': self.session.to_dict()
                })

            @app.get(f"{self.config.admin_prefix}/routes")
            async def list_routes():
                """List registered blueprint routes."""
                return JSONResponse(content={
                    'total': len(self.routes.entries),
                    'routes': self.routes.to_list(),
                    'preflight_paths': self.routes.preflight_paths
                })

            @app.get(f"{self.config.admin_prefix}/questions")
            async def list_questions():
                """List requests waiting for the control client."""
                pending = self.session.pending()
                return JSONResponse(content={
                    'total': len(pending),
                    'client_connected': self.session.client_connected,
                    'questions': pending
                })

            @app.get(f"{self.config.admin_prefix}/config")
            async def get_config():
                """Get current configuration."""
                return JSONResponse(content={
                    'directory': self.config.directory,
                    'cors': self.config.cors,
                    'stick_to_happy_path': self.config.stick_to_happy_path,
                    'answer_timeout': self.config.answer_timeout,
                    'fallback_status': self.config.fallback_status,
                    'control_path': self.config.control_path,
                    'total_apis': len(self.apis),
                    'total_routes': len(self.routes.entries)
                })

            @app.post(f"{self.config.admin_prefix}/reset")
            async def reset_metrics():
                """Reset metrics."""
                self.metrics = MockMetrics()
                return JSONResponse(content={'status': 'reset'})

        # Control channel for interactive response selection
        if not self.config.stick_to_happy_path:
            @app.websocket(self.config.control_path)
            async def control_channel(websocket: WebSocket):
                """Ask the connected client which response to serve."""
                await self.session.serve(websocket)

        self.routes.register(app, self._make_handler, self._handle_preflight)

        return app

    def _make_handler(self, entry: RouteEntry):
        """Bind a request handler to one route entry."""
        async def handler(request: Request) -> Response:
            return await self._handle_request(request, entry)

        return handler

    async def _handle_request(self, request: Request, entry: RouteEntry) -> Response:
        """
        Handle incoming request and serve the resolved response.

        Args:
            request: FastAPI Request object
            entry: Route entry the request matched

        Returns:
            FastAPI Response with the chosen variant
        """
        start_time = time.time()
        self.metrics.total_requests += 1

        uri = request.url.path
        self.logger.debug(f"Incoming: {request.method} {request.url}")

        resolved = await self.resolver.resolve(
            entry.resource,
            entry.responses,
            method=entry.method,
            uri=uri
        )

        if resolved.interactive:
            self.metrics.interactive_requests += 1
            if resolved.answer and resolved.variant.name == resolved.answer:
                self.metrics.answered_requests += 1
        if resolved.fallback_status:
            self.metrics.fallback_statuses += 1

        response = self._create_response(resolved.status, resolved.headers, resolved.body)

        elapsed_ms = (time.time() - start_time) * 1000
        self.logger.debug(f"{entry.method} {uri} -> {resolved.status} ({elapsed_ms:.1f}ms)")

        return response

    @staticmethod
    def _create_response(status: int, headers: Dict[str, str], body: str) -> Response:
        """
        Create FastAPI Response from a resolved variant.

        Content-Type comes from the declared headers; an undeclared one on a
        non-empty body defaults to text/plain.
        """
        if status < 200 or status in BODYLESS_STATUSES:
            body = ''

        return Response(
            content=body,
            status_code=status,
            headers=headers,
            media_type='text/plain' if body else None
        )

    async def _handle_preflight(self, request: Request) -> Response:
        self.metrics.preflight_requests += 1
        return await preflight(request)

    def start(
        self,
        host: Optional[str] = None,
        port: Optional[int] = None,
        access_log: bool = True
    ):
        """
        Start the mock server.

        Args:
            host: Host to bind to (overrides config)
            port: Port to bind to (overrides config)
            access_log: Enable access logging
        """
        actual_host = host or self.config.host
        actual_port = port or self.config.port

        print(f"🚀 blueprintmock starting...")
        print(f"   Host: {actual_host}:{actual_port}")
        print(f"   Blueprints loaded: {len(self.apis)}")
        print(f"   Routes: {len(self.routes.entries)}")

        if self.config.stick_to_happy_path:
            print(f"   Happy path only (no control channel)")
        else:
            print(f"   Control channel: ws://{actual_host}:{actual_port}{self.config.control_path}")

        if self.config.cors:
            print(f"   CORS preflight enabled")

        if self.config.admin_enabled:
            print(f"   Admin API: http://{actual_host}:{actual_port}{self.config.admin_prefix}/metrics")

        print()

        uvicorn.run(
            self.app,
            host=actual_host,
            port=actual_port,
            log_level=self.config.log_level,
            access_log=access_log
        )

    def get_app(self) -> FastAPI:
        """
        Get the FastAPI app instance for testing or custom deployment.

        Returns:
            FastAPI application instance
        """
        return self.app


def create_mock_server(
    directory: str = "./api",
    host: str = "127.0.0.1",
    port: int = 3000,
    cors: bool = True,
    stick_to_happy_path: bool = False,
    answer_timeout: Optional[float] = 30.0,
    fallback_status: int = 200,
    strict_status: bool = False,
    drafter_path: Optional[str] = None
) -> MockServer:
    """
    Convenience function to create and configure a mock server.

    Args:
        directory: Directory to load blueprints from
        host: Host to bind to
        port: Port to bind to
        cors: Answer CORS preflight requests
        stick_to_happy_path: Always serve the first response
        answer_timeout: Seconds to wait for the control client (None = forever)
        fallback_status: Status for response names that are not status codes
        strict_status: Reject such names at load time instead
        drafter_path: drafter executable for markdown blueprints

    Returns:
        Configured MockServer instance

    Example:
        server = create_mock_server('./api', port=3000, stick_to_happy_path=True)
        server.start()
    """
    config = MockConfig(
        directory=directory,
        host=host,
        port=port,
        cors=cors,
        stick_to_happy_path=stick_to_happy_path,
        answer_timeout=answer_timeout,
        fallback_status=fallback_status,
        strict_status=strict_status,
        drafter_path=drafter_path
    )

    return MockServer(config=config)
