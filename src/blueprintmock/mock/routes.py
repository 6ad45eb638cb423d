"""
blueprintmock Route Table

Derives the HTTP routes of the mock API from loaded blueprints: one route per
(URI template, method) and, with CORS enabled, one OPTIONS preflight route per
template.
"""

import logging
from dataclasses import dataclass
from typing import List, Dict, Any, Callable, Tuple

from fastapi import FastAPI, Request, Response

from ..common import URITemplate
from ..model import API, Resource, Action, Example, Payload

logger = logging.getLogger("blueprintmock.routes")


@dataclass(frozen=True)
class Endpoint:
    """Identifies one registered route."""

    uri_template: str
    method: str


@dataclass(frozen=True)
class RouteEntry:
    """A route bound to the blueprint action it serves."""

    endpoint: Endpoint
    path: str
    resource: Resource
    action: Action
    example: Example
    source: str = ""
    interactive: bool = False

    @property
    def method(self) -> str:
        return self.endpoint.method

    @property
    def responses(self) -> Tuple[Payload, ...]:
        return self.example.responses

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary."""
        return {
            'method': self.method,
            'uri_template': self.endpoint.uri_template,
            'path': self.path,
            'resource': self.resource.name,
            'action': self.action.name,
            'responses': [r.name for r in self.responses],
            'interactive': self.interactive,
            'source': self.source
        }


class RouteTable:
    """
    Route table built once at startup from the description model.

    Example:
        table = RouteTable(apis, cors=True)
        table.register(app, make_handler, preflight)
    """

    def __init__(self, apis: List[API], cors: bool = True, stick_to_happy_path: bool = False):
        """
        Initialize route table.

        Args:
            apis: Loaded blueprints
            cors: Register OPTIONS preflight routes
            stick_to_happy_path: Never ask the control client (affects 'interactive' flag only)
        """
        self.cors = cors
        self.stick_to_happy_path = stick_to_happy_path
        self.entries: List[RouteEntry] = []
        self.preflight_paths: List[str] = []
        self._build(apis)

    def _build(self, apis: List[API]):
        seen = set()

        for api in apis:
            for resource in api.iter_resources():
                path = URITemplate.to_route_path(resource.uri_template)

                for action in resource.actions:
                    for example in action.examples:
                        if not example.responses:
                            logger.warning(
                                f"Skipping example '{example.name}' of {action.method} "
                                f"{resource.uri_template}: no responses"
                            )
                            continue

                        key = (path, action.method)
                        if key in seen:
                            logger.debug(f"{action.method} {path} already registered, skipping duplicate example")
                            continue
                        seen.add(key)

                        self.entries.append(RouteEntry(
                            endpoint=Endpoint(resource.uri_template, action.method),
                            path=path,
                            resource=resource,
                            action=action,
                            example=example,
                            source=api.source,
                            interactive=len(example.responses) > 1 and not self.stick_to_happy_path
                        ))
                        logger.info(f"{action.method} {resource.uri_template}")

                        if self.cors and path not in self.preflight_paths:
                            self.preflight_paths.append(path)

    def register(
        self,
        app: FastAPI,
        handler_factory: Callable[[RouteEntry], Callable],
        preflight_handler: Callable
    ):
        """
        Register every route on the app.

        Action routes go first so a blueprint's own OPTIONS action wins over
        the generated preflight.
        """
        for entry in self.entries:
            app.add_api_route(
                entry.path,
                handler_factory(entry),
                methods=[entry.method],
                include_in_schema=False
            )

        for path in self.preflight_paths:
            app.add_api_route(
                path,
                preflight_handler,
                methods=["OPTIONS"],
                include_in_schema=False
            )

    def to_list(self) -> List[Dict[str, Any]]:
        return [entry.to_dict() for entry in self.entries]


async def preflight(request: Request) -> Response:
    """Answer a CORS preflight by echoing the requested headers."""
    return Response(
        status_code=201,
        headers={
            'Access-Control-Allow-Origin': '*',
            'Access-Control-Allow-Headers': request.headers.get('access-control-request-headers', '')
        }
    )
