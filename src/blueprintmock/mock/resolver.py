"""
blueprintmock Response Resolver

Picks the response variant to serve for a request and renders its status,
headers and body.
"""

import logging
from dataclasses import dataclass, field
from typing import Dict, Any, Optional, Sequence, Tuple

from ..model import Payload, Resource
from .session import InteractiveSession

# Headers the server computes itself
HEADERS_TO_SKIP = {'content-length', 'transfer-encoding', 'connection'}


@dataclass
class ResolvedResponse:
    """Outcome of resolving one request."""

    variant: Payload
    status: int
    body: str
    headers: Dict[str, str] = field(default_factory=dict)
    interactive: bool = False
    answer: Optional[str] = None
    fallback_status: bool = False

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary."""
        return {
            'variant': self.variant.name,
            'status': self.status,
            'interactive': self.interactive,
            'answer': self.answer,
            'fallback_status': self.fallback_status
        }


class ResponseResolver:
    """
    Chooses between an action's response variants.

    The first variant is the happy path. With more than one variant and
    happy-path mode off, the control client is asked through the session;
    an answer equal to a variant name selects it, anything else keeps the
    default.

    Example:
        resolver = ResponseResolver(session, stick_to_happy_path=False)
        resolved = await resolver.resolve(resource, example.responses, 'GET', '/widgets')
    """

    def __init__(
        self,
        session: Optional[InteractiveSession] = None,
        stick_to_happy_path: bool = False,
        fallback_status: int = 200
    ):
        """
        Initialize resolver.

        Args:
            session: Session used to ask the control client
            stick_to_happy_path: Always serve the first variant
            fallback_status: Status sent when a variant name is not a status code
        """
        self.session = session
        self.stick_to_happy_path = stick_to_happy_path
        self.fallback_status = fallback_status
        self.logger = logging.getLogger("blueprintmock.resolver")

    async def resolve(
        self,
        resource: Resource,
        responses: Sequence[Payload],
        method: str = "",
        uri: str = ""
    ) -> ResolvedResponse:
        """
        Resolve the response for one request.

        Args:
            resource: Resource owning the action (supplies the model body)
            responses: Candidate variants in declaration order
            method: Request method, shown to the control client
            uri: Request path, shown to the control client and logged

        Returns:
            ResolvedResponse ready to be written
        """
        variant = responses[0]
        interactive = False
        answer = None

        if len(responses) > 1 and not self.stick_to_happy_path and self.session is not None:
            interactive = True
            answer = await self.session.ask(
                {r.name: r.body for r in responses},
                method=method,
                uri=uri
            )
            variant = self.select(responses, answer)

        status, used_fallback = self.status_for(variant, uri)
        body = resource.model.body if variant.uses_resource_model else variant.body

        self.logger.info(f"sending {uri} {status}: {body}")

        return ResolvedResponse(
            variant=variant,
            status=status,
            body=body,
            headers=self.headers_for(variant),
            interactive=interactive,
            answer=answer,
            fallback_status=used_fallback
        )

    @staticmethod
    def select(responses: Sequence[Payload], answer: Optional[str]) -> Payload:
        """Variant named by the answer, or the first one."""
        if answer:
            for response in responses:
                if response.name == answer:
                    return response
        return responses[0]

    def status_for(self, variant: Payload, uri: str = "") -> Tuple[int, bool]:
        """
        Status code for a variant.

        Returns:
            (status, used_fallback)
        """
        if variant.status is not None:
            return variant.status, False

        self.logger.warning(
            f"Response name '{variant.name}' for {uri} is not an HTTP status code, "
            f"sending {self.fallback_status}"
        )
        return self.fallback_status, True

    @staticmethod
    def headers_for(variant: Payload) -> Dict[str, str]:
        """
        Response headers: CORS origin plus every declared header.

        Header names compare case-insensitively; a later declaration replaces
        an earlier one.
        """
        headers = {'access-control-allow-origin': ('Access-Control-Allow-Origin', '*')}
        for header in variant.headers:
            key = header.name.lower()
            if not key or key in HEADERS_TO_SKIP:
                continue
            headers[key] = (header.name, header.value)
        return dict(headers.values())
