"""
Blueprint Description Model

Immutable in-memory tree built from a parsed API Blueprint:

    API -> ResourceGroup -> Resource -> Action -> Example -> Payload

Payloads (requests, responses, resource models) share one shape. Response
payloads carry two values derived at load time so the request path never
re-parses text:

- status: the payload name read as an HTTP status code (None if invalid)
- uses_resource_model: body is an "array of this model" placeholder
"""

import re
from dataclasses import dataclass, field
from typing import List, Dict, Any, Optional, Tuple

# "[Widget][]" style reference to a collection of the resource model
MODEL_REFERENCE_PATTERN = re.compile(r'\[.*\]\[\]')


def parse_status(name: str) -> Optional[int]:
    """
    Read a response name as an HTTP status code.

    Args:
        name: Response name from the blueprint (e.g. "200", "404")

    Returns:
        Integer status in the 100-599 range, or None if the name is not one
    """
    text = (name or '').strip()
    if not (text.isascii() and text.isdigit()):
        return None

    status = int(text, 10)
    if 100 <= status <= 599:
        return status
    return None


@dataclass(frozen=True)
class Header:
    """A single declared header."""

    name: str
    value: str

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'Header':
        return cls(name=str(data.get('name', '')), value=str(data.get('value', '')))


@dataclass(frozen=True)
class Parameter:
    """URI parameter. Carried through verbatim, never validated."""

    name: str
    description: str = ""
    type: str = ""
    required: bool = False
    default: str = ""
    example: str = ""
    values: Tuple[str, ...] = ()

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'Parameter':
        values = data.get('values') or []
        return cls(
            name=data.get('name', ''),
            description=data.get('description', ''),
            type=data.get('type', ''),
            required=bool(data.get('required', False)),
            default=str(data.get('default', '') or ''),
            example=str(data.get('example', '') or ''),
            values=tuple(v.get('value', '') if isinstance(v, dict) else str(v) for v in values)
        )


@dataclass(frozen=True)
class Payload:
    """
    Request, response or resource model payload.

    For responses the name doubles as the status code to send.
    """

    name: str = ""
    description: str = ""
    headers: Tuple[Header, ...] = ()
    body: str = ""
    schema: str = ""
    status: Optional[int] = None
    uses_resource_model: bool = False

    @classmethod
    def from_dict(cls, data: Optional[Dict[str, Any]]) -> 'Payload':
        data = data or {}
        name = str(data.get('name', '') or '')
        body = data.get('body', '') or ''
        return cls(
            name=name,
            description=data.get('description', '') or '',
            headers=tuple(Header.from_dict(h) for h in data.get('headers') or []),
            body=body,
            schema=data.get('schema', '') or '',
            status=parse_status(name),
            uses_resource_model=bool(MODEL_REFERENCE_PATTERN.search(body))
        )


@dataclass(frozen=True)
class Example:
    """Transaction example: request payloads and candidate responses."""

    name: str = ""
    description: str = ""
    requests: Tuple[Payload, ...] = ()
    responses: Tuple[Payload, ...] = ()

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'Example':
        return cls(
            name=data.get('name', '') or '',
            description=data.get('description', '') or '',
            requests=tuple(Payload.from_dict(r) for r in data.get('requests') or []),
            responses=tuple(Payload.from_dict(r) for r in data.get('responses') or [])
        )


@dataclass(frozen=True)
class Action:
    """One HTTP method supported by a resource."""

    method: str
    name: str = ""
    description: str = ""
    parameters: Tuple[Parameter, ...] = ()
    headers: Tuple[Header, ...] = ()
    examples: Tuple[Example, ...] = ()

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'Action':
        return cls(
            method=(data.get('method') or 'GET').upper(),
            name=data.get('name', '') or '',
            description=data.get('description', '') or '',
            parameters=tuple(Parameter.from_dict(p) for p in data.get('parameters') or []),
            headers=tuple(Header.from_dict(h) for h in data.get('headers') or []),
            examples=tuple(Example.from_dict(e) for e in data.get('examples') or [])
        )


@dataclass(frozen=True)
class Resource:
    """A served URI template with its model and actions."""

    uri_template: str
    name: str = ""
    description: str = ""
    model: Payload = field(default_factory=Payload)
    parameters: Tuple[Parameter, ...] = ()
    headers: Tuple[Header, ...] = ()
    actions: Tuple[Action, ...] = ()

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'Resource':
        return cls(
            uri_template=data.get('uriTemplate', '') or '',
            name=data.get('name', '') or '',
            description=data.get('description', '') or '',
            model=Payload.from_dict(data.get('model')),
            parameters=tuple(Parameter.from_dict(p) for p in data.get('parameters') or []),
            headers=tuple(Header.from_dict(h) for h in data.get('headers') or []),
            actions=tuple(Action.from_dict(a) for a in data.get('actions') or [])
        )


@dataclass(frozen=True)
class ResourceGroup:
    name: str = ""
    description: str = ""
    resources: Tuple[Resource, ...] = ()

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'ResourceGroup':
        return cls(
            name=data.get('name', '') or '',
            description=data.get('description', '') or '',
            resources=tuple(Resource.from_dict(r) for r in data.get('resources') or [])
        )


@dataclass(frozen=True)
class API:
    """Root of a parsed blueprint."""

    name: str = ""
    description: str = ""
    metadata: Tuple[Tuple[str, str], ...] = ()
    resource_groups: Tuple[ResourceGroup, ...] = ()
    source: str = ""

    @classmethod
    def from_dict(cls, data: Dict[str, Any], source: str = "") -> 'API':
        """
        Build an API from the legacy blueprint AST (drafter JSON/YAML output).

        Args:
            data: Parsed AST dictionary
            source: File the AST came from, kept for error messages

        Returns:
            Frozen API tree
        """
        metadata = []
        for entry in data.get('metadata') or []:
            if isinstance(entry, dict) and 'name' in entry:
                metadata.append((str(entry['name']), str(entry.get('value', ''))))

        return cls(
            name=data.get('name', '') or '',
            description=data.get('description', '') or '',
            metadata=tuple(metadata),
            resource_groups=tuple(ResourceGroup.from_dict(g) for g in data.get('resourceGroups') or []),
            source=source
        )

    def iter_resources(self):
        """Yield every resource across all groups, in declaration order."""
        for group in self.resource_groups:
            for resource in group.resources:
                yield resource

    def invalid_responses(self) -> List[Tuple[Resource, Action, Payload]]:
        """Response variants whose name is not a usable status code."""
        invalid = []
        for resource in self.iter_resources():
            for action in resource.actions:
                for example in action.examples:
                    for response in example.responses:
                        if response.status is None:
                            invalid.append((resource, action, response))
        return invalid
