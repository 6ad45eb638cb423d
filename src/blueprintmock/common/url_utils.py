"""
blueprintmock URL Utilities

Conversion of RFC 6570 URI templates from blueprints into routable paths.
"""

import re

EXPRESSION_PATTERN = re.compile(r'\{([^}]*)\}')
# Expansions that only describe query strings or fragments
NON_PATH_OPERATORS = ('?', '&', '#')


class URITemplate:
    """
    Handles URI template parsing for route registration.

    Example:
        URITemplate.to_route_path('/widgets/{id}{?limit}')   # '/widgets/{id}'
        URITemplate.to_route_path('/files/{+path}')          # '/files/{path:path}'
    """

    @staticmethod
    def sanitize_name(name: str) -> str:
        """Turn a template variable name into a valid route parameter name."""
        name = name.split(':', 1)[0].rstrip('*')
        name = re.sub(r'\W', '_', name)
        if not name or name[0].isdigit():
            name = f"_{name}"
        return name

    @staticmethod
    def to_route_path(template: str) -> str:
        """
        Convert a URI template to a route path.

        Args:
            template: Blueprint URI template

        Returns:
            Path usable as a route (always starts with '/')
        """
        seen = {}

        def replacer(match):
            expression = match.group(1)
            if not expression or expression[0] in NON_PATH_OPERATORS:
                return ''

            converter = ''
            if expression[0] == '+':
                converter = ':path'
                expression = expression[1:]
            elif expression[0] in './;':
                expression = expression[1:]

            first = expression.split(',', 1)[0]
            if not first:
                return ''

            name = URITemplate.sanitize_name(first)
            seen[name] = seen.get(name, 0) + 1
            if seen[name] > 1:
                name = f"{name}_{seen[name]}"
            return '{' + name + converter + '}'

        path = EXPRESSION_PATTERN.sub(replacer, template or '')

        # Literal query strings are not part of the route
        path = path.split('?', 1)[0]

        if not path.startswith('/'):
            path = '/' + path
        return path
