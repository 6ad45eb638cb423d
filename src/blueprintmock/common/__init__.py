"""
blueprintmock Common Utilities

Shared utilities and helpers used across blueprintmock modules.
"""

from .utils import BlueprintLoader, BlueprintLoadError, safe_json_parse
from .url_utils import URITemplate

__all__ = [
    'BlueprintLoader',
    'BlueprintLoadError',
    'safe_json_parse',
    'URITemplate'
]
