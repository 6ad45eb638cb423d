"""
blueprintmock Common Utilities

Blueprint loading and small parsing helpers shared by the mock server and CLI.
"""

import json
import logging
import shutil
import subprocess
from pathlib import Path
from typing import List, Dict, Any, Optional

import yaml

from ..model import API

logger = logging.getLogger("blueprintmock.loader")

DRAFTER_INSTALL_HINT = "Install it from https://github.com/apiaryio/drafter"

MARKDOWN_SUFFIXES = ('.md', '.apib')
JSON_SUFFIXES = ('.json',)
YAML_SUFFIXES = ('.yaml', '.yml')


class BlueprintLoadError(Exception):
    """A blueprint could not be loaded. Fatal at startup."""


def safe_json_parse(json_string: str, default: Any = None) -> Any:
    """
    Safely parse JSON string with error handling.

    Args:
        json_string: JSON string to parse
        default: Default value to return if parsing fails

    Returns:
        Parsed JSON object, or default if parsing fails
    """
    if not json_string:
        return default

    try:
        return json.loads(json_string)
    except (json.JSONDecodeError, TypeError, ValueError):
        return default


class BlueprintLoader:
    """
    Loads every blueprint in a directory into Description Model trees.

    Supported inputs:
    - *.md / *.apib: API Blueprint markdown, parsed with the drafter binary
    - *.json:        drafter AST already rendered as JSON
    - *.yaml / *.yml: drafter AST already rendered as YAML

    Example:
        loader = BlueprintLoader("./api")
        apis = loader.load()

        for api in apis:
            print(api.name)
    """

    def __init__(self, directory: str, drafter_path: Optional[str] = None, strict_status: bool = False):
        """
        Initialize blueprint loader.

        Args:
            directory: Directory to read blueprints from
            drafter_path: Explicit drafter executable (looked up on PATH if None)
            strict_status: Reject response names that are not HTTP status codes
        """
        self.directory = Path(directory)
        self.drafter_path = drafter_path
        self.strict_status = strict_status

    def find_files(self) -> List[Path]:
        """List loadable files in the directory, sorted by name."""
        if not self.directory.is_dir():
            raise BlueprintLoadError(f"Blueprint directory not found: {self.directory}")

        suffixes = MARKDOWN_SUFFIXES + JSON_SUFFIXES + YAML_SUFFIXES
        return sorted(p for p in self.directory.iterdir() if p.is_file() and p.suffix.lower() in suffixes)

    def load(self) -> List[API]:
        """
        Load all blueprints.

        Returns:
            List of API trees, one per file

        Raises:
            BlueprintLoadError: If the directory is empty or any file fails to load
        """
        files = self.find_files()
        if not files:
            raise BlueprintLoadError(f"No blueprints found in {self.directory}")

        apis = []
        for path in files:
            api = self.load_file(path)
            self._check_statuses(api)
            apis.append(api)
        return apis

    def load_file(self, path: Path) -> API:
        """Load one blueprint file into an API tree."""
        suffix = path.suffix.lower()

        try:
            text = path.read_text(encoding='utf-8')
        except OSError as e:
            raise BlueprintLoadError(f"Cannot read {path}: {e}") from e

        if suffix in MARKDOWN_SUFFIXES:
            data = self._parse_json(self._run_drafter(text, path), path)
        elif suffix in YAML_SUFFIXES:
            try:
                data = yaml.safe_load(text)
            except yaml.YAMLError as e:
                raise BlueprintLoadError(f"YAML is not valid in {path}: {e}") from e
        else:
            data = self._parse_json(text, path)

        return API.from_dict(self._unwrap_ast(data, path), source=str(path))

    def _run_drafter(self, text: str, path: Path) -> str:
        """Render blueprint markdown to its JSON AST with drafter."""
        drafter = self.drafter_path or shutil.which('drafter')
        if not drafter:
            raise BlueprintLoadError(f"Couldn't find drafter. {DRAFTER_INSTALL_HINT}")

        try:
            result = subprocess.run(
                [drafter, '--format', 'json'],
                input=text,
                capture_output=True,
                text=True,
                check=False
            )
        except OSError as e:
            raise BlueprintLoadError(f"Failed to run drafter on {path}: {e}") from e

        if result.returncode != 0:
            detail = (result.stderr or '').strip() or f"exit code {result.returncode}"
            raise BlueprintLoadError(f"Markdown is not valid in {path}: {detail}")

        return result.stdout

    @staticmethod
    def _parse_json(text: str, path: Path) -> Any:
        try:
            return json.loads(text)
        except json.JSONDecodeError as e:
            raise BlueprintLoadError(f"JSON is not valid in {path}: {e}") from e

    @staticmethod
    def _unwrap_ast(data: Any, path: Path) -> Dict[str, Any]:
        """Accept a bare AST or drafter's {"ast": {...}} wrapper."""
        if not isinstance(data, dict):
            raise BlueprintLoadError(
                f"Unexpected blueprint format in {path}: expected an object, got {type(data).__name__}"
            )

        if data.get('element') == 'parseResult':
            raise BlueprintLoadError(
                f"{path} is API Elements (refract) output; a blueprint AST is required"
            )

        if isinstance(data.get('ast'), dict):
            data = data['ast']

        if 'resourceGroups' not in data:
            raise BlueprintLoadError(
                f"Unexpected blueprint format in {path}: missing 'resourceGroups'. "
                f"Found keys: {list(data.keys())}"
            )

        return data

    def _check_statuses(self, api: API):
        """Validate response names as status codes once, at load time."""
        for resource, action, response in api.invalid_responses():
            message = (
                f"Response '{response.name}' of {action.method} {resource.uri_template} "
                f"in {api.source} is not an HTTP status code"
            )
            if self.strict_status:
                raise BlueprintLoadError(message)
            logger.warning(f"{message}; the fallback status will be sent")
