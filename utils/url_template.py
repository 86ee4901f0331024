#!/usr/bin/env python3
"""
URL template handling for discovery method paths.

Discovery documents describe URLs with two placeholder forms:
- Simple expansion: {name}   (value is percent-encoded)
- Reserved expansion: {+name} (reserved characters such as '/' are kept)
"""

import re
import logging
from typing import Dict, List, Tuple, Any
from dataclasses import dataclass
from urllib.parse import quote

logger = logging.getLogger(__name__)


@dataclass
class PathParameter:
    """Represents a placeholder found in a URL template."""
    name: str
    original_format: str  # The original string like '{id}' or '{+name}'
    position: int  # Position in the template for ordering
    reserved: bool = False


class UrlTemplate:
    """
    Substitutes named placeholders in a URL template.
    """

    PARAMETER_PATTERN = re.compile(r'\{(\+?)([a-zA-Z0-9_.\-]+)\}')

    # Characters left untouched by reserved expansion (RFC 6570 reserved + unreserved)
    RESERVED_SAFE = ":/?#[]@!$&'()*+,;="

    @classmethod
    def extract_parameters(cls, template: str) -> List[PathParameter]:
        """
        Extract all placeholders from a template, in order of appearance.

        Args:
            template: URL template

        Returns:
            List of PathParameter objects
        """
        return [
            PathParameter(
                name=match.group(2),
                original_format=match.group(0),
                position=match.start(),
                reserved=bool(match.group(1)),
            )
            for match in cls.PARAMETER_PATTERN.finditer(template)
        ]

    @classmethod
    def _encode(cls, value: Any, reserved: bool) -> str:
        if isinstance(value, bool):
            value = "true" if value else "false"
        if isinstance(value, (list, tuple)):
            return ",".join(cls._encode(item, reserved) for item in value)
        safe = cls.RESERVED_SAFE if reserved else ""
        return quote(str(value), safe=safe)

    @classmethod
    def substitute(cls, template: str, values: Dict[str, Any]) -> Tuple[str, List[str]]:
        """
        Substitute parameter values into a template.

        Placeholders with no value render as an empty string.

        Args:
            template: URL template with placeholders
            values: Parameter values by name

        Returns:
            Tuple of (rendered_url, list_of_missing_parameters)
        """
        missing: List[str] = []

        def _replace(match: "re.Match[str]") -> str:
            name = match.group(2)
            value = values.get(name)
            if value is None:
                missing.append(name)
                return ""
            return cls._encode(value, reserved=bool(match.group(1)))

        rendered = cls.PARAMETER_PATTERN.sub(_replace, template)
        if missing:
            logger.debug(f"Template {template} rendered without values for: {missing}")
        return rendered, missing

    @classmethod
    def render(cls, template: str, values: Dict[str, Any]) -> str:
        """Render a template, ignoring missing values."""
        rendered, _ = cls.substitute(template, values)
        return rendered

    @classmethod
    def validate(cls, url: str) -> Tuple[bool, List[str]]:
        """
        Check that no placeholders remain.

        Returns:
            Tuple of (is_valid, list_of_remaining_parameters)
        """
        remaining = cls.extract_parameters(url)
        if remaining:
            return False, [p.name for p in remaining]
        return True, []


def join_url(base: str, path: str) -> str:
    """Join a base URL and an absolute path without doubling the slash."""
    if base.endswith("/") and path.startswith("/"):
        return base + path[1:]
    if base and not base.endswith("/") and path and not path.startswith("/"):
        return base + "/" + path
    return base + path
