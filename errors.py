#!/usr/bin/env python3
"""
Error types for discovery-generated API clients.

Validation errors are raised inside the request pipeline and delivered to the
caller's callback; they never reach the network. Schema and loading errors are
raised directly while an API is being generated.
"""

from typing import Any, Dict, List, Optional


class DiscoveryError(Exception):
    """Base class for every error raised by this package."""


class SchemaConflictError(DiscoveryError):
    """A method and a resource share a name at the same schema level."""

    def __init__(self, name: str, path: List[str]):
        self.name = name
        self.path = list(path)
        where = ".".join(self.path) or "<root>"
        super().__init__(f"Schema conflict at {where}: '{name}' is both a method and a resource")


class DiscoveryLoadError(DiscoveryError):
    """A discovery document could not be read, fetched or parsed."""

    def __init__(self, location: str, reason: str):
        self.location = location
        self.reason = reason
        super().__init__(f"Failed to load discovery document from {location}: {reason}")


class RequestValidationError(DiscoveryError, ValueError):
    """A call was rejected before any request was composed."""


class MissingParametersError(RequestValidationError):
    """One or more required parameters were not supplied."""

    def __init__(self, missing: List[str]):
        self.missing = list(missing)
        super().__init__(f"Missing required parameters: {', '.join(self.missing)}")


class InvalidMediaError(RequestValidationError):
    """The media body is neither literal data nor an explicit stream."""


class ApiError(DiscoveryError):
    """
    Normalized application error.

    Every API error envelope is reduced to the same shape: a message, a
    numeric code and, when the API reported several, the individual errors.
    """

    def __init__(self, message: Any, code: Optional[int] = None,
                 errors: Optional[List[Dict[str, Any]]] = None):
        self.message = message if isinstance(message, str) else str(message)
        self.code = code
        self.errors = errors
        super().__init__(self.message)

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {"message": self.message, "code": self.code}
        if self.errors is not None:
            data["errors"] = self.errors
        return data

    def __repr__(self) -> str:
        return f"ApiError(message={self.message!r}, code={self.code!r})"
