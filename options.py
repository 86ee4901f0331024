#!/usr/bin/env python3
"""
Option bags for the registry and per-client scopes.
"""

from dataclasses import dataclass
from typing import Any, Dict

from pydantic import BaseModel, ConfigDict, Field


class ClientOptions(BaseModel):
    """
    Default parameters, auth and transport options for one scope.

    `params` and `auth` feed the parameter pipeline. Any other key
    (timeout, headers, follow_redirects, ...) is a transport default.
    """
    model_config = ConfigDict(extra="allow", arbitrary_types_allowed=True)

    params: Dict[str, Any] = Field(default_factory=dict)
    auth: Any = None

    @classmethod
    def coerce(cls, options: Any) -> "ClientOptions":
        """Build a private copy from None, a mapping or another ClientOptions."""
        if options is None:
            return cls()
        if isinstance(options, ClientOptions):
            return options.model_copy(update={"params": dict(options.params)})
        data = dict(options)
        data["params"] = dict(data.get("params") or {})
        return cls.model_validate(data)

    @property
    def transport_defaults(self) -> Dict[str, Any]:
        return dict(self.model_extra or {})


@dataclass(frozen=True)
class CallContext:
    """
    What a generated method needs at call time: its own scope and the
    registry that owns the global scope and the bare transport.
    """
    options: ClientOptions
    client: Any

    @property
    def global_options(self) -> ClientOptions:
        return self.client.options

    @property
    def transporter(self) -> Any:
        return self.client.transporter
