#!/usr/bin/env python3
"""
Discovery Document Parser

Converts a discovery document into typed, immutable descriptor nodes.
URLs are always built from the root document, never from a nested resource.
"""

from __future__ import annotations

import json
import keyword
from typing import Any, Dict, Iterable, List, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field

from errors import SchemaConflictError

# Keys pulled out of the call parameters before they can reach the query string
RESERVED_PARAMS: Tuple[str, ...] = ("media", "resource", "auth", "headers")


# =========================
#  Descriptor models
# =========================
class MethodDescriptor(BaseModel):
    """Represents a single callable method from a discovery document."""
    model_config = ConfigDict(frozen=True, populate_by_name=True, extra="ignore")

    name: str
    id: str = ""
    path: str = ""
    http_method: str = Field(default="GET", alias="httpMethod")
    description: str = ""
    parameter_order: List[str] = Field(default_factory=list, alias="parameterOrder")
    parameters: Dict[str, Dict[str, Any]] = Field(default_factory=dict)
    media_upload: Optional[Dict[str, Any]] = Field(default=None, alias="mediaUpload")
    segments: Tuple[str, ...] = ()                                  # position in the resource tree
    param_aliases: Dict[str, str] = Field(default_factory=dict)     # escaped name -> real name

    @property
    def path_params(self) -> List[str]:
        return [name for name, spec in self.parameters.items()
                if isinstance(spec, dict) and spec.get("location") == "path"]

    @property
    def media_path(self) -> Optional[str]:
        """Simple-upload path, if the method accepts media."""
        protocols = (self.media_upload or {}).get("protocols") or {}
        simple = protocols.get("simple") or {}
        return simple.get("path") or None


class ResourceDescriptor(BaseModel):
    """A named group of methods and nested resources."""
    model_config = ConfigDict(frozen=True)

    name: str
    methods: Dict[str, MethodDescriptor] = Field(default_factory=dict)
    resources: Dict[str, "ResourceDescriptor"] = Field(default_factory=dict)


class DiscoverySchema(BaseModel):
    """The root of a parsed discovery document."""
    model_config = ConfigDict(frozen=True, populate_by_name=True)

    name: str = ""
    version: str = ""
    title: str = ""
    root_url: str = Field(default="", alias="rootUrl")
    service_path: str = Field(default="", alias="servicePath")
    methods: Dict[str, MethodDescriptor] = Field(default_factory=dict)
    resources: Dict[str, ResourceDescriptor] = Field(default_factory=dict)

    @property
    def base_url(self) -> str:
        return self.root_url + self.service_path


ResourceDescriptor.model_rebuild()


# =========================
#  Discovery parser
# =========================
def build_param_aliases(parameters: Dict[str, Any]) -> Dict[str, str]:
    """
    Build the escape table for one method.

    Reserved keys are always escapable with a trailing underscore. Declared
    parameters whose names are Python keywords get the same treatment.
    """
    aliases = {f"{name}_": name for name in RESERVED_PARAMS}
    for name in parameters or {}:
        if name in RESERVED_PARAMS or keyword.iskeyword(name):
            aliases[f"{name}_"] = name
    return aliases


class DiscoveryParser:
    """Parse a discovery document into descriptor nodes."""

    def __init__(self, document: Dict[str, Any]):
        self.document = document

    def _parse_method(self, name: str, raw: Dict[str, Any], segments: Tuple[str, ...]) -> MethodDescriptor:
        parameters = raw.get("parameters")
        if not isinstance(parameters, dict):
            parameters = {}
        data = dict(raw)
        data.update(
            name=name,
            parameters=parameters,
            segments=segments + (name,),
            param_aliases=build_param_aliases(parameters),
        )
        if data.get("parameterOrder") is None:
            data["parameterOrder"] = []
        return MethodDescriptor.model_validate(data)

    def _parse_level(self, raw: Dict[str, Any], segments: Tuple[str, ...]) -> Tuple[Dict[str, MethodDescriptor], Dict[str, ResourceDescriptor]]:
        raw_methods = raw.get("methods") or {}
        raw_resources = raw.get("resources") or {}

        for name in raw_methods:
            if name in raw_resources:
                raise SchemaConflictError(name, list(segments))

        methods = {
            name: self._parse_method(name, method, segments)
            for name, method in raw_methods.items()
        }
        resources = {}
        for name, resource in raw_resources.items():
            child_methods, child_resources = self._parse_level(resource or {}, segments + (name,))
            resources[name] = ResourceDescriptor(
                name=name, methods=child_methods, resources=child_resources
            )
        return methods, resources

    def parse(self) -> DiscoverySchema:
        """Parse the whole document."""
        doc = self.document
        methods, resources = self._parse_level(doc, ())
        return DiscoverySchema(
            name=doc.get("name") or "",
            version=doc.get("version") or "",
            title=doc.get("title") or "",
            rootUrl=doc.get("rootUrl") or "",
            servicePath=doc.get("servicePath") or "",
            methods=methods,
            resources=resources,
        )

    def iter_methods(self) -> Iterable[MethodDescriptor]:
        """Yield every method in the document, depth first."""
        schema = self.parse()
        yield from iter_methods(schema)


def iter_methods(node: Any) -> Iterable[MethodDescriptor]:
    """Walk a parsed schema or resource, yielding its methods then its resources' methods."""
    yield from node.methods.values()
    for resource in node.resources.values():
        yield from iter_methods(resource)


# =========================
#  Utility functions
# =========================
def parse_discovery_document(document: Any) -> DiscoverySchema:
    """Accept a raw document (dict) or an already parsed schema."""
    if isinstance(document, DiscoverySchema):
        return document
    return DiscoveryParser(document).parse()


def load_discovery_file(file_path: str) -> Dict[str, Any]:
    """Load a discovery document from a JSON file."""
    with open(file_path, 'r', encoding='utf-8') as f:
        return json.load(f)
