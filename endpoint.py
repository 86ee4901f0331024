#!/usr/bin/env python3
"""
Endpoint generation from discovery documents.

A discovery document is parsed once into descriptor nodes and indexed into an
immutable dispatch table. Each Endpoint built from the table is a frozen tree
of namespaces and bound methods:

    factory = generate(document)
    drive = factory({"params": {"fields": "id"}})
    await drive.files.get({"fileId": "abc"}, callback)
"""

import keyword
import logging
from types import MappingProxyType
from typing import Any, Callable, Dict, Iterable, List, Mapping, Optional, Tuple, Union

from apirequest import create_api_request
from options import CallContext, ClientOptions
from utils.schema_parser import DiscoverySchema, MethodDescriptor, iter_methods, parse_discovery_document

logger = logging.getLogger(__name__)

Segments = Tuple[str, ...]


class DispatchTable:
    """
    Methods of one discovery document, indexed by their path in the resource tree.
    """

    def __init__(self, schema: DiscoverySchema):
        self.schema = schema
        methods: Dict[Segments, MethodDescriptor] = {}
        children: Dict[Segments, Dict[str, bool]] = {(): {}}

        def _add_resources(node: Any, prefix: Segments):
            for name, resource in node.resources.items():
                path = prefix + (name,)
                children[prefix][name] = False
                children.setdefault(path, {})
                _add_resources(resource, path)

        _add_resources(schema, ())
        for method in iter_methods(schema):
            methods[method.segments] = method
            children[method.segments[:-1]][method.name] = True

        self.methods: Mapping[Segments, MethodDescriptor] = MappingProxyType(methods)
        self._children = MappingProxyType(
            {prefix: MappingProxyType(names) for prefix, names in children.items()}
        )

    def children(self, prefix: Segments) -> Mapping[str, bool]:
        """Names directly under `prefix`, mapped to True for methods, False for namespaces."""
        return self._children.get(prefix, MappingProxyType({}))

    def lookup(self, path: Union[str, Iterable[str]]) -> MethodDescriptor:
        segments = tuple(path.split(".")) if isinstance(path, str) else tuple(path)
        try:
            return self.methods[segments]
        except KeyError:
            raise KeyError(f"No method '{'.'.join(segments)}' in {self.schema.name or 'schema'}") from None

    def method_paths(self) -> List[str]:
        return sorted(".".join(segments) for segments in self.methods)


async def dispatch(table: DispatchTable, path: Union[str, Iterable[str]], context: CallContext,
                   params: Any = None, callback: Optional[Callable[..., Any]] = None) -> Any:
    """
    Call the method at `path` (e.g. "files.get" or ("files", "get")).
    """
    method = table.lookup(path)
    return await create_api_request(params, callback, method, table.schema, context)


# =========================
#  Generated surface
# =========================
class BoundMethod:
    """A generated method bound to one Endpoint's call context."""
    __slots__ = ("_table", "_context", "_descriptor")

    def __init__(self, table: DispatchTable, context: CallContext, descriptor: MethodDescriptor):
        self._table = table
        self._context = context
        self._descriptor = descriptor

    @property
    def descriptor(self) -> MethodDescriptor:
        return self._descriptor

    def __call__(self, params: Any = None, callback: Optional[Callable[..., Any]] = None):
        return dispatch(self._table, self._descriptor.segments, self._context, params, callback)

    def __repr__(self) -> str:
        d = self._descriptor
        return f"<BoundMethod {'.'.join(d.segments)} {d.http_method} {d.path}>"


class _FrozenNode:
    """Attribute access over a fixed set of children; no attribute may change after init."""

    def __init__(self, table: DispatchTable, context: CallContext, prefix: Segments):
        object.__setattr__(self, "_table", table)
        object.__setattr__(self, "_context", context)
        object.__setattr__(self, "_prefix", prefix)
        object.__setattr__(self, "_children", _build_children(table, context, prefix))

    def __getattr__(self, name: str) -> Any:
        if name.startswith("_"):
            raise AttributeError(name)
        try:
            return self._children[name]
        except KeyError:
            raise AttributeError(f"'{'.'.join(self._prefix) or type(self).__name__}' has no attribute '{name}'") from None

    def __setattr__(self, name: str, value: Any):
        raise AttributeError(f"{type(self).__name__} is frozen; cannot set '{name}'")

    def __delattr__(self, name: str):
        raise AttributeError(f"{type(self).__name__} is frozen; cannot delete '{name}'")

    def __dir__(self) -> List[str]:
        return sorted(self._children)


class Namespace(_FrozenNode):
    """A resource level of the generated tree."""

    def __repr__(self) -> str:
        return f"<Namespace {'.'.join(self._prefix)}>"


def _build_children(table: DispatchTable, context: CallContext, prefix: Segments) -> Mapping[str, Any]:
    nodes: Dict[str, Any] = {}
    names = table.children(prefix)
    for name, is_method in names.items():
        path = prefix + (name,)
        if is_method:
            node: Any = BoundMethod(table, context, table.methods[path])
        else:
            node = Namespace(table, context, path)
        nodes[name] = node
        # Keywords stay reachable as attributes: messages.import_
        if keyword.iskeyword(name) and f"{name}_" not in names:
            nodes[f"{name}_"] = node
    return MappingProxyType(nodes)


class Endpoint(_FrozenNode):
    """
    A generated, callable API client.

    Owns its per-client options (`_options`) and is frozen once built.
    """

    def __init__(self, table: DispatchTable, options: Any = None, client: Any = None):
        if client is None:
            from client import ApiClient
            client = ApiClient()
        opts = ClientOptions.coerce(options)
        object.__setattr__(self, "_options", opts)
        object.__setattr__(self, "_client", client)
        super().__init__(table, CallContext(options=opts, client=client), ())

    def __repr__(self) -> str:
        schema = self._table.schema
        return f"<Endpoint {schema.name}:{schema.version} methods={len(self._table.methods)}>"


class EndpointFactory:
    """Builds Endpoint instances for one discovery document."""

    def __init__(self, table: DispatchTable):
        self.table = table

    @property
    def schema(self) -> DiscoverySchema:
        return self.table.schema

    def __call__(self, options: Any = None, client: Any = None) -> Endpoint:
        return Endpoint(self.table, options=options, client=client)

    def __repr__(self) -> str:
        return f"<EndpointFactory {self.schema.name}:{self.schema.version}>"


def generate(document: Any) -> EndpointFactory:
    """
    Generate an Endpoint factory from a discovery document.

    Args:
        document: Raw discovery document (dict) or parsed DiscoverySchema

    Raises:
        SchemaConflictError: A method and a resource share a name
    """
    schema = parse_discovery_document(document)
    table = DispatchTable(schema)
    logger.debug(f"Generated {schema.name or 'endpoint'} {schema.version} with {len(table.methods)} methods")
    return EndpointFactory(table)


def method_paths(node: Any) -> List[str]:
    """Dotted paths of every method reachable from an Endpoint or Namespace."""
    table: DispatchTable = node._table
    prefix: Segments = node._prefix
    return [
        path for path in table.method_paths()
        if tuple(path.split("."))[:len(prefix)] == prefix
    ]
