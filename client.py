#!/usr/bin/env python3
"""
API Client - registry of discovery-generated APIs.

Owns the global scope (default params, auth and transport options), the bare
HTTP transport, and the factories of every registered API. Each ApiClient is
configured at construction; there is no process-wide default client.
"""

import os
import logging
from typing import Any, Dict, Optional

import httpx
from dotenv import load_dotenv

from discovery import Discovery
from endpoint import Endpoint, EndpointFactory, generate
from options import ClientOptions
from transport import DefaultTransporter

logger = logging.getLogger(__name__)

DEFAULT_DISCOVERY_BASE_URL = "https://www.googleapis.com/discovery/v1/apis"


def get_discovery_url(name: str, version: str, base_url: str = DEFAULT_DISCOVERY_BASE_URL) -> str:
    """URL of the discovery document for one API version."""
    return f"{base_url.rstrip('/')}/{name}/{version}/rest"


class ApiClient:
    """
    Registry of generated APIs.
    Manages the global defaults and HTTP operations.
    """

    def __init__(self,
                 options: Any = None,
                 http: Optional[httpx.AsyncClient] = None,
                 transporter: Any = None,
                 discovery_base_url: Optional[str] = None,
                 debug: bool = False):
        """
        Initialize the registry.

        Args:
            options: Global defaults - {'params': {...}, 'auth': ..., **transport options}
            http: httpx client shared by the transport and discovery loading
            transporter: Replaces the default httpx transport entirely
            discovery_base_url: Root of the discovery directory service
            debug: Log discovery loading at info level
        """
        self._options = ClientOptions.coerce(options)
        timeout = self._options.transport_defaults.get("timeout", 30.0)
        self.transporter = transporter or DefaultTransporter(http=http, timeout=timeout)
        self.discovery = Discovery({"debug": debug}, http=http)
        self.discovery_base_url = (discovery_base_url or DEFAULT_DISCOVERY_BASE_URL).rstrip("/")
        self._apis: Dict[str, Dict[str, EndpointFactory]] = {}

        logger.info(f"API client initialized (discovery: {self.discovery_base_url})")

    @classmethod
    def from_env(cls, **kwargs) -> "ApiClient":
        """
        Build a client from environment variables (and a .env file, if present).

        DISCOVERY_API_KEY   - default auth, sent as the `key` parameter
        DISCOVERY_TIMEOUT   - request timeout in seconds (default 30)
        DISCOVERY_BASE_URL  - discovery directory root
        """
        load_dotenv()
        options: Dict[str, Any] = {"timeout": float(os.getenv("DISCOVERY_TIMEOUT", "30"))}
        api_key = os.getenv("DISCOVERY_API_KEY")
        if api_key:
            options["auth"] = api_key
        kwargs.setdefault("discovery_base_url", os.getenv("DISCOVERY_BASE_URL"))
        return cls(options=options, **kwargs)

    @property
    def options(self) -> ClientOptions:
        return self._options

    # =========================
    #  Registered APIs
    # =========================
    def add_apis(self, apis: Dict[str, Dict[str, EndpointFactory]]):
        """Register factories as {api_name: {version: factory}}."""
        for name, versions in apis.items():
            self._apis.setdefault(name, {}).update(versions)
        logger.info(f"Registered APIs: {sorted(apis)}")

    def add_api(self, document: Any) -> EndpointFactory:
        """Generate and register a factory from a discovery document."""
        factory = generate(document)
        schema = factory.schema
        self.add_apis({schema.name: {schema.version: factory}})
        return factory

    def list_apis(self) -> Dict[str, list]:
        return {name: sorted(versions) for name, versions in self._apis.items()}

    def api(self, name: str, version: str, options: Any = None) -> Endpoint:
        """
        Build an Endpoint for a registered API.

        Raises:
            KeyError: The API/version is not registered
        """
        try:
            factory = self._apis[name][version]
        except KeyError:
            raise KeyError(f"API {name}:{version} is not registered") from None
        return factory(options, client=self)

    def endpoint(self, document: Any, options: Any = None) -> Endpoint:
        """Build an Endpoint straight from a discovery document or factory."""
        factory = document if isinstance(document, EndpointFactory) else generate(document)
        return factory(options, client=self)

    # =========================
    #  Discovery
    # =========================
    async def discover(self, directory_url: Optional[str] = None):
        """Register every API listed in a discovery directory."""
        apis = await self.discovery.discover_all_apis(directory_url or self.discovery_base_url)
        self.add_apis(apis)

    async def discover_api(self, location: str, options: Any = None) -> Endpoint:
        """
        Build an Endpoint from a discovery document file path or URL.

        Args:
            location: File path or URL of the document
            options: Per-client defaults for the new Endpoint
        """
        factory = await self.discovery.discover_api(location)
        return factory(options, client=self)

    async def close(self):
        """Close the HTTP clients."""
        if hasattr(self.transporter, "aclose"):
            await self.transporter.aclose()
        await self.discovery.aclose()


async def load_api(name: str,
                   version: str,
                   discovery_url: Optional[str] = None,
                   options: Any = None,
                   client: Optional[ApiClient] = None) -> Endpoint:
    """
    Load one API by name and version.

    Args:
        name: API name, e.g. 'drive'
        version: API version, e.g. 'v3'
        discovery_url: Override the discovery document location
        options: Per-client defaults for the Endpoint
        client: Registry to attach to (a new one is created if omitted)
    """
    client = client or ApiClient()
    location = discovery_url or get_discovery_url(name, version, client.discovery_base_url)
    return await client.discover_api(location, options)
