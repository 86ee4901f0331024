#!/usr/bin/env python3
"""
Discovery - load discovery documents and generate Endpoint factories.

Documents are read from a local file when the location has no URL scheme,
otherwise fetched over HTTP.
"""

import asyncio
import json
import logging
from typing import Any, Dict, Optional
from urllib.parse import urlparse

import httpx

from endpoint import EndpointFactory, generate
from errors import DiscoveryLoadError
from utils.schema_parser import load_discovery_file

logger = logging.getLogger(__name__)


class Discovery:
    """
    Discovers API endpoints from discovery documents.
    """

    def __init__(self, options: Optional[Dict[str, Any]] = None, http: Optional[httpx.AsyncClient] = None):
        """
        Args:
            options: {'debug': bool} - log each load at info level
            http: httpx client used for remote documents (created lazily if omitted)
        """
        self.options = options or {}
        self._http = http
        self._owns_http = http is None

    @property
    def http(self) -> httpx.AsyncClient:
        if self._http is None:
            self._http = httpx.AsyncClient(headers={"Accept": "application/json"}, timeout=30.0)
        return self._http

    def log(self, message: str):
        """Log generator output when debugging is enabled."""
        if self.options.get("debug"):
            logger.info(message)
        else:
            logger.debug(message)

    async def fetch_json(self, url: str) -> Dict[str, Any]:
        try:
            response = await self.http.get(url)
            response.raise_for_status()
            return response.json()
        except httpx.HTTPStatusError as e:
            raise DiscoveryLoadError(url, f"HTTP {e.response.status_code}") from e
        except httpx.HTTPError as e:
            raise DiscoveryLoadError(url, str(e)) from e
        except ValueError as e:
            raise DiscoveryLoadError(url, f"invalid JSON: {e}") from e

    async def load_document(self, location: str) -> Dict[str, Any]:
        """
        Load a discovery document from a file path or URL.

        Raises:
            DiscoveryLoadError: The document could not be read or parsed
        """
        if not location:
            raise DiscoveryLoadError(str(location), "no location given")

        if not urlparse(location).scheme:
            self.log(f"Reading from file {location}")
            try:
                return load_discovery_file(location)
            except OSError as e:
                raise DiscoveryLoadError(location, str(e)) from e
            except json.JSONDecodeError as e:
                raise DiscoveryLoadError(location, f"invalid JSON: {e}") from e

        self.log(f"Requesting {location}")
        return await self.fetch_json(location)

    async def discover_api(self, location: str) -> EndpointFactory:
        """Generate an Endpoint factory from one discovery document."""
        document = await self.load_document(location)
        return generate(document)

    async def discover_all_apis(self, directory_url: str) -> Dict[str, Dict[str, EndpointFactory]]:
        """
        Generate factories for every API in a discovery directory.

        Returns:
            {api_name: {version: EndpointFactory}}
        """
        directory = await self.load_document(directory_url)
        items = [item for item in directory.get("items") or [] if item.get("discoveryRestUrl")]
        self.log(f"Found {len(items)} APIs in {directory_url}")

        factories = await asyncio.gather(
            *(self.discover_api(item["discoveryRestUrl"]) for item in items)
        )

        apis: Dict[str, Dict[str, EndpointFactory]] = {}
        for item, factory in zip(items, factories):
            apis.setdefault(item["name"], {})[item["version"]] = factory
        return apis

    async def aclose(self):
        if self._owns_http and self._http is not None:
            await self._http.aclose()
            self._http = None
