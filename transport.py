#!/usr/bin/env python3
"""
Bare HTTP transport and response normalization.

The transport sends composed request options with httpx and reduces every
response to (error, body) before handing it to the caller's callback.
"""

import inspect
import json
import logging
from typing import Any, Callable, Dict, Optional, Tuple

import httpx

from errors import ApiError
from utils.media import (
    LiteralBody,
    StreamBody,
    aiter_multipart,
    describe_parts,
    encode_multipart,
    multipart_content_type,
    new_boundary,
)

logger = logging.getLogger(__name__)

SUCCESS_STATUS = 200

# Transport defaults forwarded to httpx as-is
PASSTHROUGH_OPTIONS = ("timeout", "follow_redirects", "cookies")

Callback = Callable[..., Any]


# =========================
#  Callbacks
# =========================
def log_error(error: Any, *args: Any) -> None:
    """Default callback: log failures, ignore everything else."""
    if error is not None:
        logger.error(f"API request failed: {error}")


def create_callback(callback: Optional[Callback]) -> Callback:
    return callback if callable(callback) else log_error


async def invoke_callback(callback: Callback, error: Any, body: Any, response: Any) -> None:
    """Call a sync or async callback."""
    result = callback(error, body, response)
    if inspect.isawaitable(result):
        await result


# =========================
#  Response normalization
# =========================
def parse_body(text: str) -> Any:
    """Parse a JSON body; malformed or empty bodies are treated as empty."""
    if not text:
        return None
    try:
        return json.loads(text)
    except ValueError:
        logger.warning(f"Response body is not valid JSON, treating as empty ({len(text)} bytes)")
        return None


def normalize_response(status: int, text: str) -> Tuple[Optional[ApiError], Any]:
    """
    Turn a raw status and body into (error, body).

    Args:
        status: HTTP status code
        text: Raw response body

    Returns:
        (None, parsed_body) on success, (ApiError, None) on failure
    """
    body = parse_body(text)

    if isinstance(body, dict) and body.get("error") and status != SUCCESS_STATUS:
        envelope = body["error"]
        if isinstance(envelope, str):
            error = ApiError(envelope, status)
        elif isinstance(envelope, dict) and isinstance(envelope.get("errors"), list):
            errors = envelope["errors"]
            message = "\n".join(
                str(item.get("message", "")) if isinstance(item, dict) else str(item)
                for item in errors
            )
            error = ApiError(message, envelope.get("code"), errors=errors)
        elif isinstance(envelope, dict):
            error = ApiError(envelope.get("message", ""), envelope.get("code") or status)
        else:
            error = ApiError(str(envelope), status)
        return error, None

    if status >= 500:
        return ApiError(text, status), None

    return None, body


def clean_query(query: Optional[Dict[str, Any]]) -> Dict[str, Any]:
    """Drop unset values; lists are sent as repeated keys."""
    return {k: v for k, v in (query or {}).items() if v is not None}


# =========================
#  Default transporter
# =========================
class DefaultTransporter:
    """
    Unauthenticated transport over httpx.AsyncClient.

    Exposes the same request(options, callback) capability that an
    authentication client provides.
    """

    def __init__(self, http: Optional[httpx.AsyncClient] = None, timeout: float = 30.0):
        """
        Args:
            http: Existing httpx client to send through (created lazily if omitted)
            timeout: Timeout for a lazily created client
        """
        self._http = http
        self._owns_http = http is None
        self._timeout = timeout

    @property
    def http(self) -> httpx.AsyncClient:
        if self._http is None:
            self._http = httpx.AsyncClient(
                headers={"Accept": "application/json"},
                timeout=self._timeout,
            )
        return self._http

    def build_request_kwargs(self, options: Dict[str, Any]) -> Dict[str, Any]:
        """Map composed options onto httpx request arguments."""
        headers = dict(options.get("headers") or {})
        kwargs: Dict[str, Any] = {
            "method": options.get("method", "GET"),
            "url": options["url"],
            "params": clean_query(options.get("query")),
        }

        parts = options.get("multipart")
        if parts:
            boundary = new_boundary()
            headers["Content-Type"] = multipart_content_type(boundary)
            if any(isinstance(part.body, StreamBody) for part in parts):
                kwargs["content"] = aiter_multipart(parts, boundary)
            else:
                kwargs["content"] = encode_multipart(parts, boundary)
            logger.debug(f"multipart upload parts: {describe_parts(parts)}")
        elif options.get("stream") is not None:
            kwargs["content"] = options["stream"].aiter_bytes()
        elif options.get("content") is not None:
            content = options["content"]
            kwargs["content"] = content.to_bytes() if isinstance(content, LiteralBody) else content
        elif options.get("json") is not None:
            kwargs["json"] = options["json"]

        for key in PASSTHROUGH_OPTIONS:
            if key in options:
                kwargs[key] = options[key]

        kwargs["headers"] = headers
        return kwargs

    async def request(self, options: Dict[str, Any], callback: Optional[Callback] = None) -> Optional[httpx.Response]:
        """
        Send a request and report the outcome through the callback.

        Returns:
            The raw httpx response, or None if the request never completed
        """
        callback = create_callback(callback)
        method, url = options.get("method", "GET"), options.get("url")

        try:
            kwargs = self.build_request_kwargs(options)
            kwargs.pop("method"), kwargs.pop("url")
            follow_redirects = kwargs.pop("follow_redirects", None)
            request = self.http.build_request(method, url, **kwargs)
        except (httpx.InvalidURL, TypeError, ValueError) as e:
            logger.debug(f"{method} {url} could not be built: {e}")
            await invoke_callback(callback, e, None, None)
            return None

        try:
            if follow_redirects is None:
                response = await self.http.send(request)
            else:
                response = await self.http.send(request, follow_redirects=follow_redirects)
        except httpx.HTTPError as e:
            logger.debug(f"{method} {url} failed: {e}")
            await invoke_callback(callback, e, None, None)
            return None

        logger.debug(f"{method} {url} -> {response.status_code}")
        error, body = normalize_response(response.status_code, response.text)
        await invoke_callback(callback, error, body, response)
        return response

    async def aclose(self):
        """Close the HTTP client, if this transporter created it."""
        if self._owns_http and self._http is not None:
            await self._http.aclose()
            self._http = None
