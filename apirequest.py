#!/usr/bin/env python3
"""
Request pipeline for generated API methods.

Every call merges parameters from three scopes, validates them, chooses how
the body is encoded, builds transport options and dispatches them either
through an auth client or through the bare transport.
"""

import inspect
import logging
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Optional

from errors import MissingParametersError, RequestValidationError
from options import CallContext
from transport import create_callback, invoke_callback
from utils.media import BodyPart, MediaUpload, StreamBody, as_media_upload, json_part
from utils.schema_parser import DiscoverySchema, MethodDescriptor
from utils.url_template import UrlTemplate, join_url

logger = logging.getLogger(__name__)

# Verbs that carry no request body
BODYLESS_METHODS = {"GET", "DELETE"}


@dataclass
class ApiRequest:
    """A validated call, ready to be composed into transport options."""
    method: MethodDescriptor
    url: str
    params: Dict[str, Any]
    media_url: Optional[str] = None
    media: MediaUpload = field(default_factory=MediaUpload)
    resource: Any = None
    headers: Dict[str, str] = field(default_factory=dict)
    auth_client: Any = None


# =========================
#  Parameter pipeline
# =========================
def merge_params(context: CallContext, params: Optional[Dict[str, Any]]) -> Dict[str, Any]:
    """Global < per-client < per-call. Returns a new dict."""
    merged: Dict[str, Any] = {}
    merged.update(context.global_options.params)
    merged.update(context.options.params)
    merged.update(params or {})
    return merged


def unalias_params(params: Dict[str, Any], aliases: Dict[str, str]) -> None:
    """Rename escaped keys (e.g. resource_ -> resource) in place."""
    for escaped, name in aliases.items():
        if escaped in params:
            params[name] = params.pop(escaped)


def get_missing_params(params: Dict[str, Any], required: list) -> list:
    return [name for name in required if not params.get(name)]


def prepare(params: Optional[Dict[str, Any]], method: MethodDescriptor,
            schema: DiscoverySchema, context: CallContext) -> ApiRequest:
    """
    Run the parameter pipeline for one call.

    Raises:
        MissingParametersError: A name in parameterOrder has no value
        InvalidMediaError: The media body is not literal data or a StreamBody
    """
    params = merge_params(context, params)

    media = as_media_upload(params.pop("media", None))
    resource = params.pop("resource", None)
    auth = params.pop("auth", None)
    headers = dict(params.pop("headers", None) or {})

    unalias_params(params, method.param_aliases)

    auth_client = auth or context.options.auth or context.global_options.auth
    if isinstance(auth_client, str):
        # A plain string is an API key
        if not params.get("key"):
            params["key"] = auth_client
        auth_client = None

    missing = get_missing_params(params, method.parameter_order)
    if missing:
        raise MissingParametersError(missing)

    url = UrlTemplate.render(schema.base_url + method.path, params)
    media_url = None
    if method.media_path:
        media_url = UrlTemplate.render(join_url(schema.root_url, method.media_path), params)

    # Path parameters live in the URL only
    for name in method.path_params:
        params.pop(name, None)

    return ApiRequest(
        method=method,
        url=url,
        params=params,
        media_url=media_url,
        media=media,
        resource=resource,
        headers=headers,
        auth_client=auth_client,
    )


# =========================
#  Request composer
# =========================
def _resource_mime_type(resource: Any) -> Optional[str]:
    if isinstance(resource, dict):
        return resource.get("mimeType")
    return None


def compose(request: ApiRequest, context: CallContext) -> Dict[str, Any]:
    """
    Build transport options for a prepared request.

    Upload modes, in order: multipart (media + resource), simple media
    (media only), plain JSON.
    """
    query = request.params
    headers = dict(request.headers)
    http_method = request.method.http_method.upper()
    options: Dict[str, Any] = {"method": http_method, "url": request.url}
    media = request.media

    if media.body is not None and request.media_url:
        options["url"] = request.media_url
        if request.resource is not None:
            query["uploadType"] = "multipart"
            mime_type = (media.mime_type
                         or _resource_mime_type(request.resource)
                         or media.default_mime_type)
            options["multipart"] = [
                json_part(request.resource),
                BodyPart(mime_type, media.body),
            ]
        else:
            query["uploadType"] = "media"
            headers["Content-Type"] = media.mime_type or media.default_mime_type
            if isinstance(media.body, StreamBody):
                options["stream"] = media.body
            else:
                options["content"] = media.body.data
    else:
        if media.body is not None:
            logger.warning(f"{request.method.id or request.method.name} does not accept media uploads; ignoring media")
        if request.resource is not None:
            options["json"] = request.resource
        elif http_method in BODYLESS_METHODS:
            options["json"] = None
        else:
            options["json"] = {}

    options["query"] = query
    options["use_querystring"] = True

    global_defaults = context.global_options.transport_defaults
    client_defaults = context.options.transport_defaults
    merged = {**global_defaults, **client_defaults, **options}
    merged["headers"] = {
        **(global_defaults.get("headers") or {}),
        **(client_defaults.get("headers") or {}),
        **headers,
    }
    merged.pop("auth", None)
    merged.pop("params", None)
    return merged


# =========================
#  Entry point
# =========================
async def create_api_request(params: Any, callback: Optional[Callable[..., Any]],
                             method: MethodDescriptor, schema: DiscoverySchema,
                             context: CallContext) -> Any:
    """
    Create and send a request for one generated method.

    Args:
        params: Call parameters, or the callback when called without parameters
        callback: Receives (error, body, response)
        method: Descriptor of the method being called
        schema: Root schema (rootUrl/servicePath come from here)
        context: Per-client and registry scopes

    Returns:
        Whatever the transport returned, or None if the request could not be built
    """
    if callable(params):
        callback, params = params, None
    callback = create_callback(callback)

    try:
        request = prepare(params, method, schema, context)
    except RequestValidationError as e:
        await invoke_callback(callback, e, None, None)
        return None

    try:
        options = compose(request, context)
    except (TypeError, ValueError) as e:
        logger.debug(f"{method.id or method.name} request could not be composed: {e}")
        await invoke_callback(callback, e, None, None)
        return None

    if request.auth_client is not None:
        result = request.auth_client.request(options, callback)
    else:
        result = context.transporter.request(options, callback)

    if inspect.isawaitable(result):
        result = await result
    return result
