"""
Shared fixtures: a small Drive-like discovery document and a recording
httpx transport so nothing leaves the process.
"""

import copy
from typing import Any, Dict, List, Optional

import httpx
import pytest

from client import ApiClient

DRIVE_DOCUMENT: Dict[str, Any] = {
    "kind": "discovery#restDescription",
    "name": "drive",
    "version": "v3",
    "title": "Drive API",
    "rootUrl": "https://www.googleapis.com/",
    "servicePath": "drive/v3/",
    "methods": {
        "ping": {"id": "drive.ping", "path": "ping", "httpMethod": "GET"},
    },
    "resources": {
        "files": {
            "methods": {
                "get": {
                    "id": "drive.files.get",
                    "path": "files/{fileId}",
                    "httpMethod": "GET",
                    "parameterOrder": ["fileId"],
                    "parameters": {
                        "fileId": {"location": "path", "required": True, "type": "string"},
                        "q": {"location": "query", "type": "string"},
                    },
                },
                "list": {
                    "id": "drive.files.list",
                    "path": "files",
                    "httpMethod": "GET",
                    "parameters": {
                        "q": {"location": "query", "type": "string"},
                        "from": {"location": "query", "type": "string"},
                    },
                },
                "create": {
                    "id": "drive.files.create",
                    "path": "files",
                    "httpMethod": "POST",
                    "parameters": {},
                    "mediaUpload": {"protocols": {"simple": {"path": "/upload/drive/v3/files"}}},
                },
                "update": {
                    "id": "drive.files.update",
                    "path": "files/{fileId}",
                    "httpMethod": "PATCH",
                    "parameterOrder": ["fileId"],
                    "parameters": {"fileId": {"location": "path", "required": True}},
                    "mediaUpload": {"protocols": {"simple": {"path": "/upload/drive/v3/files/{fileId}"}}},
                },
                "delete": {
                    "id": "drive.files.delete",
                    "path": "files/{fileId}",
                    "httpMethod": "DELETE",
                    "parameterOrder": ["fileId"],
                    "parameters": {"fileId": {"location": "path", "required": True}},
                },
            },
            "resources": {
                "revisions": {
                    "methods": {
                        "get": {
                            "id": "drive.files.revisions.get",
                            "path": "files/{fileId}/revisions/{revisionId}",
                            "httpMethod": "GET",
                            "parameterOrder": ["fileId", "revisionId"],
                            "parameters": {
                                "fileId": {"location": "path", "required": True},
                                "revisionId": {"location": "path", "required": True},
                            },
                        }
                    }
                }
            },
        },
        "users": {
            "resources": {
                "messages": {
                    "methods": {
                        "import": {
                            "id": "drive.users.messages.import",
                            "path": "users/{userId}/messages/import",
                            "httpMethod": "POST",
                            "parameterOrder": ["userId"],
                            "parameters": {"userId": {"location": "path", "required": True}},
                        }
                    }
                }
            }
        },
    },
}


class Recorder:
    """httpx MockTransport handler that records requests and replies with a canned response."""

    def __init__(self, status: int = 200, json_body: Any = None, text: Optional[str] = None,
                 error: Optional[Exception] = None):
        self.status = status
        self.json_body = {"ok": True} if json_body is None and text is None else json_body
        self.text = text
        self.error = error
        self.requests: List[httpx.Request] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if self.error is not None:
            raise self.error
        if self.text is not None:
            return httpx.Response(self.status, text=self.text)
        return httpx.Response(self.status, json=self.json_body)

    def http(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(transport=httpx.MockTransport(self))


class CallbackLog:
    """Callback that remembers every (error, body, response) it receives."""

    def __init__(self):
        self.calls: List[tuple] = []

    def __call__(self, error, body, response):
        self.calls.append((error, body, response))

    @property
    def error(self):
        return self.calls[-1][0]

    @property
    def body(self):
        return self.calls[-1][1]


class FakeAuthClient:
    """Auth collaborator exposing request(options, callback)."""

    def __init__(self, body: Any = None):
        self.body = body if body is not None else {"authenticated": True}
        self.options: List[Dict[str, Any]] = []

    async def request(self, options, callback):
        self.options.append(options)
        callback(None, self.body, "auth-response")
        return "auth-response"


@pytest.fixture
def drive_document() -> Dict[str, Any]:
    return copy.deepcopy(DRIVE_DOCUMENT)


@pytest.fixture
def recorder() -> Recorder:
    return Recorder()


@pytest.fixture
def make_client():
    def _make(recorder: Recorder, options: Any = None, **kwargs) -> ApiClient:
        return ApiClient(options=options, http=recorder.http(), **kwargs)
    return _make
