#!/usr/bin/env python3
"""
Tests for response normalization and the default transporter.
"""

import asyncio
import json
import logging

import httpx

from conftest import CallbackLog, Recorder
from errors import ApiError
from transport import DefaultTransporter, clean_query, log_error, normalize_response


def test_error_list_is_joined():
    body = {"error": {"errors": [{"message": "x"}, {"message": "y"}], "code": 404}}
    error, parsed = normalize_response(404, json.dumps(body))
    assert isinstance(error, ApiError)
    assert error.message == "x\ny"
    assert error.code == 404
    assert error.errors == [{"message": "x"}, {"message": "y"}]
    assert parsed is None


def test_string_error_uses_status():
    error, parsed = normalize_response(400, '{"error": "invalid_grant"}')
    assert error.message == "invalid_grant"
    assert error.code == 400
    assert error.errors is None
    assert parsed is None


def test_error_object_without_list():
    error, _ = normalize_response(403, '{"error": {"message": "denied", "code": 403}}')
    assert (error.message, error.code) == ("denied", 403)

    error, _ = normalize_response(409, '{"error": {"message": "conflict"}}')
    assert (error.message, error.code) == ("conflict", 409)


def test_server_error_uses_raw_body():
    error, parsed = normalize_response(503, "Service Unavailable")
    assert error.message == "Service Unavailable"
    assert error.code == 503
    assert parsed is None


def test_error_field_on_success_status_is_kept():
    error, parsed = normalize_response(200, '{"error": "none", "id": 1}')
    assert error is None
    assert parsed == {"error": "none", "id": 1}


def test_success_body():
    error, parsed = normalize_response(200, '{"items": [1, 2]}')
    assert error is None
    assert parsed == {"items": [1, 2]}


def test_malformed_json_is_empty_body(caplog):
    caplog.set_level(logging.WARNING)
    error, parsed = normalize_response(200, "<html>not json</html>")
    assert error is None
    assert parsed is None
    assert "not valid JSON" in caplog.text


def test_client_error_without_envelope_is_success():
    error, parsed = normalize_response(404, '{"detail": "nope"}')
    assert error is None
    assert parsed == {"detail": "nope"}


def test_api_error_to_dict():
    assert ApiError("m", 400).to_dict() == {"message": "m", "code": 400}
    assert ApiError("m", 400, errors=[{"message": "m"}]).to_dict()["errors"] == [{"message": "m"}]


def test_clean_query_drops_none():
    assert clean_query({"a": 1, "b": None, "c": ["x", "y"]}) == {"a": 1, "c": ["x", "y"]}
    assert clean_query(None) == {}


def test_log_error_only_logs_errors(caplog):
    caplog.set_level(logging.ERROR)
    log_error(None, {"ok": True}, None)
    assert caplog.text == ""
    log_error(ApiError("boom", 500))
    assert "boom" in caplog.text


def test_request_kwargs_mapping():
    transporter = DefaultTransporter()
    kwargs = transporter.build_request_kwargs({
        "method": "GET",
        "url": "https://example.com/x",
        "query": {"q": "a", "skip": None},
        "headers": {"X-A": "1"},
        "json": None,
        "timeout": 5,
        "use_querystring": True,
    })
    assert kwargs["params"] == {"q": "a"}
    assert kwargs["timeout"] == 5
    assert kwargs["headers"] == {"X-A": "1"}
    assert "json" not in kwargs
    assert "use_querystring" not in kwargs


def test_request_sends_and_normalizes():
    recorder = Recorder(status=404, json_body={"error": {"errors": [{"message": "gone"}], "code": 404}})
    callback = CallbackLog()

    async def run():
        transporter = DefaultTransporter(http=recorder.http())
        response = await transporter.request({
            "method": "GET",
            "url": "https://example.com/items",
            "query": {"tag": ["a", "b"]},
        }, callback)
        await transporter.aclose()
        return response

    response = asyncio.run(run())

    assert response.status_code == 404
    assert len(callback.calls) == 1
    assert callback.error.message == "gone"
    assert callback.body is None
    assert recorder.requests[0].url.params.get_list("tag") == ["a", "b"]


def test_transport_errors_pass_through():
    failure = httpx.ConnectError("connection refused")
    recorder = Recorder(error=failure)
    callback = CallbackLog()

    async def run():
        transporter = DefaultTransporter(http=recorder.http())
        return await transporter.request({"method": "GET", "url": "https://example.com/"}, callback)

    assert asyncio.run(run()) is None
    assert callback.calls == [(failure, None, None)]
