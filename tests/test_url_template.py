#!/usr/bin/env python3
"""
Tests for URL template substitution.
"""

from utils.url_template import UrlTemplate, join_url


def test_extract_parameters_in_order():
    params = UrlTemplate.extract_parameters("files/{fileId}/revisions/{+name}")
    assert [p.name for p in params] == ["fileId", "name"]
    assert [p.reserved for p in params] == [False, True]
    assert params[0].original_format == "{fileId}"


def test_substitute_encodes_simple_values():
    url, missing = UrlTemplate.substitute("files/{fileId}", {"fileId": "a b/c"})
    assert url == "files/a%20b%2Fc"
    assert missing == []


def test_reserved_expansion_keeps_slashes():
    url = UrlTemplate.render("v1/{+name}", {"name": "projects/p1/topics/t1"})
    assert url == "v1/projects/p1/topics/t1"


def test_missing_values_render_empty():
    url, missing = UrlTemplate.substitute("users/{userId}/items/{itemId}", {"userId": "me"})
    assert url == "users/me/items/"
    assert missing == ["itemId"]


def test_numbers_and_booleans():
    assert UrlTemplate.render("{a}/{b}", {"a": 42, "b": True}) == "42/true"


def test_validate_reports_remaining_placeholders():
    assert UrlTemplate.validate("files/abc") == (True, [])
    assert UrlTemplate.validate("files/{fileId}") == (False, ["fileId"])


def test_join_url():
    assert join_url("https://www.googleapis.com/", "/upload/drive/v3/files") == \
        "https://www.googleapis.com/upload/drive/v3/files"
    assert join_url("https://example.com", "/upload") == "https://example.com/upload"
    assert join_url("https://example.com", "upload") == "https://example.com/upload"
