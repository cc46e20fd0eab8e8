"""Tests for benchmark_labeler.ingestion.http."""

from __future__ import annotations

import json

import httpx
import pytest

from benchmark_labeler.ingestion.http import (
    build_http_client,
    decode_json_body,
    is_html_document,
)


@pytest.mark.parametrize(
    "text",
    [
        "<!DOCTYPE html><html><body>Sign in</body></html>",
        "  \n<!doctype HTML>",
        "<html lang='en'>",
    ],
)
def test_is_html_document(text: str) -> None:
    assert is_html_document(text)


def test_json_is_not_html() -> None:
    assert not is_html_document('{"results": []}')


def test_html_body_decodes_to_empty_response() -> None:
    assert decode_json_body("<!DOCTYPE html><html></html>") == {}


def test_empty_body_decodes_to_empty_response() -> None:
    assert decode_json_body("   ") == {}


def test_json_object_decoded() -> None:
    body = {"results": [{"a": 1}], "nextPageToken": "t"}
    assert decode_json_body(json.dumps(body)) == body


def test_json_array_wrapped_as_results() -> None:
    assert decode_json_body("[1, 2]") == {"results": [1, 2]}


def test_invalid_json_raises() -> None:
    with pytest.raises(json.JSONDecodeError):
        decode_json_body("not json")


def test_build_http_client_sets_headers() -> None:
    seen: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(200, json={})

    client = build_http_client(
        headers={"Authorization": "Bearer tok"},
        timeout_seconds=5,
        transport=httpx.MockTransport(handler),
    )
    with client:
        client.get("https://example.test/x")

    assert seen[0].headers["Authorization"] == "Bearer tok"
    assert seen[0].headers["Content-Type"] == "application/json"
