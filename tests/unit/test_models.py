"""Unit tests for verigate/models (policy enum, request context, responses)."""

from __future__ import annotations

import json

import pytest

from verigate.errors import InvalidUrlArgument, MissingToken, UpstreamError
from verigate.models.responses import (
    build_destination_response,
    build_error_response,
    build_not_found_response,
    build_page_response,
)
from verigate.models.verification import RequestContext, SecurityPolicy


class TestSecurityPolicy:
    @pytest.mark.parametrize(
        "value,expected",
        [
            ("strict", SecurityPolicy.STRICT),
            ("medium", SecurityPolicy.MEDIUM),
            ("none", SecurityPolicy.NONE),
            ("Strict", None),
            ("", None),
            (None, None),
            ("lenient", None),
        ],
    )
    def test_parse(self, value, expected) -> None:
        assert SecurityPolicy.parse(value) is expected

    def test_compares_as_string(self) -> None:
        assert SecurityPolicy.MEDIUM == "medium"


class TestRequestContext:
    def test_from_query_maps_names(self) -> None:
        context = RequestContext.from_query(
            {
                "redirectUrl": "https://a.example",
                "deniedUrl": "https://b.example",
                "security": "medium",
                "source": "s",
                "campaign": "c",
            }
        )
        assert context.redirect_url == "https://a.example"
        assert context.denied_url == "https://b.example"
        assert context.security == "medium"
        assert (context.source, context.campaign) == ("s", "c")

    def test_absent_values(self) -> None:
        context = RequestContext.from_query({})
        assert context.redirect_url is None
        assert context.security is None
        assert context.source == ""
        assert context.campaign == ""


class TestResponses:
    def test_page_is_html_and_uncacheable(self) -> None:
        response = build_page_response("<html></html>")
        assert response.status_code == 200
        assert response.headers["cache-control"] == "no-store"
        assert response.headers["access-control-allow-origin"] == "*"

    def test_destination_null(self) -> None:
        response = build_destination_response(None)
        assert json.loads(response.body) == {"url": None}

    def test_invalid_url_error_is_plain_text(self) -> None:
        response = build_error_response(InvalidUrlArgument())
        assert response.status_code == 400
        assert response.body == b"Invalid URLs provided"

    def test_missing_token_error_is_json(self) -> None:
        response = build_error_response(MissingToken())
        assert response.status_code == 400
        assert json.loads(response.body) == {"error": "Missing response ID"}

    def test_detail_never_leaks(self) -> None:
        response = build_error_response(UpstreamError("Anura API error: 401 secret-key"))
        assert response.status_code == 500
        assert json.loads(response.body) == {"error": "Internal server error"}

    def test_not_found(self) -> None:
        response = build_not_found_response()
        assert response.status_code == 404
        assert response.body == b"Not found"
