"""Tests for the verification page renderer (verigate/page.py)."""

from __future__ import annotations

import json
import re

from verigate.constants import CACHE_BUSTER_MAX, VENDOR_CALLBACK_NAME, VENDOR_SCRIPT_URL
from verigate.page import js_string, new_cache_buster, render_verification_page

_REQUEST_RE = re.compile(
    r"instance: (\"[^\"]*\"),\s*source: (\"[^\"]*\"),\s*"
    r"campaign: (\"[^\"]*\"),\s*callback: (\"[^\"]*\")"
)
_CACHE_BUSTER_RE = re.compile(r"var params = \[(\d+)\];")


def _script_request(html: str) -> dict[str, str]:
    match = _REQUEST_RE.search(html)
    assert match is not None, "script request object not found"
    values = [json.loads(group) for group in match.groups()]
    return dict(zip(["instance", "source", "campaign", "callback"], values))


def _cache_buster(html: str) -> int:
    match = _CACHE_BUSTER_RE.search(html)
    assert match is not None, "cache buster not found"
    return int(match.group(1))


class TestScriptRequest:
    def test_points_at_vendor_script(self) -> None:
        html = render_verification_page("123")
        assert f"anura.src = {js_string(VENDOR_SCRIPT_URL)} + '?' + params.join('&');" in html

    def test_fields_in_order(self) -> None:
        html = render_verification_page("123", "src", "camp")
        assert _script_request(html) == {
            "instance": "123",
            "source": "src",
            "campaign": "camp",
            "callback": VENDOR_CALLBACK_NAME,
        }

    def test_cache_buster_is_first_bare_element(self) -> None:
        html = render_verification_page("123", cache_buster=987654321)
        assert _cache_buster(html) == 987654321

    def test_empty_values_skipped_by_page(self) -> None:
        html = render_verification_page("123")
        assert _script_request(html)["source"] == ""
        assert "if (request[key])" in html

    def test_values_encoded_in_browser(self) -> None:
        html = render_verification_page("123", "a b&c=d", "x/y")
        assert "encodeURIComponent(request[key])" in html
        request = _script_request(html)
        assert request["source"] == "a b&c=d"
        assert request["campaign"] == "x/y"


class TestCacheBuster:
    def test_in_range(self) -> None:
        for _ in range(200):
            value = new_cache_buster()
            assert 1 <= value <= CACHE_BUSTER_MAX

    def test_each_render_gets_fresh_cache_buster(self) -> None:
        # 1 in 10^12 collision chance
        assert _cache_buster(render_verification_page("1")) != _cache_buster(
            render_verification_page("1")
        )


class TestJsString:
    def test_plain_value_is_json_literal(self) -> None:
        assert js_string("abc") == '"abc"'

    def test_script_close_is_escaped(self) -> None:
        encoded = js_string("</script><script>alert(1)</script>")
        assert "<" not in encoded
        assert ">" not in encoded
        assert json.loads(encoded) == "</script><script>alert(1)</script>"

    def test_quotes_and_ampersand_escaped(self) -> None:
        encoded = js_string("'\"&")
        assert "&" not in encoded
        assert json.loads(encoded) == "'\"&"

    def test_line_separators_escaped(self) -> None:
        encoded = js_string("a\u2028b\u2029c")
        assert "\u2028" not in encoded
        assert "\u2029" not in encoded
        assert "\\u2028" in encoded
        assert json.loads(encoded) == "a\u2028b\u2029c"


class TestRenderVerificationPage:
    def test_instance_id_embedded_verbatim(self) -> None:
        html = render_verification_page("inst-424242")
        assert "inst-424242" in html

    def test_is_html_document(self) -> None:
        html = render_verification_page("1")
        assert html.startswith("<!DOCTYPE html>")
        assert "</html>" in html

    def test_defines_callback(self) -> None:
        html = render_verification_page("1")
        assert f'window["{VENDOR_CALLBACK_NAME}"]' in html

    def test_posts_token_to_verify_with_page_query(self) -> None:
        html = render_verification_page("1")
        assert "fetch('/verify' + window.location.search" in html
        assert "responseId: window.Anura.getAnura().getId()" in html
        assert "window.location.href = data.url" in html

    def test_instance_id_with_url_characters_kept_verbatim(self) -> None:
        html = render_verification_page("inst/42 a")
        assert "inst/42 a" in html
        assert _script_request(html)["instance"] == "inst/42 a"

    def test_non_ascii_instance_id_kept_verbatim(self) -> None:
        assert "instância" in render_verification_page("instância")

    def test_hostile_source_cannot_break_out(self) -> None:
        payload = "</script><img src=x onerror=alert(1)>"
        html = render_verification_page("inst", source=payload, campaign="';alert(2);//")
        assert payload not in html
        assert "<img" not in html
        # The quote stays inside a double-quoted literal.
        assert _script_request(html)["campaign"] == "';alert(2);//"
        # Exactly one script element opens and closes.
        assert html.count("<script>") == 1
        assert html.count("</script>") == 1

    def test_hostile_instance_id_is_escaped(self) -> None:
        html = render_verification_page('x"</script>')
        assert 'x"</script>' not in html
        assert '"x\\"\\u003C/script\\u003E"' in html
