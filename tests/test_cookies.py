"""Tests for lynx.http.cookies — parsing and Set-Cookie serialization."""

from lynx.http.cookies import SetCookie, parse_cookies


class TestParseCookies:
    def test_pairs(self) -> None:
        assert parse_cookies("a=1; b=two") == {"a": "1", "b": "two"}

    def test_empty(self) -> None:
        assert parse_cookies("") == {}

    def test_value_with_equals(self) -> None:
        assert parse_cookies("token=abc==") == {"token": "abc=="}

    def test_malformed_pair_skipped(self) -> None:
        assert parse_cookies("junk; a=1") == {"a": "1"}


class TestSetCookie:
    def test_defaults(self) -> None:
        assert SetCookie("sid", "v").to_header_value() == "sid=v; Path=/; HttpOnly; SameSite=lax"

    def test_all_attributes(self) -> None:
        cookie = SetCookie(
            "sid",
            "v",
            max_age=60,
            path="/app",
            domain="example.com",
            secure=True,
            httponly=False,
            samesite="strict",
        )
        assert cookie.to_header_value() == (
            "sid=v; Max-Age=60; Path=/app; Domain=example.com; Secure; SameSite=strict"
        )
