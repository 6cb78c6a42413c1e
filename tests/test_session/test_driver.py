"""Tests for cookie conversion between the session model and Playwright."""

from src.session.driver import _from_playwright_cookie, _ms, _to_playwright_cookie
from src.session.schemas import Cookie


class TestToPlaywright:
    def test_session_cookie_omits_expiry(self):
        data = _to_playwright_cookie(Cookie(name="slave_sid", value="abc", domain=".example.com"))

        assert data == {
            "name": "slave_sid",
            "value": "abc",
            "domain": ".example.com",
            "path": "/",
            "httpOnly": False,
            "secure": False,
        }

    def test_persistent_cookie_keeps_expiry(self):
        data = _to_playwright_cookie(Cookie(name="a", expires=1767225600.0))

        assert data["expires"] == 1767225600.0

    def test_same_site_normalized(self):
        assert _to_playwright_cookie(Cookie(name="a", same_site="lax"))["sameSite"] == "Lax"
        assert "sameSite" not in _to_playwright_cookie(Cookie(name="a", same_site="weird"))


class TestFromPlaywright:
    def test_round_trip_fields(self):
        cookie = _from_playwright_cookie({
            "name": "slave_user",
            "value": "gh_1",
            "domain": "mp.example.com",
            "path": "/",
            "expires": -1,
            "httpOnly": True,
            "secure": True,
            "sameSite": "Strict",
        })

        assert cookie.http_only is True
        assert cookie.same_site == "Strict"
        assert cookie.expires == -1


def test_timeout_conversion():
    assert _ms(None) == 0
    assert _ms(2.5) == 2500
