"""Shared fixtures for session tests."""

from pathlib import Path

import pytest
import pytest_asyncio

from src.session.config import SessionConfig
from src.session.driver import PageDriver
from src.session.manager import SessionManager
from src.session.schemas import Cookie, SessionBundle
from src.session.store import SessionStore

HOME = "https://mp.example.com"
AUTHED_URL = f"{HOME}/cgi-bin/home?t=home/index&lang=zh_CN&token=12345"


class FakeDriver(PageDriver):
    """In-memory page driver.

    - ``landing`` maps a navigated URL to the URL the page ends up on
    - ``redirects`` maps a URL substring to a forced landing URL
    - ``url_sequence`` feeds successive ``current_url`` results
    - ``bodies`` maps a URL substring to the body text of JSON endpoints
    - ``titles`` / ``contents`` describe item detail pages
    """

    def __init__(self) -> None:
        self.url = "about:blank"
        self.landing: dict[str, str] = {}
        self.redirects: dict[str, str] = {}
        self.url_sequence: list[str] = []
        self.bodies: dict[str, str] = {}
        self.titles: dict[str, str] = {}
        self.contents: dict[str, str] = {}
        self.failing_urls: set[str] = set()
        self.browser_cookies: list[Cookie] = []
        self.token_script_result = ""
        self.navigations: list[str] = []
        self.installed_cookies: list[Cookie] = []
        self.closed = False

    async def navigate(self, url, timeout=None):
        self.navigations.append(url)
        if url in self.failing_urls:
            raise RuntimeError(f"net::ERR_CONNECTION_RESET at {url}")
        self.url = self.landing.get(url, url)
        for key, target in self.redirects.items():
            if key in url:
                self.url = target

    async def get_cookies(self, timeout=None):
        return list(self.browser_cookies)

    async def set_cookie(self, cookie, timeout=None):
        self.installed_cookies.append(cookie)

    async def current_url(self, timeout=None):
        if self.url_sequence:
            self.url = self.url_sequence.pop(0)
        return self.url

    async def page_title(self, timeout=None):
        return self.titles.get(self.url, "Weekly notes")

    async def evaluate_script(self, script, timeout=None):
        if "document.body" in script:
            for key, body in self.bodies.items():
                if key in self.url:
                    return body
            return ""
        return self.token_script_result

    async def outer_html(self, selector, timeout=None):
        return self.contents[self.url]

    async def element_exists(self, selector, timeout=None):
        return self.url in self.contents

    async def close(self):
        self.closed = True


@pytest.fixture
def driver() -> FakeDriver:
    return FakeDriver()


@pytest.fixture
def session_config(tmp_path: Path) -> SessionConfig:
    return SessionConfig(
        home_url=HOME,
        cookie_file=tmp_path / "cookie.json",
        timeout_seconds=5,
        login_timeout_seconds=0.2,
        poll_interval_seconds=0.01,
        settle_seconds=0,
    )


@pytest.fixture
def store(session_config: SessionConfig) -> SessionStore:
    return SessionStore(session_config.cookie_file)


@pytest.fixture
def manager(driver: FakeDriver, store: SessionStore, session_config: SessionConfig) -> SessionManager:
    return SessionManager(driver, store, session_config)


@pytest.fixture
def stored_bundle() -> SessionBundle:
    return SessionBundle(
        cookies=[
            Cookie(name="slave_sid", value="abc", domain=".example.com", http_only=True),
            Cookie(name="slave_user", value="gh_1", domain=".example.com"),
        ],
        token="777",
    )


@pytest_asyncio.fixture
async def authed_manager(
    manager: SessionManager,
    driver: FakeDriver,
    store: SessionStore,
    stored_bundle: SessionBundle,
) -> SessionManager:
    """Manager logged in through the stored-cookie path with token 777."""
    store.save(stored_bundle)
    driver.landing[HOME] = AUTHED_URL
    await manager.login()
    return manager
