"""Page driver abstraction and its Playwright implementation.

The SessionManager talks to the browser only through ``PageDriver`` so
the login state machine and the remote-call parsing can be exercised
against an in-memory fake. Every operation takes a ``timeout`` in
seconds; ``None`` means unbounded.
"""

import logging
from abc import ABC, abstractmethod

from playwright.async_api import (
    Browser,
    BrowserContext,
    Page,
    Playwright,
    async_playwright,
)

from src.session.config import DEFAULT_USER_AGENT
from src.session.schemas import Cookie

logger = logging.getLogger(__name__)

_SAME_SITE_VALUES = {"strict": "Strict", "lax": "Lax", "none": "None"}


class PageDriver(ABC):
    """One browser page the session drives."""

    @abstractmethod
    async def navigate(self, url: str, timeout: float | None = None) -> None:
        """Load ``url`` in the page."""

    @abstractmethod
    async def get_cookies(self, timeout: float | None = None) -> list[Cookie]:
        """All cookies visible to the browsing context."""

    @abstractmethod
    async def set_cookie(self, cookie: Cookie, timeout: float | None = None) -> None:
        """Install one cookie into the browsing context."""

    @abstractmethod
    async def current_url(self, timeout: float | None = None) -> str:
        """URL of the page after any redirects."""

    @abstractmethod
    async def page_title(self, timeout: float | None = None) -> str:
        ...

    @abstractmethod
    async def evaluate_script(self, script: str, timeout: float | None = None) -> str:
        """Evaluate a JS expression and return its result as a string."""

    @abstractmethod
    async def outer_html(self, selector: str, timeout: float | None = None) -> str:
        ...

    @abstractmethod
    async def element_exists(self, selector: str, timeout: float | None = None) -> bool:
        ...

    @abstractmethod
    async def close(self) -> None:
        """Release the browser."""


def _ms(timeout: float | None) -> float:
    """Playwright takes milliseconds, with 0 meaning no timeout."""
    return 0 if timeout is None else timeout * 1000


def _to_playwright_cookie(cookie: Cookie) -> dict:
    data: dict = {
        "name": cookie.name,
        "value": cookie.value,
        "domain": cookie.domain,
        "path": cookie.path or "/",
        "httpOnly": cookie.http_only,
        "secure": cookie.secure,
    }
    if cookie.expires > 0:
        data["expires"] = cookie.expires
    same_site = _SAME_SITE_VALUES.get(cookie.same_site.lower())
    if same_site:
        data["sameSite"] = same_site
    return data


def _from_playwright_cookie(raw: dict) -> Cookie:
    return Cookie(
        name=raw["name"],
        value=raw.get("value", ""),
        domain=raw.get("domain", ""),
        path=raw.get("path", "/"),
        expires=raw.get("expires", -1),
        http_only=raw.get("httpOnly", False),
        secure=raw.get("secure", False),
        same_site=raw.get("sameSite", ""),
    )


class PlaywrightDriver(PageDriver):
    """Chromium page driven through ``playwright.async_api``.

    The browser is launched lazily on first use. It runs headful by
    default since interactive login needs a visible QR code.
    """

    def __init__(
        self,
        headless: bool = False,
        user_agent: str = DEFAULT_USER_AGENT,
    ) -> None:
        self._headless = headless
        self._user_agent = user_agent
        self._playwright: Playwright | None = None
        self._browser: Browser | None = None
        self._context: BrowserContext | None = None
        self._page: Page | None = None

    async def _ensure_page(self) -> Page:
        if self._page is None:
            self._playwright = await async_playwright().start()
            self._browser = await self._playwright.chromium.launch(
                headless=self._headless,
                args=[
                    "--disable-blink-features=AutomationControlled",
                    "--disable-dev-shm-usage",
                    "--no-first-run",
                ],
            )
            self._context = await self._browser.new_context(
                user_agent=self._user_agent,
                viewport={"width": 1280, "height": 900},
            )
            self._page = await self._context.new_page()
            logger.info("Browser started (headless=%s)", self._headless)
        return self._page

    async def navigate(self, url: str, timeout: float | None = None) -> None:
        page = await self._ensure_page()
        await page.goto(url, timeout=_ms(timeout), wait_until="domcontentloaded")

    async def get_cookies(self, timeout: float | None = None) -> list[Cookie]:
        await self._ensure_page()
        raw = await self._context.cookies()
        return [_from_playwright_cookie(c) for c in raw]

    async def set_cookie(self, cookie: Cookie, timeout: float | None = None) -> None:
        await self._ensure_page()
        await self._context.add_cookies([_to_playwright_cookie(cookie)])

    async def current_url(self, timeout: float | None = None) -> str:
        page = await self._ensure_page()
        return page.url

    async def page_title(self, timeout: float | None = None) -> str:
        page = await self._ensure_page()
        return await page.title()

    async def evaluate_script(self, script: str, timeout: float | None = None) -> str:
        page = await self._ensure_page()
        result = await page.evaluate(script)
        return "" if result is None else str(result)

    async def outer_html(self, selector: str, timeout: float | None = None) -> str:
        page = await self._ensure_page()
        return await page.locator(selector).first.evaluate(
            "el => el.outerHTML", timeout=_ms(timeout)
        )

    async def element_exists(self, selector: str, timeout: float | None = None) -> bool:
        page = await self._ensure_page()
        return await page.locator(selector).count() > 0

    async def close(self) -> None:
        if self._context is not None:
            await self._context.close()
            self._context = None
            self._page = None
        if self._browser is not None:
            await self._browser.close()
            self._browser = None
        if self._playwright is not None:
            await self._playwright.stop()
            self._playwright = None
        logger.info("Browser closed")
