"""
Session manager - owns the single authenticated browser session.

Responsibilities:
- Cookie-based login from the stored SessionBundle, falling back to an
  interactive QR-code login bounded by ``login_timeout_seconds``
- Auth token extraction from the post-login URL (or the page script)
- Source search, item listing and item detail extraction

The driver holds one page, so every remote operation runs under a single
``asyncio.Lock``. Concurrent source tasks queue on the lock; their
storage work still overlaps.
"""

import asyncio
import json
import time
from typing import Any, Awaitable, TypeVar
from urllib.parse import parse_qs, urlencode, urlparse

import structlog

from src.crawler.errors import (
    ContentFetchFailed,
    LoginCancelled,
    LoginTimeout,
    NotAuthenticated,
    OperationCancelled,
    RemoteError,
    SourceNotFound,
    StorageError,
    TokenExtractionFailed,
)
from src.items.schemas import RemoteItemSummary
from src.observability.metrics import get_metrics
from src.session.config import SessionConfig
from src.session.driver import PageDriver
from src.session.polling import PollCancelledError, PollTimeoutError, poll_until
from src.session.schemas import SessionBundle, SessionState
from src.session.store import SessionStore

logger = structlog.get_logger(__name__)

T = TypeVar("T")

_BODY_TEXT_SCRIPT = "document.body.textContent || document.body.innerText"
_TOKEN_SCRIPT = "(window.wx && window.wx.data && window.wx.data.t) || ''"


def extract_token(url: str) -> str:
    """Return the ``token`` query parameter of ``url`` or an empty string."""
    values = parse_qs(urlparse(url).query).get("token")
    return values[0] if values else ""


class SessionManager:
    """
    Single authenticated session against the remote platform.

    Usage:
        manager = SessionManager(PlaywrightDriver(), SessionStore(path))
        await manager.ensure_authenticated()
        remote_id = await manager.search_source("some account")
        summaries = await manager.fetch_item_list(remote_id, 10)
    """

    def __init__(
        self,
        driver: PageDriver,
        store: SessionStore,
        config: SessionConfig | None = None,
    ) -> None:
        self._driver = driver
        self._store = store
        self._config = config or SessionConfig()
        self._lock = asyncio.Lock()
        self._cancel_event = asyncio.Event()
        self._state = SessionState.UNAUTHENTICATED
        self._token = ""
        self._metrics = get_metrics()

    @property
    def state(self) -> SessionState:
        return self._state

    @property
    def is_authenticated(self) -> bool:
        return self._state is SessionState.AUTHENTICATED

    @property
    def token(self) -> str:
        return self._token

    @property
    def interactive_mode(self) -> bool:
        return self._config.interactive_mode

    def cancel(self) -> None:
        """Abort the in-flight interactive login or unbounded operation."""
        logger.info("Session cancel requested")
        self._cancel_event.set()

    # ------------------------------------------------------------------
    # Login
    # ------------------------------------------------------------------

    async def login(self) -> None:
        """Authenticate, trying stored cookies before interactive login.

        Raises:
            LoginTimeout: Interactive login did not complete in time.
            LoginCancelled: Interactive login was cancelled.
        """
        async with self._lock:
            self._cancel_event.clear()
            await self._login_locked()

    async def ensure_authenticated(self) -> None:
        """Log in unless already authenticated. Safe to call concurrently."""
        if self.is_authenticated:
            return
        async with self._lock:
            if self.is_authenticated:
                return
            self._cancel_event.clear()
            await self._login_locked()

    async def _login_locked(self) -> None:
        start = time.monotonic()
        try:
            bundle = self._store.load()
        except StorageError as e:
            logger.warning(
                "Stored session unreadable, using interactive login", error=str(e)
            )
            bundle = None

        if bundle is not None and bundle.cookies:
            try:
                if await self._login_with_cookies(bundle):
                    self._state = SessionState.AUTHENTICATED
                    self._metrics.record_login("cookie", "success")
                    logger.info(
                        "Logged in with stored cookies",
                        has_token=bool(self._token),
                        duration_ms=round((time.monotonic() - start) * 1000, 1),
                    )
                    return
                self._metrics.record_login("cookie", "rejected")
            except OperationCancelled as e:
                raise LoginCancelled("login cancelled") from e
            except Exception as e:
                self._metrics.record_login("cookie", "error")
                logger.warning("Cookie login failed", error=str(e))

        await self._login_with_qrcode()
        self._state = SessionState.AUTHENTICATED
        self._metrics.record_login("interactive", "success")
        logger.info(
            "Logged in interactively",
            has_token=bool(self._token),
            duration_ms=round((time.monotonic() - start) * 1000, 1),
        )

    async def _login_with_cookies(self, bundle: SessionBundle) -> bool:
        timeout = self._bound(self._config.timeout_seconds)
        home = self._config.home_url

        async def _apply_and_reload() -> str:
            await self._driver.navigate(home, timeout=timeout)
            for cookie in bundle.cookies:
                try:
                    await self._driver.set_cookie(cookie, timeout=timeout)
                except Exception as e:
                    logger.warning("Failed to set cookie", cookie=cookie.name, error=str(e))
            await self._driver.navigate(home, timeout=timeout)
            await self._settle()
            return await self._driver.current_url(timeout=timeout)

        url = await self._call(_apply_and_reload(), timeout)
        if not self._is_authenticated_url(url):
            logger.info("Stored cookies rejected", url=url)
            return False

        token = bundle.token or extract_token(url)
        if token and token != bundle.token:
            self._persist(bundle.model_copy(update={"token": token}))
        if not token:
            logger.warning("Cookie login succeeded without an auth token", url=url)
        self._token = token
        return True

    async def _login_with_qrcode(self) -> None:
        nav_timeout = self._bound(self._config.timeout_seconds)
        login_timeout = self._bound(self._config.login_timeout_seconds)

        try:
            await self._call(
                self._driver.navigate(self._config.home_url, timeout=nav_timeout),
                nav_timeout,
            )
        except OperationCancelled as e:
            raise LoginCancelled("login cancelled") from e

        logger.info(
            "Waiting for QR-code login in the browser window",
            timeout_seconds=login_timeout,
        )
        try:
            url = await poll_until(
                lambda: self._driver.current_url(timeout=nav_timeout),
                self._is_authenticated_url,
                interval=self._config.poll_interval_seconds,
                timeout=login_timeout,
                cancel_event=self._cancel_event,
            )
        except PollTimeoutError as e:
            self._metrics.record_login("interactive", "timeout")
            raise LoginTimeout(
                f"interactive login not completed within {login_timeout}s"
            ) from e
        except PollCancelledError as e:
            self._metrics.record_login("interactive", "cancelled")
            raise LoginCancelled("interactive login cancelled") from e

        await self._settle()
        cookies = await self._call(
            self._driver.get_cookies(timeout=nav_timeout), nav_timeout
        )

        token = extract_token(url)
        if not token:
            logger.warning(
                "Token extraction failed; remote calls need a fresh login",
                url=url,
            )
        self._token = token
        if cookies:
            self._persist(SessionBundle(cookies=cookies, token=token))
        else:
            logger.warning("Browser returned no cookies; session not persisted")

    # ------------------------------------------------------------------
    # Remote operations
    # ------------------------------------------------------------------

    async def search_source(self, name: str) -> str:
        """Resolve a human-readable source name to its remote identifier.

        Raises:
            NotAuthenticated: No auth token is held.
            RemoteError: The remote reported a non-zero status.
            SourceNotFound: The search returned no entries.
        """
        async with self._lock:
            self._cancel_event.clear()
            params = {
                "action": "search_biz",
                "begin": 0,
                "count": self._config.search_page_size,
                "query": name,
                "token": self._require_token(),
                "lang": "zh_CN",
                "f": "json",
                "ajax": 1,
            }
            payload = await self._load_json(self._url("/cgi-bin/searchbiz", params))

        entries = payload.get("list") or []
        if not entries or not entries[0].get("fakeid"):
            raise SourceNotFound(name)
        remote_id = str(entries[0]["fakeid"])
        logger.info("Source resolved", name=name, remote_id=remote_id)
        return remote_id

    async def fetch_item_list(
        self, remote_id: str, count: int
    ) -> list[RemoteItemSummary]:
        """Most recent ``count`` items of a source, newest first.

        Raises:
            NotAuthenticated: No auth token is held.
            RemoteError: The remote reported a non-zero status.
        """
        async with self._lock:
            self._cancel_event.clear()
            params = {
                "action": "list_ex",
                "begin": 0,
                "count": count,
                "fakeid": remote_id,
                "type": 9,
                "token": self._require_token(),
                "lang": "zh_CN",
                "f": "json",
                "ajax": 1,
            }
            payload = await self._load_json(self._url("/cgi-bin/appmsg", params))

        entries = payload.get("app_msg_list") or []
        return [RemoteItemSummary.model_validate(e) for e in entries]

    async def fetch_item_detail(self, url: str) -> str:
        """Return the outer HTML of an item's content element.

        Raises:
            ContentFetchFailed: Deleted item, missing or empty content
                element, or any navigation/extraction error.
        """
        async with self._lock:
            self._cancel_event.clear()
            timeout = self._bound(self._config.timeout_seconds)
            try:
                return await self._call(self._extract_content(url, timeout), timeout)
            except (ContentFetchFailed, OperationCancelled):
                raise
            except asyncio.TimeoutError as e:
                raise ContentFetchFailed(url, f"timed out after {timeout}s") from e
            except Exception as e:
                raise ContentFetchFailed(url, str(e) or type(e).__name__) from e

    async def get_token(self) -> str:
        """Read the auth token from the page script context and adopt it.

        Raises:
            TokenExtractionFailed: The script yields no token in time.
        """
        async with self._lock:
            self._cancel_event.clear()
            timeout = self._bound(self._config.token_timeout_seconds)
            try:
                token = await self._call(
                    self._driver.evaluate_script(_TOKEN_SCRIPT, timeout=timeout),
                    timeout,
                )
            except OperationCancelled:
                raise
            except Exception as e:
                raise TokenExtractionFailed(f"token script failed: {e}") from e
            if not token:
                raise TokenExtractionFailed("page script context holds no token")
            self._token = token
            return token

    async def close(self) -> None:
        """Close the browser unless running in interactive mode."""
        if self._config.interactive_mode:
            logger.info("Interactive mode: leaving browser open")
            return
        await self._driver.close()

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _bound(self, seconds: float) -> float | None:
        return None if self._config.interactive_mode else seconds

    def _url(self, path: str, params: dict[str, Any]) -> str:
        return f"{self._config.home_url.rstrip('/')}{path}?{urlencode(params)}"

    def _require_token(self) -> str:
        if not self._token:
            raise NotAuthenticated("no auth token held; log in first")
        return self._token

    def _is_authenticated_url(self, url: str) -> bool:
        return any(marker in url for marker in self._config.authenticated_markers)

    def _is_login_page(self, url: str) -> bool:
        """True when ``url`` is the platform root or a login path."""
        landed = urlparse(url)
        home = urlparse(self._config.home_url)
        if landed.netloc != home.netloc:
            return False
        path = landed.path.rstrip("/")
        return path == "" or "login" in path

    def _persist(self, bundle: SessionBundle) -> None:
        try:
            self._store.save(bundle)
        except StorageError as e:
            logger.warning("Failed to persist session", error=str(e))

    def _invalidate(self) -> None:
        self._token = ""
        if self._state is SessionState.AUTHENTICATED:
            logger.warning("Session invalidated by remote")
        self._state = SessionState.UNAUTHENTICATED

    async def _settle(self) -> None:
        if self._config.settle_seconds > 0:
            await asyncio.sleep(self._config.settle_seconds)

    async def _call(self, coro: Awaitable[T], timeout: float | None) -> T:
        """Await ``coro`` under a deadline, or race it against cancel()."""
        if timeout is not None:
            return await asyncio.wait_for(coro, timeout)

        op = asyncio.ensure_future(coro)
        cancelled = asyncio.ensure_future(self._cancel_event.wait())
        try:
            done, _ = await asyncio.wait(
                {op, cancelled}, return_when=asyncio.FIRST_COMPLETED
            )
        finally:
            cancelled.cancel()
            if not op.done():
                op.cancel()
        if op in done:
            return op.result()
        raise OperationCancelled("operation cancelled")

    async def _load_json(self, url: str) -> dict[str, Any]:
        timeout = self._bound(self._config.timeout_seconds)

        async def _load() -> tuple[str, str]:
            await self._driver.navigate(url, timeout=timeout)
            await self._settle()
            landed = await self._driver.current_url(timeout=timeout)
            if self._is_login_page(landed):
                return landed, ""
            text = await self._driver.evaluate_script(_BODY_TEXT_SCRIPT, timeout=timeout)
            return landed, text

        landed, text = await self._call(_load(), timeout)
        if self._is_login_page(landed):
            self._invalidate()
            raise RemoteError(-1, f"redirected to login page: {landed}")
        try:
            payload = json.loads(text)
        except ValueError as e:
            # JSON endpoints only render HTML once the session is gone
            self._invalidate()
            raise RemoteError(-1, f"response is not JSON: {text[:120]!r}") from e
        if not isinstance(payload, dict):
            raise RemoteError(-1, "response is not a JSON object")

        base_resp = payload.get("base_resp") or {}
        code = int(base_resp.get("ret", 0) or 0)
        if code != 0:
            if code in self._config.invalid_session_codes:
                self._invalidate()
            raise RemoteError(code, str(base_resp.get("err_msg", "")))
        return payload

    async def _extract_content(self, url: str, timeout: float | None) -> str:
        await self._driver.navigate(url, timeout=timeout)
        await self._settle()

        landed = await self._driver.current_url(timeout=timeout)
        if self._is_login_page(landed):
            self._invalidate()
            raise ContentFetchFailed(url, f"redirected to login page: {landed}")

        try:
            title = await self._driver.page_title(timeout=timeout)
        except Exception as e:
            logger.warning("Could not read page title", url=url, error=str(e))
            title = ""
        for marker in self._config.unavailable_title_markers:
            if marker in title:
                raise ContentFetchFailed(url, f"item unavailable (title {title!r})")

        selector = self._config.content_selector
        if not await self._driver.element_exists(selector, timeout=timeout):
            raise ContentFetchFailed(url, f"content element {selector} not found")

        html = await self._driver.outer_html(selector, timeout=timeout)
        if not html.strip():
            raise ContentFetchFailed(url, "content element is empty")
        return html
