"""Error taxonomy shared by the session, storage and crawl layers.

Per-source failures inside a crawl pass are caught by the orchestrator;
everything else propagates to the caller of the public operation.
"""


class CrawlerError(Exception):
    """Base class for all article-tracker errors."""


class NotAuthenticated(CrawlerError):
    """No auth token is held; the caller must log in first."""


class LoginTimeout(CrawlerError):
    """Interactive reauthentication did not complete within its bound."""


class LoginCancelled(LoginTimeout):
    """Interactive reauthentication was cancelled by an external signal."""


class TokenExtractionFailed(CrawlerError):
    """Authenticated, but no auth token could be recovered."""


class RemoteError(CrawlerError):
    """The remote platform reported a non-zero status."""

    def __init__(self, code: int, message: str = "") -> None:
        self.code = code
        self.message = message
        super().__init__(f"remote error {code}: {message}" if message else f"remote error {code}")


class SourceNotFound(RemoteError):
    """A source search returned no matching remote account."""

    def __init__(self, name: str) -> None:
        self.name = name
        super().__init__(0, f"no remote source matches {name!r}")


class ContentFetchFailed(CrawlerError):
    """Item detail could not be retrieved (deleted, missing body, navigation error)."""

    def __init__(self, url: str, reason: str) -> None:
        self.url = url
        self.reason = reason
        super().__init__(f"content fetch failed for {url}: {reason}")


class InvalidInterval(CrawlerError, ValueError):
    """A schedule interval fell outside the accepted range."""


class StorageError(CrawlerError):
    """Persistence I/O failed (database or session file)."""


class OperationCancelled(CrawlerError):
    """An unbounded driver operation was cancelled by an external signal."""


class SourceAlreadyTracked(CrawlerError):
    """An active source with the same name is already subscribed."""

    def __init__(self, name: str) -> None:
        self.name = name
        super().__init__(f"source {name!r} is already tracked")
