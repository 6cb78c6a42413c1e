"""Crawler: crawl passes over tracked sources.

Only configuration and the error taxonomy are re-exported here, since the
storage layer imports ``src.crawler.errors``. Import the orchestrator and
result records from ``src.crawler.orchestrator`` and ``src.crawler.schemas``.
"""

from src.crawler.config import CrawlerConfig
from src.crawler.errors import (
    ContentFetchFailed,
    CrawlerError,
    InvalidInterval,
    LoginCancelled,
    LoginTimeout,
    NotAuthenticated,
    OperationCancelled,
    RemoteError,
    SourceAlreadyTracked,
    SourceNotFound,
    StorageError,
    TokenExtractionFailed,
)

__all__ = [
    "ContentFetchFailed",
    "CrawlerConfig",
    "CrawlerError",
    "InvalidInterval",
    "LoginCancelled",
    "LoginTimeout",
    "NotAuthenticated",
    "OperationCancelled",
    "RemoteError",
    "SourceAlreadyTracked",
    "SourceNotFound",
    "StorageError",
    "TokenExtractionFailed",
]
