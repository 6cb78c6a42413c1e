"""Session: the authenticated browser session against the remote platform.

Components:
- SessionManager: login state machine plus search/list/detail calls
- SessionStore: file persistence of cookies and auth token
- PageDriver / PlaywrightDriver: browser automation seam
"""

from src.session.config import SessionConfig
from src.session.driver import PageDriver, PlaywrightDriver
from src.session.manager import SessionManager, extract_token
from src.session.schemas import Cookie, SessionBundle, SessionState
from src.session.store import SessionStore

__all__ = [
    "Cookie",
    "PageDriver",
    "PlaywrightDriver",
    "SessionBundle",
    "SessionConfig",
    "SessionManager",
    "SessionState",
    "SessionStore",
    "extract_token",
]
