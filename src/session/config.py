"""Session configuration.

Controls the remote home URL, the persisted session file, and the bounds
applied to every browser operation. All settings can be overridden via
``SESSION_*`` environment variables.
"""

from pathlib import Path

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_USER_AGENT = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36"
)


class SessionConfig(BaseSettings):
    """Configuration for the authenticated browsing session."""

    model_config = SettingsConfigDict(
        env_prefix="SESSION_",
        case_sensitive=False,
        extra="ignore",
    )

    home_url: str = Field(
        default="https://mp.weixin.qq.com",
        description="Remote platform home URL; also the login page",
    )
    cookie_file: Path = Field(
        default=Path("./cookie.json"),
        description="Where the session bundle (cookies + token) is persisted",
    )

    # Bounds (ignored entirely in interactive mode)
    timeout_seconds: float = Field(
        default=60.0,
        gt=0,
        description="Deadline for one navigation / extraction operation",
    )
    login_timeout_seconds: float = Field(
        default=120.0,
        gt=0,
        description="How long to wait for a QR-code login to complete",
    )
    token_timeout_seconds: float = Field(
        default=10.0,
        gt=0,
        description="Deadline for reading the token from the page script context",
    )
    poll_interval_seconds: float = Field(
        default=1.0,
        gt=0,
        description="URL probe interval while waiting for interactive login",
    )
    settle_seconds: float = Field(
        default=2.0,
        ge=0,
        description="Pause after each navigation to let the page finish rendering",
    )
    interactive_mode: bool = Field(
        default=False,
        description="Disable all timeouts and keep the browser open on exit",
    )

    # Browser
    headless: bool = Field(
        default=False,
        description="Run the browser headless (QR login needs a visible window)",
    )
    user_agent: str = DEFAULT_USER_AGENT

    # Remote page contours
    authenticated_markers: list[str] = Field(
        default=["home", "cgi-bin"],
        description="URL substrings that indicate a logged-in page",
    )
    unavailable_title_markers: list[str] = Field(
        default=[
            "404",
            "页面不存在",
            "已删除",
            "已被删除",
            "此内容发送失败无法查看",
            "该内容暂时无法查看",
            "微信公众平台",
        ],
        description="Page-title substrings that mark a deleted or blocked item",
    )
    content_selector: str = "#js_content"
    invalid_session_codes: list[int] = Field(
        default=[200003],
        description="Remote status codes meaning the session is no longer valid",
    )
    search_page_size: int = Field(default=5, ge=1, le=20)
