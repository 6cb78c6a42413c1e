"""Session schemas: browser cookies and the persisted session bundle."""

from enum import Enum

from pydantic import BaseModel, ConfigDict, Field, model_validator


class SessionState(str, Enum):
    """Authentication state of a SessionManager."""

    UNAUTHENTICATED = "unauthenticated"
    AUTHENTICATED = "authenticated"


class Cookie(BaseModel):
    """One browser cookie, serialized with browser-style camelCase keys."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    name: str
    value: str = ""
    domain: str = ""
    path: str = "/"
    expires: float = -1
    http_only: bool = Field(default=False, alias="httpOnly")
    secure: bool = False
    same_site: str = Field(default="", alias="sameSite")


class SessionBundle(BaseModel):
    """Cookies plus the auth token obtained with them."""

    cookies: list[Cookie] = Field(default_factory=list)
    token: str = ""

    @model_validator(mode="after")
    def _token_requires_cookies(self) -> "SessionBundle":
        if self.token and not self.cookies:
            raise ValueError("a session token without cookies is not usable")
        return self
