"""Provider identifiers and the normalized identity record."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import StrEnum
from typing import Any


class Provider(StrEnum):
    """Supported OAuth providers, keyed by their strategy identifier."""

    GOOGLE = "google_oauth2"
    FACEBOOK = "facebook"
    TWITTER = "twitter"
    VKONTAKTE = "vkontakte"
    ODNOKLASSNIKI = "odnoklassniki"

    @property
    def url_key(self) -> str:
        """Key of this provider's profile URL inside ``info.urls``."""
        return _URL_KEYS[self]

    @property
    def profile_field(self) -> str:
        """User column holding the profile URL for this provider."""
        return _PROFILE_FIELDS[self]

    @classmethod
    def parse(cls, value: object) -> Provider | None:
        """Return the provider for a payload value, or None if unknown."""
        if isinstance(value, cls):
            return value
        if not isinstance(value, str):
            return None
        value = value.strip().lower()
        if value == "google":
            return cls.GOOGLE
        try:
            return cls(value)
        except ValueError:
            return None


_URL_KEYS = {
    Provider.GOOGLE: "Google",
    Provider.FACEBOOK: "Facebook",
    Provider.TWITTER: "Twitter",
    Provider.VKONTAKTE: "Vkontakte",
    Provider.ODNOKLASSNIKI: "Odnoklassniki",
}

_PROFILE_FIELDS = {
    Provider.GOOGLE: "gp_addr",
    Provider.FACEBOOK: "fb_addr",
    Provider.TWITTER: "tw_addr",
    Provider.VKONTAKTE: "vk_addr",
    Provider.ODNOKLASSNIKI: "ok_addr",
}


@dataclass(frozen=True)
class CredentialPayload:
    """Token data from the ``credentials`` section of a payload."""

    token: str | None = None
    secret: str | None = None
    # Lifetime in seconds, counted from the moment of sign-in
    expires_at: int | None = None


@dataclass(frozen=True)
class NormalizedIdentity:
    """Provider-independent view of an OAuth payload."""

    provider: Provider
    uid: str | None = None
    name: str | None = None
    email: str | None = None
    nickname: str | None = None
    image: str | None = None
    profile_urls: dict[Provider, str] = field(default_factory=dict)
    raw_info: dict[str, Any] = field(default_factory=dict)
    credentials: CredentialPayload = field(default_factory=CredentialPayload)

    @property
    def is_empty(self) -> bool:
        """True when the payload carried no usable identity information."""
        return self.uid is None and self.name is None and not self.profile_urls

    @property
    def profile_url(self) -> str | None:
        """Profile URL on the provider this identity came from."""
        return self.profile_urls.get(self.provider)
