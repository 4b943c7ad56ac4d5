"""Per-provider extraction of OAuth payloads into NormalizedIdentity.

Payloads follow the OmniAuth auth-hash layout::

    {
        "provider": "vkontakte",
        "uid": "42",
        "info": {"name": ..., "email": ..., "nickname": ..., "image": ...,
                 "urls": {"Vkontakte": "https://vk.com/..."}},
        "extra": {"raw_info": {...}},
        "credentials": {"token": ..., "secret": ..., "expires_at": 3600},
    }

Every lookup tolerates missing keys and wrong types at any depth.
"""

from __future__ import annotations

import json
import logging
from collections.abc import Mapping
from typing import Any, ClassVar

from social_login.errors import UnsupportedProviderError

from .types import CredentialPayload, NormalizedIdentity, Provider

logger = logging.getLogger(__name__)


def dig(data: Any, *keys: str) -> Any:
    """Walk nested mappings, returning None as soon as a level is missing."""
    for key in keys:
        if not isinstance(data, Mapping):
            return None
        data = data.get(key)
    return data


def _text(value: Any) -> str | None:
    """Return a non-blank string, stringifying numeric ids."""
    if isinstance(value, bool):
        return None
    if isinstance(value, int | float):
        value = str(value)
    if not isinstance(value, str):
        return None
    value = value.strip()
    return value or None


def _seconds(value: Any) -> int | None:
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        return int(value)
    if isinstance(value, str):
        try:
            return int(value.strip())
        except ValueError:
            return None
    return None


def parse_payload(raw: Any) -> dict[str, Any]:
    """Decode a raw payload into a dict; anything unusable becomes {}."""
    if isinstance(raw, Mapping):
        return dict(raw)
    if isinstance(raw, bytes | bytearray):
        try:
            raw = raw.decode("utf-8")
        except UnicodeDecodeError:
            logger.warning("OAuth payload is not valid UTF-8, ignoring it")
            return {}
    if not isinstance(raw, str):
        return {}
    try:
        data = json.loads(raw)
    except ValueError:
        logger.warning("OAuth payload is not valid JSON, ignoring it")
        return {}
    if not isinstance(data, dict):
        logger.warning("OAuth payload is not a JSON object, ignoring it")
        return {}
    return data


class ProviderAdapter:
    """Extraction rules shared by all providers.

    Subclasses switch on the optional fields their provider actually
    supplies.
    """

    provider: ClassVar[Provider]
    reads_email: ClassVar[bool] = False
    reads_nickname: ClassVar[bool] = False

    @classmethod
    def extract(cls, payload: Mapping[str, Any]) -> NormalizedIdentity:
        info = dig(payload, "info")
        raw_info = dig(payload, "extra", "raw_info")
        return NormalizedIdentity(
            provider=cls.provider,
            uid=_text(dig(payload, "uid")),
            name=_text(dig(info, "name")),
            email=_text(dig(info, "email")) if cls.reads_email else None,
            nickname=_text(dig(info, "nickname")) if cls.reads_nickname else None,
            image=_text(dig(info, "image")),
            profile_urls=cls.extract_profile_urls(info),
            raw_info=dict(raw_info) if isinstance(raw_info, Mapping) else {},
            credentials=cls.extract_credentials(payload),
        )

    @staticmethod
    def extract_profile_urls(info: Any) -> dict[Provider, str]:
        """Collect every known provider's profile URL from ``info.urls``."""
        urls: dict[Provider, str] = {}
        for provider in Provider:
            url = _text(dig(info, "urls", provider.url_key))
            if url:
                urls[provider] = url
        return urls

    @staticmethod
    def extract_credentials(payload: Mapping[str, Any]) -> CredentialPayload:
        section = dig(payload, "credentials")
        return CredentialPayload(
            token=_text(dig(section, "token")),
            secret=_text(dig(section, "secret")),
            expires_at=_seconds(dig(section, "expires_at")),
        )


class GoogleAdapter(ProviderAdapter):
    provider = Provider.GOOGLE
    reads_email = True


class FacebookAdapter(ProviderAdapter):
    provider = Provider.FACEBOOK
    reads_email = True


class VkontakteAdapter(ProviderAdapter):
    provider = Provider.VKONTAKTE
    reads_nickname = True


class TwitterAdapter(ProviderAdapter):
    provider = Provider.TWITTER
    reads_nickname = True


class OdnoklassnikiAdapter(ProviderAdapter):
    provider = Provider.ODNOKLASSNIKI


ADAPTERS: dict[Provider, type[ProviderAdapter]] = {
    adapter.provider: adapter
    for adapter in (
        GoogleAdapter,
        FacebookAdapter,
        VkontakteAdapter,
        TwitterAdapter,
        OdnoklassnikiAdapter,
    )
}


def normalize(raw: Any, provider: Provider | str | None = None) -> NormalizedIdentity:
    """Normalize a raw OAuth payload.

    Args:
        raw: JSON string, bytes or an already decoded mapping
        provider: Provider to use; defaults to the payload's ``provider`` key

    Returns:
        The normalized identity. Unparseable payloads produce an identity
        with every optional field empty.

    Raises:
        UnsupportedProviderError: if no recognized provider is available
    """
    payload = parse_payload(raw)
    requested = provider if provider is not None else payload.get("provider")
    resolved = Provider.parse(requested)
    if resolved is None:
        raise UnsupportedProviderError(requested)
    return ADAPTERS[resolved].extract(payload)
