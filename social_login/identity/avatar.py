"""Avatar URL resolution per provider."""

from __future__ import annotations

import logging
from typing import Any

import httpx

from social_login.config import get_settings
from social_login.errors import AvatarFetchError

from .adapters import dig
from .types import NormalizedIdentity, Provider

logger = logging.getLogger(__name__)


async def fetch_json(
    url: str | httpx.URL,
    client: httpx.AsyncClient | None = None,
    timeout: float | None = None,
) -> Any:
    """GET a URL and decode its JSON body.

    Raises:
        AvatarFetchError: on transport errors, timeouts, non-2xx responses
            or an undecodable body
    """
    if timeout is None:
        timeout = get_settings().AVATAR_FETCH_TIMEOUT_SECONDS
    try:
        if client is None:
            async with httpx.AsyncClient(timeout=timeout) as own_client:
                response = await own_client.get(url)
        else:
            response = await client.get(url, timeout=timeout)
    except httpx.HTTPError as e:
        raise AvatarFetchError(f"Request to {url} failed: {e!r}") from e

    if not response.is_success:
        raise AvatarFetchError(f"Request to {url} returned HTTP {response.status_code}")

    try:
        return response.json()
    except ValueError as e:
        raise AvatarFetchError(f"Response from {url} is not valid JSON") from e


def facebook_picture_url(seed: str) -> httpx.URL:
    """Graph API picture URL asking for a large image as JSON."""
    return httpx.URL(seed).copy_set_param("type", "large").copy_set_param("redirect", "false")


class AvatarResolver:
    """Turns a normalized identity into the best avatar URL available."""

    def __init__(
        self,
        client: httpx.AsyncClient | None = None,
        timeout: float | None = None,
    ):
        self._client = client
        self._timeout = timeout

    async def resolve_avatar(self, identity: NormalizedIdentity) -> str | None:
        provider = identity.provider
        if provider == Provider.GOOGLE:
            return self._google(identity.image)
        if provider == Provider.FACEBOOK:
            return await self._facebook(identity.image)
        if provider == Provider.TWITTER:
            return self._twitter(identity.image)
        if provider == Provider.VKONTAKTE:
            return _url(dig(identity.raw_info, "photo_200_orig"))
        if provider == Provider.ODNOKLASSNIKI:
            return _url(dig(identity.raw_info, "pic_2"))
        return None

    @staticmethod
    def _google(seed: str | None) -> str | None:
        if not seed:
            return None
        return seed.replace("s50", "s200").replace("sz=50", "sz=200")

    @staticmethod
    def _twitter(seed: str | None) -> str | None:
        if not seed:
            return None
        return seed.replace("_normal", "")

    async def _facebook(self, seed: str | None) -> str | None:
        if not seed:
            return None

        try:
            url = facebook_picture_url(seed)
        except httpx.InvalidURL:
            logger.warning("Facebook avatar seed %r is not a valid URL", seed)
            return None

        try:
            body = await fetch_json(url, client=self._client, timeout=self._timeout)
        except AvatarFetchError as e:
            logger.warning("Facebook avatar lookup failed: %s", e)
            return None

        data = dig(body, "data")
        if not isinstance(data, dict):
            logger.warning("Unexpected Facebook picture response: %r", body)
            return None
        if data.get("is_silhouette"):
            return None
        return _url(data.get("url"))


def _url(value: Any) -> str | None:
    if isinstance(value, str) and value.strip():
        return value.strip()
    return None
