"""Derive login, email and profile fields for OAuth-created accounts."""

from __future__ import annotations

import logging
import re
import secrets
import unicodedata
from collections.abc import Awaitable, Callable

from sqlalchemy.ext.asyncio import AsyncSession

from social_login.config import ResolverConfig
from social_login.models import User
from social_login.repositories import UserRepository

from .types import NormalizedIdentity

logger = logging.getLogger(__name__)

LOGIN_MAX_LENGTH = 255


def slugify(text: str) -> str:
    """Fold text to a lowercase ASCII slug (``Alice Smith`` -> ``alice-smith``)."""
    folded = unicodedata.normalize("NFKD", text).encode("ascii", "ignore").decode("ascii")
    return re.sub(r"[^a-z0-9]+", "-", folded.lower()).strip("-")


def random_login() -> str:
    return f"user-{secrets.token_hex(3)[:5]}"


def random_email(domain: str) -> str:
    return f"{secrets.token_hex(4)[:7]}@{domain}"


def random_password() -> str:
    return secrets.token_hex(6)


class AccountFieldResolver:
    """Fills empty account fields from a normalized identity.

    Existing values are never overwritten. Derived logins and emails are
    disambiguated against the database on every attempt; the unique
    constraints remain the final arbiter under concurrent sign-ins.
    """

    def __init__(self, config: ResolverConfig | None = None):
        self.config = config or ResolverConfig.from_settings()

    async def resolve_fields(
        self,
        db: AsyncSession,
        user: User,
        identity: NormalizedIdentity,
    ) -> User:
        # Half-filled accounts must not be flushed by the uniqueness queries
        with db.no_autoflush:
            if not user.login:
                user.login = await self.resolve_login(db, identity)
            if not user.email:
                user.email = await self.resolve_email(db, identity, user.login)
        if not user.password:
            user.password = random_password()
        if not user.username and identity.name:
            user.username = identity.name

        for provider, url in identity.profile_urls.items():
            if not getattr(user, provider.profile_field):
                setattr(user, provider.profile_field, url)

        return user

    async def resolve_login(self, db: AsyncSession, identity: NormalizedIdentity) -> str:
        base = identity.nickname or slugify(identity.name or "")
        if base:
            login = await self._disambiguate(
                lambda n: f"{base}-{n}" if n else base,
                lambda value: UserRepository.login_exists(db, value),
            )
            if login:
                return login
            logger.warning(
                "Login %r still taken after %d attempts, using a random login",
                base,
                self.config.max_disambiguation_attempts,
            )
        return random_login()

    async def resolve_email(
        self,
        db: AsyncSession,
        identity: NormalizedIdentity,
        login: str | None,
    ) -> str:
        if identity.email:
            return identity.email

        domain = self.config.default_email_domain
        if login:
            email = await self._disambiguate(
                lambda n: f"{login}-{n}@{domain}" if n else f"{login}@{domain}",
                lambda value: UserRepository.email_exists(db, value),
            )
            if email:
                return email
        return random_email(domain)

    async def _disambiguate(
        self,
        candidate: Callable[[int], str],
        taken: Callable[[str], Awaitable[bool]],
    ) -> str | None:
        """Try ``candidate(0)``, ``candidate(1)``... until one is free.

        Returns None once the configured number of attempts is used up.
        """
        for attempt in range(self.config.max_disambiguation_attempts):
            value = candidate(attempt)
            if len(value) > LOGIN_MAX_LENGTH:
                return None
            if not await taken(value):
                return value
        return None
