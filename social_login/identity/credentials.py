"""Find-or-create of the (user, provider) credential link."""

from __future__ import annotations

import logging
from datetime import UTC, datetime, timedelta
from typing import Protocol

from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from social_login.errors import ValidationError
from social_login.models import Credential, User
from social_login.repositories import CredentialRepository

from .types import NormalizedIdentity, Provider

logger = logging.getLogger(__name__)

ALREADY_LINKED_MESSAGE = "This account is already linked to another user"


class CredentialNotifier(Protocol):
    async def notify_credential_created(self, user: User, provider: Provider) -> None: ...


def credential_expiry(expires_in: int | None, now: datetime | None = None) -> datetime | None:
    """Absolute expiry for a token lifetime in seconds; None never expires."""
    if expires_in is None:
        return None
    return (now or datetime.now(UTC)) + timedelta(seconds=expires_in)


def already_linked_error() -> ValidationError:
    return ValidationError("credentials", "uniqueness", ALREADY_LINKED_MESSAGE)


class CredentialService:
    """Keeps at most one credential per (user, provider) and per (uid, provider)."""

    def __init__(self, notifier: CredentialNotifier | None = None):
        self.notifier = notifier

    async def ensure_not_linked_elsewhere(
        self,
        db: AsyncSession,
        user: User,
        identity: NormalizedIdentity,
    ) -> None:
        """Raise ValidationError if the remote identity belongs to another user."""
        if identity.uid is None:
            return
        existing = await CredentialRepository.find_by_uid_and_provider(
            db, identity.uid, identity.provider
        )
        if existing is not None and existing.user_id != user.id:
            raise already_linked_error()

    async def upsert_credential(
        self,
        db: AsyncSession,
        user: User,
        identity: NormalizedIdentity,
    ) -> Credential | None:
        """Return the user's credential for the identity's provider, creating it if needed.

        An existing credential is returned unchanged, tokens included.

        Raises:
            ValidationError: if the remote identity is linked to another user
        """
        if identity.uid is None:
            logger.warning(
                "OAuth payload for %s has no uid, not linking user %s",
                identity.provider,
                user.id,
            )
            return None

        user_id = user.id
        existing = await CredentialRepository.find_for_user(db, user_id, identity.provider)
        if existing is not None:
            return existing

        await self.ensure_not_linked_elsewhere(db, user, identity)

        credential = Credential(
            user_id=user_id,
            uid=identity.uid,
            provider=str(identity.provider),
            access_token=identity.credentials.token,
            access_token_secret=identity.credentials.secret,
            expires_at=credential_expiry(identity.credentials.expires_at),
        )
        try:
            await CredentialRepository.create(db, credential)
        except IntegrityError:
            # Lost a race with a concurrent sign-in; the winner's row decides
            await db.rollback()
            await db.refresh(user)
            return await self._resolve_conflict(db, user, identity)

        logger.info(
            "Linked %s account %s to user %s",
            identity.provider,
            identity.uid,
            user_id,
        )
        await self._notify(user, identity.provider)
        return credential

    async def _resolve_conflict(
        self,
        db: AsyncSession,
        user: User,
        identity: NormalizedIdentity,
    ) -> Credential:
        existing = await CredentialRepository.find_for_user(db, user.id, identity.provider)
        if existing is not None:
            return existing
        raise already_linked_error()

    async def _notify(self, user: User, provider: Provider) -> None:
        if self.notifier is None:
            return
        try:
            await self.notifier.notify_credential_created(user, provider)
        except Exception:
            logger.exception("Credential notification failed for user %s", user.id)
