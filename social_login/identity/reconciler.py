"""Sequencing of one OAuth sign-in attempt against a local account.

    received -> normalized -> fields_resolved -> persisted
             -> credential_linked -> avatar_resolved -> cleared

Each step is an ordinary call; nothing runs from ORM lifecycle hooks. The
attempt only starts while a raw payload is attached to the user, and the
payload is dropped once the attempt completes.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from enum import StrEnum

from sqlalchemy import inspect
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from social_login.config import ResolverConfig, get_settings
from social_login.errors import UnsupportedProviderError, ValidationError
from social_login.models import Credential, User
from social_login.repositories import CredentialRepository, UserRepository
from social_login.webhooks.emitter import WebhookNotifier

from .adapters import normalize
from .avatar import AvatarResolver
from .credentials import CredentialNotifier, CredentialService
from .resolver import AccountFieldResolver
from .types import NormalizedIdentity, Provider

logger = logging.getLogger(__name__)


class ReconcileState(StrEnum):
    """Last state reached by a reconciliation attempt."""

    RECEIVED = "received"
    NORMALIZED = "normalized"
    FIELDS_RESOLVED = "fields_resolved"
    PERSISTED = "persisted"
    CREDENTIAL_LINKED = "credential_linked"
    AVATAR_RESOLVED = "avatar_resolved"
    CLEARED = "cleared"


@dataclass
class ReconcileResult:
    """Outcome of one reconciliation attempt."""

    user: User
    state: ReconcileState = ReconcileState.RECEIVED
    identity: NormalizedIdentity | None = None
    credential: Credential | None = None
    avatar_url: str | None = None
    errors: list[ValidationError] = field(default_factory=list)
    skipped: bool = False

    @property
    def ok(self) -> bool:
        return not self.errors and not self.skipped

    def fail(self, error: ValidationError) -> ReconcileResult:
        self.errors.append(error)
        logger.info(
            "OAuth reconciliation stopped at %s: %s",
            self.state,
            error.message,
        )
        return self


# Constraint names as created by the migrations, then the SQLite spelling
_UNIQUE_FIELDS = (
    ("ix_users_login", "login"),
    ("ix_users_email", "email"),
    ("uq_credentials_", "credentials"),
    ("users.login", "login"),
    ("users.email", "email"),
    ("credentials.", "credentials"),
)


def integrity_error_field(error: IntegrityError) -> str:
    """Name the field whose unique constraint an IntegrityError violated.

    Only the constraint name is inspected: asyncpg exposes it as
    ``constraint_name`` on the underlying error, other drivers put it on the
    first line of the message. Detail lines carry the colliding value and
    are ignored.
    """
    cause = getattr(error.orig, "__cause__", None)
    constraint = getattr(cause, "constraint_name", None)
    if not constraint:
        lines = str(error.orig).splitlines()
        constraint = lines[0] if lines else ""
    constraint = constraint.lower()
    for token, field_name in _UNIQUE_FIELDS:
        if token in constraint:
            return field_name
    return "base"


class OAuthReconciler:
    """Runs normalize, resolve, persist, link and avatar steps in order."""

    def __init__(
        self,
        resolver: AccountFieldResolver | None = None,
        avatars: AvatarResolver | None = None,
        credentials: CredentialService | None = None,
        notifier: CredentialNotifier | None = None,
        timeout: float | None = None,
    ):
        self.resolver = resolver or AccountFieldResolver(ResolverConfig.from_settings())
        self.avatars = avatars or AvatarResolver()
        self.credentials = credentials or CredentialService(notifier or WebhookNotifier())
        self.timeout = timeout if timeout is not None else get_settings().RECONCILE_TIMEOUT_SECONDS

    async def reconcile(
        self,
        db: AsyncSession,
        user: User,
        *,
        provider: Provider | str | None = None,
        backfill: bool = False,
    ) -> ReconcileResult:
        """Reconcile the payload attached to ``user``.

        Args:
            db: Database session; committed after each persistence step
            user: New or existing account with ``oauth_data`` attached
            provider: Provider the payload came from; defaults to the
                payload's own ``provider`` key. With a known provider an
                unparseable payload is reconciled as an empty identity.
            backfill: Fill empty fields even if login and email are present

        Returns:
            The result; ``errors`` holds validation failures, if any.
            Database errors other than unique violations propagate. When
            persisting fails, an already saved ``user`` is reloaded from
            the database, so unsaved changes to it are discarded.
        """
        result = ReconcileResult(user=user)
        if not user.is_oauth:
            result.skipped = True
            return result

        deadline = asyncio.get_running_loop().time() + self.timeout

        try:
            identity = normalize(user.oauth_data, provider)
        except UnsupportedProviderError as e:
            return result.fail(ValidationError("provider", "unsupported", str(e)))
        result.identity = identity
        result.state = ReconcileState.NORMALIZED
        if identity.is_empty:
            logger.warning("OAuth payload for %s carried no identity data", identity.provider)

        try:
            # Pending changes to a saved account are flushed by the save below
            with db.no_autoflush:
                await self.credentials.ensure_not_linked_elsewhere(db, user, identity)
        except ValidationError as e:
            return result.fail(e)

        if backfill or not user.login or not user.email:
            await self.resolver.resolve_fields(db, user, identity)
        result.state = ReconcileState.FIELDS_RESOLVED

        try:
            await UserRepository.save(db, user)
        except IntegrityError as e:
            await db.rollback()
            if inspect(user).persistent:
                await db.refresh(user)
            column = integrity_error_field(e)
            return result.fail(ValidationError(column, "uniqueness", f"{column} is already taken"))
        result.state = ReconcileState.PERSISTED

        try:
            result.credential = await self.credentials.upsert_credential(db, user, identity)
        except ValidationError as e:
            return result.fail(e)
        result.state = ReconcileState.CREDENTIAL_LINKED

        result.avatar_url = await self._resolve_avatar(identity, deadline)
        if result.avatar_url:
            user.avatar_url = result.avatar_url
            await UserRepository.save(db, user)
        result.state = ReconcileState.AVATAR_RESOLVED

        user.reset_oauth_data()
        result.state = ReconcileState.CLEARED
        return result

    async def sign_in(
        self,
        db: AsyncSession,
        raw: str | bytes | dict,
        provider: Provider | str | None = None,
    ) -> ReconcileResult:
        """Reconcile a payload against the user it is linked to, or a new one."""
        user = None
        try:
            identity = normalize(raw, provider)
        except UnsupportedProviderError:
            identity = None
        if identity is not None and identity.uid is not None:
            credential = await CredentialRepository.find_by_uid_and_provider(
                db, identity.uid, identity.provider
            )
            if credential is not None:
                user = await db.get(User, credential.user_id)

        if user is None:
            user = User()
        user.attach_oauth_data(raw)
        return await self.reconcile(db, user, provider=provider)

    async def _resolve_avatar(self, identity: NormalizedIdentity, deadline: float) -> str | None:
        try:
            async with asyncio.timeout_at(deadline):
                return await self.avatars.resolve_avatar(identity)
        except TimeoutError:
            logger.warning(
                "Avatar resolution for %s exceeded the sign-in time budget",
                identity.provider,
            )
            return None
