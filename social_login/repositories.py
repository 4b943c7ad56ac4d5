"""Storage access for users and credentials."""

from __future__ import annotations

import uuid

from sqlalchemy import exists, select
from sqlalchemy.ext.asyncio import AsyncSession

from social_login.models import Credential, User


class UserRepository:
    """Queries and writes for the users table."""

    @staticmethod
    async def find_by_login(db: AsyncSession, login: str) -> User | None:
        result = await db.execute(select(User).where(User.login == login))
        return result.scalar_one_or_none()

    @staticmethod
    async def find_by_email(db: AsyncSession, email: str) -> User | None:
        result = await db.execute(select(User).where(User.email == email))
        return result.scalar_one_or_none()

    @staticmethod
    async def login_exists(db: AsyncSession, login: str) -> bool:
        result = await db.execute(select(exists().where(User.login == login)))
        return bool(result.scalar())

    @staticmethod
    async def email_exists(db: AsyncSession, email: str) -> bool:
        result = await db.execute(select(exists().where(User.email == email)))
        return bool(result.scalar())

    @staticmethod
    async def save(db: AsyncSession, user: User) -> User:
        """Persist the user and commit.

        Raises sqlalchemy.exc.IntegrityError on a unique constraint
        violation; the caller is responsible for rolling back.
        """
        db.add(user)
        await db.commit()
        return user


class CredentialRepository:
    """Queries and writes for the credentials table."""

    @staticmethod
    async def find_by_uid_and_provider(
        db: AsyncSession,
        uid: str,
        provider: str,
    ) -> Credential | None:
        result = await db.execute(
            select(Credential).where(
                Credential.uid == uid,
                Credential.provider == provider,
            )
        )
        return result.scalar_one_or_none()

    @staticmethod
    async def find_for_user(
        db: AsyncSession,
        user_id: uuid.UUID,
        provider: str,
    ) -> Credential | None:
        result = await db.execute(
            select(Credential).where(
                Credential.user_id == user_id,
                Credential.provider == provider,
            )
        )
        return result.scalar_one_or_none()

    @staticmethod
    async def create(db: AsyncSession, credential: Credential) -> Credential:
        """Insert a credential and commit. Raises IntegrityError on conflict."""
        db.add(credential)
        await db.commit()
        return credential
