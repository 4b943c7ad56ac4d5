"""Tests for the storage layer."""

import pytest
from sqlalchemy.exc import IntegrityError

from social_login.errors import ValidationError
from social_login.models import Credential
from social_login.repositories import CredentialRepository, UserRepository


class TestUserRepository:
    @pytest.mark.asyncio
    async def test_find_by_login_and_email(self, db_session, make_user):
        user = await UserRepository.save(db_session, make_user("alice"))

        assert await UserRepository.find_by_login(db_session, "alice") is user
        assert await UserRepository.find_by_email(db_session, "alice@example.test") is user
        assert await UserRepository.find_by_login(db_session, "bob") is None

    @pytest.mark.asyncio
    async def test_exists_checks(self, db_session, make_user):
        await UserRepository.save(db_session, make_user("alice"))

        assert await UserRepository.login_exists(db_session, "alice")
        assert not await UserRepository.login_exists(db_session, "alice-1")
        assert await UserRepository.email_exists(db_session, "alice@example.test")

    @pytest.mark.asyncio
    async def test_duplicate_login_violates_constraint(self, db_session, make_user):
        await UserRepository.save(db_session, make_user("alice"))

        with pytest.raises(IntegrityError):
            await UserRepository.save(db_session, make_user("alice", email="other@example.test"))
        await db_session.rollback()


class TestCredentialRepository:
    @pytest.mark.asyncio
    async def test_lookups(self, db_session, make_user):
        user = await UserRepository.save(db_session, make_user("alice"))
        credential = await CredentialRepository.create(
            db_session,
            Credential(user_id=user.id, uid="42", provider="vkontakte", access_token="tok"),
        )

        assert (
            await CredentialRepository.find_by_uid_and_provider(db_session, "42", "vkontakte")
            is credential
        )
        assert await CredentialRepository.find_for_user(db_session, user.id, "vkontakte") is credential
        assert await CredentialRepository.find_for_user(db_session, user.id, "twitter") is None

    @pytest.mark.asyncio
    async def test_uid_provider_is_unique(self, db_session, make_user):
        alice = await UserRepository.save(db_session, make_user("alice"))
        bob = await UserRepository.save(db_session, make_user("bob"))
        await CredentialRepository.create(
            db_session, Credential(user_id=alice.id, uid="42", provider="vkontakte")
        )

        with pytest.raises(IntegrityError):
            await CredentialRepository.create(
                db_session, Credential(user_id=bob.id, uid="42", provider="vkontakte")
            )
        await db_session.rollback()


class TestValidationError:
    def test_to_dict(self):
        error = ValidationError("credentials", "uniqueness", "already linked")

        assert error.to_dict() == {
            "field": "credentials",
            "code": "uniqueness",
            "message": "already linked",
        }
        assert str(error) == "already linked"

    def test_default_message(self):
        assert ValidationError("login", "uniqueness").message == "login is invalid (uniqueness)"
