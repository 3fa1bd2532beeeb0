"""
Unit tests for AccountRepository on an in-memory database.
"""
import uuid

import pytest

from identity_service.core.exceptions import DuplicateAccountError, GenericError, NotFoundError
from tests.factories import AccountFieldsFactory


class TestAccountRepository:
    """Test suite for AccountRepository."""

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_create_and_find(self, account_repository):
        fields = AccountFieldsFactory(email="alice@example.com")

        account = await account_repository.create(fields)

        assert uuid.UUID(account.id)
        assert account.roles == ["user"]
        assert account.email_validated is False

        by_email = await account_repository.find_by_email("alice@example.com")
        by_id = await account_repository.find_by_id(account.id)
        assert by_email.id == account.id
        assert by_id.email == "alice@example.com"
        assert by_id.created_at is not None

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_defaults_applied(self, account_repository):
        account = await account_repository.create({
            "email": "bob@example.com",
            "password_hash": "digest",
        })

        stored = await account_repository.find_by_id(account.id)
        assert stored.roles == ["user"]
        assert stored.email_validated is False
        assert stored.firstname is None

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_missing_account_is_none(self, account_repository):
        assert await account_repository.find_by_email("nobody@example.com") is None
        assert await account_repository.find_by_id(str(uuid.uuid4())) is None

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_email_lookup_is_case_sensitive(self, account_repository):
        await account_repository.create(AccountFieldsFactory(email="alice@example.com"))

        assert await account_repository.find_by_email("Alice@example.com") is None

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_duplicate_email_rejected(self, account_repository):
        await account_repository.create(AccountFieldsFactory(email="alice@example.com"))

        with pytest.raises(DuplicateAccountError):
            await account_repository.create(AccountFieldsFactory(email="alice@example.com"))

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_update(self, account_repository):
        account = await account_repository.create(AccountFieldsFactory())

        updated = await account_repository.update(account.id, {"email_validated": True, "roles": ["user", "admin"]})

        assert updated.email_validated is True
        stored = await account_repository.find_by_id(account.id)
        assert stored.email_validated is True
        assert stored.roles == ["user", "admin"]

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_update_missing_account(self, account_repository):
        with pytest.raises(NotFoundError):
            await account_repository.update(str(uuid.uuid4()), {"email_validated": True})

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_update_to_taken_email(self, account_repository):
        await account_repository.create(AccountFieldsFactory(email="alice@example.com"))
        bob = await account_repository.create(AccountFieldsFactory(email="bob@example.com"))

        with pytest.raises(DuplicateAccountError):
            await account_repository.update(bob.id, {"email": "alice@example.com"})

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_unknown_fields_rejected(self, account_repository):
        account = await account_repository.create(AccountFieldsFactory())

        with pytest.raises(GenericError):
            await account_repository.update(account.id, {"avatar": "me.png"})
