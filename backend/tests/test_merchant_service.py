"""Tests for merchant registration, login and the approval workflow."""

import pytest
from sqlalchemy import func, select

from paygate.db import repositories
from paygate.db.models import ApiKeyModel, MerchantModel
from paygate.exceptions import (
    ConflictError,
    InvalidInputError,
    InvalidStateTransitionError,
    NotFoundError,
    UnauthorizedError,
)
from paygate.models.status import MerchantStatus
from paygate.services import merchant_service
from paygate.services.api_key_generator import hash_api_key
from paygate.services.password_hasher import verify_password

from conftest import PASSWORD

REASON = "Failed KYC verification checks"


async def count(db, model):
    return await db.scalar(select(func.count()).select_from(model))


class TestRegisterMerchant:
    """Tests for register_merchant."""

    async def test_new_merchant_is_pending(self, db):
        merchant, _ = await merchant_service.register_merchant(db, "Acme", "a@acme.com", PASSWORD)

        assert merchant.id is not None
        assert merchant.status == MerchantStatus.PENDING
        assert merchant.email_verified is False

    async def test_password_stored_as_digest(self, db):
        merchant, _ = await merchant_service.register_merchant(db, "Acme", "a@acme.com", PASSWORD)

        assert merchant.password_hash != PASSWORD
        assert verify_password(PASSWORD, merchant.password_hash)

    async def test_returned_key_digest_matches_stored(self, db):
        merchant, plain_key = await merchant_service.register_merchant(db, "Acme", "a@acme.com", PASSWORD)

        record = await repositories.find_api_key_by_hash(db, hash_api_key(plain_key))
        assert record is not None
        assert record.merchant_id == merchant.id
        assert record.label == "Default"
        assert record.revoked is False

        stored = (await db.execute(select(ApiKeyModel.key_hash))).scalars().all()
        assert plain_key not in stored

    async def test_duplicate_email_conflicts_without_minting_key(self, db, monkeypatch):
        await merchant_service.register_merchant(db, "Acme", "a@acme.com", PASSWORD)

        def fail_if_called():
            raise AssertionError("API key generated for duplicate registration")

        monkeypatch.setattr(merchant_service, "generate_api_key", fail_if_called)

        with pytest.raises(ConflictError, match="Email already registered"):
            await merchant_service.register_merchant(db, "Acme 2", "a@acme.com", PASSWORD)

        assert await count(db, MerchantModel) == 1
        assert await count(db, ApiKeyModel) == 1

    async def test_unique_constraint_race_maps_to_conflict(self, db, monkeypatch):
        await merchant_service.register_merchant(db, "Acme", "a@acme.com", PASSWORD)

        async def not_registered(db, email):
            return False

        # Simulate a concurrent request that passed the existence check
        monkeypatch.setattr(repositories, "exists_merchant_by_email", not_registered)

        with pytest.raises(ConflictError):
            await merchant_service.register_merchant(db, "Acme 2", "a@acme.com", PASSWORD)

        assert await count(db, MerchantModel) == 1
        assert await count(db, ApiKeyModel) == 1


class TestLookup:
    """Tests for find_merchant_by_id / find_merchant_by_email."""

    async def test_find_by_id_and_email(self, db, acme):
        merchant, _ = acme

        assert (await merchant_service.find_merchant_by_id(db, merchant.id)).email == "a@acme.com"
        assert (await merchant_service.find_merchant_by_email(db, "a@acme.com")).id == merchant.id

    async def test_find_by_id_missing(self, db):
        with pytest.raises(NotFoundError, match="Merchant not found with ID: 999"):
            await merchant_service.find_merchant_by_id(db, 999)

    async def test_find_by_email_missing(self, db):
        with pytest.raises(NotFoundError):
            await merchant_service.find_merchant_by_email(db, "nobody@acme.com")


class TestLogin:
    """Tests for login."""

    async def test_login_success(self, db, acme):
        merchant = await merchant_service.login(db, "a@acme.com", PASSWORD)

        assert merchant.id == acme[0].id

    async def test_pending_merchant_can_log_in(self, db, make_merchant):
        await make_merchant("new@acme.com", approve=False)

        merchant = await merchant_service.login(db, "new@acme.com", PASSWORD)

        assert merchant.status == MerchantStatus.PENDING

    async def test_failures_are_indistinguishable(self, db, acme):
        with pytest.raises(UnauthorizedError) as wrong_password:
            await merchant_service.login(db, "a@acme.com", "Wrong1!pass")
        with pytest.raises(UnauthorizedError) as unknown_email:
            await merchant_service.login(db, "ghost@acme.com", PASSWORD)

        assert wrong_password.value.message == unknown_email.value.message == "Invalid email or password"
        assert wrong_password.value.to_dict() == unknown_email.value.to_dict()

    async def test_empty_password_does_not_reveal_registered_email(self, db, acme):
        with pytest.raises(UnauthorizedError) as known_email:
            await merchant_service.login(db, "a@acme.com", "")
        with pytest.raises(UnauthorizedError) as unknown_email:
            await merchant_service.login(db, "ghost@acme.com", "")

        assert known_email.value.to_dict() == unknown_email.value.to_dict()
        assert known_email.value.message == "Invalid email or password"


class TestApprovalWorkflow:
    """Tests for approve/reject/suspend."""

    async def test_approve_pending(self, db, make_merchant):
        merchant, _ = await make_merchant("m@acme.com", approve=False)

        approved = await merchant_service.approve_merchant(db, merchant.id)

        assert approved.status == MerchantStatus.APPROVED

    async def test_approve_twice_fails(self, db, acme):
        with pytest.raises(InvalidStateTransitionError) as exc_info:
            await merchant_service.approve_merchant(db, acme[0].id)

        assert str(exc_info.value) == (
            "Only merchants with PENDING status can be approved. Current status: APPROVED"
        )
        assert exc_info.value.current_state == "APPROVED"

    async def test_reject_pending_records_reason(self, db, make_merchant):
        merchant, _ = await make_merchant("m@acme.com", approve=False)

        rejected = await merchant_service.reject_merchant(db, merchant.id, REASON)

        assert rejected.status == MerchantStatus.REJECTED
        assert rejected.status_reason == REASON

    async def test_reject_approved_fails(self, db, acme):
        with pytest.raises(InvalidStateTransitionError):
            await merchant_service.reject_merchant(db, acme[0].id, REASON)

    async def test_suspend_approved(self, db, acme):
        suspended = await merchant_service.suspend_merchant(db, acme[0].id, REASON)

        assert suspended.status == MerchantStatus.SUSPENDED

    async def test_suspend_pending_fails(self, db, make_merchant):
        merchant, _ = await make_merchant("m@acme.com", approve=False)

        with pytest.raises(InvalidStateTransitionError, match="APPROVED status can be suspended"):
            await merchant_service.suspend_merchant(db, merchant.id, REASON)

    async def test_terminal_states_have_no_exit(self, db, make_merchant):
        rejected, _ = await make_merchant("r@acme.com", approve=False)
        await merchant_service.reject_merchant(db, rejected.id, REASON)
        suspended, _ = await make_merchant("s@acme.com")
        await merchant_service.suspend_merchant(db, suspended.id, REASON)

        for merchant_id in (rejected.id, suspended.id):
            with pytest.raises(InvalidStateTransitionError):
                await merchant_service.approve_merchant(db, merchant_id)
            with pytest.raises(InvalidStateTransitionError):
                await merchant_service.suspend_merchant(db, merchant_id, REASON)

    @pytest.mark.parametrize("reason", ["", "too short", "x" * 501])
    async def test_reason_length_enforced(self, db, make_merchant, reason):
        merchant, _ = await make_merchant("m@acme.com", approve=False)

        with pytest.raises(InvalidInputError):
            await merchant_service.reject_merchant(db, merchant.id, reason)

        assert (await merchant_service.find_merchant_by_id(db, merchant.id)).status == MerchantStatus.PENDING

    async def test_unknown_merchant(self, db):
        with pytest.raises(NotFoundError):
            await merchant_service.approve_merchant(db, 42)
        with pytest.raises(NotFoundError):
            await merchant_service.suspend_merchant(db, 42, REASON)
