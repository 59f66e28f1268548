"""Tests for the payment ledger and its state machine."""

import itertools
from decimal import Decimal

import pytest
from sqlalchemy import func, select

from paygate.db.models import PaymentModel, TransactionModel
from paygate.exceptions import (
    ForbiddenError,
    InvalidInputError,
    InvalidStateTransitionError,
    NotFoundError,
)
from paygate.models.status import PaymentStatus, TransactionAction
from paygate.services import payment_service, transaction_service

ALLOWED = {
    (PaymentStatus.PENDING, PaymentStatus.SUCCESS),
    (PaymentStatus.PENDING, PaymentStatus.FAILED),
    (PaymentStatus.SUCCESS, PaymentStatus.REFUNDED),
}

# Shortest legal path from PENDING to each status
PATHS = {
    PaymentStatus.PENDING: [],
    PaymentStatus.SUCCESS: [PaymentStatus.SUCCESS],
    PaymentStatus.FAILED: [PaymentStatus.FAILED],
    PaymentStatus.REFUNDED: [PaymentStatus.SUCCESS, PaymentStatus.REFUNDED],
}


async def payment_in(db, merchant_id, status):
    payment = await payment_service.create_payment(db, merchant_id, Decimal("10.00"), "USD")
    for step in PATHS[status]:
        await payment_service.update_payment_status(db, payment.id, merchant_id, step)
    return payment


async def transaction_count(db, payment_id):
    return await db.scalar(
        select(func.count()).select_from(TransactionModel).where(TransactionModel.payment_id == payment_id)
    )


class TestTransitionTable:
    """Tests for the pure state machine."""

    @pytest.mark.parametrize("current,requested", list(itertools.product(PaymentStatus, repeat=2)))
    def test_only_table_edges_are_legal(self, current, requested):
        if (current, requested) in ALLOWED:
            assert payment_service.next_payment_status(current, requested) == requested
        else:
            with pytest.raises(InvalidStateTransitionError):
                payment_service.next_payment_status(current, requested)

    def test_error_message_names_both_states(self):
        with pytest.raises(InvalidStateTransitionError) as exc_info:
            payment_service.next_payment_status(PaymentStatus.PENDING, PaymentStatus.REFUNDED)

        assert str(exc_info.value) == "Cannot transition payment from PENDING to REFUNDED"
        assert exc_info.value.details == {"current_state": "PENDING", "attempted_action": "REFUNDED"}


class TestCreatePayment:
    """Tests for create_payment."""

    async def test_created_pending_with_audit_record(self, db, acme):
        merchant, _ = acme

        payment = await payment_service.create_payment(db, merchant.id, Decimal("49.99"), "USD", "order 1")

        assert payment.status == PaymentStatus.PENDING
        assert payment.amount == Decimal("49.99")
        assert payment.merchant_id == merchant.id

        transactions = await transaction_service.list_transactions_for_payment(db, payment.id)
        assert len(transactions) == 1
        assert transactions[0].action == TransactionAction.CREATE
        assert transactions[0].previous_status is None
        assert transactions[0].new_status == PaymentStatus.PENDING
        assert transactions[0].notes == "Payment created"

    async def test_unknown_merchant(self, db):
        with pytest.raises(NotFoundError):
            await payment_service.create_payment(db, 999, Decimal("1.00"), "USD")

    @pytest.mark.parametrize("amount", [Decimal("0"), Decimal("-5.00"), Decimal("1.999"), Decimal("1000000.00"), Decimal("1e30"), "1e30", "abc"])
    async def test_bad_amount(self, db, acme, amount):
        with pytest.raises(InvalidInputError):
            await payment_service.create_payment(db, acme[0].id, amount, "USD")

    @pytest.mark.parametrize("currency", ["usd", "US", "USDT", ""])
    async def test_bad_currency(self, db, acme, currency):
        with pytest.raises(InvalidInputError):
            await payment_service.create_payment(db, acme[0].id, Decimal("1.00"), currency)

    async def test_accepts_plain_numbers(self, db, acme):
        payment = await payment_service.create_payment(db, acme[0].id, 12.5, "EUR")

        assert payment.amount == Decimal("12.50")

    async def test_audit_failure_leaves_no_payment(self, db, acme, monkeypatch):
        def broken_log(db, payment):
            raise RuntimeError("audit store unavailable")

        monkeypatch.setattr(transaction_service, "log_create", broken_log)

        with pytest.raises(RuntimeError):
            await payment_service.create_payment(db, acme[0].id, Decimal("5.00"), "USD")

        assert await db.scalar(select(func.count()).select_from(PaymentModel)) == 0


class TestGetPayment:
    """Tests for get_payment ownership checks."""

    async def test_owner_can_read(self, db, acme):
        payment = await payment_service.create_payment(db, acme[0].id, Decimal("1.00"), "USD")

        assert (await payment_service.get_payment(db, payment.id, acme[0].id)).id == payment.id

    async def test_other_merchant_forbidden(self, db, acme, globex):
        payment = await payment_service.create_payment(db, acme[0].id, Decimal("1.00"), "USD")

        with pytest.raises(ForbiddenError, match="Access denied"):
            await payment_service.get_payment(db, payment.id, globex[0].id)

    async def test_missing_payment(self, db, acme):
        with pytest.raises(NotFoundError, match="Payment not found with ID: 12345"):
            await payment_service.get_payment(db, 12345, acme[0].id)


class TestListPayments:
    """Tests for list_payments."""

    async def test_paginated_newest_first(self, db, acme, globex):
        ids = [
            (await payment_service.create_payment(db, acme[0].id, Decimal(f"{i}.00"), "USD")).id
            for i in range(1, 4)
        ]
        await payment_service.create_payment(db, globex[0].id, Decimal("9.00"), "USD")

        first = await payment_service.list_payments(db, acme[0].id, page=0, size=2)
        second = await payment_service.list_payments(db, acme[0].id, page=1, size=2)

        assert first.total == 3
        assert first.total_pages == 2
        assert [p.id for p in first.items] == [ids[2], ids[1]]
        assert [p.id for p in second.items] == [ids[0]]

    async def test_default_page_size(self, db, acme):
        result = await payment_service.list_payments(db, acme[0].id)

        assert result.size == 20
        assert result.items == []
        assert result.total_pages == 0

    @pytest.mark.parametrize("page,size", [(-1, 10), (0, 0), (0, 101)])
    async def test_bad_paging(self, db, acme, page, size):
        with pytest.raises(InvalidInputError):
            await payment_service.list_payments(db, acme[0].id, page=page, size=size)


class TestUpdatePaymentStatus:
    """Tests for update_payment_status and refund_payment."""

    async def test_lifecycle_scenario(self, db, acme):
        merchant, _ = acme
        payment = await payment_service.create_payment(db, merchant.id, Decimal("49.99"), "USD", "order 1")
        assert payment.status == PaymentStatus.PENDING

        payment = await payment_service.update_payment_status(db, payment.id, merchant.id, PaymentStatus.SUCCESS)
        assert payment.status == PaymentStatus.SUCCESS

        payment = await payment_service.refund_payment(db, payment.id, merchant.id)
        assert payment.status == PaymentStatus.REFUNDED
        assert payment.refunded_at is not None
        assert payment.refund_reason == "Refund requested"

        transactions = await transaction_service.list_transactions_for_payment(db, payment.id)
        assert [t.action for t in transactions] == [
            TransactionAction.REFUND,
            TransactionAction.STATUS_UPDATE,
            TransactionAction.CREATE,
        ]
        refund, status_update, _ = transactions
        assert (status_update.previous_status, status_update.new_status) == (
            PaymentStatus.PENDING, PaymentStatus.SUCCESS
        )
        assert status_update.notes == "Status changed from PENDING to SUCCESS"
        assert (refund.previous_status, refund.new_status) == (PaymentStatus.SUCCESS, PaymentStatus.REFUNDED)
        assert refund.notes == "Refund issued: Refund requested"

    async def test_failed_is_status_update(self, db, acme):
        payment = await payment_in(db, acme[0].id, PaymentStatus.FAILED)

        transactions = await transaction_service.list_transactions_for_payment(db, payment.id)
        assert transactions[0].action == TransactionAction.STATUS_UPDATE
        assert transactions[0].new_status == PaymentStatus.FAILED

    async def test_refund_with_reason(self, db, acme):
        payment = await payment_in(db, acme[0].id, PaymentStatus.SUCCESS)

        payment = await payment_service.refund_payment(db, payment.id, acme[0].id, "Customer returned item")

        assert payment.refund_reason == "Customer returned item"
        transactions = await transaction_service.list_transactions_for_payment(db, payment.id)
        assert transactions[0].notes == "Refund issued: Customer returned item"

    async def test_refund_pending_rejected_without_side_effects(self, db, acme):
        merchant, _ = acme
        payment = await payment_service.create_payment(db, merchant.id, Decimal("49.99"), "USD")

        with pytest.raises(InvalidStateTransitionError):
            await payment_service.update_payment_status(db, payment.id, merchant.id, PaymentStatus.REFUNDED)

        stored = await db.scalar(select(PaymentModel.status).where(PaymentModel.id == payment.id))
        assert stored == PaymentStatus.PENDING
        assert await transaction_count(db, payment.id) == 1

    @pytest.mark.parametrize("current,requested", [
        pair for pair in itertools.product(PaymentStatus, repeat=2) if pair not in ALLOWED
    ])
    async def test_illegal_transitions_write_nothing(self, db, acme, current, requested):
        payment = await payment_in(db, acme[0].id, current)
        before = await transaction_count(db, payment.id)

        with pytest.raises(InvalidStateTransitionError):
            await payment_service.update_payment_status(db, payment.id, acme[0].id, requested)

        assert payment.status == current
        assert await transaction_count(db, payment.id) == before

    async def test_accepts_status_strings(self, db, acme):
        payment = await payment_service.create_payment(db, acme[0].id, Decimal("1.00"), "USD")

        payment = await payment_service.update_payment_status(db, payment.id, acme[0].id, "SUCCESS")

        assert payment.status == PaymentStatus.SUCCESS

    async def test_unknown_status_string(self, db, acme):
        payment = await payment_service.create_payment(db, acme[0].id, Decimal("1.00"), "USD")

        with pytest.raises(InvalidInputError):
            await payment_service.update_payment_status(db, payment.id, acme[0].id, "SETTLED")

    async def test_ownership_checked_before_transition(self, db, acme, globex):
        payment = await payment_service.create_payment(db, acme[0].id, Decimal("1.00"), "USD")

        with pytest.raises(ForbiddenError):
            await payment_service.update_payment_status(db, payment.id, globex[0].id, PaymentStatus.REFUNDED)
        with pytest.raises(NotFoundError):
            await payment_service.refund_payment(db, 999, acme[0].id)

    async def test_audit_failure_rolls_back_status(self, db, acme, monkeypatch):
        payment = await payment_service.create_payment(db, acme[0].id, Decimal("1.00"), "USD")
        payment_id = payment.id

        def broken_log(*args, **kwargs):
            raise RuntimeError("audit store unavailable")

        monkeypatch.setattr(transaction_service, "log_transition", broken_log)

        with pytest.raises(RuntimeError):
            await payment_service.update_payment_status(db, payment_id, acme[0].id, PaymentStatus.SUCCESS)

        stored = await db.scalar(select(PaymentModel.status).where(PaymentModel.id == payment_id))
        assert stored == PaymentStatus.PENDING
        assert await transaction_count(db, payment_id) == 1
