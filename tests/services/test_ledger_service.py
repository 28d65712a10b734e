from datetime import date, datetime, timezone
from decimal import Decimal

import pytest

from app.core.errors import (
    EmptyDescriptionError,
    InvalidAmountError,
    InvalidPayerError,
    NotFriendsError,
)
from app.models.expense import ExpenseRecord
from app.services.ledger_service import Ledger, balance_status, fold_balance

DINNER = date(2026, 1, 14)


def make_record(first_id, second_id, payer_id, amount, minute=0):
    return ExpenseRecord(
        first_id=first_id,
        second_id=second_id,
        payer_id=payer_id,
        amount=Decimal(amount),
        description="Dinner",
        expense_date=DINNER,
        created_by=first_id,
        created_at=datetime(2026, 1, 15, 12, minute, tzinfo=timezone.utc),
    )


class TestFoldBalance:

    def test_empty_history_is_settled(self):
        assert fold_balance([], "a", "b") == Decimal("0.00")

    def test_payer_is_owed_the_full_amount(self):
        records = [make_record("a", "b", "a", "500")]

        assert fold_balance(records, "a", "b") == Decimal("500.00")
        assert fold_balance(records, "b", "a") == Decimal("-500.00")

    def test_payments_in_both_directions_net_out(self):
        records = [
            make_record("a", "b", "a", "500"),
            make_record("b", "a", "b", "150", minute=1),
        ]

        assert fold_balance(records, "a", "b") == Decimal("350.00")
        assert fold_balance(records, "b", "a") == Decimal("-350.00")

    def test_records_of_other_pairs_are_ignored(self):
        records = [
            make_record("a", "b", "a", "10"),
            make_record("a", "c", "a", "99"),
        ]

        assert fold_balance(records, "a", "b") == Decimal("10.00")

    def test_decimal_sum_is_exact(self):
        records = [make_record("a", "b", "a", "0.10") for _ in range(3)]

        assert fold_balance(records, "a", "b") == Decimal("0.30")

    def test_sum_beyond_default_decimal_precision(self):
        records = [make_record("a", "b", "a", "9" * 26, minute=i) for i in range(11)]

        balance = fold_balance(records, "a", "b")

        assert balance == Decimal("9" * 26) * 11
        assert fold_balance(records, "b", "a") == -balance

    def test_balance_status(self):
        assert balance_status(Decimal("350.00")) == "owed"
        assert balance_status(Decimal("-0.01")) == "owes"
        assert balance_status(Decimal("0.00")) == "settled"


@pytest.mark.asyncio
async def test_record_expense_between_friends(services, befriended, clock):
    alice, bob = await befriended()

    record = await services.ledger.record_expense(alice.id, bob.id, alice.id, "500", "Dinner", DINNER)

    assert record.amount == Decimal("500.00")
    assert record.payer_id == alice.id
    assert record.description == "Dinner"
    assert record.expense_date == DINNER
    assert record.created_by == alice.id
    assert record.created_at == clock.now


@pytest.mark.asyncio
async def test_list_between_is_the_same_from_both_sides(services, befriended, clock):
    alice, bob = await befriended()
    await services.ledger.record_expense(alice.id, bob.id, alice.id, "500", "Dinner", DINNER)
    clock.advance(minutes=1)
    await services.ledger.record_expense(bob.id, alice.id, bob.id, "150", "Taxi", DINNER)

    from_alice = await services.ledger.list_between(alice.id, bob.id)
    from_bob = await services.ledger.list_between(bob.id, alice.id)

    assert [record.description for record in from_alice] == ["Dinner", "Taxi"]
    assert [record.id for record in from_alice] == [record.id for record in from_bob]


@pytest.mark.asyncio
async def test_balance_is_antisymmetric(services, befriended, clock):
    alice, bob = await befriended()
    await services.ledger.record_expense(alice.id, bob.id, alice.id, "500", "Dinner", DINNER)
    clock.advance(minutes=1)
    await services.ledger.record_expense(bob.id, alice.id, bob.id, "150", "Taxi", DINNER)

    assert await services.ledger.balance(alice.id, bob.id) == Decimal("350.00")
    assert await services.ledger.balance(bob.id, alice.id) == Decimal("-350.00")


@pytest.mark.asyncio
async def test_either_participant_can_be_recorded_as_payer(services, befriended):
    alice, bob = await befriended()

    await services.ledger.record_expense(alice.id, bob.id, bob.id, "40", "Groceries", DINNER)

    assert await services.ledger.balance(alice.id, bob.id) == Decimal("-40.00")


@pytest.mark.asyncio
async def test_balance_without_records_is_zero(services, befriended):
    alice, bob = await befriended()

    assert await services.ledger.balance(alice.id, bob.id) == Decimal("0.00")


@pytest.mark.asyncio
async def test_record_requires_friendship(services, onboard):
    alice = await onboard("alice@x.com")
    carol = await onboard("carol@x.com")

    with pytest.raises(NotFriendsError):
        await services.ledger.record_expense(alice.id, carol.id, alice.id, "10", "Lunch", DINNER)

    assert await services.ledger.list_between(alice.id, carol.id) == []


@pytest.mark.asyncio
async def test_record_rejects_self_pair(services, onboard):
    alice = await onboard("alice@x.com")

    with pytest.raises(NotFriendsError):
        await services.ledger.record_expense(alice.id, alice.id, alice.id, "10", "Lunch", DINNER)


@pytest.mark.asyncio
async def test_record_rejects_outside_payer(services, befriended, onboard):
    alice, bob = await befriended()
    carol = await onboard("carol@x.com")

    with pytest.raises(InvalidPayerError):
        await services.ledger.record_expense(alice.id, bob.id, carol.id, "10", "Lunch", DINNER)


@pytest.mark.asyncio
@pytest.mark.parametrize("amount", ["0", "-5", "abc", "NaN", "Infinity", "10.001", True])
async def test_record_rejects_invalid_amount(services, befriended, amount):
    alice, bob = await befriended()

    with pytest.raises(InvalidAmountError):
        await services.ledger.record_expense(alice.id, bob.id, alice.id, amount, "Lunch", DINNER)

    assert await services.ledger.list_between(alice.id, bob.id) == []


@pytest.mark.asyncio
async def test_record_accepts_trailing_zeros(services, befriended):
    alice, bob = await befriended()

    record = await services.ledger.record_expense(alice.id, bob.id, alice.id, "12.500", "Lunch", DINNER)

    assert record.amount == Decimal("12.50")


@pytest.mark.asyncio
@pytest.mark.parametrize("description", ["", "   ", None])
async def test_record_rejects_empty_description(services, befriended, description):
    alice, bob = await befriended()

    with pytest.raises(EmptyDescriptionError):
        await services.ledger.record_expense(alice.id, bob.id, alice.id, "10", description, DINNER)


@pytest.mark.asyncio
async def test_validation_order(services, befriended, onboard):
    alice, bob = await befriended()
    carol = await onboard("carol@x.com")

    # Every rule broken at once: friendship is checked first
    with pytest.raises(NotFriendsError):
        await services.ledger.record_expense(alice.id, carol.id, bob.id, "-1", "", DINNER)
    with pytest.raises(InvalidPayerError):
        await services.ledger.record_expense(alice.id, bob.id, carol.id, "-1", "", DINNER)
    with pytest.raises(InvalidAmountError):
        await services.ledger.record_expense(alice.id, bob.id, alice.id, "-1", "", DINNER)


@pytest.mark.asyncio
async def test_idempotency_key_returns_existing_record(services, befriended, clock):
    alice, bob = await befriended()

    first = await services.ledger.record_expense(
        alice.id, bob.id, alice.id, "500", "Dinner", DINNER, idempotency_key="dinner-1"
    )
    clock.advance(seconds=5)
    second = await services.ledger.record_expense(
        alice.id, bob.id, alice.id, "500", "Dinner", DINNER, idempotency_key="dinner-1"
    )

    assert second.id == first.id
    assert len(await services.ledger.list_between(alice.id, bob.id)) == 1
    assert await services.ledger.balance(alice.id, bob.id) == Decimal("500.00")


@pytest.mark.asyncio
async def test_idempotency_key_is_scoped_to_creator(services, befriended):
    alice, bob = await befriended()

    await services.ledger.record_expense(
        alice.id, bob.id, alice.id, "500", "Dinner", DINNER, idempotency_key="same"
    )
    await services.ledger.record_expense(
        bob.id, alice.id, bob.id, "150", "Taxi", DINNER, idempotency_key="same"
    )

    assert len(await services.ledger.list_between(alice.id, bob.id)) == 2


@pytest.mark.asyncio
@pytest.mark.parametrize("amount", ["1" + "0" * 27, "1E+40", "1000000000.01"])
async def test_record_rejects_amount_above_maximum(services, befriended, amount):
    alice, bob = await befriended()

    with pytest.raises(InvalidAmountError):
        await services.ledger.record_expense(alice.id, bob.id, alice.id, amount, "Yacht", DINNER)

    assert await services.ledger.list_between(alice.id, bob.id) == []


@pytest.mark.asyncio
async def test_record_accepts_maximum_amount(services, befriended):
    alice, bob = await befriended()

    record = await services.ledger.record_expense(alice.id, bob.id, alice.id, "1000000000", "House", DINNER)

    assert record.amount == Decimal("1000000000.00")


@pytest.mark.asyncio
async def test_balance_of_large_history_does_not_fail(stores, services, befriended, clock):
    alice, bob = await befriended()
    ledger = Ledger(stores.expenses, services.friendships, max_amount=Decimal("9" * 26), clock=clock)

    for minute in range(11):
        clock.advance(minutes=1)
        await ledger.record_expense(alice.id, bob.id, alice.id, "9" * 26, f"Transfer {minute}", DINNER)

    assert await ledger.balance(alice.id, bob.id) == Decimal("9" * 26) * 11
    assert await ledger.balance(bob.id, alice.id) == -(Decimal("9" * 26) * 11)
