"""
Ledger - append-only expense records between two friends, and the balance
derived from them.

Balance(observer, counterparty) =
    sum(amount where payer == observer) - sum(amount where payer == counterparty)

Positive: counterparty owes observer. Negative: observer owes counterparty.
Zero: settled. All arithmetic is Decimal.
"""

from datetime import date
from decimal import MAX_PREC, Decimal, InvalidOperation, localcontext
from typing import Iterable, List, Optional, Union

import structlog

from app.core.errors import (
    EmptyDescriptionError,
    InvalidAmountError,
    InvalidPayerError,
    NotFriendsError,
)
from app.models.base import Clock, utcnow
from app.models.expense import ExpenseRecord
from app.repositories.expense_repo import ExpenseStore
from app.services.friendship_service import FriendshipGraph

logger = structlog.get_logger(__name__)

Amount = Union[Decimal, int, str, float]


def fold_balance(records: Iterable[ExpenseRecord], observer: str, counterparty: str, places: int = 2) -> Decimal:
    """Signed amount ``counterparty`` owes ``observer`` over ``records``."""
    # Exact at any magnitude: the default 28-digit context would round or trap.
    with localcontext() as ctx:
        ctx.prec = MAX_PREC
        total = Decimal("0")
        for record in records:
            if not record.involves(observer, counterparty):
                continue
            if record.payer_id == observer:
                total += record.amount
            elif record.payer_id == counterparty:
                total -= record.amount
        return total.quantize(Decimal(1).scaleb(-places))


def balance_status(signed_amount: Decimal) -> str:
    if signed_amount > 0:
        return "owed"
    if signed_amount < 0:
        return "owes"
    return "settled"


class Ledger:

    def __init__(
        self,
        expenses: ExpenseStore,
        friendships: FriendshipGraph,
        decimal_places: int = 2,
        max_amount: Decimal = Decimal("1000000000"),
        clock: Clock = utcnow,
    ):
        self.expenses = expenses
        self.friendships = friendships
        self.decimal_places = decimal_places
        self.max_amount = Decimal(max_amount)
        self.clock = clock

    async def record_expense(
        self,
        first_id: str,
        second_id: str,
        payer_id: str,
        amount: Amount,
        description: str,
        expense_date: date,
        created_by: Optional[str] = None,
        idempotency_key: Optional[str] = None,
    ) -> ExpenseRecord:
        """
        Append an expense between two friends.

        Checks, in order: NotFriends, InvalidPayer, InvalidAmount,
        EmptyDescription. Nothing is written unless all pass. A repeated
        ``idempotency_key`` from the same creator returns the stored record.
        """
        if not await self.friendships.are_friends(first_id, second_id):
            raise NotFriendsError()
        if payer_id not in (first_id, second_id):
            raise InvalidPayerError()
        value = self._parse_amount(amount)
        if description is None or not description.strip():
            raise EmptyDescriptionError()

        record = ExpenseRecord(
            first_id=first_id,
            second_id=second_id,
            payer_id=payer_id,
            amount=value,
            description=description.strip(),
            expense_date=expense_date,
            created_by=created_by or first_id,
            idempotency_key=idempotency_key,
            created_at=self.clock(),
        )
        stored = await self.expenses.insert(record)

        if stored.id == record.id:
            logger.info(
                "expense_recorded",
                expense_id=stored.id,
                first_id=first_id,
                second_id=second_id,
                payer_id=payer_id,
                amount=str(stored.amount),
            )
        else:
            logger.info("expense_resubmitted", expense_id=stored.id, idempotency_key=idempotency_key)
        return stored

    async def list_between(self, a: str, b: str) -> List[ExpenseRecord]:
        """Records between a and b, oldest first. Same result from either side."""
        return await self.expenses.list_between(a, b)

    async def balance(self, observer: str, counterparty: str) -> Decimal:
        records = await self.list_between(observer, counterparty)
        return fold_balance(records, observer, counterparty, self.decimal_places)

    # ===== PRIVATE HELPERS =====

    def _parse_amount(self, amount: Amount) -> Decimal:
        """Validate and quantize a money amount."""
        if isinstance(amount, bool):
            raise InvalidAmountError()
        try:
            value = amount if isinstance(amount, Decimal) else Decimal(str(amount))
        except (InvalidOperation, ValueError):
            raise InvalidAmountError()

        if not value.is_finite() or value <= 0:
            raise InvalidAmountError()
        if value > self.max_amount:
            raise InvalidAmountError(f"Amount may not exceed {self.max_amount}")
        if value.normalize().as_tuple().exponent < -self.decimal_places:
            raise InvalidAmountError(
                f"Amount may have at most {self.decimal_places} decimal places"
            )
        return value.quantize(Decimal(1).scaleb(-self.decimal_places))
