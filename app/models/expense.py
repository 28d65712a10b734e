"""
Expense model - one entry of the append-only ledger between two friends.

Design principles:
- Exactly two participants, in fixed "first" / "second" roles per record
- The payer is one of the participants
- Amounts are Decimal, never float
- Immutable once written
"""

from datetime import date
from decimal import Decimal
from typing import Optional

from app.models.base import DocumentModel


class ExpenseRecord(DocumentModel):
    first_id: str
    second_id: str
    payer_id: str
    amount: Decimal
    description: str
    expense_date: date
    created_by: str
    idempotency_key: Optional[str] = None

    def involves(self, a: str, b: str) -> bool:
        return {self.first_id, self.second_id} == {a, b}
