from datetime import date, datetime
from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, Field


class ExpenseCreate(BaseModel):
    """Request body to record an expense with a friend."""
    friend_id: str
    amount: Decimal
    description: str
    paid_by_user_id: str
    expense_date: date
    idempotency_key: Optional[str] = Field(default=None, max_length=100)


class ExpenseResponse(BaseModel):
    id: str
    user_a_id: str
    user_b_id: str
    amount: Decimal
    description: str
    paid_by_user_id: str
    expense_date: date
    created_by: str
    created_at: datetime


class BalanceResponse(BaseModel):
    """Signed balance from the caller's side: positive means the friend owes the caller."""
    user_id: str
    friend_id: str
    signed_amount: Decimal
    status: str
