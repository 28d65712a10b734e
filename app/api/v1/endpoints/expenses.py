from typing import List

from fastapi import APIRouter, Depends, status

from app.core.auth import get_current_account, get_services
from app.models.account import Account
from app.models.expense import ExpenseRecord
from app.schemas.ledger import BalanceResponse, ExpenseCreate, ExpenseResponse
from app.services.container import Services
from app.services.ledger_service import balance_status

router = APIRouter()


def _expense_response(record: ExpenseRecord) -> ExpenseResponse:
    return ExpenseResponse(
        id=record.id,
        user_a_id=record.first_id,
        user_b_id=record.second_id,
        amount=record.amount,
        description=record.description,
        paid_by_user_id=record.payer_id,
        expense_date=record.expense_date,
        created_by=record.created_by,
        created_at=record.created_at
    )


@router.post("", response_model=ExpenseResponse, status_code=status.HTTP_201_CREATED)
async def record_expense(
    payload: ExpenseCreate,
    current_account: Account = Depends(get_current_account),
    services: Services = Depends(get_services)
):
    """Record an expense between the current user and a friend"""
    record = await services.ledger.record_expense(
        first_id=current_account.id,
        second_id=payload.friend_id,
        payer_id=payload.paid_by_user_id,
        amount=payload.amount,
        description=payload.description,
        expense_date=payload.expense_date,
        created_by=current_account.id,
        idempotency_key=payload.idempotency_key
    )
    return _expense_response(record)


@router.get("/{friend_id}", response_model=List[ExpenseResponse])
async def list_expenses(
    friend_id: str,
    current_account: Account = Depends(get_current_account),
    services: Services = Depends(get_services)
):
    """List expenses with a friend, oldest first"""
    records = await services.ledger.list_between(current_account.id, friend_id)
    return [_expense_response(record) for record in records]


@router.get("/{friend_id}/balance", response_model=BalanceResponse)
async def get_balance(
    friend_id: str,
    current_account: Account = Depends(get_current_account),
    services: Services = Depends(get_services)
):
    """Net balance with a friend from the current user's side"""
    signed_amount = await services.ledger.balance(current_account.id, friend_id)
    return BalanceResponse(
        user_id=current_account.id,
        friend_id=friend_id,
        signed_amount=signed_amount,
        status=balance_status(signed_amount)
    )
