"""
ExpenseRepository - append-only storage of pairwise expense records.

Storage format:
- amount as Decimal128, so sums never go through binary floating point
- expense_date as an ISO "YYYY-MM-DD" string (BSON has no date-only type)
- pair_key = "<min id>:<max id>", so one index serves both query directions
- idempotency_key only present when the client supplied one; unique per creator
"""

from abc import ABC, abstractmethod
from typing import List, Optional

from bson.decimal128 import Decimal128
from motor.motor_asyncio import AsyncIOMotorDatabase
from pymongo.errors import DuplicateKeyError

from app.models.expense import ExpenseRecord


def pair_key(a: str, b: str) -> str:
    return ":".join(sorted((a, b)))


class ExpenseStore(ABC):

    @abstractmethod
    async def insert(self, record: ExpenseRecord) -> ExpenseRecord:
        """
        Append a record. If a record with the same (created_by, idempotency_key)
        already exists, return that one instead.
        """

    @abstractmethod
    async def find_by_idempotency_key(self, created_by: str, key: str) -> Optional[ExpenseRecord]:
        ...

    @abstractmethod
    async def list_between(self, a: str, b: str) -> List[ExpenseRecord]:
        """All records between a and b, oldest first."""


class ExpenseRepository(ExpenseStore):
    """Repository for expense records."""

    def __init__(self, db: AsyncIOMotorDatabase):
        self.db = db
        self.collection = db["expenses"]

    async def insert(self, record: ExpenseRecord) -> ExpenseRecord:
        try:
            await self.collection.insert_one(self._to_document(record))
        except DuplicateKeyError:
            if record.idempotency_key is None:
                raise
            existing = await self.find_by_idempotency_key(record.created_by, record.idempotency_key)
            if existing is None:
                raise
            return existing
        return record

    async def find_by_idempotency_key(self, created_by: str, key: str) -> Optional[ExpenseRecord]:
        doc = await self.collection.find_one({"created_by": created_by, "idempotency_key": key})
        if doc:
            return self._from_document(doc)
        return None

    async def list_between(self, a: str, b: str) -> List[ExpenseRecord]:
        cursor = self.collection.find({"pair_key": pair_key(a, b)}).sort([("created_at", 1), ("_id", 1)])
        docs = await cursor.to_list(None)
        return [self._from_document(doc) for doc in docs]

    # ===== PRIVATE HELPERS =====

    def _to_document(self, record: ExpenseRecord) -> dict:
        doc = record.to_document()
        doc["amount"] = Decimal128(record.amount)
        doc["expense_date"] = record.expense_date.isoformat()
        doc["pair_key"] = pair_key(record.first_id, record.second_id)
        if record.idempotency_key is None:
            doc.pop("idempotency_key")
        return doc

    def _from_document(self, doc: dict) -> ExpenseRecord:
        doc = dict(doc)
        amount = doc.get("amount")
        if isinstance(amount, Decimal128):
            doc["amount"] = amount.to_decimal()
        return ExpenseRecord(**doc)
