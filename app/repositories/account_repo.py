from abc import ABC, abstractmethod
from datetime import datetime
from typing import Iterable, List, Optional

from motor.motor_asyncio import AsyncIOMotorDatabase
from pymongo.errors import DuplicateKeyError

from app.core.errors import EmailTakenError
from app.models.account import Account, PendingLink
from app.models.base import normalize_email


class AccountStore(ABC):
    """Account identity and verification flag."""

    @abstractmethod
    async def create(self, account: Account) -> Account:
        """Insert a new account. Raises EmailTakenError if the email is in use."""

    @abstractmethod
    async def get_by_id(self, account_id: str) -> Optional[Account]:
        ...

    @abstractmethod
    async def get_by_email(self, email: str) -> Optional[Account]:
        ...

    @abstractmethod
    async def get_many(self, account_ids: Iterable[str]) -> List[Account]:
        ...

    @abstractmethod
    async def mark_verified(self, account_id: str, now: datetime) -> bool:
        """Flip verified to True. Returns False if it already was (or no such account)."""

    @abstractmethod
    async def set_pending_link(self, account_id: str, link: Optional[PendingLink]) -> None:
        ...


class AccountRepository(AccountStore):
    """Account database operations."""

    def __init__(self, db: AsyncIOMotorDatabase):
        self.db = db
        self.collection = db["accounts"]

    async def create(self, account: Account) -> Account:
        """Create a new account."""
        try:
            await self.collection.insert_one(account.to_document())
        except DuplicateKeyError:
            raise EmailTakenError()
        return account

    async def get_by_id(self, account_id: str) -> Optional[Account]:
        """Get account by ID."""
        doc = await self.collection.find_one({"_id": account_id})
        if doc:
            return Account(**doc)
        return None

    async def get_by_email(self, email: str) -> Optional[Account]:
        """Get account by email."""
        doc = await self.collection.find_one({"email": normalize_email(email)})
        if doc:
            return Account(**doc)
        return None

    async def get_many(self, account_ids: Iterable[str]) -> List[Account]:
        cursor = self.collection.find({"_id": {"$in": list(account_ids)}})
        docs = await cursor.to_list(None)
        return [Account(**doc) for doc in docs]

    async def mark_verified(self, account_id: str, now: datetime) -> bool:
        result = await self.collection.update_one(
            {"_id": account_id, "verified": False},
            {"$set": {"verified": True, "verified_at": now}}
        )
        return result.modified_count == 1

    async def set_pending_link(self, account_id: str, link: Optional[PendingLink]) -> None:
        await self.collection.update_one(
            {"_id": account_id},
            {"$set": {"pending_link": link.model_dump() if link else None}}
        )
