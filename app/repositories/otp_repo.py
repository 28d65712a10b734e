"""
One-time code storage.

There is one code document per account, keyed by the account id, so issuing a
new code is a single replace that supersedes the old one, and verifying is a
single delete that only matches the current, unexpired code.
"""

from abc import ABC, abstractmethod
from datetime import datetime
from typing import Optional

from motor.motor_asyncio import AsyncIOMotorDatabase

from app.models.otp import OneTimeCode


class OneTimeCodeStore(ABC):

    @abstractmethod
    async def replace(self, code: OneTimeCode) -> None:
        """Store ``code`` as the only active code of its account."""

    @abstractmethod
    async def get(self, account_id: str) -> Optional[OneTimeCode]:
        ...

    @abstractmethod
    async def consume(self, account_id: str, submitted: str, now: datetime) -> bool:
        """Delete the active code if it equals ``submitted`` and has not expired."""


class OneTimeCodeRepository(OneTimeCodeStore):

    def __init__(self, db: AsyncIOMotorDatabase):
        self.db = db
        self.collection = db["one_time_codes"]

    async def replace(self, code: OneTimeCode) -> None:
        await self.collection.replace_one(
            {"_id": code.account_id},
            code.model_dump(by_alias=True),
            upsert=True
        )

    async def get(self, account_id: str) -> Optional[OneTimeCode]:
        doc = await self.collection.find_one({"_id": account_id})
        if doc:
            return OneTimeCode(**doc)
        return None

    async def consume(self, account_id: str, submitted: str, now: datetime) -> bool:
        doc = await self.collection.find_one_and_delete({
            "_id": account_id,
            "code": submitted,
            "expires_at": {"$gte": now}
        })
        return doc is not None
