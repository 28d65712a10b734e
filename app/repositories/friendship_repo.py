"""
Friendship edge storage.

A friendship is two directed edge documents, ``a:b`` and ``b:a``. Both are
upserted inside one transaction so no reader ever sees only one of them, and
upserting makes repeated or concurrent creation converge on the same pair.
"""

from abc import ABC, abstractmethod
from datetime import datetime
from typing import List

from motor.motor_asyncio import AsyncIOMotorDatabase

from app.models.friendship import FriendshipEdge, edge_id


class FriendshipStore(ABC):

    @abstractmethod
    async def exists(self, account_id: str, friend_id: str) -> bool:
        ...

    @abstractmethod
    async def create_pair(self, a: str, b: str, now: datetime) -> bool:
        """Write both edges. Returns True if the pair did not exist before."""

    @abstractmethod
    async def list_friend_ids(self, account_id: str) -> List[str]:
        ...


class FriendshipRepository(FriendshipStore):

    def __init__(self, db: AsyncIOMotorDatabase):
        self.db = db
        self.collection = db["friendships"]

    async def exists(self, account_id: str, friend_id: str) -> bool:
        doc = await self.collection.find_one({"_id": edge_id(account_id, friend_id)})
        return doc is not None

    async def create_pair(self, a: str, b: str, now: datetime) -> bool:
        edges = [FriendshipEdge.between(a, b, now), FriendshipEdge.between(b, a, now)]

        async def write_edges(session) -> bool:
            created = False
            for edge in edges:
                result = await self.collection.update_one(
                    {"_id": edge.id},
                    {"$setOnInsert": edge.model_dump(exclude={"id"})},
                    upsert=True,
                    session=session
                )
                if result.upserted_id is not None:
                    created = True
            return created

        async with await self.db.client.start_session() as session:
            return await session.with_transaction(write_edges)

    async def list_friend_ids(self, account_id: str) -> List[str]:
        cursor = self.collection.find({"account_id": account_id}).sort("created_at", 1)
        docs = await cursor.to_list(None)
        return [doc["friend_id"] for doc in docs]
