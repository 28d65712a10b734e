from abc import ABC, abstractmethod
from datetime import datetime
from typing import Optional

from motor.motor_asyncio import AsyncIOMotorDatabase
from pymongo import ReturnDocument

from app.models.invitation import Invitation, InvitationStatus


class InvitationStore(ABC):

    @abstractmethod
    async def insert(self, invitation: Invitation) -> Invitation:
        ...

    @abstractmethod
    async def get_or_create_pending(self, invitation: Invitation, now: datetime) -> Invitation:
        """
        Return the pending, unexpired invitation for the same (inviter, invitee
        email) pair, or store ``invitation`` if there is none. Atomic.
        """

    @abstractmethod
    async def get_by_token(self, token: str) -> Optional[Invitation]:
        ...

    @abstractmethod
    async def mark_accepted(self, token: str, now: datetime) -> Optional[Invitation]:
        """Compare-and-set pending -> accepted. None if the invitation was not pending."""


class InvitationRepository(InvitationStore):

    def __init__(self, db: AsyncIOMotorDatabase):
        self.db = db
        self.collection = db["invitations"]

    async def insert(self, invitation: Invitation) -> Invitation:
        await self.collection.insert_one(invitation.to_document())
        return invitation

    async def get_or_create_pending(self, invitation: Invitation, now: datetime) -> Invitation:
        query = {
            "inviter_id": invitation.inviter_id,
            "invitee_email": invitation.invitee_email,
            "status": InvitationStatus.PENDING.value,
            "expires_at": {"$gte": now}
        }
        # Equality fields of the query are copied into an upserted document;
        # setting them again in $setOnInsert would conflict.
        on_insert = {
            key: value
            for key, value in invitation.to_document().items()
            if key not in ("inviter_id", "invitee_email", "status")
        }
        doc = await self.collection.find_one_and_update(
            query,
            {"$setOnInsert": on_insert},
            upsert=True,
            return_document=ReturnDocument.AFTER
        )
        return Invitation(**doc)

    async def get_by_token(self, token: str) -> Optional[Invitation]:
        doc = await self.collection.find_one({"token": token})
        if doc:
            return Invitation(**doc)
        return None

    async def mark_accepted(self, token: str, now: datetime) -> Optional[Invitation]:
        doc = await self.collection.find_one_and_update(
            {"token": token, "status": InvitationStatus.PENDING.value},
            {"$set": {"status": InvitationStatus.ACCEPTED.value, "accepted_at": now}},
            return_document=ReturnDocument.AFTER
        )
        if doc:
            return Invitation(**doc)
        return None
