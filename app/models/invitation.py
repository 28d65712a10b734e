"""
Invitation model.

An invitation binds an inviter to one invitee email through an opaque token.

Invariants:
- status moves pending -> accepted at most once
- an expired invitation stays stored but can no longer be consumed
"""

from datetime import datetime
from enum import Enum
from typing import Optional

from app.models.base import DocumentModel


class InvitationStatus(str, Enum):
    PENDING = "pending"
    ACCEPTED = "accepted"


class Invitation(DocumentModel):
    token: str
    inviter_id: str
    invitee_email: str
    invitee_name: Optional[str] = None
    status: InvitationStatus = InvitationStatus.PENDING
    issued_at: datetime
    expires_at: datetime
    accepted_at: Optional[datetime] = None

    def is_expired(self, now: datetime) -> bool:
        return now > self.expires_at

    def is_usable(self, now: datetime) -> bool:
        return self.status == InvitationStatus.PENDING and not self.is_expired(now)

    def to_document(self) -> dict:
        doc = super().to_document()
        doc["status"] = self.status.value
        return doc
