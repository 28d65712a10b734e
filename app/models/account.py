"""
Account model.

Lifecycle: Unregistered -> PendingVerification -> Verified.

- An account is created unverified at registration.
- It becomes verified exactly once, irreversibly, when a one-time code is
  accepted.
- An account registered with a usable invitation token carries a
  ``PendingLink`` naming the inviter until the deferred friendship is
  written at verification time.
"""

from datetime import datetime
from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict

from app.models.base import DocumentModel


class AccountState(str, Enum):
    PENDING_VERIFICATION = "pending_verification"
    VERIFIED = "verified"


class PendingLink(BaseModel):
    """Friendship owed to an inviter once the invitee is verified."""
    inviter_id: str
    invitation_token: str


class Account(DocumentModel):
    email: str
    name: Optional[str] = None
    password_hash: str
    verified: bool = False
    verified_at: Optional[datetime] = None
    pending_link: Optional[PendingLink] = None

    @property
    def state(self) -> AccountState:
        if self.verified:
            return AccountState.VERIFIED
        return AccountState.PENDING_VERIFICATION

    def link_due(self) -> Optional[PendingLink]:
        """The deferred friendship to create now, if any."""
        if self.verified and self.pending_link is not None:
            return self.pending_link
        return None

    def public(self) -> "AccountPublic":
        return AccountPublic(id=self.id, email=self.email, name=self.name, verified=self.verified)


class AccountPublic(BaseModel):
    """Account fields safe to return to clients."""
    id: str
    email: str
    name: Optional[str] = None
    verified: bool = False

    model_config = ConfigDict(from_attributes=True)
