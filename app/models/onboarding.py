"""Results returned by the onboarding operations."""

from typing import List, Optional

from pydantic import BaseModel, Field

from app.models.account import Account, AccountPublic
from app.models.invitation import Invitation


class OperationWarning(BaseModel):
    """A non-fatal problem reported alongside a successful result."""
    code: str
    detail: str


class RegistrationResult(BaseModel):
    account: Account
    invitation_linked: bool = False
    warnings: List[OperationWarning] = Field(default_factory=list)

    @property
    def pending_verification(self) -> bool:
        return not self.account.verified


class VerificationResult(BaseModel):
    account: Account
    friendship_created: bool = False
    warnings: List[OperationWarning] = Field(default_factory=list)


class InviteOutcome(BaseModel):
    friend_exists: bool
    friendship_created: bool = False
    invitation_issued: bool = False
    invitation_reused: bool = False
    friend: Optional[AccountPublic] = None
    invitation: Optional[Invitation] = None
