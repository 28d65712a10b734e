from typing import Optional

from pydantic import BaseModel, EmailStr, Field


class FriendResponse(BaseModel):
    id: str
    name: Optional[str] = None
    email: str


class FriendInviteRequest(BaseModel):
    """Invite a friend by email; existing verified users are linked immediately."""
    email: EmailStr
    name: Optional[str] = Field(default=None, max_length=100)


class FriendInviteResponse(BaseModel):
    friend_exists: bool
    friendship_created: bool = False
    invitation_issued: bool = False
    friend: Optional[FriendResponse] = None
    message: str
