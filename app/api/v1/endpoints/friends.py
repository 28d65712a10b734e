from typing import List

from fastapi import APIRouter, Depends

from app.core.auth import get_current_account, get_services
from app.models.account import Account
from app.schemas.friend import FriendInviteRequest, FriendInviteResponse, FriendResponse
from app.services.container import Services

router = APIRouter()


@router.get("", response_model=List[FriendResponse])
async def list_friends(
    current_account: Account = Depends(get_current_account),
    services: Services = Depends(get_services)
):
    """List the current user's friends"""
    friends = await services.onboarding.list_friends(current_account.id)
    return [
        FriendResponse(id=friend.id, name=friend.name, email=friend.email)
        for friend in friends
    ]


@router.post("/invite", response_model=FriendInviteResponse)
async def invite_friend(
    payload: FriendInviteRequest,
    current_account: Account = Depends(get_current_account),
    services: Services = Depends(get_services)
):
    """
    Invite a friend by email.

    If the email belongs to a verified user they are added right away,
    otherwise an invitation link is emailed to them.
    """
    outcome = await services.onboarding.invite_or_link(
        current_account.id,
        payload.email,
        payload.name
    )

    if outcome.friend_exists:
        friend = outcome.friend
        who = friend.name or friend.email
        message = (
            f"{who} has been added to your friends"
            if outcome.friendship_created
            else f"{who} is already your friend"
        )
        return FriendInviteResponse(
            friend_exists=True,
            friendship_created=outcome.friendship_created,
            friend=FriendResponse(id=friend.id, name=friend.name, email=friend.email),
            message=message
        )

    return FriendInviteResponse(
        friend_exists=False,
        invitation_issued=True,
        message=f"Invitation sent to {payload.email.lower()}"
    )
