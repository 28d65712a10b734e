from typing import List, Set

import structlog

from app.core.errors import AccountNotVerifiedError, NotFoundError, SelfFriendError
from app.models.account import Account
from app.models.base import Clock, utcnow
from app.repositories.account_repo import AccountStore
from app.repositories.friendship_repo import FriendshipStore

logger = structlog.get_logger(__name__)


class FriendshipGraph:
    """Symmetric "may transact" edges between verified accounts."""

    def __init__(self, accounts: AccountStore, friendships: FriendshipStore, clock: Clock = utcnow):
        self.accounts = accounts
        self.friendships = friendships
        self.clock = clock

    async def are_friends(self, a: str, b: str) -> bool:
        if a == b:
            return False
        return await self.friendships.exists(a, b)

    async def create_bidirectional(self, a: str, b: str) -> bool:
        """
        Befriend a and b. Returns True if the friendship is new, False if it
        already existed.
        """
        if a == b:
            raise SelfFriendError()

        for account_id in (a, b):
            account = await self.accounts.get_by_id(account_id)
            if account is None:
                raise NotFoundError()
            if not account.verified:
                raise AccountNotVerifiedError()

        created = await self.friendships.create_pair(a, b, self.clock())
        if created:
            logger.info("friendship_created", account_id=a, friend_id=b)
        return created

    async def list_friends(self, account_id: str) -> Set[str]:
        return set(await self.friendships.list_friend_ids(account_id))

    async def list_friend_accounts(self, account_id: str) -> List[Account]:
        """Friends of an account, oldest friendship first."""
        friend_ids = await self.friendships.list_friend_ids(account_id)
        by_id = {account.id: account for account in await self.accounts.get_many(friend_ids)}
        return [by_id[friend_id] for friend_id in friend_ids if friend_id in by_id]
