from dataclasses import dataclass

from motor.motor_asyncio import AsyncIOMotorDatabase

from app.repositories.account_repo import AccountRepository, AccountStore
from app.repositories.expense_repo import ExpenseRepository, ExpenseStore
from app.repositories.friendship_repo import FriendshipRepository, FriendshipStore
from app.repositories.invitation_repo import InvitationRepository, InvitationStore
from app.repositories.memory import (
    InMemoryAccountStore,
    InMemoryExpenseStore,
    InMemoryFriendshipStore,
    InMemoryInvitationStore,
    InMemoryOneTimeCodeStore,
)
from app.repositories.otp_repo import OneTimeCodeRepository, OneTimeCodeStore


@dataclass
class Stores:
    """The shared mutable stores, owned by the process entry point."""
    accounts: AccountStore
    codes: OneTimeCodeStore
    invitations: InvitationStore
    friendships: FriendshipStore
    expenses: ExpenseStore


def build_mongo_stores(db: AsyncIOMotorDatabase) -> Stores:
    """Stores backed by an open MongoDB database."""
    return Stores(
        accounts=AccountRepository(db),
        codes=OneTimeCodeRepository(db),
        invitations=InvitationRepository(db),
        friendships=FriendshipRepository(db),
        expenses=ExpenseRepository(db),
    )


def build_memory_stores() -> Stores:
    """Fresh, empty in-process stores."""
    return Stores(
        accounts=InMemoryAccountStore(),
        codes=InMemoryOneTimeCodeStore(),
        invitations=InMemoryInvitationStore(),
        friendships=InMemoryFriendshipStore(),
        expenses=InMemoryExpenseStore(),
    )
