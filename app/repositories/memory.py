"""
In-memory stores.

Same contracts as the MongoDB repositories, kept in process memory. Used by
the test suite and by ``STORE_BACKEND=memory``. Each store serializes its
check-and-write operations behind one asyncio lock, and hands out copies so
callers can never mutate stored state.
"""

import asyncio
from datetime import datetime
from typing import Dict, Iterable, List, Optional, Tuple

from app.core.errors import EmailTakenError
from app.models.account import Account, PendingLink
from app.models.base import normalize_email
from app.models.expense import ExpenseRecord
from app.models.friendship import FriendshipEdge, edge_id
from app.models.invitation import Invitation, InvitationStatus
from app.models.otp import OneTimeCode
from app.repositories.account_repo import AccountStore
from app.repositories.expense_repo import ExpenseStore
from app.repositories.friendship_repo import FriendshipStore
from app.repositories.invitation_repo import InvitationStore
from app.repositories.otp_repo import OneTimeCodeStore


class InMemoryAccountStore(AccountStore):

    def __init__(self):
        self._lock = asyncio.Lock()
        self._by_id: Dict[str, Account] = {}
        self._id_by_email: Dict[str, str] = {}

    async def create(self, account: Account) -> Account:
        email = normalize_email(account.email)
        async with self._lock:
            if email in self._id_by_email:
                raise EmailTakenError()
            stored = account.model_copy(update={"email": email}, deep=True)
            self._by_id[stored.id] = stored
            self._id_by_email[email] = stored.id
        return stored.model_copy(deep=True)

    async def get_by_id(self, account_id: str) -> Optional[Account]:
        account = self._by_id.get(account_id)
        return account.model_copy(deep=True) if account else None

    async def get_by_email(self, email: str) -> Optional[Account]:
        account_id = self._id_by_email.get(normalize_email(email))
        if account_id is None:
            return None
        return await self.get_by_id(account_id)

    async def get_many(self, account_ids: Iterable[str]) -> List[Account]:
        return [
            self._by_id[account_id].model_copy(deep=True)
            for account_id in account_ids
            if account_id in self._by_id
        ]

    async def mark_verified(self, account_id: str, now: datetime) -> bool:
        async with self._lock:
            account = self._by_id.get(account_id)
            if account is None or account.verified:
                return False
            self._by_id[account_id] = account.model_copy(update={"verified": True, "verified_at": now})
            return True

    async def set_pending_link(self, account_id: str, link: Optional[PendingLink]) -> None:
        async with self._lock:
            account = self._by_id.get(account_id)
            if account is not None:
                self._by_id[account_id] = account.model_copy(update={"pending_link": link})


class InMemoryOneTimeCodeStore(OneTimeCodeStore):

    def __init__(self):
        self._lock = asyncio.Lock()
        self._codes: Dict[str, OneTimeCode] = {}

    async def replace(self, code: OneTimeCode) -> None:
        async with self._lock:
            self._codes[code.account_id] = code.model_copy()

    async def get(self, account_id: str) -> Optional[OneTimeCode]:
        code = self._codes.get(account_id)
        return code.model_copy() if code else None

    async def consume(self, account_id: str, submitted: str, now: datetime) -> bool:
        async with self._lock:
            code = self._codes.get(account_id)
            if code is None or not code.matches(submitted, now):
                return False
            del self._codes[account_id]
            return True


class InMemoryInvitationStore(InvitationStore):

    def __init__(self):
        self._lock = asyncio.Lock()
        self._by_token: Dict[str, Invitation] = {}

    async def insert(self, invitation: Invitation) -> Invitation:
        async with self._lock:
            self._by_token[invitation.token] = invitation.model_copy()
        return invitation.model_copy()

    async def get_or_create_pending(self, invitation: Invitation, now: datetime) -> Invitation:
        async with self._lock:
            for existing in self._by_token.values():
                if (
                    existing.inviter_id == invitation.inviter_id
                    and existing.invitee_email == invitation.invitee_email
                    and existing.is_usable(now)
                ):
                    return existing.model_copy()
            self._by_token[invitation.token] = invitation.model_copy()
        return invitation.model_copy()

    async def get_by_token(self, token: str) -> Optional[Invitation]:
        invitation = self._by_token.get(token)
        return invitation.model_copy() if invitation else None

    async def mark_accepted(self, token: str, now: datetime) -> Optional[Invitation]:
        async with self._lock:
            invitation = self._by_token.get(token)
            if invitation is None or invitation.status != InvitationStatus.PENDING:
                return None
            accepted = invitation.model_copy(
                update={"status": InvitationStatus.ACCEPTED, "accepted_at": now}
            )
            self._by_token[token] = accepted
            return accepted.model_copy()


class InMemoryFriendshipStore(FriendshipStore):

    def __init__(self):
        self._lock = asyncio.Lock()
        self._edges: Dict[str, FriendshipEdge] = {}

    async def exists(self, account_id: str, friend_id: str) -> bool:
        return edge_id(account_id, friend_id) in self._edges

    async def create_pair(self, a: str, b: str, now: datetime) -> bool:
        async with self._lock:
            created = False
            for edge in (FriendshipEdge.between(a, b, now), FriendshipEdge.between(b, a, now)):
                if edge.id not in self._edges:
                    self._edges[edge.id] = edge
                    created = True
            return created

    async def list_friend_ids(self, account_id: str) -> List[str]:
        edges = [edge for edge in self._edges.values() if edge.account_id == account_id]
        edges.sort(key=lambda edge: edge.created_at)
        return [edge.friend_id for edge in edges]


class InMemoryExpenseStore(ExpenseStore):

    def __init__(self):
        self._lock = asyncio.Lock()
        self._records: List[ExpenseRecord] = []
        self._by_idempotency_key: Dict[Tuple[str, str], ExpenseRecord] = {}

    async def insert(self, record: ExpenseRecord) -> ExpenseRecord:
        async with self._lock:
            if record.idempotency_key is not None:
                key = (record.created_by, record.idempotency_key)
                existing = self._by_idempotency_key.get(key)
                if existing is not None:
                    return existing.model_copy()
                self._by_idempotency_key[key] = record
            self._records.append(record)
        return record.model_copy()

    async def find_by_idempotency_key(self, created_by: str, key: str) -> Optional[ExpenseRecord]:
        record = self._by_idempotency_key.get((created_by, key))
        return record.model_copy() if record else None

    async def list_between(self, a: str, b: str) -> List[ExpenseRecord]:
        # Stable sort keeps insertion order for equal timestamps.
        records = [record for record in self._records if record.involves(a, b)]
        records.sort(key=lambda record: record.created_at)
        return [record.model_copy() for record in records]
