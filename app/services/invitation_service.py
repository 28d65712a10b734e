"""
Invitation Registry - single-use tokens binding an inviter to an invitee email.
"""

import secrets
from datetime import timedelta
from typing import Tuple

import structlog

from app.core.errors import (
    AlreadyAcceptedError,
    EmailMismatchError,
    InvitationExpiredError,
    InvitationNotFoundError,
    NotFoundError,
    SelfInviteError,
)
from app.core.logging import mask_email
from app.models.base import Clock, normalize_email, utcnow
from app.models.invitation import Invitation, InvitationStatus
from app.repositories.account_repo import AccountStore
from app.repositories.invitation_repo import InvitationStore

logger = structlog.get_logger(__name__)


class InvitationRegistry:

    def __init__(
        self,
        accounts: AccountStore,
        invitations: InvitationStore,
        ttl: timedelta = timedelta(days=7),
        reuse_pending: bool = True,
        clock: Clock = utcnow,
    ):
        self.accounts = accounts
        self.invitations = invitations
        self.ttl = ttl
        self.reuse_pending = reuse_pending
        self.clock = clock

    async def create_or_reuse(
        self,
        inviter_id: str,
        invitee_email: str,
        invitee_name: str | None = None,
    ) -> Tuple[Invitation, bool]:
        """
        Issue an invitation from ``inviter_id`` to ``invitee_email``.

        Returns (invitation, created). When a pending, unexpired invitation for
        the same pair exists and reuse is enabled, that one is returned
        unchanged with created=False.
        """
        inviter = await self.accounts.get_by_id(inviter_id)
        if inviter is None:
            raise NotFoundError()

        email = normalize_email(invitee_email)
        if email == inviter.email:
            raise SelfInviteError()

        now = self.clock()
        invitation = Invitation(
            token=secrets.token_urlsafe(32),
            inviter_id=inviter.id,
            invitee_email=email,
            invitee_name=invitee_name,
            issued_at=now,
            expires_at=now + self.ttl,
            created_at=now,
        )

        if self.reuse_pending:
            stored = await self.invitations.get_or_create_pending(invitation, now)
        else:
            stored = await self.invitations.insert(invitation)

        created = stored.token == invitation.token
        logger.info(
            "invitation_created" if created else "invitation_reused",
            inviter_id=inviter.id,
            invitee=mask_email(email),
            expires_at=stored.expires_at.isoformat(),
        )
        return stored, created

    async def check(self, token: str, registering_email: str) -> Invitation:
        """
        Validate that ``token`` could be consumed by ``registering_email``
        right now, without consuming it.
        """
        invitation = await self.invitations.get_by_token(token)
        if invitation is None:
            raise InvitationNotFoundError()
        if invitation.status == InvitationStatus.ACCEPTED:
            raise AlreadyAcceptedError()
        if invitation.is_expired(self.clock()):
            raise InvitationExpiredError()
        if normalize_email(registering_email) != invitation.invitee_email:
            raise EmailMismatchError()
        return invitation

    async def consume(self, token: str, registering_email: str) -> Invitation:
        """
        Accept the invitation. Exactly one of any number of concurrent callers
        succeeds; the others get AlreadyAcceptedError.
        """
        await self.check(token, registering_email)

        accepted = await self.invitations.mark_accepted(token, self.clock())
        if accepted is None:
            raise AlreadyAcceptedError()

        logger.info("invitation_consumed", inviter_id=accepted.inviter_id, invitation_id=accepted.id)
        return accepted
