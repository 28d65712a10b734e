"""
Onboarding Orchestrator.

Account state machine:

    Unregistered --register--> PendingVerification --verify_email(ok)--> Verified
    PendingVerification --verify_email(fail)--> PendingVerification

Registering with a usable invitation token consumes it and stores a
PendingLink on the new account. The friendship itself is only written once
the account is verified, because both ends of a friendship must be verified.

Invitation problems during registration and a failed deferred friendship
after verification are reported as warnings; they never undo the
registration or the verification.
"""

from typing import List, Optional

import structlog

from app.core.errors import (
    AccountNotVerifiedError,
    DomainError,
    EmailTakenError,
    InvalidCredentialsError,
    NotFoundError,
    NotVerifiedError,
    SelfInviteError,
    WeakPasswordError,
)
from app.core.logging import mask_email
from app.core.security import hash_password, verify_password
from app.models.account import Account, PendingLink
from app.models.base import Clock, normalize_email, utcnow
from app.models.onboarding import (
    InviteOutcome,
    OperationWarning,
    RegistrationResult,
    VerificationResult,
)
from app.repositories.account_repo import AccountStore
from app.services.credential_service import CredentialVerifier
from app.services.friendship_service import FriendshipGraph
from app.services.invitation_service import InvitationRegistry
from app.services.notification_service import NotificationDispatcher

logger = structlog.get_logger(__name__)


class OnboardingOrchestrator:

    def __init__(
        self,
        accounts: AccountStore,
        credentials: CredentialVerifier,
        invitations: InvitationRegistry,
        friendships: FriendshipGraph,
        dispatcher: NotificationDispatcher,
        password_min_length: int = 8,
        invitation_failure_is_warning: bool = True,
        frontend_url: str = "http://localhost:3000",
        clock: Clock = utcnow,
    ):
        self.accounts = accounts
        self.credentials = credentials
        self.invitations = invitations
        self.friendships = friendships
        self.dispatcher = dispatcher
        self.password_min_length = password_min_length
        self.invitation_failure_is_warning = invitation_failure_is_warning
        self.frontend_url = frontend_url.rstrip("/")
        self.clock = clock

    async def register(
        self,
        email: str,
        password: str,
        name: Optional[str] = None,
        invitation_token: Optional[str] = None,
    ) -> RegistrationResult:
        """Create an unverified account and send it a verification code."""
        if len(password) < self.password_min_length:
            raise WeakPasswordError(
                f"Password must be at least {self.password_min_length} characters long"
            )

        email = normalize_email(email)
        if await self.accounts.get_by_email(email) is not None:
            raise EmailTakenError()

        if invitation_token and not self.invitation_failure_is_warning:
            await self.invitations.check(invitation_token, email)

        account = await self.accounts.create(Account(
            email=email,
            name=name.strip() if name and name.strip() else None,
            password_hash=hash_password(password),
            created_at=self.clock(),
        ))
        logger.info("account_registered", account_id=account.id, email=mask_email(email))

        await self.credentials.issue_code(account.id)

        warnings: List[OperationWarning] = []
        linked = False
        if invitation_token:
            try:
                invitation = await self.invitations.consume(invitation_token, email)
            except DomainError as exc:
                logger.warning("invitation_not_applied", account_id=account.id, reason=exc.code)
                warnings.append(OperationWarning(code=exc.code, detail=exc.message))
            else:
                link = PendingLink(inviter_id=invitation.inviter_id, invitation_token=invitation.token)
                await self.accounts.set_pending_link(account.id, link)
                account = account.model_copy(update={"pending_link": link})
                linked = True

        return RegistrationResult(account=account, invitation_linked=linked, warnings=warnings)

    async def verify_email(self, account_id: str, code: str) -> VerificationResult:
        """
        Verify the account, then create the deferred friendship if the
        account was registered through an invitation.
        """
        account = await self.credentials.verify_code(account_id, code)

        link = account.link_due()
        if link is None:
            return VerificationResult(account=account)

        try:
            await self.friendships.create_bidirectional(account.id, link.inviter_id)
        except DomainError as exc:
            logger.warning(
                "deferred_friendship_failed",
                account_id=account.id,
                inviter_id=link.inviter_id,
                reason=exc.code,
            )
            return VerificationResult(
                account=account,
                warnings=[OperationWarning(code=exc.code, detail=exc.message)],
            )

        await self.accounts.set_pending_link(account.id, None)
        account = account.model_copy(update={"pending_link": None})
        return VerificationResult(account=account, friendship_created=True)

    async def resend_code(self, account_id: str) -> None:
        await self.credentials.reissue_code(account_id)

    async def login(self, email: str, password: str) -> Account:
        account = await self.accounts.get_by_email(email)
        if account is None or not verify_password(password, account.password_hash):
            raise InvalidCredentialsError()
        if not account.verified:
            raise NotVerifiedError()
        logger.info("account_logged_in", account_id=account.id)
        return account

    async def invite_or_link(
        self,
        inviter_id: str,
        invitee_email: str,
        invitee_name: Optional[str] = None,
    ) -> InviteOutcome:
        """
        Befriend an existing verified account immediately, or send an
        invitation to an email that has no verified account yet.
        """
        inviter = await self.accounts.get_by_id(inviter_id)
        if inviter is None:
            raise NotFoundError()
        if not inviter.verified:
            raise AccountNotVerifiedError()

        email = normalize_email(invitee_email)
        if email == inviter.email:
            raise SelfInviteError()

        invitee = await self.accounts.get_by_email(email)
        if invitee is not None and invitee.verified:
            created = await self.friendships.create_bidirectional(inviter.id, invitee.id)
            return InviteOutcome(
                friend_exists=True,
                friendship_created=created,
                friend=invitee.public(),
            )

        invitation, created = await self.invitations.create_or_reuse(inviter.id, email, invitee_name)
        self.dispatcher.send(email, self._invitation_message(inviter, invitation.token))
        return InviteOutcome(
            friend_exists=False,
            invitation_issued=True,
            invitation_reused=not created,
            invitation=invitation,
        )

    async def list_friends(self, account_id: str) -> List[Account]:
        return await self.friendships.list_friend_accounts(account_id)

    def registration_link(self, token: str) -> str:
        return f"{self.frontend_url}/register?invitation={token}"

    def _invitation_message(self, inviter: Account, token: str) -> str:
        who = inviter.name or inviter.email
        return (
            f"{who} invited you to track shared expenses together. "
            f"Create your account here: {self.registration_link(token)}"
        )
