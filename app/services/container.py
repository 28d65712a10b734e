from dataclasses import dataclass
from datetime import timedelta

from app.core.config import Settings
from app.db.session import Stores
from app.models.base import Clock, utcnow
from app.repositories.account_repo import AccountStore
from app.services.credential_service import CredentialVerifier
from app.services.friendship_service import FriendshipGraph
from app.services.invitation_service import InvitationRegistry
from app.services.ledger_service import Ledger
from app.services.notification_service import NotificationDispatcher, Notifier
from app.services.onboarding_service import OnboardingOrchestrator


@dataclass
class Services:
    accounts: AccountStore
    dispatcher: NotificationDispatcher
    credentials: CredentialVerifier
    invitations: InvitationRegistry
    friendships: FriendshipGraph
    ledger: Ledger
    onboarding: OnboardingOrchestrator


def build_services(stores: Stores, notifier: Notifier, config: Settings, clock: Clock = utcnow) -> Services:
    """Wire every component to its stores and policy settings."""
    dispatcher = NotificationDispatcher(notifier)
    credentials = CredentialVerifier(
        stores.accounts,
        stores.codes,
        dispatcher,
        code_length=config.OTP_LENGTH,
        ttl=timedelta(minutes=config.OTP_TTL_MINUTES),
        clock=clock,
    )
    invitations = InvitationRegistry(
        stores.accounts,
        stores.invitations,
        ttl=timedelta(days=config.INVITATION_TTL_DAYS),
        reuse_pending=config.INVITATION_REUSE_PENDING,
        clock=clock,
    )
    friendships = FriendshipGraph(stores.accounts, stores.friendships, clock=clock)
    ledger = Ledger(
        stores.expenses,
        friendships,
        decimal_places=config.MONEY_DECIMAL_PLACES,
        max_amount=config.MONEY_MAX_AMOUNT,
        clock=clock,
    )
    onboarding = OnboardingOrchestrator(
        stores.accounts,
        credentials,
        invitations,
        friendships,
        dispatcher,
        password_min_length=config.PASSWORD_MIN_LENGTH,
        invitation_failure_is_warning=config.INVITATION_FAILURE_IS_WARNING,
        frontend_url=config.FRONTEND_URL,
        clock=clock,
    )
    return Services(
        accounts=stores.accounts,
        dispatcher=dispatcher,
        credentials=credentials,
        invitations=invitations,
        friendships=friendships,
        ledger=ledger,
        onboarding=onboarding,
    )
