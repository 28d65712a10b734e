"""
Credential Verifier - one-time codes proving control of an email address.

Rules:
- a code is a fixed-length string of digits
- an account has at most one active code; issuing a new one supersedes the old
- a code is valid until issued_at + TTL inclusive, checked at read time
- a code can be used once; retrying a consumed code fails
"""

import secrets
from datetime import timedelta

import structlog

from app.core.errors import AlreadyVerifiedError, InvalidOrExpiredCodeError, NotFoundError
from app.models.account import Account
from app.models.base import Clock, utcnow
from app.models.otp import OneTimeCode
from app.repositories.account_repo import AccountStore
from app.repositories.otp_repo import OneTimeCodeStore
from app.services.notification_service import NotificationDispatcher

logger = structlog.get_logger(__name__)


class CredentialVerifier:

    def __init__(
        self,
        accounts: AccountStore,
        codes: OneTimeCodeStore,
        dispatcher: NotificationDispatcher,
        code_length: int = 6,
        ttl: timedelta = timedelta(minutes=10),
        clock: Clock = utcnow,
    ):
        self.accounts = accounts
        self.codes = codes
        self.dispatcher = dispatcher
        self.code_length = code_length
        self.ttl = ttl
        self.clock = clock

    async def issue_code(self, account_id: str) -> str:
        """Issue a fresh code for the account, superseding any previous one."""
        account = await self._get_account(account_id)

        code = self._generate_code()
        now = self.clock()
        await self.codes.replace(OneTimeCode(
            account_id=account.id,
            code=code,
            issued_at=now,
            expires_at=now + self.ttl,
        ))
        logger.info("otp_issued", account_id=account.id, expires_at=(now + self.ttl).isoformat())

        minutes = int(self.ttl.total_seconds() // 60)
        self.dispatcher.send(
            account.email,
            f"Your verification code is {code}. It expires in {minutes} minutes."
        )
        return code

    async def verify_code(self, account_id: str, submitted_code: str) -> Account:
        """
        Check a code and mark the account verified.

        Raises NotFoundError for an unknown account and
        InvalidOrExpiredCodeError when there is no active code, the code does
        not match, or it has expired.
        """
        account = await self._get_account(account_id)

        now = self.clock()
        if not await self.codes.consume(account.id, submitted_code.strip(), now):
            logger.info("otp_rejected", account_id=account.id)
            raise InvalidOrExpiredCodeError()

        await self.accounts.mark_verified(account.id, now)
        logger.info("email_verified", account_id=account.id)
        return await self._get_account(account.id)

    async def reissue_code(self, account_id: str) -> str:
        account = await self._get_account(account_id)
        if account.verified:
            raise AlreadyVerifiedError()
        return await self.issue_code(account.id)

    # ===== PRIVATE HELPERS =====

    async def _get_account(self, account_id: str) -> Account:
        account = await self.accounts.get_by_id(account_id)
        if account is None:
            raise NotFoundError()
        return account

    def _generate_code(self) -> str:
        return str(secrets.randbelow(10 ** self.code_length)).zfill(self.code_length)
