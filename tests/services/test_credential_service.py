import asyncio

import pytest

from app.core.errors import AlreadyVerifiedError, InvalidOrExpiredCodeError, NotFoundError
from app.core.security import hash_password
from app.models.account import Account


@pytest.fixture
def pending_account(stores):
    async def _pending_account(email: str = "alice@x.com") -> Account:
        return await stores.accounts.create(Account(email=email, password_hash=hash_password("pw12345678")))
    return _pending_account


@pytest.mark.asyncio
async def test_issue_code_is_fixed_length_digits(services, pending_account):
    account = await pending_account()

    code = await services.credentials.issue_code(account.id)

    assert len(code) == 6
    assert code.isdigit()


@pytest.mark.asyncio
async def test_issue_code_sends_code_to_account_email(services, notifier, pending_account):
    account = await pending_account()

    code = await services.credentials.issue_code(account.id)
    await services.dispatcher.drain()

    assert notifier.last_code("alice@x.com") == code


@pytest.mark.asyncio
async def test_issue_code_expires_after_ttl(services, stores, clock, pending_account):
    account = await pending_account()

    await services.credentials.issue_code(account.id)
    stored = await stores.codes.get(account.id)

    assert stored.issued_at == clock.now
    assert (stored.expires_at - stored.issued_at).total_seconds() == 10 * 60


@pytest.mark.asyncio
async def test_verify_code_marks_account_verified(services, stores, pending_account):
    account = await pending_account()
    code = await services.credentials.issue_code(account.id)

    verified = await services.credentials.verify_code(account.id, code)

    assert verified.verified is True
    assert verified.verified_at is not None
    assert (await stores.accounts.get_by_id(account.id)).verified is True


@pytest.mark.asyncio
async def test_verify_code_is_single_use(services, pending_account):
    account = await pending_account()
    code = await services.credentials.issue_code(account.id)
    await services.credentials.verify_code(account.id, code)

    with pytest.raises(InvalidOrExpiredCodeError):
        await services.credentials.verify_code(account.id, code)


@pytest.mark.asyncio
async def test_verify_code_mismatch_keeps_account_pending(services, stores, pending_account):
    account = await pending_account()
    code = await services.credentials.issue_code(account.id)
    wrong = "1" * 6 if code != "1" * 6 else "2" * 6

    with pytest.raises(InvalidOrExpiredCodeError):
        await services.credentials.verify_code(account.id, wrong)

    assert (await stores.accounts.get_by_id(account.id)).verified is False
    # The right code still works after a wrong attempt
    assert (await services.credentials.verify_code(account.id, code)).verified is True


@pytest.mark.asyncio
async def test_verify_code_rejected_after_ttl(services, clock, pending_account):
    account = await pending_account()
    code = await services.credentials.issue_code(account.id)

    clock.advance(minutes=10, seconds=1)

    with pytest.raises(InvalidOrExpiredCodeError):
        await services.credentials.verify_code(account.id, code)


@pytest.mark.asyncio
async def test_verify_code_accepted_at_exact_expiry(services, clock, pending_account):
    account = await pending_account()
    code = await services.credentials.issue_code(account.id)

    clock.advance(minutes=10)

    assert (await services.credentials.verify_code(account.id, code)).verified is True


@pytest.mark.asyncio
async def test_verify_code_without_active_code(services, pending_account):
    account = await pending_account()

    with pytest.raises(InvalidOrExpiredCodeError):
        await services.credentials.verify_code(account.id, "123456")


@pytest.mark.asyncio
async def test_verify_code_unknown_account(services):
    with pytest.raises(NotFoundError):
        await services.credentials.verify_code("507f1f77bcf86cd799439011", "123456")


@pytest.mark.asyncio
async def test_reissue_supersedes_previous_code(services, stores, pending_account):
    account = await pending_account()
    first = await services.credentials.issue_code(account.id)

    second = await services.credentials.reissue_code(account.id)
    if first == second:
        # Same digits drawn twice; the stored code is still the new one
        assert (await stores.codes.get(account.id)).code == second
        return

    with pytest.raises(InvalidOrExpiredCodeError):
        await services.credentials.verify_code(account.id, first)
    assert (await services.credentials.verify_code(account.id, second)).verified is True


@pytest.mark.asyncio
async def test_reissue_resets_expiry(services, stores, clock, pending_account):
    account = await pending_account()
    await services.credentials.issue_code(account.id)

    clock.advance(minutes=9)
    code = await services.credentials.reissue_code(account.id)
    clock.advance(minutes=9)

    assert (await services.credentials.verify_code(account.id, code)).verified is True


@pytest.mark.asyncio
async def test_reissue_rejected_for_verified_account(services, pending_account):
    account = await pending_account()
    code = await services.credentials.issue_code(account.id)
    await services.credentials.verify_code(account.id, code)

    with pytest.raises(AlreadyVerifiedError):
        await services.credentials.reissue_code(account.id)


@pytest.mark.asyncio
async def test_reissue_unknown_account(services):
    with pytest.raises(NotFoundError):
        await services.credentials.reissue_code("507f1f77bcf86cd799439011")


@pytest.mark.asyncio
@pytest.mark.parametrize("verify_first", [True, False])
async def test_verify_racing_reissue_settles_consistently(services, stores, pending_account, verify_first):
    account = await pending_account()
    old_code = await services.credentials.issue_code(account.id)

    verify = services.credentials.verify_code(account.id, old_code)
    reissue = services.credentials.reissue_code(account.id)
    calls = (verify, reissue) if verify_first else (reissue, verify)
    results = await asyncio.gather(*calls, return_exceptions=True)
    verified, reissued = results if verify_first else results[::-1]

    stored_account = await stores.accounts.get_by_id(account.id)
    if isinstance(verified, Account):
        # Old code consumed before the new one replaced it
        assert stored_account.verified is True
        assert isinstance(reissued, (str, AlreadyVerifiedError))
        return

    # The reissued code superseded the old one before it was checked
    assert isinstance(verified, InvalidOrExpiredCodeError)
    assert stored_account.verified is False
    assert (await stores.codes.get(account.id)).code == reissued
    with pytest.raises(InvalidOrExpiredCodeError):
        await services.credentials.verify_code(account.id, old_code)
    assert (await services.credentials.verify_code(account.id, reissued)).verified is True
