from fastapi import Depends, HTTPException, Request, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from app.core.errors import NotVerifiedError
from app.core.security import decode_access_token
from app.models.account import Account
from app.services.container import Services

security = HTTPBearer(auto_error=False)


def get_services(request: Request) -> Services:
    """Services wired by the application entry point."""
    return request.app.state.services


async def get_current_account(
    credentials: HTTPAuthorizationCredentials | None = Depends(security),
    services: Services = Depends(get_services)
) -> Account:
    """Get the verified account behind the bearer token."""
    credentials_exception = HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Could not validate credentials",
        headers={"WWW-Authenticate": "Bearer"},
    )
    if credentials is None:
        raise credentials_exception

    account_id = decode_access_token(credentials.credentials)
    if account_id is None:
        raise credentials_exception

    account = await services.accounts.get_by_id(account_id)
    if account is None:
        raise credentials_exception
    if not account.verified:
        raise NotVerifiedError()

    return account
