from fastapi import APIRouter, Depends, status

from app.core.auth import get_current_account, get_services
from app.core.security import create_access_token
from app.models.account import Account
from app.schemas.auth import (
    MessageResponse,
    RegisterRequest,
    RegisterResponse,
    ResendOTPRequest,
    TokenResponse,
    UserLogin,
    UserResponse,
    VerifyOTPRequest,
    VerifyOTPResponse,
)
from app.services.container import Services

router = APIRouter()


def _user_response(account: Account) -> UserResponse:
    return UserResponse(
        id=account.id,
        email=account.email,
        name=account.name,
        verified=account.verified
    )


@router.post("/register", response_model=RegisterResponse, status_code=status.HTTP_201_CREATED)
async def register(payload: RegisterRequest, services: Services = Depends(get_services)):
    """
    Register a new account (step 1 of 2)

    - **email**: must not belong to any account yet
    - **password**: minimum length is a server policy (8 by default)
    - **name**: optional display name
    - **invitation_token**: optional token from an invitation link
    """
    result = await services.onboarding.register(
        email=payload.email,
        password=payload.password,
        name=payload.name,
        invitation_token=payload.invitation_token
    )
    return RegisterResponse(
        user_id=result.account.id,
        email=result.account.email,
        pending_verification=result.pending_verification,
        invitation_linked=result.invitation_linked,
        warnings=result.warnings
    )


@router.post("/verify-otp", response_model=VerifyOTPResponse)
async def verify_otp(payload: VerifyOTPRequest, services: Services = Depends(get_services)):
    """Verify the emailed code (step 2 of 2) and log in"""
    result = await services.onboarding.verify_email(payload.user_id, payload.code)
    return VerifyOTPResponse(
        access_token=create_access_token(result.account.id),
        user=_user_response(result.account),
        friendship_created=result.friendship_created,
        warnings=result.warnings
    )


@router.post("/resend-otp", response_model=MessageResponse)
async def resend_otp(payload: ResendOTPRequest, services: Services = Depends(get_services)):
    """Send a new verification code, invalidating the previous one"""
    await services.onboarding.resend_code(payload.user_id)
    return MessageResponse(message="A new verification code has been sent")


@router.post("/login", response_model=TokenResponse)
async def login(credentials: UserLogin, services: Services = Depends(get_services)):
    """Login with email and password"""
    account = await services.onboarding.login(credentials.email, credentials.password)
    return TokenResponse(
        access_token=create_access_token(account.id),
        user=_user_response(account)
    )


@router.get("/me", response_model=UserResponse)
async def get_current_user_info(current_account: Account = Depends(get_current_account)):
    """Get current user information"""
    return _user_response(current_account)
