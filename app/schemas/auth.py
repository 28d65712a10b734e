from typing import List, Optional

from pydantic import BaseModel, EmailStr, Field

from app.models.onboarding import OperationWarning


class UserResponse(BaseModel):
    """Public account view"""
    id: str
    email: str
    name: Optional[str] = None
    verified: bool = False


class RegisterRequest(BaseModel):
    """Schema for user registration"""
    email: EmailStr
    password: str
    name: Optional[str] = Field(default=None, max_length=100)
    invitation_token: Optional[str] = None


class RegisterResponse(BaseModel):
    user_id: str
    email: str
    pending_verification: bool = True
    invitation_linked: bool = False
    warnings: List[OperationWarning] = Field(default_factory=list)


class VerifyOTPRequest(BaseModel):
    user_id: str
    code: str = Field(..., min_length=1, max_length=12)


class ResendOTPRequest(BaseModel):
    user_id: str


class UserLogin(BaseModel):
    """Schema for user login"""
    email: EmailStr
    password: str


class TokenResponse(BaseModel):
    """Schema for authentication token response"""
    access_token: str
    token_type: str = "bearer"
    user: UserResponse


class VerifyOTPResponse(TokenResponse):
    verified: bool = True
    friendship_created: bool = False
    warnings: List[OperationWarning] = Field(default_factory=list)


class MessageResponse(BaseModel):
    message: str
