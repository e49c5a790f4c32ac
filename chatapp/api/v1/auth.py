"""
Authentication endpoints.

Identity errors raised by the service are turned into responses by the
handlers registered in chatapp.main.
"""

from fastapi import APIRouter, HTTPException, status

from chatapp.api.deps import CurrentUser, Identity, Notifier
from chatapp.kernel.identity.errors import NotFound
from chatapp.kernel.identity.record import Avatar, VerificationPurpose
from chatapp.schemas.auth import (
    ChangePasswordRequest,
    ForgotPasswordRequest,
    RefreshTokenRequest,
    ResetPasswordRequest,
    TokenResponse,
    UserCreate,
    UserLogin,
    UserProfileUpdate,
    UserResponse,
    VerificationConfirm,
)
from chatapp.schemas.common import SuccessResponse

router = APIRouter()


def _token_response(user, token_pair) -> TokenResponse:
    return TokenResponse(
        access_token=token_pair.access_token,
        refresh_token=token_pair.refresh_token,
        token_type=token_pair.token_type,
        expires_in=token_pair.expires_in,
        user=UserResponse.model_validate(user),
    )


@router.post("/register", response_model=TokenResponse, status_code=status.HTTP_201_CREATED)
async def register(data: UserCreate, identity: Identity):
    """
    Register a new user account.

    Returns access and refresh tokens on successful registration.
    """
    await identity.register(
        username=data.username,
        email=data.email,
        phone_number=data.phone_number,
        password=data.password,
        first_name=data.first_name,
        last_name=data.last_name,
        about=data.about,
    )
    user, token_pair = await identity.authenticate(data.username, data.password)
    return _token_response(user, token_pair)


@router.post("/login", response_model=TokenResponse)
async def login(data: UserLogin, identity: Identity):
    """Authenticate with username or email and return tokens."""
    user, token_pair = await identity.authenticate(data.identifier, data.password)
    return _token_response(user, token_pair)


@router.post("/refresh", response_model=TokenResponse)
async def refresh_token(data: RefreshTokenRequest, identity: Identity):
    """
    Refresh access token using refresh token.

    The presented refresh token is invalidated (rotation).
    """
    user, token_pair = await identity.refresh_session(data.refresh_token)
    return _token_response(user, token_pair)


@router.post("/logout", response_model=SuccessResponse)
async def logout(user: CurrentUser, identity: Identity):
    """Revoke the current refresh token."""
    await identity.logout(user.id)
    return SuccessResponse(message="Logged out successfully")


@router.get("/me", response_model=UserResponse)
async def get_current_user_profile(user: CurrentUser):
    """Get current user's profile."""
    return UserResponse.model_validate(user)


@router.patch("/me", response_model=UserResponse)
async def update_profile(data: UserProfileUpdate, user: CurrentUser, identity: Identity):
    """Update current user's profile."""
    updated = await identity.update_profile(
        user.id,
        first_name=data.first_name,
        last_name=data.last_name,
        about=data.about,
        avatar=Avatar(**data.avatar.model_dump()) if data.avatar else None,
    )
    return UserResponse.model_validate(updated)


@router.post("/change-password", response_model=SuccessResponse)
async def change_password(data: ChangePasswordRequest, user: CurrentUser, identity: Identity):
    """
    Change user's password.

    Revokes the refresh token on success.
    """
    changed = await identity.change_password(user.id, data.current_password, data.new_password)
    if not changed:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Current password is incorrect",
        )
    return SuccessResponse(message="Password changed successfully. Please log in again.")


@router.post("/verify-email/request", response_model=SuccessResponse)
async def request_email_verification(user: CurrentUser, identity: Identity, notifier: Notifier):
    """Send an email verification token."""
    if user.is_email_verified:
        return SuccessResponse(message="Email already verified")
    token = await identity.begin_verification(user.id, VerificationPurpose.EMAIL)
    await notifier.send_email_verification(user, token)
    return SuccessResponse(message="Verification email sent")


@router.post("/verify-email/confirm", response_model=SuccessResponse)
async def confirm_email_verification(data: VerificationConfirm, user: CurrentUser, identity: Identity):
    """Confirm email ownership with the emailed token."""
    if not await identity.complete_verification(user.id, VerificationPurpose.EMAIL, data.code):
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Invalid or expired verification token",
        )
    return SuccessResponse(message="Email verified")


@router.post("/verify-phone/request", response_model=SuccessResponse)
async def request_phone_verification(user: CurrentUser, identity: Identity, notifier: Notifier):
    """Send a one-time code by SMS."""
    if user.is_phone_number_verified:
        return SuccessResponse(message="Phone number already verified")
    otp = await identity.begin_verification(user.id, VerificationPurpose.PHONE_NUMBER)
    await notifier.send_phone_verification(user, otp)
    return SuccessResponse(message="Verification code sent")


@router.post("/verify-phone/confirm", response_model=SuccessResponse)
async def confirm_phone_verification(data: VerificationConfirm, user: CurrentUser, identity: Identity):
    """Confirm phone ownership with the one-time code."""
    if not await identity.complete_verification(
        user.id, VerificationPurpose.PHONE_NUMBER, data.code
    ):
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Invalid or expired verification code",
        )
    return SuccessResponse(message="Phone number verified")


@router.post("/forgot-password", response_model=SuccessResponse)
async def forgot_password(data: ForgotPasswordRequest, identity: Identity, notifier: Notifier):
    """
    Send a password reset token.

    The response is the same whether or not the account exists.
    """
    try:
        token = await identity.begin_password_reset(data.identifier)
    except NotFound:
        pass
    else:
        user = await identity.get_user_by_identifier(data.identifier)
        await notifier.send_password_reset(user, token)
    return SuccessResponse(message="If the account exists, a reset link has been sent")


@router.post("/reset-password", response_model=SuccessResponse)
async def reset_password(data: ResetPasswordRequest, identity: Identity):
    """Set a new password using a reset token."""
    if not await identity.reset_password(data.token, data.new_password):
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Invalid or expired reset token",
        )
    return SuccessResponse(message="Password has been reset. Please log in again.")
