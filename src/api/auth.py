"""Authentication API endpoints."""

from typing import Annotated

from fastapi import APIRouter, Depends, Response, status
from starlette.concurrency import run_in_threadpool

from src.api.dependencies import get_credential_store, get_current_user, get_session_manager
from src.config import get_settings
from src.models.user import User
from src.schemas.auth import (
    AuthResponse,
    FormDescription,
    FormField,
    PasswordChange,
    UserLogin,
    UserRegister,
    UserResponse,
    ValidationErrorResponse,
)
from src.services.credentials import EMAIL_MAX_LENGTH, NAME_MAX_LENGTH, CredentialStore
from src.services.session import SessionManager

router = APIRouter(prefix="/api/v1/auth", tags=["auth"])

VALIDATION_RESPONSES: dict[int | str, dict] = {422: {"model": ValidationErrorResponse}}


def _password_fields() -> list[FormField]:
    settings = get_settings()
    return [
        FormField(
            name="password",
            type="password",
            min_length=settings.password_min_length,
            max_length=settings.password_max_length,
        ),
        FormField(name="password_confirmation", type="password"),
    ]


@router.get("/register", response_model=FormDescription, name="auth.register_form")
async def register_form():
    """Describe the registration form."""
    return FormDescription(
        action="/api/v1/auth/register",
        fields=[
            FormField(name="name", max_length=NAME_MAX_LENGTH),
            FormField(name="email", type="email", max_length=EMAIL_MAX_LENGTH),
            *_password_fields(),
        ],
    )


@router.post(
    "/register",
    response_model=AuthResponse,
    status_code=status.HTTP_201_CREATED,
    name="auth.register",
    responses=VALIDATION_RESPONSES,
)
async def register(
    user_data: UserRegister,
    credentials: Annotated[CredentialStore, Depends(get_credential_store)],
    manager: Annotated[SessionManager, Depends(get_session_manager)],
):
    """Register a new user and sign them in."""
    # Hashing is CPU-bound; keep it off the event loop
    user = await run_in_threadpool(
        credentials.register,
        user_data.name,
        user_data.email,
        user_data.password,
        user_data.password_confirmation,
    )
    session = manager.sign_in(user)

    return AuthResponse(user=UserResponse.model_validate(user), remembered=session.remembered)


@router.get("/login", response_model=FormDescription, name="auth.login_form")
async def login_form():
    """Describe the login form."""
    return FormDescription(
        action="/api/v1/auth/login",
        fields=[
            FormField(name="email", type="email", max_length=EMAIL_MAX_LENGTH),
            FormField(name="password", type="password"),
            FormField(name="remember", type="checkbox", required=False),
        ],
    )


@router.post("/login", response_model=AuthResponse, name="auth.login")
async def login(
    credentials: UserLogin,
    manager: Annotated[SessionManager, Depends(get_session_manager)],
):
    """Login with email and password."""
    session = await run_in_threadpool(
        manager.login, credentials.email, credentials.password, credentials.remember
    )
    user = manager.current_user()

    return AuthResponse(user=UserResponse.model_validate(user), remembered=session.remembered)


@router.get("/me", response_model=UserResponse, name="auth.me")
async def get_me(
    current_user: Annotated[User, Depends(get_current_user)],
):
    """Get current user information."""
    return current_user


@router.post("/logout", name="auth.logout")
async def logout(
    manager: Annotated[SessionManager, Depends(get_session_manager)],
):
    """Sign out and revoke this device's remember token."""
    manager.sign_out()
    return {"message": "Logged out successfully"}


@router.post(
    "/password",
    response_model=UserResponse,
    name="auth.change_password",
    responses=VALIDATION_RESPONSES,
)
async def change_password(
    payload: PasswordChange,
    current_user: Annotated[User, Depends(get_current_user)],
    credentials: Annotated[CredentialStore, Depends(get_credential_store)],
    manager: Annotated[SessionManager, Depends(get_session_manager)],
):
    """Change password; other sessions and every remember token stop working."""
    user = await run_in_threadpool(
        credentials.change_password,
        current_user,
        payload.current_password,
        payload.password,
        payload.password_confirmation,
    )
    # Keep the caller signed in under the new session version
    manager.sign_in(user)
    return user


@router.delete("/account", status_code=status.HTTP_204_NO_CONTENT, name="auth.delete_account")
async def delete_account(
    current_user: Annotated[User, Depends(get_current_user)],
    credentials: Annotated[CredentialStore, Depends(get_credential_store)],
    manager: Annotated[SessionManager, Depends(get_session_manager)],
):
    """Delete the signed-in account."""
    manager.sign_out()
    credentials.delete_user(current_user)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
