"""Pydantic schemas for API requests and responses."""

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

__all__ = [
    "UserRegister",
    "UserLogin",
    "PasswordChange",
    "UserResponse",
    "AuthResponse",
    "FormField",
    "FormDescription",
    "ValidationErrorResponse",
]
