"""Authentication schemas."""

from pydantic import BaseModel, ConfigDict, Field


class UserRegister(BaseModel):
    """User registration request.

    Field rules, length limits included, live in the credential store so
    every problem comes back in the same field-level errors map.
    """

    name: str = ""
    email: str = ""
    password: str = ""
    password_confirmation: str = ""


class UserLogin(BaseModel):
    """User login request."""

    email: str = Field("", max_length=255)
    password: str = Field("", max_length=255)
    remember: bool = False


class PasswordChange(BaseModel):
    """Password change request for the signed-in user."""

    current_password: str
    password: str
    password_confirmation: str


class UserResponse(BaseModel):
    """User information response."""

    model_config = ConfigDict(from_attributes=True)

    id: str
    name: str
    email: str


class AuthResponse(BaseModel):
    """Result of a successful registration or login."""

    user: UserResponse
    remembered: bool = False


class FormField(BaseModel):
    name: str
    type: str = "text"
    required: bool = True
    min_length: int | None = None
    max_length: int | None = None


class FormDescription(BaseModel):
    """Fields a client should render for a public form."""

    action: str
    fields: list[FormField]


class ValidationErrorResponse(BaseModel):
    detail: str
    errors: dict[str, list[str]]
