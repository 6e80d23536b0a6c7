"""
API request and response models for the account service REST endpoints.

These Pydantic v2 models define the HTTP transport contract. They are
intentionally separate from the dataclasses in auth/models.py, which own the
internal domain representation. Route handlers map between the two.

Every request body is validated here before it reaches the account service:
unknown fields are rejected and passwords are capped at bcrypt's 72-byte input
limit.
"""

from typing import Annotated, Optional

from pydantic import AfterValidator, BaseModel, ConfigDict, Field, StringConstraints

from auth.models import User
from auth.passwords import MAX_PASSWORD_BYTES


def _check_password_bytes(value: Optional[str]) -> Optional[str]:
    if value is not None and len(value.encode("utf-8")) > MAX_PASSWORD_BYTES:
        raise ValueError(f"password must be at most {MAX_PASSWORD_BYTES} bytes")
    return value


# Annotated type that applies the bcrypt input cap wherever a new password is accepted.
_Password = Annotated[str, AfterValidator(_check_password_bytes)]

# Display names must carry visible text; surrounding whitespace is dropped.
_Name = Annotated[str, StringConstraints(strip_whitespace=True, min_length=1, max_length=255)]


# ---------------------------------------------------------------------------
# Request models
# ---------------------------------------------------------------------------


class RegisterRequest(BaseModel):
    """Request body for POST /register."""

    model_config = ConfigDict(extra="forbid")

    name: _Name
    email: str = Field(min_length=1, max_length=255)
    password: _Password


class LoginRequest(BaseModel):
    """Request body for POST /login."""

    model_config = ConfigDict(extra="forbid")

    email: str = Field(min_length=1, max_length=255)
    password: str = Field(max_length=255)


class UserPatch(BaseModel):
    """Request body for PATCH /{user_id}.

    email is mandatory: it is the ownership proof compared against the
    caller's token, and it is also written to the record.
    """

    model_config = ConfigDict(extra="forbid")

    email: str = Field(min_length=1, max_length=255)
    name: Optional[_Name] = None
    password: Optional[_Password] = None


# ---------------------------------------------------------------------------
# Response models
# ---------------------------------------------------------------------------


class UserResponse(BaseModel):
    """Public view of a user record. Never carries the password hash."""

    model_config = ConfigDict(frozen=True)

    id: str
    name: str
    email: str
    created_at: str

    @classmethod
    def from_user(cls, user: User) -> "UserResponse":
        return cls(id=user.id, name=user.name, email=user.email, created_at=user.created_at or "")


class UserRecord(UserResponse):
    """Admin listing row. password_hash is present only when the listing exposes it."""

    password_hash: Optional[str] = None

    @classmethod
    def from_user(cls, user: User, include_hash: bool = False) -> "UserRecord":
        return cls(
            id=user.id,
            name=user.name,
            email=user.email,
            created_at=user.created_at or "",
            password_hash=user.password_hash if include_hash else None,
        )


class LoginResult(BaseModel):
    """Legacy login envelope: {status, user} on success, {status, error|user} on failure."""

    status: str
    user: Optional[str | bool] = None
    error: Optional[str] = None


class RegisterFailure(BaseModel):
    status: str = "error"
    error: str


class ErrorDetail(BaseModel):
    """Machine-readable error payload."""

    model_config = ConfigDict(frozen=True)

    code: str
    message: str
    detail: Optional[str] = None


class ErrorResponse(BaseModel):
    """Top-level error envelope returned on 4xx/5xx responses."""

    model_config = ConfigDict(frozen=True)

    error: ErrorDetail


class HealthResponse(BaseModel):
    """Response for GET /health."""

    model_config = ConfigDict(frozen=True)

    status: str = "healthy"
    version: str
    components: dict[str, str]
