"""User and authentication models."""

from typing import Optional

from pydantic import AliasChoices, BaseModel, ConfigDict, Field


class User(BaseModel):
    """A user account as returned by /users endpoints."""
    model_config = ConfigDict(
        populate_by_name=True,
        str_strip_whitespace=True,
        coerce_numbers_to_str=True,
        extra="ignore",
    )

    id: str = Field(
        ...,
        validation_alias=AliasChoices("_id", "id", "userId"),
    )
    username: Optional[str] = None
    email: Optional[str] = None

    @property
    def display_name(self) -> str:
        return self.username or self.email or "User"

    def to_storage(self) -> dict:
        """Shape kept in the session file (mirrors the backend record)."""
        return {"_id": self.id, "username": self.username, "email": self.email}


class RegistrationForm(BaseModel):
    """Input for POST /users/register."""
    model_config = ConfigDict(str_strip_whitespace=True)

    username: str = Field(..., min_length=1, max_length=100)
    email: str = Field(..., min_length=3, max_length=254, pattern=r"^[^@\s]+@[^@\s]+$")
    password: str = Field(..., min_length=6, max_length=200)


class LoginForm(BaseModel):
    """Input for POST /users/login."""
    model_config = ConfigDict(str_strip_whitespace=True)

    email: str = Field(..., min_length=3, max_length=254, pattern=r"^[^@\s]+@[^@\s]+$")
    password: str = Field(..., min_length=1, max_length=200)


class LoginResponse(BaseModel):
    """Body of a successful login: a bearer token and the user."""
    model_config = ConfigDict(extra="ignore")

    token: str = Field(..., min_length=1)
    user: User


class AuthSession(BaseModel):
    """
    The durable part of a signed-in session.

    These keys are what survives a restart: token, userId, user and
    username. Nothing else is kept locally.
    """

    token: str
    user_id: str
    user: Optional[User] = None
    username: Optional[str] = None

    def to_storage(self) -> dict:
        return {
            "token": self.token,
            "userId": self.user_id,
            "user": self.user.to_storage() if self.user else None,
            "username": self.username,
        }

    @classmethod
    def from_storage(cls, data: dict) -> Optional["AuthSession"]:
        """Rebuild a session from stored keys, None if token or user id is missing."""
        token = data.get("token")
        user_id = data.get("userId")
        if not token or not user_id:
            return None
        user_data = data.get("user")
        user = User.model_validate(user_data) if user_data else None
        return cls(
            token=token,
            user_id=str(user_id),
            user=user,
            username=data.get("username"),
        )
