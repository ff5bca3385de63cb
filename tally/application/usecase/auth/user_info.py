"""Public user representation shared by auth responses."""

from pydantic import BaseModel, ConfigDict, Field

from tally.domain.model import User


class UserInfo(BaseModel):
    """User fields handed to clients (API bodies and handshake messages)."""

    model_config = ConfigDict(populate_by_name=True)

    id: str
    username: str
    email: str
    profile_picture: str | None = Field(default=None, alias="profilePicture")

    @classmethod
    def from_user(cls, user: User) -> "UserInfo":
        return cls(
            id=str(user.id),
            username=user.username.root,
            email=user.email.root,
            profile_picture=user.profile_picture,
        )

    def to_message(self) -> dict:
        """Serialize with camelCase keys, omitting an absent picture."""
        return self.model_dump(by_alias=True, exclude_none=True)
