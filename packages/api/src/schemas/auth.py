# This project was developed with assistance from AI tools.
"""Caller identity schema."""

from db.enums import UserRole
from pydantic import BaseModel, ConfigDict


class UserContext(BaseModel):
    """Injected by the auth dependency into every identified request."""

    model_config = ConfigDict(frozen=True)

    user_id: str
    role: UserRole = UserRole.MEMBER

    @property
    def is_admin(self) -> bool:
        return self.role == UserRole.ADMIN
