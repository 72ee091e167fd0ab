from typing import Any, Dict, Optional

from pydantic import BaseModel

from .polygons import Actor


class User(BaseModel):
    """Caller identity as returned by the identity service."""

    id: int
    name: Optional[str] = None
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    email: Optional[str] = None
    role: Optional[str] = None
    extraUserData: Dict[str, Any] = {}

    @property
    def full_name(self) -> Optional[str]:
        if self.first_name or self.last_name:
            return " ".join(n for n in (self.first_name, self.last_name) if n)
        return self.name

    def to_actor(self) -> Actor:
        return Actor(user_id=self.id, full_name=self.full_name)
