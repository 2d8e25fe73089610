from typing import Optional
from enum import Enum

from sqlmodel import Field

from .base import Timestamped


class GlobalRole(str, Enum):
    owner = "global:owner"
    admin = "global:admin"
    member = "global:member"


GLOBAL_ADMIN_ROLES = {GlobalRole.owner.value, GlobalRole.admin.value}


class User(Timestamped, table=True):
    __tablename__ = "user"

    id: str = Field(primary_key=True, index=True)
    email: str = Field(index=True, unique=True)
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    role: str = Field(default=GlobalRole.member.value)

    @property
    def display_name(self) -> str:
        full = " ".join(p for p in (self.first_name, self.last_name) if p)
        return full or self.email

    @property
    def is_global_admin(self) -> bool:
        return self.role in GLOBAL_ADMIN_ROLES
