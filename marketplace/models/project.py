from enum import Enum

from sqlmodel import Field

from .base import Timestamped


class ProjectType(str, Enum):
    personal = "personal"
    team = "team"


class ProjectRole(str, Enum):
    personal_owner = "project:personalOwner"
    admin = "project:admin"
    editor = "project:editor"
    viewer = "project:viewer"


class Project(Timestamped, table=True):
    __tablename__ = "project"

    id: str = Field(primary_key=True, index=True)
    name: str
    type: ProjectType = Field(default=ProjectType.personal, index=True)


class ProjectRelation(Timestamped, table=True):
    """Membresía de un usuario en un proyecto, con su rol."""

    __tablename__ = "project_relation"

    project_id: str = Field(foreign_key="project.id", primary_key=True)
    user_id: str = Field(foreign_key="user.id", primary_key=True, index=True)
    role: str = Field(default=ProjectRole.personal_owner.value)
