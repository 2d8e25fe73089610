from typing import Optional

from sqlmodel import Session, select

from ..models import GlobalRole, User
from ..util.ids import new_id
from .project import ProjectRepository


class UserRepository:
    """Repository for users"""

    def __init__(self, session: Session):
        self.session = session

    def get(self, user_id: str) -> Optional[User]:
        return self.session.get(User, user_id)

    def get_by_email(self, email: str) -> Optional[User]:
        return self.session.exec(select(User).where(User.email == email)).first()

    def create_user(
        self,
        email: str,
        first_name: Optional[str] = None,
        last_name: Optional[str] = None,
        role: str = GlobalRole.member.value,
        user_id: Optional[str] = None,
    ) -> User:
        """Crea el usuario junto con su proyecto personal."""
        user = User(
            id=user_id or new_id("usr_"),
            email=email,
            first_name=first_name,
            last_name=last_name,
            role=role,
        )
        self.session.add(user)
        self.session.flush()
        ProjectRepository(self.session).create_personal_project(
            user.id, name=f"{user.display_name} <{email}>"
        )
        return user
