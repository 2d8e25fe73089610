from typing import Optional

from sqlmodel import Session, select

from ..errors import NotFoundError
from ..models import Project, ProjectRelation, ProjectRole, ProjectType
from ..util.ids import new_id


class ProjectRepository:
    """Repository for projects and project membership"""

    def __init__(self, session: Session):
        self.session = session

    def get_personal_project_for_user(self, user_id: str) -> Optional[Project]:
        return self.session.exec(
            select(Project)
            .join(ProjectRelation, ProjectRelation.project_id == Project.id)
            .where(
                Project.type == ProjectType.personal,
                ProjectRelation.user_id == user_id,
                ProjectRelation.role == ProjectRole.personal_owner.value,
            )
        ).first()

    def get_personal_project_for_user_or_fail(self, user_id: str) -> Project:
        project = self.get_personal_project_for_user(user_id)
        if project is None:
            raise NotFoundError("Personal project not found for user")
        return project

    def create_personal_project(self, user_id: str, name: str) -> Project:
        project = Project(id=new_id("prj_"), name=name, type=ProjectType.personal)
        self.session.add(project)
        self.session.flush()
        self.add_member(project.id, user_id, ProjectRole.personal_owner.value)
        return project

    def create_team_project(self, name: str) -> Project:
        project = Project(id=new_id("prj_"), name=name, type=ProjectType.team)
        self.session.add(project)
        self.session.flush()
        return project

    def add_member(self, project_id: str, user_id: str, role: str) -> ProjectRelation:
        relation = ProjectRelation(project_id=project_id, user_id=user_id, role=role)
        self.session.add(relation)
        self.session.flush()
        return relation
