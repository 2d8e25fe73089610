"""
Ownership linker y resolución de acceso a workflows.

El acceso se resuelve SharedWorkflow -> ProjectRelation: un usuario puede
operar sobre un workflow si pertenece a un proyecto que lo comparte con un
rol que otorga los scopes pedidos. Los administradores globales ven todo.
"""
from typing import Iterable, List, Optional

from sqlmodel import Session, col, select

from ..models import ProjectRelation, SharedWorkflow, User, Workflow
from ..permissions import roles_with_scopes

OWNER_ROLE = "workflow:owner"


class SharedWorkflowRepository:
    """Repository for shared_workflow rows"""

    def __init__(self, session: Session):
        self.session = session

    def link_owner(self, workflow_id: str, project_id: str) -> SharedWorkflow:
        """Crea el registro de propiedad (rol owner) de un workflow recién creado."""
        sharing = SharedWorkflow(workflow_id=workflow_id, project_id=project_id, role=OWNER_ROLE)
        self.session.add(sharing)
        self.session.flush()
        return sharing

    def find_for_workflow(self, workflow_id: str) -> List[SharedWorkflow]:
        return list(
            self.session.exec(select(SharedWorkflow).where(SharedWorkflow.workflow_id == workflow_id)).all()
        )

    def find_workflow_for_user(self, workflow_id: str, user: User, scopes: Iterable[str]) -> Optional[Workflow]:
        if user.is_global_admin:
            return self.session.get(Workflow, workflow_id)

        roles = roles_with_scopes(scopes)
        if not roles:
            return None
        return self.session.exec(
            select(Workflow)
            .join(SharedWorkflow, col(SharedWorkflow.workflow_id) == col(Workflow.id))
            .join(ProjectRelation, col(ProjectRelation.project_id) == col(SharedWorkflow.project_id))
            .where(
                Workflow.id == workflow_id,
                ProjectRelation.user_id == user.id,
                col(ProjectRelation.role).in_(roles),
            )
        ).first()

    def find_all_workflow_ids_for_user(self, user: User, scopes: Iterable[str]) -> List[str]:
        if user.is_global_admin:
            return list(self.session.exec(select(Workflow.id)).all())

        roles = roles_with_scopes(scopes)
        if not roles:
            return []
        rows = self.session.exec(
            select(SharedWorkflow.workflow_id)
            .join(ProjectRelation, col(ProjectRelation.project_id) == col(SharedWorkflow.project_id))
            .where(ProjectRelation.user_id == user.id, col(ProjectRelation.role).in_(roles))
            .distinct()
        ).all()
        return list(rows)
