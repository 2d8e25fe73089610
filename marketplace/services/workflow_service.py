import logging
from typing import Any, Dict, Optional

from sqlalchemy.exc import SQLAlchemyError

from ..errors import AuthorizationError, NotFoundError, PersistenceError
from ..models import User, Workflow
from ..permissions import WORKFLOW_READ, WORKFLOW_UPDATE
from ..repositories.unit_of_work import UnitOfWorkFactory
from ..schemas import CreateWorkflowDTO, UpdateWorkflowDTO, WorkflowDetail
from ..util.ids import new_id, new_version_id
from ..util.logs import bind

# Campos que no admiten null explícito en un update
NON_NULLABLE = {"name", "active", "nodes", "connections"}


def to_workflow_detail(workflow: Workflow) -> WorkflowDetail:
    return WorkflowDetail(
        id=workflow.id,
        name=workflow.name,
        active=workflow.active,
        created_at=workflow.created_at,
        updated_at=workflow.updated_at,
        version_id=workflow.version_id,
        nodes=workflow.nodes,
        connections=workflow.connections,
        settings=workflow.settings,
        static_data=workflow.static_data,
    )


class WorkflowService:
    """Creación, lectura y actualización de workflows del usuario"""

    def __init__(self, uow_factory: UnitOfWorkFactory, logger: Optional[logging.Logger] = None):
        self.uow_factory = uow_factory
        self.logger = logger or logging.getLogger(__name__)

    def create(self, user: User, data: CreateWorkflowDTO) -> WorkflowDetail:
        """Workflow + registro de propiedad en el proyecto personal, en una transacción."""
        log = bind(self.logger, user_id=user.id, operation="create_workflow")
        try:
            with self.uow_factory() as uow:
                project = uow.projects.get_personal_project_for_user_or_fail(user.id)
                workflow = uow.workflows.insert(
                    Workflow(
                        id=new_id("wf_"),
                        name=data.name,
                        active=data.active,
                        nodes=data.nodes,
                        connections=data.connections,
                        settings=data.settings,
                        static_data=data.static_data,
                        version_id=new_version_id(),
                    )
                )
                uow.sharing.link_owner(workflow.id, project.id)
                uow.commit()
                log.info("Created workflow %s", workflow.id)
                return to_workflow_detail(workflow)
        except SQLAlchemyError as exc:
            log.error("Transaction rolled back: %s", type(exc).__name__)
            raise PersistenceError("Could not create the workflow; nothing was saved. Please retry.") from exc

    def get(self, user: User, workflow_id: str) -> WorkflowDetail:
        with self.uow_factory() as uow:
            workflow = uow.sharing.find_workflow_for_user(workflow_id, user, [WORKFLOW_READ])
            if workflow is None:
                raise NotFoundError("Workflow not found")
            return to_workflow_detail(workflow)

    def update(self, user: User, workflow_id: str, data: UpdateWorkflowDTO) -> WorkflowDetail:
        """
        Actualiza solo los campos enviados. Cambios en el grafo regeneran version_id.
        """
        log = bind(self.logger, user_id=user.id, operation="update_workflow")
        fields: Dict[str, Any] = {
            key: value
            for key, value in data.model_dump(exclude_unset=True).items()
            if value is not None or key not in NON_NULLABLE
        }
        try:
            with self.uow_factory() as uow:
                workflow = uow.sharing.find_workflow_for_user(workflow_id, user, [WORKFLOW_UPDATE])
                if workflow is None:
                    if uow.sharing.find_workflow_for_user(workflow_id, user, [WORKFLOW_READ]) is None:
                        raise NotFoundError("Workflow not found")
                    raise AuthorizationError("You do not have permission to update this workflow")
                if fields:
                    uow.workflows.update_fields(workflow, fields)
                    uow.commit()
                    log.info("Updated workflow %s (%s)", workflow.id, ", ".join(sorted(fields)))
                return to_workflow_detail(workflow)
        except SQLAlchemyError as exc:
            log.error("Transaction rolled back: %s", type(exc).__name__)
            raise PersistenceError("Could not update the workflow; nothing was saved. Please retry.") from exc
