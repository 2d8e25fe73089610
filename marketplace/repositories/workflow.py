"""
Workflow store: grafos de workflows de los usuarios.
"""
from typing import Any, Dict, Iterable, List, Optional

from sqlmodel import Session, col, select

from ..models import Workflow
from ..models.base import utcnow
from ..util.ids import new_version_id

# Campos que una actualización puede tocar; el resto (id, version_id, timestamps) los maneja el store.
UPDATABLE_FIELDS = {"name", "active", "nodes", "connections", "settings", "static_data"}
GRAPH_FIELDS = {"nodes", "connections", "settings", "static_data"}


class WorkflowRepository:
    """Repository for workflow_entity rows"""

    def __init__(self, session: Session):
        self.session = session

    def get(self, workflow_id: str) -> Optional[Workflow]:
        return self.session.get(Workflow, workflow_id)

    def find_by_ids(self, workflow_ids: Iterable[str]) -> List[Workflow]:
        ids = list(workflow_ids)
        if not ids:
            return []
        return list(
            self.session.exec(
                select(Workflow)
                .where(col(Workflow.id).in_(ids))
                .order_by(col(Workflow.updated_at).desc())
            ).all()
        )

    def insert(self, workflow: Workflow) -> Workflow:
        self.session.add(workflow)
        self.session.flush()
        return workflow

    def update_fields(self, workflow: Workflow, fields: Dict[str, Any]) -> Workflow:
        """
        Scoped update: solo campos de UPDATABLE_FIELDS.
        Si cambia algún campo del grafo se regenera version_id.
        """
        unknown = set(fields) - UPDATABLE_FIELDS
        if unknown:
            raise ValueError(f"Fields not updatable: {', '.join(sorted(unknown))}")
        for key, value in fields.items():
            setattr(workflow, key, value)
        if GRAPH_FIELDS & set(fields):
            workflow.version_id = new_version_id()
        workflow.updated_at = utcnow()
        self.session.add(workflow)
        self.session.flush()
        return workflow
