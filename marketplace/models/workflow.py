from typing import Any, Dict, List, Optional

from sqlalchemy import JSON
from sqlmodel import Field

from .base import Timestamped


class Workflow(Timestamped, table=True):
    """
    Grafo editable del usuario: nodos, conexiones, settings y staticData.
    `version_id` es un token opaco que se reemplaza en cada copia estructural.
    """
    __tablename__ = "workflow_entity"

    id: str = Field(primary_key=True, index=True)
    name: str = Field(index=True)
    active: bool = Field(default=False)
    nodes: List[Dict[str, Any]] = Field(default_factory=list, sa_type=JSON)
    connections: Dict[str, Any] = Field(default_factory=dict, sa_type=JSON)
    settings: Optional[Dict[str, Any]] = Field(default=None, sa_type=JSON)
    static_data: Optional[Dict[str, Any]] = Field(default=None, sa_type=JSON)
    version_id: str


class SharedWorkflow(Timestamped, table=True):
    """Registro de propiedad: qué proyecto es dueño (o comparte) el workflow."""

    __tablename__ = "shared_workflow"

    workflow_id: str = Field(foreign_key="workflow_entity.id", primary_key=True)
    project_id: str = Field(foreign_key="project.id", primary_key=True, index=True)
    role: str = Field(default="workflow:owner")
