"""
API DTOs (pydantic).

El contrato HTTP usa camelCase (workflowId, isPublic, useAutoDescription);
internamente se trabaja en snake_case.
"""
from datetime import datetime
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator
from pydantic.alias_generators import to_camel

from .cloning import MAX_GRAPH_DEPTH, exceeds_depth


class ApiModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


# --- Marketplace ---

class PublishWorkflowDTO(ApiModel):
    """Request to publish (or republish) a workflow"""
    name: str = Field(min_length=1)
    description: Optional[str] = None
    category: str = Field(min_length=1)
    workflow_id: str = Field(min_length=1)
    is_public: Optional[bool] = None
    use_auto_description: bool = False

    @model_validator(mode="after")
    def description_or_auto(self) -> "PublishWorkflowDTO":
        if not (self.description or "").strip() and not self.use_auto_description:
            raise ValueError("Please provide a description or enable auto-description generation.")
        return self


class CatalogEntryResponse(ApiModel):
    """Entrada del marketplace sin el grafo (listados y respuesta de publish)"""
    id: str
    name: str
    description: str
    category: str
    downloads: int
    is_public: bool
    author_id: str
    author_name: str
    original_workflow_id: Optional[str] = None
    created_at: datetime
    updated_at: datetime


class WorkflowGraph(ApiModel):
    nodes: List[Dict[str, Any]] = []
    connections: Dict[str, Any] = {}
    settings: Optional[Dict[str, Any]] = None
    static_data: Optional[Dict[str, Any]] = None


class CatalogEntryDetail(CatalogEntryResponse):
    """Entrada con la copia del grafo tomada al publicar"""
    workflow: WorkflowGraph


class DescriptionPreview(ApiModel):
    description: str


class DeleteResponse(ApiModel):
    success: bool


# --- Workflows ---

def check_graph_depth(value):
    """Rechaza grafos anidados más allá de lo que la copia segura conserva sin pérdida."""
    if value is not None and exceeds_depth(value, MAX_GRAPH_DEPTH):
        raise ValueError(f"Graph data is nested deeper than {MAX_GRAPH_DEPTH} levels")
    return value


class WorkflowSummary(ApiModel):
    """Vista mínima de un workflow (import, listados)"""
    id: str
    name: str
    active: bool
    created_at: datetime
    updated_at: datetime


class WorkflowDetail(WorkflowSummary):
    version_id: str
    nodes: List[Dict[str, Any]]
    connections: Dict[str, Any]
    settings: Optional[Dict[str, Any]] = None
    static_data: Optional[Dict[str, Any]] = None


class CreateWorkflowDTO(ApiModel):
    """Request to create a workflow"""
    name: str = Field(min_length=1)
    nodes: List[Dict[str, Any]] = []
    connections: Dict[str, Any] = {}
    settings: Optional[Dict[str, Any]] = None
    static_data: Optional[Dict[str, Any]] = None
    active: bool = False

    @field_validator("nodes", "connections", "settings", "static_data")
    @classmethod
    def graph_depth(cls, value):
        return check_graph_depth(value)


class UpdateWorkflowDTO(ApiModel):
    """Request to update a workflow (solo los campos enviados)"""
    name: Optional[str] = Field(default=None, min_length=1)
    nodes: Optional[List[Dict[str, Any]]] = None
    connections: Optional[Dict[str, Any]] = None
    settings: Optional[Dict[str, Any]] = None
    static_data: Optional[Dict[str, Any]] = None
    active: Optional[bool] = None

    @field_validator("nodes", "connections", "settings", "static_data")
    @classmethod
    def graph_depth(cls, value):
        return check_graph_depth(value)
