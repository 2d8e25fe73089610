from typing import Any, Dict, Optional

from sqlalchemy import JSON, Text, UniqueConstraint
from sqlmodel import Field

from .base import Timestamped


class CatalogEntry(Timestamped, table=True):
    """
    Entrada publicada del marketplace.

    `workflow_json` es una copia desnormalizada del grafo
    ({nodes, connections, settings, staticData}) tomada al publicar;
    no guarda referencias al workflow vivo.
    """
    __tablename__ = "marketplace_workflow"
    __table_args__ = (
        UniqueConstraint("original_workflow_id", "created_by_user_id", name="uq_marketplace_origin_author"),
    )

    id: str = Field(primary_key=True, index=True)
    name: str = Field(index=True)
    description: str = Field(default="", sa_type=Text)
    category: str = Field(index=True)
    author_id: str = Field(index=True)
    author_name: str
    workflow_json: Dict[str, Any] = Field(default_factory=dict, sa_type=JSON)
    downloads: int = Field(default=0, nullable=False)
    is_public: bool = Field(default=True, index=True)
    original_workflow_id: Optional[str] = Field(default=None, index=True)
    created_by_user_id: str = Field(index=True)
