"""
Catalog store: entradas publicadas del marketplace.
"""
from typing import Any, Dict, List, Optional

from sqlalchemy import delete, or_, update
from sqlmodel import Session, col, select

from ..models import CatalogEntry
from ..models.base import utcnow


class CatalogRepository:
    """Repository for marketplace_workflow rows"""

    def __init__(self, session: Session):
        self.session = session

    def get(self, entry_id: str) -> Optional[CatalogEntry]:
        return self.session.get(CatalogEntry, entry_id)

    def find_by_origin(self, original_workflow_id: str, author_id: str) -> Optional[CatalogEntry]:
        """Natural key: (workflow de origen, autor)."""
        return self.session.exec(
            select(CatalogEntry).where(
                CatalogEntry.original_workflow_id == original_workflow_id,
                CatalogEntry.created_by_user_id == author_id,
            )
        ).first()

    def find_visible_to(self, user_id: str) -> List[CatalogEntry]:
        """Entradas públicas más las del usuario, una sola vez cada una, más recientes primero."""
        return list(
            self.session.exec(
                select(CatalogEntry)
                .where(or_(col(CatalogEntry.is_public).is_(True), CatalogEntry.created_by_user_id == user_id))
                .order_by(col(CatalogEntry.updated_at).desc(), col(CatalogEntry.id).desc())
            ).all()
        )

    def insert(self, entry: CatalogEntry) -> CatalogEntry:
        self.session.add(entry)
        self.session.flush()
        return entry

    def update_fields(self, entry: CatalogEntry, fields: Dict[str, Any]) -> CatalogEntry:
        for key, value in fields.items():
            setattr(entry, key, value)
        entry.updated_at = utcnow()
        self.session.add(entry)
        self.session.flush()
        return entry

    def increment_downloads(self, entry_id: str, by: int = 1) -> int:
        """
        Incremento atómico en la base (UPDATE ... SET downloads = downloads + n).
        Devuelve la cantidad de filas afectadas.
        """
        result = self.session.exec(
            update(CatalogEntry)
            .where(col(CatalogEntry.id) == entry_id)
            .values(downloads=col(CatalogEntry.downloads) + by)
            .execution_options(synchronize_session=False)
        )
        return result.rowcount

    def delete(self, entry_id: str) -> int:
        result = self.session.exec(
            delete(CatalogEntry).where(col(CatalogEntry.id) == entry_id)
        )
        return result.rowcount
