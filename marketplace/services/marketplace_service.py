"""
Publish/Import orchestrator del marketplace.

Coordina los stores (a través de una Unit of Work), la copia segura del grafo
y el generador de descripciones. Las escrituras de cada operación ocurren en
una única transacción: o se confirman todas o ninguna.
"""
import logging
from contextlib import contextmanager
from typing import Any, Dict, Iterator, List, Optional

from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from ..cloning import clone_workflow_data
from ..errors import AuthorizationError, NotFoundError, PersistenceError
from ..ia.descriptions import DescriptionGenerator
from ..models import CatalogEntry, User, Workflow
from ..permissions import WORKFLOW_READ, WORKFLOW_UPDATE
from ..repositories.unit_of_work import UnitOfWork, UnitOfWorkFactory
from ..schemas import (
    CatalogEntryDetail,
    CatalogEntryResponse,
    PublishWorkflowDTO,
    WorkflowGraph,
    WorkflowSummary,
)
from ..util.ids import new_id, new_version_id
from ..util.logs import bind

IMPORTED_SUFFIX = " (Imported)"


def workflow_graph(workflow: Workflow) -> Dict[str, Any]:
    """Los cuatro campos del grafo con las claves del formato almacenado."""
    return {
        "nodes": workflow.nodes,
        "connections": workflow.connections,
        "settings": workflow.settings,
        "staticData": workflow.static_data,
    }


def to_entry_response(entry: CatalogEntry) -> CatalogEntryResponse:
    return CatalogEntryResponse(
        id=entry.id,
        name=entry.name,
        description=entry.description,
        category=entry.category,
        downloads=entry.downloads,
        is_public=entry.is_public,
        author_id=entry.author_id,
        author_name=entry.author_name,
        original_workflow_id=entry.original_workflow_id,
        created_at=entry.created_at,
        updated_at=entry.updated_at,
    )


def to_workflow_summary(workflow: Workflow) -> WorkflowSummary:
    return WorkflowSummary(
        id=workflow.id,
        name=workflow.name,
        active=workflow.active,
        created_at=workflow.created_at,
        updated_at=workflow.updated_at,
    )


class MarketplaceService:
    """
    Operaciones del marketplace: listar, publicar, importar, borrar.

    Colaboradores inyectados:
    - uow_factory: crea una Unit of Work (catalog, workflows, sharing, projects)
    - description_generator: proveedor opcional + fallback heurístico
    - logger: logger base; cada llamada deriva uno con user_id y operación
    """

    def __init__(
        self,
        uow_factory: UnitOfWorkFactory,
        description_generator: DescriptionGenerator,
        logger: Optional[logging.Logger] = None,
        publish_requires_update_scope: bool = False,
    ):
        self.uow_factory = uow_factory
        self.description_generator = description_generator
        self.logger = logger or logging.getLogger(__name__)
        self.publish_requires_update_scope = publish_requires_update_scope

    def _log(self, user: User, operation: str) -> logging.LoggerAdapter:
        return bind(self.logger, user_id=user.id, operation=operation)

    @contextmanager
    def _transaction(self, log: logging.LoggerAdapter) -> Iterator[UnitOfWork]:
        """
        Unit of Work con traducción de errores de base de datos.

        Cualquier SQLAlchemyError revierte todo y se re-lanza como
        PersistenceError con un mensaje genérico (el llamador puede reintentar).
        """
        with self.uow_factory() as uow:
            try:
                yield uow
            except SQLAlchemyError as exc:
                log.error("Transaction rolled back: %s", type(exc).__name__)
                raise PersistenceError(
                    "Could not complete the operation; nothing was saved. Please retry."
                ) from exc

    # ------------------------------------------------------------------
    # Listing
    # ------------------------------------------------------------------

    def find_all(self, user: User) -> List[CatalogEntryResponse]:
        """Entradas públicas + entradas del usuario, sin duplicados, más recientes primero."""
        log = self._log(user, "find_all")
        with self._transaction(log) as uow:
            entries = uow.catalog.find_visible_to(user.id)
            seen = set()
            result = []
            for entry in entries:
                if entry.id in seen:
                    continue
                seen.add(entry.id)
                result.append(to_entry_response(entry))
            return result

    def get(self, user: User, entry_id: str) -> CatalogEntryDetail:
        """Detalle con grafo. Una entrada privada ajena se reporta como inexistente."""
        log = self._log(user, "get")
        with self._transaction(log) as uow:
            entry = uow.catalog.get(entry_id)
            if entry is None or (not entry.is_public and entry.author_id != user.id):
                raise NotFoundError("Marketplace workflow not found")
            graph = clone_workflow_data(entry.workflow_json, log)
            return CatalogEntryDetail(
                **to_entry_response(entry).model_dump(),
                workflow=WorkflowGraph(
                    nodes=graph["nodes"],
                    connections=graph["connections"],
                    settings=graph["settings"],
                    static_data=graph["staticData"],
                ),
            )

    def find_user_workflows(self, user: User) -> List[WorkflowSummary]:
        """Workflows que el usuario puede leer (candidatos a publicar)."""
        log = self._log(user, "find_user_workflows")
        with self._transaction(log) as uow:
            workflow_ids = uow.sharing.find_all_workflow_ids_for_user(user, [WORKFLOW_READ])
            return [to_workflow_summary(wf) for wf in uow.workflows.find_by_ids(workflow_ids)]

    # ------------------------------------------------------------------
    # Publish
    # ------------------------------------------------------------------

    def _publish_scopes(self) -> List[str]:
        if self.publish_requires_update_scope:
            return [WORKFLOW_READ, WORKFLOW_UPDATE]
        return [WORKFLOW_READ]

    def _snapshot_for_user(self, uow: UnitOfWork, user: User, workflow_id: str, scopes: List[str], log):
        workflow = uow.sharing.find_workflow_for_user(workflow_id, user, scopes)
        if workflow is None:
            raise AuthorizationError("Permission denied or workflow not found")
        return workflow.name, clone_workflow_data(workflow_graph(workflow), log)

    def preview_description(self, user: User, workflow_id: str) -> str:
        """Descripción generada (o heurística) sin persistir nada."""
        log = self._log(user, "preview_description")
        with self._transaction(log) as uow:
            name, snapshot = self._snapshot_for_user(uow, user, workflow_id, [WORKFLOW_READ], log)
        return self.description_generator.generate(name, snapshot, logger=log)

    def publish(self, user: User, data: PublishWorkflowDTO) -> CatalogEntryResponse:
        """
        Crea o actualiza la entrada del par (workflow de origen, autor).

        1. Verifica acceso y toma una copia segura del grafo (transacción de lectura).
        2. Si se pidió, genera la descripción fuera de la transacción: el
           proveedor puede tardar hasta su timeout y no debe retener locks.
        3. Upsert en una transacción de escritura. Republicar conserva id y
           descargas; dos publicaciones simultáneas terminan en last-write-wins.
        """
        log = self._log(user, "publish")

        with self._transaction(log) as uow:
            workflow_name, snapshot = self._snapshot_for_user(
                uow, user, data.workflow_id, self._publish_scopes(), log
            )

        description = (data.description or "").strip()
        if data.use_auto_description:
            description = self.description_generator.generate(workflow_name, snapshot, logger=log)

        fields: Dict[str, Any] = {
            "name": data.name,
            "description": description,
            "category": data.category,
            "workflow_json": snapshot,
        }

        with self._transaction(log) as uow:
            existing = uow.catalog.find_by_origin(data.workflow_id, user.id)
            if existing is not None:
                entry = self._update_entry(uow, existing, fields, data)
                log.info("Updated marketplace entry %s", entry.id)
            else:
                entry = self._insert_entry(uow, user, fields, data, log)
            uow.commit()
            return to_entry_response(entry)

    def _update_entry(self, uow: UnitOfWork, entry: CatalogEntry, fields: Dict[str, Any], data: PublishWorkflowDTO):
        if data.is_public is not None:
            fields = {**fields, "is_public": data.is_public}
        return uow.catalog.update_fields(entry, fields)

    def _insert_entry(self, uow: UnitOfWork, user: User, fields: Dict[str, Any], data: PublishWorkflowDTO, log):
        entry = CatalogEntry(
            id=new_id("mkt_"),
            author_id=user.id,
            author_name=user.display_name,
            created_by_user_id=user.id,
            original_workflow_id=data.workflow_id,
            is_public=True if data.is_public is None else data.is_public,
            downloads=0,
            **fields,
        )
        try:
            with uow.session.begin_nested():
                uow.catalog.insert(entry)
        except IntegrityError:
            # Otra publicación del mismo par ganó la inserción: se actualiza esa fila
            existing = uow.catalog.find_by_origin(data.workflow_id, user.id)
            if existing is None:
                raise
            log.info("Concurrent publish detected, updating entry %s", existing.id)
            return self._update_entry(uow, existing, fields, data)
        log.info("Created marketplace entry %s", entry.id)
        return entry

    # ------------------------------------------------------------------
    # Import
    # ------------------------------------------------------------------

    def import_workflow(self, user: User, entry_id: str) -> WorkflowSummary:
        """
        Crea un workflow nuevo e independiente a partir de la entrada.

        En una sola transacción: workflow + registro de propiedad en el
        proyecto personal + incremento atómico de descargas (solo si quien
        importa no es el autor).
        """
        log = self._log(user, "import")

        with self._transaction(log) as uow:
            entry = uow.catalog.get(entry_id)
            if entry is None:
                raise NotFoundError("Marketplace workflow not found")
            if not entry.is_public and entry.author_id != user.id:
                raise AuthorizationError("Cannot import this workflow")

            graph = clone_workflow_data(entry.workflow_json, log)
            personal_project = uow.projects.get_personal_project_for_user_or_fail(user.id)

            workflow = uow.workflows.insert(
                Workflow(
                    id=new_id("wf_"),
                    name=f"{entry.name}{IMPORTED_SUFFIX}",
                    active=False,
                    nodes=graph["nodes"],
                    connections=graph["connections"],
                    settings=graph["settings"],
                    static_data=graph["staticData"],
                    version_id=new_version_id(),
                )
            )
            uow.sharing.link_owner(workflow.id, personal_project.id)

            if entry.author_id != user.id:
                if uow.catalog.increment_downloads(entry.id) != 1:
                    # La entrada se borró entre la lectura y el incremento
                    raise NotFoundError("Marketplace workflow not found")

            uow.commit()
            log.info("Imported marketplace entry %s as workflow %s", entry.id, workflow.id)
            return to_workflow_summary(workflow)

    # ------------------------------------------------------------------
    # Delete
    # ------------------------------------------------------------------

    def delete(self, user: User, entry_id: str) -> bool:
        """Borrado definitivo; solo admins globales o el autor. No afecta copias importadas."""
        log = self._log(user, "delete")
        with self._transaction(log) as uow:
            entry = uow.catalog.get(entry_id)
            if entry is None:
                raise NotFoundError("Marketplace workflow not found")
            if not (user.is_global_admin or entry.created_by_user_id == user.id):
                raise AuthorizationError("Only the author or an administrator can delete this workflow")
            uow.catalog.delete(entry_id)
            uow.commit()
            log.info("Deleted marketplace entry %s", entry_id)
            return True
