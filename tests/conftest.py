# tests/conftest.py
import pytest
from fastapi.testclient import TestClient
from sqlalchemy.pool import StaticPool

from marketplace.db import create_db_engine, create_schema
from marketplace.deps import get_description_generator, get_engine
from marketplace.ia import DescriptionGenerator
from marketplace.main import app
from marketplace.models import GlobalRole, Workflow
from marketplace.repositories.unit_of_work import unit_of_work_factory
from marketplace.schemas import CreateWorkflowDTO
from marketplace.services.marketplace_service import MarketplaceService
from marketplace.services.workflow_service import WorkflowService
from marketplace.util.ids import new_id, new_version_id

SAMPLE_NODES = [
    {
        "name": "Every night",
        "type": "n8n-nodes-base.scheduleTrigger",
        "parameters": {"rule": {"interval": [{"field": "days"}]}},
    },
    {
        "name": "Fetch",
        "type": "n8n-nodes-base.httpRequest",
        "parameters": {"url": "https://example.com/export", "options": {"timeout": 1000}},
    },
    {
        "name": "Upload",
        "type": "n8n-nodes-base.awsS3",
        "parameters": {"bucket": "backups"},
    },
]
SAMPLE_CONNECTIONS = {
    "Every night": {"main": [[{"node": "Fetch", "type": "main", "index": 0}]]},
    "Fetch": {"main": [[{"node": "Upload", "type": "main", "index": 0}]]},
}


def auth(user_id: str) -> dict:
    return {"Authorization": f"Bearer mock-{user_id}"}


def nested(levels):
    """Dicts anidados `levels` niveles: {"child": {"child": ... {"leaf": True}}}"""
    value = {"leaf": True}
    for _ in range(levels - 1):
        value = {"child": value}
    return value


def insert_raw_workflow(uow_factory, owner_id, nodes, name="Legacy"):
    """Guarda un workflow sin pasar por los DTOs, como los datos que ya existían en la base."""
    with uow_factory() as uow:
        project = uow.projects.get_personal_project_for_user_or_fail(owner_id)
        workflow = uow.workflows.insert(
            Workflow(id=new_id("wf_"), name=name, nodes=nodes, connections={}, version_id=new_version_id())
        )
        uow.sharing.link_owner(workflow.id, project.id)
        uow.commit()
        return workflow.id


@pytest.fixture()
def engine():
    """SQLite en memoria compartida por todas las sesiones del test."""
    engine = create_db_engine("sqlite://", poolclass=StaticPool)
    create_schema(engine)
    yield engine
    engine.dispose()


@pytest.fixture()
def uow_factory(engine):
    return unit_of_work_factory(engine)


@pytest.fixture()
def users(uow_factory):
    """Usuarios sembrados: alice, bob, carol (miembros) y root (admin global)."""
    with uow_factory() as uow:
        uow.users.create_user("alice@example.com", "Alice", "Smith", user_id="alice")
        uow.users.create_user("bob@example.com", "Bob", None, user_id="bob")
        uow.users.create_user("carol@example.com", user_id="carol")
        uow.users.create_user("root@example.com", role=GlobalRole.admin.value, user_id="root")
        uow.commit()
        return {u: uow.users.get(u) for u in ("alice", "bob", "carol", "root")}


@pytest.fixture()
def generator():
    """Generador sin proveedor: siempre usa la descripción heurística."""
    return DescriptionGenerator()


@pytest.fixture()
def service(uow_factory, generator):
    return MarketplaceService(uow_factory, generator)


@pytest.fixture()
def workflow_service(uow_factory):
    return WorkflowService(uow_factory)


@pytest.fixture()
def make_workflow(workflow_service):
    """Crea un workflow propiedad del usuario indicado."""

    def _make(user, name="Backup", nodes=None, connections=None, **extra):
        return workflow_service.create(
            user,
            CreateWorkflowDTO(
                name=name,
                nodes=SAMPLE_NODES if nodes is None else nodes,
                connections=SAMPLE_CONNECTIONS if connections is None else connections,
                **extra,
            ),
        )

    return _make


@pytest.fixture()
def client(engine, users):
    """Cliente HTTP contra la app con la base en memoria del test."""
    app.dependency_overrides[get_engine] = lambda: engine
    app.dependency_overrides[get_description_generator] = lambda: DescriptionGenerator()
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()
