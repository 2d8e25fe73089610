"""
Unit of Work: una sesión (una transacción) compartida por todos los stores.

Uso:
    with uow_factory() as uow:
        ...
        uow.commit()

Lo que no se confirme con commit() se revierte al salir del bloque. Los
objetos cargados quedan desacoplados pero legibles después del bloque.
"""
from typing import Callable

from sqlalchemy import Engine
from sqlmodel import Session

from .catalog import CatalogRepository
from .project import ProjectRepository
from .sharing import SharedWorkflowRepository
from .user import UserRepository
from .workflow import WorkflowRepository


class UnitOfWork:
    def __init__(self, engine: Engine):
        self.engine = engine

    def __enter__(self) -> "UnitOfWork":
        self.session = Session(self.engine, expire_on_commit=False)
        self.catalog = CatalogRepository(self.session)
        self.workflows = WorkflowRepository(self.session)
        self.sharing = SharedWorkflowRepository(self.session)
        self.projects = ProjectRepository(self.session)
        self.users = UserRepository(self.session)
        return self

    def __exit__(self, exc_type, exc, tb):
        # close() revierte la transacción pendiente sin expirar lo ya cargado
        self.session.close()

    def commit(self) -> None:
        self.session.commit()


UnitOfWorkFactory = Callable[[], UnitOfWork]


def unit_of_work_factory(engine: Engine) -> UnitOfWorkFactory:
    def factory() -> UnitOfWork:
        return UnitOfWork(engine)
    return factory
