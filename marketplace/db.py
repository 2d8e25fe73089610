"""
Engine and schema helpers shared by the API and the tests.
"""
import json
from typing import Any

from pydantic_core import to_jsonable_python
from sqlalchemy import Engine, event
from sqlmodel import SQLModel, create_engine


def _json_dumps(value: Any) -> str:
    # Fechas, UUID o Decimal dentro de parámetros de nodos se guardan en formato JSON estándar
    return json.dumps(value, default=to_jsonable_python)


def create_db_engine(database_url: str, echo: bool = False, **kwargs) -> Engine:
    """
    Crea el engine de SQLAlchemy.

    Para SQLite cada transacción arranca con BEGIN IMMEDIATE: los escritores
    concurrentes se encolan en el lock (respetando el timeout) en lugar de
    fallar con "database is locked" al promover un lock compartido.
    """
    is_sqlite = database_url.startswith("sqlite")
    if is_sqlite:
        connect_args = kwargs.pop("connect_args", {})
        connect_args.setdefault("check_same_thread", False)
        connect_args.setdefault("timeout", 30)
        kwargs["connect_args"] = connect_args

    engine = create_engine(database_url, echo=echo, json_serializer=_json_dumps, **kwargs)

    if is_sqlite:
        @event.listens_for(engine, "connect")
        def _disable_pysqlite_transactions(dbapi_connection, connection_record):
            dbapi_connection.isolation_level = None

        @event.listens_for(engine, "begin")
        def _begin_immediate(conn):
            conn.exec_driver_sql("BEGIN IMMEDIATE")

    return engine


def create_schema(engine: Engine) -> None:
    """Create all database tables"""
    from . import models  # noqa: F401  registra las tablas en el metadata

    SQLModel.metadata.create_all(engine)
