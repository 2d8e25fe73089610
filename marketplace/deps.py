from functools import lru_cache
from typing import Optional

from fastapi import Depends, Security
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy import Engine

from .config import Settings, get_settings
from .db import create_db_engine, create_schema
from .errors import AuthenticationError
from .ia import DescriptionGenerator, DescriptionProviderFactory
from .models import User
from .repositories.unit_of_work import UnitOfWorkFactory, unit_of_work_factory
from .services.marketplace_service import MarketplaceService
from .services.workflow_service import WorkflowService
from .util.logs import get_logger

TOKEN_PREFIX = "mock-"

security = HTTPBearer(auto_error=False)


@lru_cache
def get_engine() -> Engine:
    settings = get_settings()
    engine = create_db_engine(settings.database_url, echo=settings.sql_echo)
    create_schema(engine)
    return engine


def get_uow_factory(engine: Engine = Depends(get_engine)) -> UnitOfWorkFactory:
    return unit_of_work_factory(engine)


@lru_cache
def get_description_generator() -> DescriptionGenerator:
    settings = get_settings()
    return DescriptionGenerator(
        provider=DescriptionProviderFactory.create_from_settings(settings),
        timeout_sec=settings.description_timeout_sec,
        max_words=settings.description_max_words,
        summary_max_chars=settings.description_summary_max_chars,
        logger=get_logger("marketplace.ia"),
    )


def get_marketplace_service(
    uow_factory: UnitOfWorkFactory = Depends(get_uow_factory),
    generator: DescriptionGenerator = Depends(get_description_generator),
    settings: Settings = Depends(get_settings),
) -> MarketplaceService:
    return MarketplaceService(
        uow_factory,
        generator,
        logger=get_logger("marketplace.service"),
        publish_requires_update_scope=settings.publish_requires_update_scope,
    )


def get_workflow_service(uow_factory: UnitOfWorkFactory = Depends(get_uow_factory)) -> WorkflowService:
    return WorkflowService(uow_factory, logger=get_logger("marketplace.workflows"))


def current_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Security(security),
    uow_factory: UnitOfWorkFactory = Depends(get_uow_factory),
) -> User:
    """
    Valida el bearer token.
    Stub de autenticación: el token es "mock-<userId>" y el usuario debe existir.
    """
    if not credentials or not credentials.credentials.startswith(TOKEN_PREFIX):
        raise AuthenticationError("Unauthorized")

    user_id = credentials.credentials[len(TOKEN_PREFIX):]
    with uow_factory() as uow:
        user = uow.users.get(user_id)
    if user is None:
        raise AuthenticationError("Unauthorized")
    return user
