from typing import List

from fastapi import APIRouter, Depends, status

from ..deps import current_user, get_marketplace_service
from ..models import User
from ..schemas import (
    CatalogEntryDetail,
    CatalogEntryResponse,
    DeleteResponse,
    DescriptionPreview,
    PublishWorkflowDTO,
    WorkflowSummary,
)
from ..services.marketplace_service import MarketplaceService

router = APIRouter(prefix="/marketplace")


@router.get("", response_model=List[CatalogEntryResponse])
def list_marketplace_workflows(
    user: User = Depends(current_user),
    service: MarketplaceService = Depends(get_marketplace_service),
):
    """Entradas visibles: públicas + las del usuario"""
    return service.find_all(user)


@router.post("/publish", response_model=CatalogEntryResponse)
def publish_workflow(
    body: PublishWorkflowDTO,
    user: User = Depends(current_user),
    service: MarketplaceService = Depends(get_marketplace_service),
):
    """Publica (o republica) un workflow en el marketplace"""
    return service.publish(user, body)


@router.post("/import/{entry_id}", response_model=WorkflowSummary, status_code=status.HTTP_201_CREATED)
def import_workflow(
    entry_id: str,
    user: User = Depends(current_user),
    service: MarketplaceService = Depends(get_marketplace_service),
):
    """Importa una entrada como workflow nuevo del usuario"""
    return service.import_workflow(user, entry_id)


@router.get("/user-workflows", response_model=List[WorkflowSummary])
def list_user_workflows(
    user: User = Depends(current_user),
    service: MarketplaceService = Depends(get_marketplace_service),
):
    """Workflows del usuario que se pueden publicar"""
    return service.find_user_workflows(user)


@router.get("/preview-description/{workflow_id}", response_model=DescriptionPreview)
def preview_description(
    workflow_id: str,
    user: User = Depends(current_user),
    service: MarketplaceService = Depends(get_marketplace_service),
):
    return DescriptionPreview(description=service.preview_description(user, workflow_id))


@router.get("/{entry_id}", response_model=CatalogEntryDetail)
def get_marketplace_workflow(
    entry_id: str,
    user: User = Depends(current_user),
    service: MarketplaceService = Depends(get_marketplace_service),
):
    return service.get(user, entry_id)


@router.delete("/{entry_id}", response_model=DeleteResponse)
def delete_marketplace_workflow(
    entry_id: str,
    user: User = Depends(current_user),
    service: MarketplaceService = Depends(get_marketplace_service),
):
    return DeleteResponse(success=service.delete(user, entry_id))
