from fastapi import APIRouter, Depends, status

from ..deps import current_user, get_workflow_service
from ..models import User
from ..schemas import CreateWorkflowDTO, UpdateWorkflowDTO, WorkflowDetail
from ..services.workflow_service import WorkflowService

router = APIRouter(prefix="/workflows")


@router.post("", response_model=WorkflowDetail, status_code=status.HTTP_201_CREATED)
def create_workflow(
    body: CreateWorkflowDTO,
    user: User = Depends(current_user),
    service: WorkflowService = Depends(get_workflow_service),
):
    return service.create(user, body)


@router.get("/{workflow_id}", response_model=WorkflowDetail)
def get_workflow(
    workflow_id: str,
    user: User = Depends(current_user),
    service: WorkflowService = Depends(get_workflow_service),
):
    return service.get(user, workflow_id)


@router.patch("/{workflow_id}", response_model=WorkflowDetail)
def update_workflow(
    workflow_id: str,
    body: UpdateWorkflowDTO,
    user: User = Depends(current_user),
    service: WorkflowService = Depends(get_workflow_service),
):
    return service.update(user, workflow_id, body)
