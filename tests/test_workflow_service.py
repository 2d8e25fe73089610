# tests/test_workflow_service.py
import pytest

from marketplace.errors import AuthorizationError, NotFoundError
from marketplace.models import ProjectRole
from marketplace.schemas import UpdateWorkflowDTO


def share_with(uow_factory, workflow_id, members):
    with uow_factory() as uow:
        team = uow.projects.create_team_project("Ops")
        uow.sharing.link_owner(workflow_id, team.id)
        for user_id, role in members.items():
            uow.projects.add_member(team.id, user_id, role)
        uow.commit()


def test_viewer_cannot_update_but_editor_can(workflow_service, users, make_workflow, uow_factory):
    """Viewer: lectura sin edición (403). Editor: puede actualizar."""
    wf = make_workflow(users["alice"])
    share_with(uow_factory, wf.id, {"bob": ProjectRole.viewer.value, "carol": ProjectRole.editor.value})

    assert workflow_service.get(users["bob"], wf.id).name == "Backup"
    with pytest.raises(AuthorizationError):
        workflow_service.update(users["bob"], wf.id, UpdateWorkflowDTO(name="Hijacked"))

    updated = workflow_service.update(users["carol"], wf.id, UpdateWorkflowDTO(name="Shared"))
    assert updated.name == "Shared"


def test_update_ignores_explicit_null_on_required_fields(workflow_service, users, make_workflow):
    wf = make_workflow(users["alice"])

    updated = workflow_service.update(
        users["alice"], wf.id, UpdateWorkflowDTO(name=None, nodes=None, settings=None)
    )

    assert updated.name == "Backup"
    assert len(updated.nodes) == 3
    assert updated.settings is None
    assert updated.version_id != wf.version_id


def test_update_missing_workflow(workflow_service, users):
    with pytest.raises(NotFoundError):
        workflow_service.update(users["alice"], "wf_missing", UpdateWorkflowDTO(name="x"))
