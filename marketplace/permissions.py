from typing import Dict, FrozenSet, Iterable, List

from .models import ProjectRole

WORKFLOW_READ = "workflow:read"
WORKFLOW_UPDATE = "workflow:update"
WORKFLOW_DELETE = "workflow:delete"

PROJECT_ROLE_SCOPES: Dict[str, FrozenSet[str]] = {
    ProjectRole.personal_owner.value: frozenset({WORKFLOW_READ, WORKFLOW_UPDATE, WORKFLOW_DELETE}),
    ProjectRole.admin.value: frozenset({WORKFLOW_READ, WORKFLOW_UPDATE, WORKFLOW_DELETE}),
    ProjectRole.editor.value: frozenset({WORKFLOW_READ, WORKFLOW_UPDATE}),
    ProjectRole.viewer.value: frozenset({WORKFLOW_READ}),
}


def roles_with_scopes(scopes: Iterable[str]) -> List[str]:
    """Roles de proyecto que otorgan todos los scopes pedidos."""
    wanted = set(scopes)
    return sorted(role for role, granted in PROJECT_ROLE_SCOPES.items() if wanted <= granted)
