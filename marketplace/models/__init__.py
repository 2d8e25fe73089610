from .base import Timestamped
from .user import User, GlobalRole, GLOBAL_ADMIN_ROLES
from .project import Project, ProjectRelation, ProjectRole, ProjectType
from .workflow import Workflow, SharedWorkflow
from .catalog import CatalogEntry

__all__ = [
    "Timestamped",
    "User", "GlobalRole", "GLOBAL_ADMIN_ROLES",
    "Project", "ProjectRelation", "ProjectRole", "ProjectType",
    "Workflow", "SharedWorkflow",
    "CatalogEntry",
]
