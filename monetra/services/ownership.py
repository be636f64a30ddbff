"""Monetra — Project ownership checks shared by the project-scoped services."""

from monetra.core.errors import Forbidden, NotFound
from monetra.models.db_models import Project
from monetra.storage.repository import ProjectRepository


def load_owned_project(
    projects: ProjectRepository, project_id: str, user_id: str, action: str = "view revenue data for"
) -> Project:
    """Return the project, or raise NotFound (missing) / Forbidden (not the owner)."""
    project = projects.get(project_id)
    if project is None:
        raise NotFound("Project")
    if project.user_id != user_id:
        raise Forbidden(f"You can only {action} your own projects")
    return project
