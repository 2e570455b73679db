"""API routers for PMS Core."""

from . import client_requirements, epics, functional_requirements, projects, sprints, tasks

__all__ = ["client_requirements", "epics", "functional_requirements", "projects", "sprints", "tasks"]
