"""Adapters for the lab site REST backend."""

from labsite_admin.backend.client import BackendClient
from labsite_admin.backend.controller import CrudController, TeamController
from labsite_admin.backend.repository import EntityRepository, TeamRepository
from labsite_admin.backend.session import SessionContext

__all__ = [
    "BackendClient",
    "CrudController",
    "EntityRepository",
    "SessionContext",
    "TeamController",
    "TeamRepository",
]
