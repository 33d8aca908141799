"""Services module for Rivet - Business logic layer."""

from .datastore import DataStore
from .task_service import TaskService

__all__ = ["DataStore", "TaskService"]
