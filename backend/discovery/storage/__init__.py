"""Storage module - provides interface and implementations for data persistence."""

from .interface import StorageInterface
from .local_storage import LocalStorage
from .scenario_store import ScenarioStore
from .session_store import SessionStore

__all__ = ['StorageInterface', 'LocalStorage', 'ScenarioStore', 'SessionStore']
