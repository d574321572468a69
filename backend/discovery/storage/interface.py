"""
Storage Interface - Abstract base class for all storage implementations.
Scenarios, resumable sessions and shared rate-limit counters all go through it,
so a deployment can swap the local filesystem for a shared store.
"""

from abc import ABC, abstractmethod
from typing import Optional, List


class StorageInterface(ABC):
    """Contract for key/document storage addressed by relative paths."""

    @abstractmethod
    async def save(self, path: str, content: bytes | str) -> bool:
        """
        Save content to the specified path, replacing any previous content.

        Args:
            path: Relative path (e.g., "scenarios/kindrell.json")
            content: Bytes or text to store

        Returns:
            bool: True if save was successful, False otherwise
        """
        pass

    @abstractmethod
    async def load(self, path: str) -> Optional[bytes]:
        """
        Load content from the specified path.

        Returns:
            Optional[bytes]: Stored content, or None if nothing is stored there
        """
        pass

    @abstractmethod
    async def exists(self, path: str) -> bool:
        """Check if content exists at the specified path."""
        pass

    @abstractmethod
    async def delete(self, path: str) -> bool:
        """
        Delete content at the specified path.

        Returns:
            bool: True if something was deleted
        """
        pass

    @abstractmethod
    async def list(self, path: str, pattern: Optional[str] = None) -> List[str]:
        """
        List entries directly under a directory.

        Args:
            path: Directory path to list
            pattern: Optional glob pattern to filter names (e.g., "*.json")

        Returns:
            List[str]: Sorted relative paths
        """
        pass
