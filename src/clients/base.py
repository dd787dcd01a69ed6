"""
Table API Base - Abstract interface for the remote control plane.

Request and response bodies are plain dicts in the remote's camelCase JSON
shape. Implementations raise NotFoundError when a table or resource does not
exist and APIError for any other rejection.
"""

from abc import ABC, abstractmethod
from typing import Any, Dict, List


class TableAPI(ABC):
    """
    Abstract base class for the table control-plane API.

    Covers the table lifecycle calls and the separate tagging calls.
    """

    @abstractmethod
    async def create_table(self, request: Dict[str, Any]) -> Dict[str, Any]:
        """
        Request creation of a table.

        Args:
            request: CreateTable body (keyspaceName, tableName, ...)

        Returns:
            Response body containing the new table's resourceArn.
        """
        pass

    @abstractmethod
    async def update_table(self, request: Dict[str, Any]) -> Dict[str, Any]:
        """
        Request a settings change on a table.

        Args:
            request: UpdateTable body (keyspaceName, tableName, one setting)

        Returns:
            Response body containing the table's resourceArn.
        """
        pass

    @abstractmethod
    async def delete_table(self, keyspace_name: str, table_name: str) -> None:
        """Request deletion of a table."""
        pass

    @abstractmethod
    async def get_table(self, keyspace_name: str, table_name: str) -> Dict[str, Any]:
        """
        Describe a table.

        Raises:
            NotFoundError: If the table does not exist.
        """
        pass

    @abstractmethod
    async def list_tags(self, arn: str) -> Dict[str, str]:
        """Return all tags on a resource as a key/value mapping."""
        pass

    @abstractmethod
    async def tag_resource(self, arn: str, tags: List[Dict[str, str]]) -> None:
        """Add or overwrite tags on a resource."""
        pass

    @abstractmethod
    async def untag_resource(self, arn: str, tags: List[Dict[str, str]]) -> None:
        """Remove tags from a resource."""
        pass
