"""
Document store interface

A generic key-document database addressed by slash-separated paths
(collection/doc/collection/doc...). Every operation is an async I/O boundary.
"""
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from . import paths


@dataclass(frozen=True)
class StoredDocument:
    """A document read back from the store together with its location."""
    path: str
    data: Dict[str, Any] = field(default_factory=dict)

    @property
    def id(self) -> str:
        return paths.document_id(self.path)


class DocumentStore(ABC):
    """Async document store used by the booking engine."""

    @abstractmethod
    async def get(self, path: str) -> Optional[StoredDocument]:
        """Read one document, or None if it does not exist."""

    @abstractmethod
    async def set(self, path: str, data: Dict[str, Any], merge: bool = False) -> None:
        """Write a document; with merge=True top-level fields are merged into existing data."""

    @abstractmethod
    async def update(self, path: str, data: Dict[str, Any]) -> None:
        """
        Merge fields into an existing document.

        Raises:
            DocumentNotFoundError: If the document does not exist
        """

    @abstractmethod
    async def add(self, collection_path: str, data: Dict[str, Any]) -> str:
        """Create a document with a generated id and return the id."""

    @abstractmethod
    async def list(self, collection_path: str) -> List[StoredDocument]:
        """All documents directly inside a collection."""

    @abstractmethod
    async def collection_group(self, collection_id: str) -> List[StoredDocument]:
        """All documents in every collection named collection_id, at any depth."""

    @abstractmethod
    async def query(self, collection_path: str, field_name: str, value: Any) -> List[StoredDocument]:
        """Documents in a collection whose field equals value exactly."""

    @abstractmethod
    async def increment(self, path: str, field_name: str, amount: int = 1) -> int:
        """
        Atomically add amount to a numeric field and return the new value.

        The read-modify-write happens inside the store; a missing document or
        field starts from zero.
        """
