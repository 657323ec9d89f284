"""
In-process document store

Keeps documents in a dict keyed by path. Used by the test suite and for
local runs without Supabase credentials.
"""
import asyncio
import copy
import logging
import uuid
from typing import Any, Dict, List, Optional, Tuple

from clinic_booking.exceptions import DocumentNotFoundError, DocumentStoreError

from . import paths
from .document_store import DocumentStore, StoredDocument

logger = logging.getLogger(__name__)


class InMemoryDocumentStore(DocumentStore):
    """Dict-backed DocumentStore with optional fault injection."""

    def __init__(self, initial: Optional[Dict[str, Dict[str, Any]]] = None):
        self._documents: Dict[str, Dict[str, Any]] = {}
        self._lock = asyncio.Lock()
        self._failures: List[Tuple[str, str, Exception]] = []
        for path, data in (initial or {}).items():
            self._documents[path] = copy.deepcopy(data)

    # ------------------------------------------------------------------
    # Fault injection
    # ------------------------------------------------------------------

    def fail_on(self, operation: str, path_prefix: str = "", error: Exception = None) -> None:
        """
        Make every matching operation raise DocumentStoreError.

        Args:
            operation: 'get', 'set', 'update', 'add', 'list', 'collection_group',
                'query' or 'increment'
            path_prefix: Only fail when the target path starts with this prefix
            error: Underlying cause to wrap
        """
        self._failures.append((operation, path_prefix, error or ConnectionError("injected failure")))

    def clear_failures(self) -> None:
        self._failures.clear()

    def _maybe_fail(self, operation: str, path: str) -> None:
        for failing_op, prefix, error in self._failures:
            if failing_op == operation and path.startswith(prefix):
                raise DocumentStoreError(operation, path, error)

    # ------------------------------------------------------------------
    # DocumentStore
    # ------------------------------------------------------------------

    async def get(self, path: str) -> Optional[StoredDocument]:
        self._maybe_fail("get", path)
        data = self._documents.get(path)
        if data is None:
            return None
        return StoredDocument(path=path, data=copy.deepcopy(data))

    async def set(self, path: str, data: Dict[str, Any], merge: bool = False) -> None:
        self._maybe_fail("set", path)
        async with self._lock:
            if merge and path in self._documents:
                self._documents[path].update(copy.deepcopy(data))
            else:
                self._documents[path] = copy.deepcopy(data)

    async def update(self, path: str, data: Dict[str, Any]) -> None:
        self._maybe_fail("update", path)
        async with self._lock:
            if path not in self._documents:
                raise DocumentNotFoundError(path)
            self._documents[path].update(copy.deepcopy(data))

    async def add(self, collection_path: str, data: Dict[str, Any]) -> str:
        self._maybe_fail("add", collection_path)
        doc_id = uuid.uuid4().hex[:20]
        async with self._lock:
            self._documents[paths.join(collection_path, doc_id)] = copy.deepcopy(data)
        return doc_id

    async def list(self, collection_path: str) -> List[StoredDocument]:
        self._maybe_fail("list", collection_path)
        return [
            StoredDocument(path=path, data=copy.deepcopy(data))
            for path, data in sorted(self._documents.items())
            if paths.parent_collection(path) == collection_path
        ]

    async def collection_group(self, collection_id: str) -> List[StoredDocument]:
        self._maybe_fail("collection_group", collection_id)
        results = []
        for path, data in sorted(self._documents.items()):
            segments = paths.split(path)
            if len(segments) >= 2 and segments[-2] == collection_id:
                results.append(StoredDocument(path=path, data=copy.deepcopy(data)))
        return results

    async def query(self, collection_path: str, field_name: str, value: Any) -> List[StoredDocument]:
        self._maybe_fail("query", collection_path)
        documents = await self.list(collection_path)
        return [doc for doc in documents if doc.data.get(field_name) == value]

    async def increment(self, path: str, field_name: str, amount: int = 1) -> int:
        self._maybe_fail("increment", path)
        async with self._lock:
            document = self._documents.setdefault(path, {})
            current = document.get(field_name) or 0
            document[field_name] = current + amount
            return document[field_name]

    def snapshot(self) -> Dict[str, Dict[str, Any]]:
        """Copy of every stored document, keyed by path."""
        return copy.deepcopy(self._documents)
