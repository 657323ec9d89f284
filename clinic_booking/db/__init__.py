"""Document store access for the booking engine."""
from .document_store import DocumentStore, StoredDocument
from .memory_store import InMemoryDocumentStore

__all__ = ["DocumentStore", "StoredDocument", "InMemoryDocumentStore"]
