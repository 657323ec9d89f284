"""
Supabase-backed document store

Every document is one row of the documents table:

    path          text primary key   'patients/p1/appointments/KAPP-...'
    collection    text               'patients/p1/appointments'
    collection_id text               'appointments'
    doc_id        text               'KAPP-...'
    data          jsonb

Merges and increments run as Postgres functions (see
migrations/001_booking_documents.sql) so the read-modify-write happens in
the database, not in this process.
"""
import logging
import uuid
from typing import Any, Dict, List, Optional

from supabase import AsyncClient

from clinic_booking import config
from clinic_booking.exceptions import DocumentNotFoundError, DocumentStoreError

from . import paths
from .document_store import DocumentStore, StoredDocument

logger = logging.getLogger(__name__)

MERGE_RPC = "merge_document"


class SupabaseDocumentStore(DocumentStore):
    """DocumentStore over a single Supabase table."""

    def __init__(
        self,
        client: AsyncClient,
        table: str = None,
        increment_rpc: str = None,
    ):
        self.supabase = client
        self.table = table or config.DOCUMENTS_TABLE
        self.increment_rpc = increment_rpc or config.INCREMENT_RPC

    def _row(self, path: str, data: Dict[str, Any]) -> Dict[str, Any]:
        collection = paths.parent_collection(path)
        return {
            'path': path,
            'collection': collection,
            'collection_id': paths.document_id(collection),
            'doc_id': paths.document_id(path),
            'data': data,
        }

    @staticmethod
    def _documents(result) -> List[StoredDocument]:
        return [
            StoredDocument(path=row['path'], data=row.get('data') or {})
            for row in (result.data or [])
        ]

    async def get(self, path: str) -> Optional[StoredDocument]:
        try:
            result = await self.supabase.table(self.table).select('path, data').eq(
                'path', path
            ).limit(1).execute()
        except Exception as e:
            raise DocumentStoreError('get', path, e) from e

        documents = self._documents(result)
        return documents[0] if documents else None

    async def set(self, path: str, data: Dict[str, Any], merge: bool = False) -> None:
        try:
            if merge:
                row = self._row(path, data)
                await self.supabase.rpc(MERGE_RPC, {
                    'p_path': path,
                    'p_collection': row['collection'],
                    'p_collection_id': row['collection_id'],
                    'p_doc_id': row['doc_id'],
                    'p_data': data,
                }).execute()
            else:
                await self.supabase.table(self.table).upsert(self._row(path, data)).execute()
        except Exception as e:
            raise DocumentStoreError('set', path, e) from e

    async def update(self, path: str, data: Dict[str, Any]) -> None:
        existing = await self.get(path)
        if existing is None:
            raise DocumentNotFoundError(path)
        await self.set(path, data, merge=True)

    async def add(self, collection_path: str, data: Dict[str, Any]) -> str:
        doc_id = uuid.uuid4().hex[:20]
        path = paths.join(collection_path, doc_id)
        try:
            await self.supabase.table(self.table).insert(self._row(path, data)).execute()
        except Exception as e:
            raise DocumentStoreError('add', path, e) from e
        return doc_id

    async def list(self, collection_path: str) -> List[StoredDocument]:
        try:
            result = await self.supabase.table(self.table).select('path, data').eq(
                'collection', collection_path
            ).order('path').execute()
        except Exception as e:
            raise DocumentStoreError('list', collection_path, e) from e
        return self._documents(result)

    async def collection_group(self, collection_id: str) -> List[StoredDocument]:
        try:
            result = await self.supabase.table(self.table).select('path, data').eq(
                'collection_id', collection_id
            ).order('path').execute()
        except Exception as e:
            raise DocumentStoreError('collection_group', collection_id, e) from e
        return self._documents(result)

    async def query(self, collection_path: str, field_name: str, value: Any) -> List[StoredDocument]:
        try:
            result = await self.supabase.table(self.table).select('path, data').eq(
                'collection', collection_path
            ).contains('data', {field_name: value}).order('path').execute()
        except Exception as e:
            raise DocumentStoreError('query', collection_path, e) from e
        # jsonb containment also matches nested/array values; keep exact matches only
        return [doc for doc in self._documents(result) if doc.data.get(field_name) == value]

    async def increment(self, path: str, field_name: str, amount: int = 1) -> int:
        row = self._row(path, {})
        try:
            result = await self.supabase.rpc(self.increment_rpc, {
                'p_path': path,
                'p_collection': row['collection'],
                'p_collection_id': row['collection_id'],
                'p_doc_id': row['doc_id'],
                'p_field': field_name,
                'p_amount': amount,
            }).execute()
        except Exception as e:
            raise DocumentStoreError('increment', path, e) from e

        value = result.data
        if isinstance(value, list):
            value = value[0] if value else 0
        if isinstance(value, dict):
            value = next(iter(value.values()), 0)
        return int(value or 0)
