"""
Read-only access to host documents.
Page builder templates are documents too; they are looked up by id when a tree references one.
"""
from __future__ import annotations

import logging
import threading
from typing import Any, Dict, List, Optional, Protocol

from arango.exceptions import ArangoError
from pydantic import ValidationError

from backend.app.db.arango import ArangoDB, DOCUMENTS_COLLECTION
from backend.app.models.document import DocumentSnapshot

logger = logging.getLogger(__name__)


class DocumentProvider(Protocol):
    def put(self, document: DocumentSnapshot) -> DocumentSnapshot: ...
    def get_document(self, document_id: str) -> Optional[DocumentSnapshot]: ...
    def get_builder_tree(self, template_id: str) -> Optional[List[Any]]: ...


class InMemoryDocumentProvider:
    def __init__(self) -> None:
        self._items: Dict[str, DocumentSnapshot] = {}
        self._lock = threading.Lock()

    def put(self, document: DocumentSnapshot) -> DocumentSnapshot:
        with self._lock:
            self._items[document.document_id] = document
        return document

    def get_document(self, document_id: str) -> Optional[DocumentSnapshot]:
        with self._lock:
            return self._items.get(str(document_id))

    def get_builder_tree(self, template_id: str) -> Optional[List[Any]]:
        document = self.get_document(template_id)
        return document.builder_data if document else None


class ArangoDocumentProvider:
    def __init__(self, arango: ArangoDB, collection: str = DOCUMENTS_COLLECTION) -> None:
        self._arango = arango
        self._collection_name = collection

    def _collection(self):
        database = self._arango.get_db()
        if database is None:
            return None
        return database.collection(self._collection_name)

    def put(self, document: DocumentSnapshot) -> DocumentSnapshot:
        col = self._collection()
        if col is None:
            raise RuntimeError("ArangoDB is not available")
        doc = document.model_dump(mode="json")
        doc["_key"] = document.document_id
        col.insert(doc, overwrite=True, silent=True)
        return document

    def get_document(self, document_id: str) -> Optional[DocumentSnapshot]:
        try:
            col = self._collection()
            if col is None:
                return None
            doc = col.get(str(document_id))
        except (ArangoError, OSError) as e:
            logger.warning("Failed to load document %s: %s", document_id, e)
            return None
        if not doc:
            return None
        try:
            return DocumentSnapshot.model_validate(doc)
        except ValidationError as e:
            logger.warning("Document %s is malformed: %s", document_id, e)
            return None

    def get_builder_tree(self, template_id: str) -> Optional[List[Any]]:
        document = self.get_document(template_id)
        return document.builder_data if document else None
