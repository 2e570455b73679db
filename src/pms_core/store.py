"""Document store used by every entity operation.

All entities (projects, client requirements, epics, functional requirements,
sprints, tasks, notifications) are schemaless documents kept in named
collections. The store exposes get/list/create/update/delete plus an atomic
per-scope sequence counter used to number hierarchy identifiers.
"""
import logging
from abc import ABC, abstractmethod
from typing import Any, Optional

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from .models import Collection, Document, IDSequence

logger = logging.getLogger("pms-core.store")


class StoreError(Exception):
    """Raised when the backing database fails."""


class DocumentNotFoundError(StoreError):
    """Raised when a document does not exist in its collection."""

    def __init__(self, collection: str, document_id: str):
        super().__init__(f"{collection} document not found: {document_id}")
        self.collection = collection
        self.document_id = document_id


class HierarchyIdCollisionError(StoreError):
    """Raised when a hierarchy id is already taken within its project and collection."""

    def __init__(self, collection: str, hierarchy_id: str):
        super().__init__(f"Hierarchy id {hierarchy_id} already exists in {collection}")
        self.collection = collection
        self.hierarchy_id = hierarchy_id


def _collection_name(collection: Any) -> str:
    return collection.value if isinstance(collection, Collection) else str(collection)


def _is_hierarchy_id_violation(error: IntegrityError) -> bool:
    """True when the unique hierarchy id constraint, not another constraint, was violated."""
    message = str(error.orig)
    return "uq_document_hierarchy_id" in message or "documents.hierarchy_id" in message


class DocumentStore(ABC):
    """Interface of the document store collaborator."""

    @abstractmethod
    def get(self, collection: str, document_id: str) -> dict:
        """Return a document or raise DocumentNotFoundError."""

    @abstractmethod
    def list(
        self,
        collection: str,
        filters: Optional[dict[str, Any]] = None,
        order_by: Optional[str] = None,
    ) -> list[dict]:
        """Return documents matching all equality filters."""

    @abstractmethod
    def create(self, collection: str, fields: dict, document_id: Optional[str] = None) -> dict:
        """Create a document, generating an id when none is given."""

    @abstractmethod
    def update(self, collection: str, document_id: str, fields: dict) -> dict:
        """Merge fields into an existing document."""

    @abstractmethod
    def delete(self, collection: str, document_id: str) -> None:
        """Delete a document or raise DocumentNotFoundError."""

    @abstractmethod
    def next_sequence(self, scope: str, floor: int = 1) -> int:
        """Atomically allocate the next number for a scope, never below floor."""


def _sort_key(field: str):
    def key(doc: dict):
        value = doc.get(field)
        return (value is None, value if value is not None else 0)
    return key


class SqlDocumentStore(DocumentStore):
    """DocumentStore backed by a SQLAlchemy session."""

    def __init__(self, db: Session):
        self.db = db

    @staticmethod
    def _to_dict(doc: Document) -> dict:
        return {
            **(doc.data or {}),
            "id": doc.id,
            "created_at": doc.created_at,
            "updated_at": doc.updated_at,
        }

    def _load(self, collection: str, document_id: str) -> Document:
        doc = (
            self.db.query(Document)
            .filter(Document.collection == collection, Document.id == document_id)
            .first()
        )
        if doc is None:
            raise DocumentNotFoundError(collection, document_id)
        return doc

    def _commit(self, collection: str, hierarchy_id: Optional[str]) -> None:
        try:
            self.db.commit()
        except IntegrityError as e:
            self.db.rollback()
            if hierarchy_id and _is_hierarchy_id_violation(e):
                logger.warning(f"Hierarchy id collision in {collection}: {hierarchy_id}")
                raise HierarchyIdCollisionError(collection, hierarchy_id) from e
            raise StoreError(f"Integrity error in {collection}: {e}") from e
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(f"Database error in {collection}: {e}", exc_info=True)
            raise StoreError(str(e)) from e

    def get(self, collection: str, document_id: str) -> dict:
        collection = _collection_name(collection)
        return self._to_dict(self._load(collection, document_id))

    def list(
        self,
        collection: str,
        filters: Optional[dict[str, Any]] = None,
        order_by: Optional[str] = None,
    ) -> list[dict]:
        collection = _collection_name(collection)
        filters = dict(filters or {})

        query = self.db.query(Document).filter(Document.collection == collection)
        if filters.get("project_id"):
            query = query.filter(Document.project_id == filters.pop("project_id"))

        try:
            rows = query.order_by(Document.created_at.asc()).all()
        except SQLAlchemyError as e:
            self.db.rollback()
            raise StoreError(str(e)) from e

        documents = [
            doc for doc in (self._to_dict(row) for row in rows)
            if all(doc.get(field) == value for field, value in filters.items())
        ]

        if order_by:
            descending = order_by.startswith("-")
            field = order_by.lstrip("-")
            documents.sort(key=_sort_key(field), reverse=descending)

        return documents

    def create(self, collection: str, fields: dict, document_id: Optional[str] = None) -> dict:
        collection = _collection_name(collection)
        data = {k: v for k, v in fields.items() if k not in ("id", "created_at", "updated_at")}
        hierarchy_id = data.get("hierarchy_id") or None

        doc = Document(
            collection=collection,
            project_id=data.get("project_id") or None,
            hierarchy_id=hierarchy_id,
            data=data,
        )
        if document_id:
            doc.id = document_id
        self.db.add(doc)
        self._commit(collection, hierarchy_id)
        self.db.refresh(doc)
        logger.debug(f"Created {collection}/{doc.id}")
        return self._to_dict(doc)

    def update(self, collection: str, document_id: str, fields: dict) -> dict:
        collection = _collection_name(collection)
        doc = self._load(collection, document_id)
        changes = {k: v for k, v in fields.items() if k not in ("id", "created_at", "updated_at")}

        # Assign a new dict so the JSON column is flagged dirty
        doc.data = {**(doc.data or {}), **changes}
        if "project_id" in changes:
            doc.project_id = changes["project_id"] or None
        if "hierarchy_id" in changes:
            doc.hierarchy_id = changes["hierarchy_id"] or None

        self._commit(collection, doc.hierarchy_id if "hierarchy_id" in changes else None)
        self.db.refresh(doc)
        logger.debug(f"Updated {collection}/{document_id}: {sorted(changes)}")
        return self._to_dict(doc)

    def delete(self, collection: str, document_id: str) -> None:
        collection = _collection_name(collection)
        doc = self._load(collection, document_id)
        self.db.delete(doc)
        self._commit(collection, None)
        logger.debug(f"Deleted {collection}/{document_id}")

    def next_sequence(self, scope: str, floor: int = 1) -> int:
        floor = max(floor, 1)
        for _ in range(2):
            try:
                seq = (
                    self.db.query(IDSequence)
                    .filter(IDSequence.scope == scope)
                    .with_for_update()
                    .first()
                )
                if seq is None:
                    seq = IDSequence(scope=scope, next_number=floor)
                    self.db.add(seq)
                    self.db.flush()
                value = max(seq.next_number, floor)
                seq.next_number = value + 1
                self.db.commit()
                logger.debug(f"Allocated {scope} #{value}")
                return value
            except IntegrityError:
                # Another writer created the scope row first; read it again
                self.db.rollback()
            except SQLAlchemyError as e:
                self.db.rollback()
                raise StoreError(str(e)) from e
        raise StoreError(f"Could not allocate sequence for {scope}")
