"""FastAPI dependencies shared by the routers."""
from fastapi import Depends
from sqlalchemy.orm import Session

from ..database import get_db
from ..notifications import Notifier, StoreNotifier
from ..store import DocumentStore, SqlDocumentStore


def get_store(db: Session = Depends(get_db)) -> DocumentStore:
    return SqlDocumentStore(db)


def get_notifier(store: DocumentStore = Depends(get_store)) -> Notifier:
    """Notifications are written to the same store as the entities."""
    return StoreNotifier(store)
