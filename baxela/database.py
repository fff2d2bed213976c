"""Storage layer: named collections of documents keyed by their ``id`` field.

Stores never touch a concrete backend. They receive a ``Database`` and ask it
for collections (``db["incidentreport"]``), each of which implements the
``Repository`` interface. ``InMemoryDatabase`` keeps everything in process
memory and is reset on restart; ``MongoDatabase`` persists to MongoDB.
"""

import copy
from abc import ABC, abstractmethod
from typing import Any, Callable, Dict, Iterable, List, Optional, Union

import structlog
from pydantic import BaseModel
from pymongo import MongoClient, ReturnDocument

from .config import Settings

logger = structlog.get_logger(__name__)

Document = Dict[str, Any]
Predicate = Callable[[Document], bool]


def _as_document(data: Union[BaseModel, Document]) -> Document:
    if isinstance(data, BaseModel):
        return data.model_dump()
    return dict(data)


def _matches(document: Document, filters: Optional[Document], predicate: Optional[Predicate]) -> bool:
    if filters and any(document.get(key) != value for key, value in filters.items()):
        return False
    return predicate is None or predicate(document)


class Repository(ABC):
    """CRUD over one collection. Filters are equality matches on top-level fields."""

    @abstractmethod
    def create_document(self, data: Union[BaseModel, Document]) -> Document:
        ...

    @abstractmethod
    def get_documents(self, filters: Optional[Document] = None, predicate: Optional[Predicate] = None) -> List[Document]:
        ...

    @abstractmethod
    def update_document(self, doc_id: str, changes: Document) -> Optional[Document]:
        """Apply ``changes`` and return the updated document, or None if missing."""

    @abstractmethod
    def delete_document(self, doc_id: str) -> Optional[Document]:
        """Remove and return the document, or None if missing."""

    def get_document(self, doc_id: str) -> Optional[Document]:
        return self.find_one({"id": doc_id})

    def find_one(self, filters: Optional[Document] = None, predicate: Optional[Predicate] = None) -> Optional[Document]:
        found = self.get_documents(filters, predicate)
        return found[0] if found else None

    def exists(self, filters: Optional[Document] = None, predicate: Optional[Predicate] = None) -> bool:
        return self.find_one(filters, predicate) is not None


class InMemoryRepository(Repository):
    """A list of dicts. Documents are copied in and out so callers cannot alias them."""

    def __init__(self, documents: Iterable[Document] = ()) -> None:
        self._documents: List[Document] = [copy.deepcopy(doc) for doc in documents]

    def create_document(self, data: Union[BaseModel, Document]) -> Document:
        document = _as_document(data)
        self._documents.append(copy.deepcopy(document))
        return document

    def get_documents(self, filters: Optional[Document] = None, predicate: Optional[Predicate] = None) -> List[Document]:
        return [copy.deepcopy(doc) for doc in self._documents if _matches(doc, filters, predicate)]

    def update_document(self, doc_id: str, changes: Document) -> Optional[Document]:
        for doc in self._documents:
            if doc.get("id") == doc_id:
                doc.update(copy.deepcopy(changes))
                return copy.deepcopy(doc)
        return None

    def delete_document(self, doc_id: str) -> Optional[Document]:
        for index, doc in enumerate(self._documents):
            if doc.get("id") == doc_id:
                return self._documents.pop(index)
        return None

    def __len__(self) -> int:
        return len(self._documents)


class MongoRepository(Repository):
    def __init__(self, collection) -> None:
        self._collection = collection

    def create_document(self, data: Union[BaseModel, Document]) -> Document:
        document = _as_document(data)
        self._collection.insert_one(dict(document))
        return document

    def get_documents(self, filters: Optional[Document] = None, predicate: Optional[Predicate] = None) -> List[Document]:
        cursor = self._collection.find(filters or {}, {"_id": 0})
        return [doc for doc in cursor if predicate is None or predicate(doc)]

    def update_document(self, doc_id: str, changes: Document) -> Optional[Document]:
        return self._collection.find_one_and_update(
            {"id": doc_id},
            {"$set": changes},
            projection={"_id": 0},
            return_document=ReturnDocument.AFTER,
        )

    def delete_document(self, doc_id: str) -> Optional[Document]:
        return self._collection.find_one_and_delete({"id": doc_id}, projection={"_id": 0})


class Database(ABC):
    @abstractmethod
    def __getitem__(self, name: str) -> Repository:
        ...

    def close(self) -> None:
        pass


class InMemoryDatabase(Database):
    def __init__(self) -> None:
        self._collections: Dict[str, InMemoryRepository] = {}

    def __getitem__(self, name: str) -> Repository:
        if name not in self._collections:
            self._collections[name] = InMemoryRepository()
        return self._collections[name]


class MongoDatabase(Database):
    def __init__(self, url: str, name: str) -> None:
        self._client = MongoClient(url, tz_aware=True)
        self._db = self._client[name]

    def __getitem__(self, name: str) -> Repository:
        return MongoRepository(self._db[name])

    def close(self) -> None:
        self._client.close()


def create_database(settings: Settings) -> Database:
    if settings.database_url:
        logger.info("database_selected", backend="mongodb", database=settings.database_name)
        return MongoDatabase(settings.database_url, settings.database_name)
    logger.info("database_selected", backend="memory")
    return InMemoryDatabase()
