import copy
import itertools
import logging
import threading
from collections import defaultdict
from typing import Any, Dict, List, Optional, Tuple

from bson import ObjectId
from bson.errors import InvalidId
from pymongo import ASCENDING, DESCENDING, MongoClient
from pymongo.errors import DuplicateKeyError, OperationFailure

from student_service.config import settings
from student_service.exceptions import DuplicateDocument, IndexUnavailable
from student_service.utils.timestamps import to_datetime

logger = logging.getLogger(__name__)

COLLECTIONS = ["users", "courses", "enrollments", "quizzes", "quiz_results"]

INDEXES = {
    "enrollments": [
        [("student_id", ASCENDING), ("status", ASCENDING)],
        [("student_id", ASCENDING), ("course_id", ASCENDING)],
    ],
    "quizzes": [
        [("course_id", ASCENDING), ("is_published", ASCENDING)],
        [("is_published", ASCENDING)],
    ],
    "quiz_results": [
        [("student_id", ASCENDING), ("submitted_at", DESCENDING)],
    ],
}

# Un seul résultat par étudiant et par quiz
UNIQUE_INDEXES = {
    "quiz_results": [
        [("student_id", ASCENDING), ("quiz_id", ASCENDING)],
    ],
}

# BadValue (unknown hint) and IndexNotFound
INDEX_ERROR_CODES = {2, 27}

Sort = Tuple[str, int]

# Variables globales
client = None
db = None
store = None


# Fonctions utilitaires
def object_id_to_str(doc):
    """Convertir ObjectId en string"""
    if doc and "_id" in doc:
        doc["id"] = str(doc["_id"])
        del doc["_id"]
    return doc


def str_to_object_id(id_str):
    """Convertir string en ObjectId"""
    try:
        return ObjectId(id_str)
    except (InvalidId, TypeError):
        return None


def index_keys(filters: Optional[Dict[str, Any]], sort: Sort) -> List[Sort]:
    """Compound index an ordered query needs: equality fields, then the sort field."""
    keys = [(field, ASCENDING) for field, value in (filters or {}).items()
            if not isinstance(value, dict)]
    keys.append(sort)
    return keys


class MongoDocumentStore:
    """Document queries against a MongoDB database."""

    def __init__(self, database):
        self.db = database

    @staticmethod
    def _to_id(doc_id):
        if isinstance(doc_id, str):
            return str_to_object_id(doc_id) or doc_id
        return doc_id

    def _prepare(self, filters: Optional[Dict[str, Any]]) -> Dict[str, Any]:
        query = dict(filters or {})
        if "id" in query:
            query["_id"] = query.pop("id")
        if "_id" in query:
            value = query["_id"]
            if isinstance(value, dict) and "$in" in value:
                query["_id"] = {"$in": [self._to_id(v) for v in value["$in"]]}
            else:
                query["_id"] = self._to_id(value)
        return query

    def find(self, collection: str, filters: Optional[Dict[str, Any]] = None,
             sort: Optional[Sort] = None, limit: Optional[int] = None) -> List[Dict]:
        cursor = self.db[collection].find(self._prepare(filters))
        if sort:
            cursor = cursor.sort(*sort).hint(index_keys(filters, sort))
        if limit:
            cursor = cursor.limit(limit)

        try:
            return [object_id_to_str(doc) for doc in cursor]
        except OperationFailure as e:
            if sort and e.code in INDEX_ERROR_CODES:
                raise IndexUnavailable(collection, [k for k, _ in index_keys(filters, sort)]) from e
            raise

    def get(self, collection: str, doc_id: str) -> Optional[Dict]:
        return object_id_to_str(self.db[collection].find_one({"_id": self._to_id(doc_id)}))

    def insert(self, collection: str, doc: Dict) -> str:
        try:
            result = self.db[collection].insert_one(dict(doc))
        except DuplicateKeyError as e:
            fields = list((e.details or {}).get("keyPattern", {})) or ["_id"]
            raise DuplicateDocument(collection, fields) from e
        return str(result.inserted_id)

    def update(self, collection: str, doc_id: str, changes: Dict) -> bool:
        result = self.db[collection].update_one({"_id": self._to_id(doc_id)}, {"$set": changes})
        return result.matched_count > 0

    def delete(self, collection: str, doc_id: str) -> bool:
        result = self.db[collection].delete_one({"_id": self._to_id(doc_id)})
        return result.deleted_count > 0

    def add_to_set(self, collection: str, doc_id: str, field: str, value) -> bool:
        result = self.db[collection].update_one(
            {"_id": self._to_id(doc_id)}, {"$addToSet": {field: value}}
        )
        return result.matched_count > 0

    def pull(self, collection: str, doc_id: str, field: str, value) -> bool:
        result = self.db[collection].update_one(
            {"_id": self._to_id(doc_id)}, {"$pull": {field: value}}
        )
        return result.matched_count > 0

    def create_index(self, collection: str, keys: List[Sort], unique: bool = False):
        self.db[collection].create_index(keys, unique=unique)


def _sort_key(value):
    # timestamps compare by instant whatever their encoding
    if value is None:
        return (0, 0)
    try:
        return (1, to_datetime(value).timestamp())
    except (ValueError, TypeError, OverflowError):
        return (2, str(value))


class MemoryDocumentStore:
    """In-memory stand-in for MongoDB (no persistence).

    Ordered queries only succeed for indexes declared with ``create_index``,
    and unique indexes are checked on insert.
    """

    def __init__(self):
        self.collections: Dict[str, Dict[str, Dict]] = defaultdict(dict)
        self.indexes = set()
        self.unique_indexes: Dict[str, List[Tuple[str, ...]]] = defaultdict(list)
        self._lock = threading.RLock()
        self._id_counter = itertools.count(1)

    def _matches(self, doc: Dict, filters: Dict[str, Any]) -> bool:
        for field, expected in filters.items():
            actual = doc.get("id" if field == "_id" else field)
            if isinstance(expected, dict) and "$in" in expected:
                if actual not in expected["$in"]:
                    return False
            elif actual != expected:
                return False
        return True

    def find(self, collection: str, filters: Optional[Dict[str, Any]] = None,
             sort: Optional[Sort] = None, limit: Optional[int] = None) -> List[Dict]:
        with self._lock:
            docs = [copy.deepcopy(doc) for doc in self.collections[collection].values()
                    if self._matches(doc, filters or {})]

        if sort:
            keys = index_keys(filters, sort)
            if (collection, tuple(keys)) not in self.indexes:
                raise IndexUnavailable(collection, [k for k, _ in keys])
            field, direction = sort
            docs.sort(key=lambda d: _sort_key(d.get(field)), reverse=direction == DESCENDING)

        if limit:
            docs = docs[:limit]
        return docs

    def get(self, collection: str, doc_id: str) -> Optional[Dict]:
        doc = self.collections[collection].get(doc_id)
        return copy.deepcopy(doc) if doc else None

    def insert(self, collection: str, doc: Dict) -> str:
        doc = copy.deepcopy(doc)
        with self._lock:
            for fields in self.unique_indexes[collection]:
                key = {field: doc.get(field) for field in fields}
                if any(self._matches(other, key) for other in self.collections[collection].values()):
                    raise DuplicateDocument(collection, fields)

            doc_id = str(doc.pop("id", None) or doc.pop("_id", None) or next(self._id_counter))
            doc["id"] = doc_id
            self.collections[collection][doc_id] = doc
        return doc_id

    def update(self, collection: str, doc_id: str, changes: Dict) -> bool:
        doc = self.collections[collection].get(doc_id)
        if doc is None:
            return False
        doc.update(copy.deepcopy(changes))
        return True

    def delete(self, collection: str, doc_id: str) -> bool:
        return self.collections[collection].pop(doc_id, None) is not None

    def add_to_set(self, collection: str, doc_id: str, field: str, value) -> bool:
        doc = self.collections[collection].get(doc_id)
        if doc is None:
            return False
        values = doc.setdefault(field, [])
        if value not in values:
            values.append(value)
        return True

    def pull(self, collection: str, doc_id: str, field: str, value) -> bool:
        doc = self.collections[collection].get(doc_id)
        if doc is None:
            return False
        doc[field] = [v for v in doc.get(field, []) if v != value]
        return True

    def create_index(self, collection: str, keys: List[Sort], unique: bool = False):
        self.indexes.add((collection, tuple(keys)))
        if unique:
            self.unique_indexes[collection].append(tuple(field for field, _ in keys))


def create_indexes(target):
    """Créer les indexes (simples et uniques) sur un store"""
    for collection, indexes in INDEXES.items():
        for keys in indexes:
            target.create_index(collection, keys)
    for collection, indexes in UNIQUE_INDEXES.items():
        for keys in indexes:
            target.create_index(collection, keys, unique=True)


def init_db():
    """Initialiser la connexion MongoDB"""
    global client, db, store

    try:
        client = MongoClient(
            settings.MONGODB_URL,
            serverSelectionTimeoutMS=settings.MONGODB_TIMEOUT_MS,
            maxPoolSize=50
        )

        # Test connexion
        client.admin.command('ping')
        db = client[settings.MONGODB_DB]

        # Créer collections si nécessaire
        existing = db.list_collection_names()
        for collection in COLLECTIONS:
            if collection not in existing:
                db.create_collection(collection)

        store = MongoDocumentStore(db)

        # Créer indexes
        create_indexes(store)

        logger.info(f"MongoDB initialised: {settings.MONGODB_DB}")
        return True

    except Exception as e:
        logger.error(f"MongoDB connection failed: {e}")
        logger.warning("Falling back to in-memory storage")
        client = None
        db = None
        store = None
        return False


def close_db():
    global client, db, store
    if client is not None:
        client.close()
        logger.info("MongoDB connection closed")
    client = None
    db = None
    store = None


def get_store():
    """Obtenir le store de documents (MongoDB, sinon mémoire)"""
    global store
    if store is None:
        store = MemoryDocumentStore()
        create_indexes(store)
    return store


def get_client():
    """Obtenir le client MongoDB"""
    return client
