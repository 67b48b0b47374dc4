"""
Document and blob stores used by the catalog.

MongoDocumentStore / GridFSBlobStore run against the service database;
MemoryDocumentStore / MemoryBlobStore keep everything in process for local
development and the test suite.
"""
import copy
import re
import threading
import uuid
from abc import ABC, abstractmethod
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Tuple
from urllib.parse import quote

import gridfs
from bson import ObjectId

from errors import ConflictDetected, NotFound
from logging_config import get_logger

logger = get_logger(__name__)


class DocumentStore(ABC):
    """
    Keyed JSON-like documents grouped in collections.

    Documents come back as plain dicts with their key under "id".
    """

    @abstractmethod
    def get(self, collection: str, doc_id: str) -> Dict[str, Any]:
        pass

    @abstractmethod
    def query(self, collection: str, filter_dict: Optional[Dict[str, Any]] = None) -> List[Dict[str, Any]]:
        pass

    @abstractmethod
    def set(self, collection: str, doc_id: str, doc: Dict[str, Any], expected_version: Optional[int] = None) -> None:
        """
        Replace a whole document.

        With ``expected_version`` the write only happens when the stored
        document's "version" still equals it; otherwise ConflictDetected.
        """
        pass

    @abstractmethod
    def update(self, collection: str, doc_id: str, fields: Dict[str, Any]) -> None:
        """Overwrite the given top-level fields, leaving the rest untouched."""
        pass

    @abstractmethod
    def delete(self, collection: str, doc_id: str) -> None:
        pass

    @abstractmethod
    def add(self, collection: str, doc: Dict[str, Any]) -> str:
        """Insert a new document and return the generated key."""
        pass


class BlobStore(ABC):

    @abstractmethod
    def put(self, key: str, data: bytes, content_type: Optional[str] = None) -> None:
        """Store bytes under a new key. Raises FileExistsError if the key is taken."""
        pass

    @abstractmethod
    def get_url(self, key: str) -> str:
        pass

    @abstractmethod
    def list(self, prefix: str = "") -> List[str]:
        pass

    @abstractmethod
    def open(self, key: str) -> Tuple[bytes, Optional[str]]:
        """Return the stored bytes and their content type."""
        pass


def _strip_id(doc: Dict[str, Any]) -> Dict[str, Any]:
    data = dict(doc)
    data.pop("id", None)
    data.pop("_id", None)
    return data


# ---------- MongoDB ----------

class MongoDocumentStore(DocumentStore):

    def __init__(self, database):
        self.db = database

    @staticmethod
    def _key(doc_id: str):
        # Keys generated by add() are ObjectIds; imported documents may use plain strings.
        if isinstance(doc_id, str) and ObjectId.is_valid(doc_id):
            return ObjectId(doc_id)
        return doc_id

    @staticmethod
    def _out(doc: Dict[str, Any]) -> Dict[str, Any]:
        doc["id"] = str(doc.pop("_id"))
        return doc

    def get(self, collection, doc_id):
        doc = self.db[collection].find_one({"_id": self._key(doc_id)})
        if doc is None:
            raise NotFound(collection, doc_id)
        return self._out(doc)

    def query(self, collection, filter_dict=None):
        return [self._out(d) for d in self.db[collection].find(filter_dict or {})]

    def set(self, collection, doc_id, doc, expected_version=None):
        key = self._key(doc_id)
        data = _strip_id(doc)
        data["updated_at"] = datetime.now(timezone.utc)
        stored = self.db[collection].find_one({"_id": key}, {"created_at": 1})
        if stored is not None and "created_at" in stored:
            data.setdefault("created_at", stored["created_at"])
        if expected_version is None:
            self.db[collection].replace_one({"_id": key}, data, upsert=True)
            return
        # Documents written before versioning have no "version" field; treat them as 0.
        version_match = {"$in": [0, None]} if expected_version == 0 else expected_version
        res = self.db[collection].replace_one({"_id": key, "version": version_match}, data)
        if res.matched_count == 0:
            current = self.db[collection].find_one({"_id": key}, {"version": 1})
            if current is None:
                raise NotFound(collection, doc_id)
            raise ConflictDetected(doc_id, expected_version, current.get("version", 0))

    def update(self, collection, doc_id, fields):
        data = _strip_id(fields)
        data["updated_at"] = datetime.now(timezone.utc)
        res = self.db[collection].update_one({"_id": self._key(doc_id)}, {"$set": data})
        if res.matched_count == 0:
            raise NotFound(collection, doc_id)

    def delete(self, collection, doc_id):
        res = self.db[collection].delete_one({"_id": self._key(doc_id)})
        if res.deleted_count == 0:
            raise NotFound(collection, doc_id)

    def add(self, collection, doc):
        data = _strip_id(doc)
        now = datetime.now(timezone.utc)
        data.setdefault("created_at", now)
        data["updated_at"] = now
        result = self.db[collection].insert_one(data)
        return str(result.inserted_id)


class GridFSBlobStore(BlobStore):
    """Blob store on top of a GridFS bucket in the service database."""

    def __init__(self, database, bucket: str = "assets", base_url: str = "/api/assets"):
        self.fs = gridfs.GridFS(database, collection=bucket)
        self.base_url = base_url.rstrip("/")

    def put(self, key, data, content_type=None):
        if self.fs.exists(filename=key):
            raise FileExistsError(key)
        self.fs.put(data, filename=key, metadata={"contentType": content_type})
        logger.debug(f"Stored blob {key} ({len(data)} bytes)")

    def get_url(self, key):
        if not self.fs.exists(filename=key):
            raise NotFound("assets", key)
        return f"{self.base_url}/{quote(key)}"

    def list(self, prefix=""):
        query = {"filename": {"$regex": "^" + re.escape(prefix)}}
        return sorted({f.filename for f in self.fs.find(query)})

    def open(self, key):
        grid_out = self.fs.find_one({"filename": key})
        if grid_out is None:
            raise NotFound("assets", key)
        metadata = grid_out.metadata or {}
        return grid_out.read(), metadata.get("contentType")


# ---------- In-memory ----------

class MemoryDocumentStore(DocumentStore):

    def __init__(self):
        self._collections: Dict[str, Dict[str, Dict[str, Any]]] = {}
        self._lock = threading.Lock()

    def _collection(self, name):
        return self._collections.setdefault(name, {})

    def get(self, collection, doc_id):
        with self._lock:
            doc = self._collection(collection).get(doc_id)
            if doc is None:
                raise NotFound(collection, doc_id)
            out = copy.deepcopy(doc)
        out["id"] = doc_id
        return out

    def query(self, collection, filter_dict=None):
        with self._lock:
            items = list(self._collection(collection).items())
            docs = []
            for doc_id, doc in items:
                if filter_dict and any(doc.get(k) != v for k, v in filter_dict.items()):
                    continue
                out = copy.deepcopy(doc)
                out["id"] = doc_id
                docs.append(out)
        return docs

    def set(self, collection, doc_id, doc, expected_version=None):
        with self._lock:
            docs = self._collection(collection)
            if expected_version is not None:
                current = docs.get(doc_id)
                if current is None:
                    raise NotFound(collection, doc_id)
                if current.get("version", 0) != expected_version:
                    raise ConflictDetected(doc_id, expected_version, current.get("version", 0))
            data = copy.deepcopy(_strip_id(doc))
            data["updated_at"] = datetime.now(timezone.utc)
            if doc_id in docs and "created_at" in docs[doc_id]:
                data.setdefault("created_at", docs[doc_id]["created_at"])
            docs[doc_id] = data

    def update(self, collection, doc_id, fields):
        with self._lock:
            docs = self._collection(collection)
            if doc_id not in docs:
                raise NotFound(collection, doc_id)
            docs[doc_id].update(copy.deepcopy(_strip_id(fields)))
            docs[doc_id]["updated_at"] = datetime.now(timezone.utc)

    def delete(self, collection, doc_id):
        with self._lock:
            docs = self._collection(collection)
            if doc_id not in docs:
                raise NotFound(collection, doc_id)
            del docs[doc_id]

    def add(self, collection, doc):
        doc_id = uuid.uuid4().hex
        data = copy.deepcopy(_strip_id(doc))
        now = datetime.now(timezone.utc)
        data.setdefault("created_at", now)
        data["updated_at"] = now
        with self._lock:
            self._collection(collection)[doc_id] = data
        return doc_id


class MemoryBlobStore(BlobStore):

    def __init__(self, base_url: str = "/api/assets"):
        self.base_url = base_url.rstrip("/")
        self._blobs: Dict[str, Tuple[bytes, Optional[str]]] = {}
        self._lock = threading.Lock()

    def put(self, key, data, content_type=None):
        with self._lock:
            if key in self._blobs:
                raise FileExistsError(key)
            self._blobs[key] = (bytes(data), content_type)

    def get_url(self, key):
        with self._lock:
            if key not in self._blobs:
                raise NotFound("assets", key)
        return f"{self.base_url}/{quote(key)}"

    def list(self, prefix=""):
        with self._lock:
            return sorted(k for k in self._blobs if k.startswith(prefix))

    def open(self, key):
        with self._lock:
            if key not in self._blobs:
                raise NotFound("assets", key)
            return self._blobs[key]
