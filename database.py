"""
Data-access layer over the MongoDB collections.

A `Database` is built explicitly (from settings at startup, or from any
pymongo-compatible database object in tests) and handed to the handlers;
nothing here holds a module-level connection.
"""

import logging
from typing import Any, Dict, List, Optional

from bson import ObjectId
from pymongo import MongoClient, ReturnDocument
from pymongo.errors import DuplicateKeyError

from config import Settings

logger = logging.getLogger(__name__)


def to_object_id(value: Any) -> Optional[ObjectId]:
    if isinstance(value, ObjectId):
        return value
    if isinstance(value, str) and ObjectId.is_valid(value):
        return ObjectId(value)
    return None


def serialize_doc(doc: Optional[Dict[str, Any]]) -> Optional[Dict[str, Any]]:
    if not doc:
        return doc
    doc = dict(doc)
    _id = doc.pop("_id", None)
    if _id is not None:
        doc["id"] = str(_id)
    for k, v in list(doc.items()):
        if isinstance(v, ObjectId):
            doc[k] = str(v)
        elif isinstance(v, list):
            doc[k] = [serialize_doc(i) if isinstance(i, dict) else i for i in v]
    return doc


class Repository:
    """Typed accessors over a single collection."""

    def __init__(self, collection):
        self.collection = collection

    def find_by_id(self, doc_id: Any, projection: Optional[Dict[str, Any]] = None) -> Optional[Dict[str, Any]]:
        obj_id = to_object_id(doc_id)
        if obj_id is None:
            return None
        return self.collection.find_one({"_id": obj_id}, projection)

    def find_one(self, query: Dict[str, Any], projection: Optional[Dict[str, Any]] = None) -> Optional[Dict[str, Any]]:
        return self.collection.find_one(query, projection)

    def find(self, query: Optional[Dict[str, Any]] = None) -> List[Dict[str, Any]]:
        return list(self.collection.find(query or {}))

    def create(self, document: Dict[str, Any]) -> Dict[str, Any]:
        res = self.collection.insert_one(dict(document))
        return self.collection.find_one({"_id": res.inserted_id})

    def update_by_id(self, doc_id: Any, fields: Dict[str, Any]) -> Optional[Dict[str, Any]]:
        obj_id = to_object_id(doc_id)
        if obj_id is None:
            return None
        if not fields:
            return self.collection.find_one({"_id": obj_id})
        return self.collection.find_one_and_update(
            {"_id": obj_id}, {"$set": fields}, return_document=ReturnDocument.AFTER
        )

    def delete_by_id(self, doc_id: Any) -> bool:
        obj_id = to_object_id(doc_id)
        if obj_id is None:
            return False
        return self.collection.delete_one({"_id": obj_id}).deleted_count > 0

    def save(self, document: Dict[str, Any]) -> Dict[str, Any]:
        """Replace the whole stored document, matched by its `_id`."""
        self.collection.replace_one({"_id": document["_id"]}, document)
        return document

    def upsert(self, query: Dict[str, Any], defaults: Dict[str, Any]) -> Dict[str, Any]:
        """Return the document matching `query`, inserting `defaults` first if there is none."""
        try:
            return self.collection.find_one_and_update(
                query,
                {"$setOnInsert": defaults},
                upsert=True,
                return_document=ReturnDocument.AFTER,
            )
        except DuplicateKeyError:
            # a concurrent upsert inserted it first
            return self.collection.find_one(query)

    def update(self, query: Dict[str, Any], update: Dict[str, Any]) -> bool:
        """Apply an update operator document to the first match; True when one matched."""
        return self.collection.update_one(query, update).matched_count > 0

    def aggregate(self, pipeline: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
        return list(self.collection.aggregate(pipeline))


class Database:
    def __init__(self, db, client=None):
        self.db = db
        self.client = client
        self.users = Repository(db["user"])
        self.products = Repository(db["product"])
        self.carts = Repository(db["cart"])
        self.wishlists = Repository(db["wishlist"])

    @classmethod
    def from_settings(cls, settings: Settings) -> "Database":
        client = MongoClient(settings.database_url)
        logger.info("Using MongoDB database %r", settings.database_name)
        return cls(client[settings.database_name], client=client)

    def ensure_indexes(self) -> None:
        # one cart and one wishlist per user
        self.carts.collection.create_index("userId", unique=True)
        self.wishlists.collection.create_index("userId", unique=True)

    def close(self) -> None:
        if self.client is not None:
            self.client.close()

    @property
    def name(self) -> str:
        return self.db.name

    def status(self) -> Dict[str, Any]:
        response: Dict[str, Any] = {
            "database": "Not Available",
            "database_name": None,
            "connection_status": "Not Connected",
            "collections": [],
        }
        try:
            response["collections"] = self.db.list_collection_names()
            response["database"] = "Available"
            response["connection_status"] = "Connected"
            response["database_name"] = self.name
        except Exception as e:
            logger.warning("Database status check failed: %s", e)
            response["database"] = f"Error: {str(e)[:80]}"
        return response
