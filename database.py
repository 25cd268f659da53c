"""
MongoDB access helpers.

The connection is configured from DATABASE_URL / DATABASE_NAME. When either is
missing ``db`` stays ``None`` and the API reports the database as unavailable.
"""

import logging
import math
from datetime import datetime, timezone
from typing import Any, Dict, Optional, Union

from bson import ObjectId
from bson.errors import InvalidId
from pydantic import BaseModel
from pymongo import ASCENDING, DESCENDING, GEOSPHERE, MongoClient
from pymongo.errors import PyMongoError

import config
from errors import BadInputError, NotFoundError

logger = logging.getLogger(__name__)

client = None
db = None

if config.DATABASE_URL and config.DATABASE_NAME:
    client = MongoClient(config.DATABASE_URL)
    db = client[config.DATABASE_NAME]


def get_db():
    return db


def now_utc() -> datetime:
    return datetime.now(timezone.utc)


def create_document(collection_name: str, data: Union[BaseModel, Dict[str, Any]], database=None) -> str:
    """Insert a document with creation/update timestamps and return its id."""
    target = database if database is not None else db
    if target is None:
        raise RuntimeError("Database not available. Check DATABASE_URL and DATABASE_NAME environment variables.")

    if isinstance(data, BaseModel):
        data_dict = data.model_dump()
    else:
        data_dict = dict(data)

    data_dict["created_at"] = now_utc()
    data_dict["updated_at"] = now_utc()

    result = target[collection_name].insert_one(data_dict)
    return str(result.inserted_id)


def _plain(value: Any) -> Any:
    if isinstance(value, ObjectId):
        return str(value)
    if isinstance(value, list):
        return [_plain(v) for v in value]
    if isinstance(value, dict):
        return {k: _plain(v) for k, v in value.items()}
    return value


def serialize_doc(doc: Optional[Dict[str, Any]]) -> Optional[Dict[str, Any]]:
    if not doc:
        return doc
    doc = dict(doc)
    _id = doc.pop("_id", None)
    if _id is not None:
        doc["id"] = str(_id)
    doc.pop("password_hash", None)
    return {k: _plain(v) for k, v in doc.items()}


def parse_object_id(value: Any, label: str = "Document") -> ObjectId:
    """Convert an id string to ObjectId; malformed ids resolve to nothing."""
    if isinstance(value, ObjectId):
        return value
    try:
        return ObjectId(str(value))
    except (InvalidId, TypeError):
        raise NotFoundError(f"{label} not found")


def check_pagination(page: int, limit: int) -> None:
    if page < 1:
        raise BadInputError("page must be at least 1")
    if limit < 1 or limit > config.MAX_LIMIT:
        raise BadInputError(f"limit must be between 1 and {config.MAX_LIMIT}")


def paginate(collection, query: Dict[str, Any], page: int, limit: int, sort=None, count_query: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
    """Run a page of ``query`` and count its matches.

    ``count_query`` replaces ``query`` for the count when the find filter uses
    operators the count pipeline rejects (``$near``). ``sort`` is skipped when
    None so the store's own ordering is preserved.
    """
    check_pagination(page, limit)
    cursor = collection.find(query)
    if sort:
        cursor = cursor.sort(sort)
    cursor = cursor.skip((page - 1) * limit).limit(limit)
    items = [serialize_doc(d) for d in cursor]
    total = collection.count_documents(count_query if count_query is not None else query)
    return {
        "items": items,
        "total": total,
        "page": page,
        "limit": limit,
        "pages": math.ceil(total / limit),
    }


def ensure_indexes(database) -> None:
    index_specs = [
        ("user", [("email", ASCENDING)], {"unique": True}),
        ("user", [("role", ASCENDING)], {}),
        ("user", [("created_at", DESCENDING)], {}),
        ("location", [("coordinates", GEOSPHERE)], {}),
        ("location", [("name", ASCENDING), ("state", ASCENDING)], {"unique": True}),
        ("location", [("state", ASCENDING)], {}),
        ("location", [("lga", ASCENDING)], {}),
        ("location", [("type", ASCENDING)], {}),
        ("vendor", [("user_id", ASCENDING)], {"unique": True}),
        ("vendor", [("status", ASCENDING)], {}),
        ("vendor", [("location_id", ASCENDING)], {}),
        ("vendor", [("vendor_type", ASCENDING)], {}),
        ("vendor", [("home_state", ASCENDING)], {}),
        ("vendor", [("categories", ASCENDING)], {}),
        ("vendor", [("coordinates", GEOSPHERE)], {"sparse": True}),
        ("goods", [("vendor_id", ASCENDING)], {}),
        ("goods", [("status", ASCENDING)], {}),
        ("goods", [("type", ASCENDING)], {}),
        ("goods", [("category", ASCENDING)], {}),
        ("goods", [("price", ASCENDING)], {}),
        ("goods", [("created_at", DESCENDING)], {}),
    ]
    for collection_name, keys, options in index_specs:
        try:
            database[collection_name].create_index(keys, **options)
        except (PyMongoError, NotImplementedError) as e:
            logger.warning(f"Could not create index {keys} on {collection_name}: {e}")
