"""
MongoDB access for the Academy Portal API.

`connect()` opens the client once at startup; handlers then go through
`collection()` and the small document helpers below. Collection names are
the lowercase entity names (student, draft, exam, result, ...).
"""

import logging
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Union

from bson import ObjectId
from bson.errors import InvalidId
from pydantic import BaseModel
from pymongo import ASCENDING, MongoClient
from pymongo.database import Database

logger = logging.getLogger(__name__)

client: Optional[MongoClient] = None
db: Optional[Database] = None


def connect(uri: str, name: str) -> Database:
    """Open the client, verify it with a ping and create the indexes."""
    global client, db
    client = MongoClient(uri, serverSelectionTimeoutMS=5000)
    client.admin.command("ping")
    db = client[name]
    ensure_indexes(db)
    logger.info("Connected to MongoDB database %s", name)
    return db


def use_database(database: Database) -> None:
    """Point the module at an already opened database."""
    global db
    db = database
    ensure_indexes(db)


def ensure_indexes(database: Database) -> None:
    # Unique keys let the store itself reject the loser of a race.
    database["student"].create_index([("mobile", ASCENDING)], unique=True)
    database["exam"].create_index(
        [("title", ASCENDING), ("testNumber", ASCENDING)], unique=True
    )
    database["result"].create_index(
        [("studentMobile", ASCENDING), ("examId", ASCENDING)], unique=True
    )
    database["video"].create_index(
        [("subject", ASCENDING), ("class", ASCENDING)], unique=True
    )


def collection(name: str):
    if db is None:
        raise RuntimeError("Database not configured")
    return db[name]


def now() -> datetime:
    return datetime.now(timezone.utc)


def parse_object_id(value: str) -> Optional[ObjectId]:
    """Return the ObjectId for `value`, or None when it is not a valid id."""
    try:
        return ObjectId(value)
    except (InvalidId, TypeError):
        return None


def to_str_id(doc):
    if not doc:
        return doc
    d = dict(doc)
    if d.get("_id") is not None:
        d["id"] = str(d.pop("_id"))
    return d


def create_document(collection_name: str, data: Union[BaseModel, Dict[str, Any]]) -> str:
    if isinstance(data, BaseModel):
        data_dict = data.model_dump(by_alias=True)
    else:
        data_dict = dict(data)
    data_dict.setdefault("createdAt", now())
    result = collection(collection_name).insert_one(data_dict)
    return str(result.inserted_id)


def get_documents(
    collection_name: str,
    filter_dict: Optional[Dict[str, Any]] = None,
    sort: Optional[List[tuple]] = None,
    projection: Optional[Dict[str, Any]] = None,
) -> List[Dict[str, Any]]:
    cursor = collection(collection_name).find(filter_dict or {}, projection)
    if sort:
        cursor = cursor.sort(sort)
    return [to_str_id(d) for d in cursor]


def get_document(
    collection_name: str, doc_id: str, projection: Optional[Dict[str, Any]] = None
) -> Optional[Dict[str, Any]]:
    oid = parse_object_id(doc_id)
    if oid is None:
        return None
    return collection(collection_name).find_one({"_id": oid}, projection)


def delete_document(collection_name: str, doc_id: str) -> bool:
    oid = parse_object_id(doc_id)
    if oid is None:
        return False
    return collection(collection_name).delete_one({"_id": oid}).deleted_count == 1


def ping() -> bool:
    if db is None:
        return False
    db.command("ping")
    return True
