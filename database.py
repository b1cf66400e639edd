"""
MongoDB access helpers.

Documents are written from pydantic models or plain dicts; every write is
stamped with created_at / updated_at in UTC.
"""
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Union

from bson import ObjectId
from pydantic import BaseModel
from pymongo import MongoClient
from pymongo.database import Database

from config import get_settings
from logger import get_logger

logger = get_logger(__name__)

_client: Optional[MongoClient] = None
db: Optional[Database] = None


def connect() -> Optional[Database]:
    global _client, db
    settings = get_settings()
    if db is None and settings.database_url and settings.database_name:
        _client = MongoClient(settings.database_url)
        db = _client[settings.database_name]
        logger.info("Connected to MongoDB database %s", settings.database_name)
    return db


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def oid(id_str: str) -> Optional[ObjectId]:
    """Parse an id string, None when it is not a valid ObjectId."""
    if isinstance(id_str, ObjectId):
        return id_str
    if id_str and ObjectId.is_valid(id_str):
        return ObjectId(id_str)
    return None


def _as_dict(data: Union[BaseModel, Dict[str, Any]]) -> Dict[str, Any]:
    if isinstance(data, BaseModel):
        return data.model_dump(exclude={"id"})
    return {k: v for k, v in data.items() if k != "id"}


def create_document(database: Database, collection_name: str, data: Union[BaseModel, Dict[str, Any]]) -> str:
    doc = _as_dict(data)
    now = utcnow()
    if not doc.get("created_at"):
        doc["created_at"] = now
    doc["updated_at"] = now
    result = database[collection_name].insert_one(doc)
    return str(result.inserted_id)


def get_documents(
    database: Database,
    collection_name: str,
    filter_dict: Optional[Dict[str, Any]] = None,
    sort: Optional[List] = None,
    limit: Optional[int] = None,
) -> List[Dict[str, Any]]:
    cursor = database[collection_name].find(filter_dict or {})
    if sort:
        cursor = cursor.sort(sort)
    if limit:
        cursor = cursor.limit(limit)
    docs = list(cursor)
    for d in docs:
        d["id"] = str(d.pop("_id"))
    return docs


def update_document(database: Database, collection_name: str, id_str: str, fields: Dict[str, Any]) -> bool:
    _id = oid(id_str)
    if _id is None:
        return False
    fields = dict(fields, updated_at=utcnow())
    result = database[collection_name].update_one({"_id": _id}, {"$set": fields})
    return result.matched_count > 0


def delete_document(database: Database, collection_name: str, id_str: str) -> bool:
    _id = oid(id_str)
    if _id is None:
        return False
    return database[collection_name].delete_one({"_id": _id}).deleted_count > 0
