# jobboard/repositories/common.py
from datetime import datetime, timezone
from typing import Any, Dict, Optional, Sequence

from bson import ObjectId
from bson.errors import InvalidId
from pymongo.errors import DuplicateKeyError

from jobboard.core.errors import StaleRevision


def _now() -> datetime:
    # naive UTC, matching what the driver hands back
    return datetime.now(timezone.utc).replace(tzinfo=None)


def parse_object_id(value: Any) -> Optional[ObjectId]:
    if isinstance(value, ObjectId):
        return value
    try:
        return ObjectId(str(value))
    except (InvalidId, TypeError):
        return None


def _plain(value: Any) -> Any:
    if isinstance(value, ObjectId):
        return str(value)
    if isinstance(value, datetime):
        return value.isoformat()
    if isinstance(value, dict):
        return {k: _plain(v) for k, v in value.items()}
    if isinstance(value, list):
        return [_plain(v) for v in value]
    return value


def to_public(doc: Optional[Dict[str, Any]]) -> Optional[Dict[str, Any]]:
    """Convert a stored document to a JSON-ready dict (``_id`` becomes ``id``)."""
    if not doc:
        return None
    doc = dict(doc)
    if "_id" in doc:
        doc["id"] = doc.pop("_id")
    return _plain(doc)


def stamp_new(doc: Dict[str, Any]) -> Dict[str, Any]:
    now = _now()
    doc.update({"createdAt": now, "updatedAt": now, "version": 0})
    return doc


async def update_with_revision(collection, doc_id: ObjectId, expected_version: int, changes: Dict[str, Any]):
    """Compare-and-swap update on the ``version`` field.

    Raises StaleRevision when another writer bumped the version since the
    caller loaded the document. Returns the updated document.
    """
    fields = dict(changes)
    fields["updatedAt"] = _now()
    res = await collection.update_one(
        {"_id": doc_id, "version": expected_version},
        {"$set": fields, "$inc": {"version": 1}},
    )
    if res.matched_count == 0:
        raise StaleRevision(collection=getattr(collection, "name", None), id=str(doc_id), expected_version=expected_version)
    return await collection.find_one({"_id": doc_id})


def duplicate_key_field(exc: DuplicateKeyError, fields: Sequence[str]) -> str:
    """Which of ``fields`` a unique index rejected.

    Falls back to the first of ``fields`` when the server did not report
    the offending key.
    """
    details = exc.details or {}
    reported = details.get("keyPattern") or details.get("keyValue") or {}
    return next((f for f in fields if f in reported), fields[0])
