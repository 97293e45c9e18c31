# jobboard/repositories/applications.py
from datetime import datetime
from typing import Any, Dict, List, Optional

from bson import ObjectId

from jobboard.db.mongo import APPLICATIONS
from jobboard.repositories.common import stamp_new


async def find_application(db, job_id: ObjectId, user_id: ObjectId) -> Optional[Dict[str, Any]]:
    return await db[APPLICATIONS].find_one({"jobId": job_id, "userId": user_id})


async def insert_application(db, doc: Dict[str, Any]) -> Dict[str, Any]:
    doc = stamp_new(dict(doc))
    res = await db[APPLICATIONS].insert_one(doc)
    doc["_id"] = res.inserted_id
    return doc


async def list_job_applications(db, job_id: ObjectId) -> List[Dict[str, Any]]:
    cur = db[APPLICATIONS].find({"jobId": job_id}).sort("createdAt", 1)
    return [d async for d in cur]


async def list_applications_between(
    db, job_ids: List[ObjectId], start: datetime, end: datetime
) -> List[Dict[str, Any]]:
    """Applications to any of ``job_ids`` created in ``[start, end)``."""
    if not job_ids:
        return []
    query = {"jobId": {"$in": job_ids}, "createdAt": {"$gte": start, "$lt": end}}
    cur = db[APPLICATIONS].find(query).sort("createdAt", 1)
    return [d async for d in cur]


async def delete_job_applications(db, job_ids: List[ObjectId]) -> int:
    if not job_ids:
        return 0
    res = await db[APPLICATIONS].delete_many({"jobId": {"$in": job_ids}})
    return res.deleted_count


async def delete_user_applications(db, user_id: ObjectId) -> int:
    res = await db[APPLICATIONS].delete_many({"userId": user_id})
    return res.deleted_count
