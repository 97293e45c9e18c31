# jobboard/repositories/jobs.py
import re
from typing import Any, Dict, List, Optional

from bson import ObjectId

from jobboard.db.mongo import JOBS
from jobboard.repositories.common import stamp_new, update_with_revision


async def get_job(db, job_id: ObjectId) -> Optional[Dict[str, Any]]:
    return await db[JOBS].find_one({"_id": job_id})


async def list_jobs(db, query: Optional[Dict[str, Any]] = None) -> List[Dict[str, Any]]:
    cur = db[JOBS].find(query or {}).sort("createdAt", -1)
    return [d async for d in cur]


async def list_company_jobs(db, company_id: ObjectId) -> List[Dict[str, Any]]:
    return await list_jobs(db, {"addedBy": company_id})


def build_filter(
    working_time: Optional[str] = None,
    job_location: Optional[str] = None,
    seniority_level: Optional[str] = None,
    job_title: Optional[str] = None,
    technical_skills: Optional[List[str]] = None,
) -> Dict[str, Any]:
    filters: Dict[str, Any] = {}
    if working_time:
        filters["workingTime"] = working_time
    if job_location:
        filters["jobLocation"] = job_location
    if seniority_level:
        filters["seniorityLevel"] = seniority_level
    if job_title:
        filters["jobTitle"] = {"$regex": re.escape(job_title), "$options": "i"}
    if technical_skills:
        filters["technicalSkills"] = {"$in": technical_skills}
    return filters


async def insert_job(db, doc: Dict[str, Any]) -> Dict[str, Any]:
    doc = stamp_new(dict(doc))
    res = await db[JOBS].insert_one(doc)
    doc["_id"] = res.inserted_id
    return doc


async def update_job(db, job: Dict[str, Any], changes: Dict[str, Any]) -> Dict[str, Any]:
    return await update_with_revision(db[JOBS], job["_id"], job.get("version", 0), changes)


async def job_ids_for_company(db, company_id: ObjectId) -> List[ObjectId]:
    cur = db[JOBS].find({"addedBy": company_id}, {"_id": 1})
    return [d["_id"] async for d in cur]


async def delete_job(db, job_id: ObjectId) -> bool:
    res = await db[JOBS].delete_one({"_id": job_id})
    return res.deleted_count > 0


async def delete_company_jobs(db, company_id: ObjectId) -> int:
    res = await db[JOBS].delete_many({"addedBy": company_id})
    return res.deleted_count
