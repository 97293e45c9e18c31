# jobboard/repositories/companies.py
import re
from typing import Any, Dict, List, Optional

from bson import ObjectId

from jobboard.db.mongo import COMPANIES
from jobboard.repositories.common import stamp_new, update_with_revision


async def get_company(db, company_id: ObjectId) -> Optional[Dict[str, Any]]:
    return await db[COMPANIES].find_one({"_id": company_id})


async def get_company_by_name(db, company_name: str) -> Optional[Dict[str, Any]]:
    return await db[COMPANIES].find_one({"companyName": company_name})


async def get_company_by_email(db, company_email: str) -> Optional[Dict[str, Any]]:
    return await db[COMPANIES].find_one({"companyEmail": company_email})


async def get_company_by_hr(db, hr_id: ObjectId) -> Optional[Dict[str, Any]]:
    return await db[COMPANIES].find_one({"companyHR": hr_id})


async def find_name_or_email(db, company_name: str, company_email: str) -> Optional[Dict[str, Any]]:
    return await db[COMPANIES].find_one(
        {"$or": [{"companyName": company_name}, {"companyEmail": company_email}]}
    )


async def get_companies(db, company_ids: List[ObjectId]) -> Dict[ObjectId, Dict[str, Any]]:
    if not company_ids:
        return {}
    cur = db[COMPANIES].find({"_id": {"$in": list(set(company_ids))}})
    return {d["_id"]: d async for d in cur}


async def search_companies(db, name_fragment: str) -> List[Dict[str, Any]]:
    # user input is matched literally, not as a pattern
    query = {"companyName": {"$regex": re.escape(name_fragment), "$options": "i"}}
    cur = db[COMPANIES].find(query).sort("companyName", 1)
    return [d async for d in cur]


async def insert_company(db, doc: Dict[str, Any]) -> Dict[str, Any]:
    doc = stamp_new(dict(doc))
    res = await db[COMPANIES].insert_one(doc)
    doc["_id"] = res.inserted_id
    return doc


async def update_company(db, company: Dict[str, Any], changes: Dict[str, Any]) -> Dict[str, Any]:
    return await update_with_revision(db[COMPANIES], company["_id"], company.get("version", 0), changes)


async def delete_company(db, company_id: ObjectId) -> bool:
    res = await db[COMPANIES].delete_one({"_id": company_id})
    return res.deleted_count > 0
