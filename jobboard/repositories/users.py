# jobboard/repositories/users.py
from typing import Any, Dict, List, Optional

from bson import ObjectId

from jobboard.db.mongo import USERS
from jobboard.repositories.common import _now, stamp_new, to_public, update_with_revision


def public_user(doc: Optional[Dict[str, Any]]) -> Optional[Dict[str, Any]]:
    out = to_public(doc)
    if out is not None:
        out.pop("password", None)
    return out


async def get_user(db, user_id: ObjectId) -> Optional[Dict[str, Any]]:
    return await db[USERS].find_one({"_id": user_id})


async def get_user_by_email(db, email: str) -> Optional[Dict[str, Any]]:
    return await db[USERS].find_one({"email": email})


async def get_user_by_mobile(db, mobile_number: str) -> Optional[Dict[str, Any]]:
    return await db[USERS].find_one({"mobileNumber": mobile_number})


async def get_user_by_credential(db, credential: str) -> Optional[Dict[str, Any]]:
    return await db[USERS].find_one(
        {"$or": [{"email": credential}, {"mobileNumber": credential}]}
    )


async def list_users_by_recovery_email(db, recovery_email: str) -> List[Dict[str, Any]]:
    cur = db[USERS].find({"recoveryEmail": recovery_email}).sort("createdAt", 1)
    return [d async for d in cur]


async def insert_user(db, doc: Dict[str, Any]) -> Dict[str, Any]:
    doc = stamp_new(dict(doc))
    res = await db[USERS].insert_one(doc)
    doc["_id"] = res.inserted_id
    return doc


async def update_user(db, user: Dict[str, Any], changes: Dict[str, Any]) -> Dict[str, Any]:
    return await update_with_revision(db[USERS], user["_id"], user.get("version", 0), changes)


async def mark_confirmed(db, user_id: ObjectId) -> bool:
    """Flip an unconfirmed account to confirmed. False when nothing matched."""
    res = await db[USERS].update_one(
        {"_id": user_id, "isConfirmed": False},
        {"$set": {"isConfirmed": True, "updatedAt": _now()}, "$inc": {"version": 1}},
    )
    return res.matched_count > 0


async def set_status(db, user_id: ObjectId, status: str) -> None:
    # session status is not a revisioned edit
    await db[USERS].update_one({"_id": user_id}, {"$set": {"status": status, "updatedAt": _now()}})


async def set_password(db, user_id: ObjectId, password_hash: str) -> bool:
    res = await db[USERS].update_one(
        {"_id": user_id},
        {"$set": {"password": password_hash, "updatedAt": _now()}, "$inc": {"version": 1}},
    )
    return res.matched_count > 0


async def delete_user(db, user_id: ObjectId) -> bool:
    res = await db[USERS].delete_one({"_id": user_id})
    return res.deleted_count > 0


async def get_users(db, user_ids: List[ObjectId]) -> Dict[ObjectId, Dict[str, Any]]:
    if not user_ids:
        return {}
    cur = db[USERS].find({"_id": {"$in": list(set(user_ids))}})
    return {d["_id"]: d async for d in cur}
