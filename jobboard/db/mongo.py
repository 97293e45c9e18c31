# jobboard/db/mongo.py
from typing import Any

import motor.motor_asyncio
from fastapi import Request
from pymongo import ASCENDING

from jobboard.core.config import Settings

USERS = "users"
COMPANIES = "companies"
JOBS = "jobs"
APPLICATIONS = "applications"


def create_mongo_client(settings: Settings) -> motor.motor_asyncio.AsyncIOMotorClient:
    return motor.motor_asyncio.AsyncIOMotorClient(settings.MONGODB_URI)


def get_database(client: Any, settings: Settings):
    return client[settings.MONGODB_DB]


async def ensure_indexes(db) -> None:
    """Create the unique indexes backing the handler-level uniqueness checks.

    Handlers still query before writing so they can answer with a descriptive
    conflict; these indexes only catch races between two such checks.
    """
    await db[USERS].create_index([("email", ASCENDING)], unique=True)
    await db[USERS].create_index([("mobileNumber", ASCENDING)], unique=True)
    await db[USERS].create_index([("recoveryEmail", ASCENDING)])
    await db[COMPANIES].create_index([("companyName", ASCENDING)], unique=True)
    await db[COMPANIES].create_index([("companyEmail", ASCENDING)], unique=True)
    await db[COMPANIES].create_index([("companyHR", ASCENDING)], unique=True)
    await db[JOBS].create_index([("addedBy", ASCENDING)])
    await db[APPLICATIONS].create_index(
        [("jobId", ASCENDING), ("userId", ASCENDING)], unique=True
    )


def get_db(request: Request):
    """FastAPI dependency: the database handle attached at startup."""
    return request.app.state.db
