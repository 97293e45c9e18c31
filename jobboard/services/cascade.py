# jobboard/services/cascade.py
"""Deletes that take dependent documents with them.

A company owns its jobs and a job owns its applications, so removing an
owner removes everything below it. Removing an account removes the company
it runs (if any) and every application it submitted.
"""
import logging
from typing import Any, Dict

from bson import ObjectId

from jobboard.repositories import applications as applications_repo
from jobboard.repositories import companies as companies_repo
from jobboard.repositories import jobs as jobs_repo
from jobboard.repositories import users as users_repo

logger = logging.getLogger(__name__)


async def remove_job(db, job: Dict[str, Any]) -> int:
    removed = await applications_repo.delete_job_applications(db, [job["_id"]])
    await jobs_repo.delete_job(db, job["_id"])
    logger.info("Job %s deleted with %d applications", job["_id"], removed)
    return removed


async def remove_company(db, company: Dict[str, Any]) -> int:
    job_ids = await jobs_repo.job_ids_for_company(db, company["_id"])
    await applications_repo.delete_job_applications(db, job_ids)
    await jobs_repo.delete_company_jobs(db, company["_id"])
    await companies_repo.delete_company(db, company["_id"])
    logger.info("Company %s deleted with %d jobs", company["_id"], len(job_ids))
    return len(job_ids)


async def remove_account(db, user_id: ObjectId) -> bool:
    """Delete an account with its company and applications. False when missing."""
    if await users_repo.get_user(db, user_id) is None:
        return False
    company = await companies_repo.get_company_by_hr(db, user_id)
    if company is not None:
        await remove_company(db, company)
    withdrawn = await applications_repo.delete_user_applications(db, user_id)
    deleted = await users_repo.delete_user(db, user_id)
    logger.info("Account %s deleted, %d applications withdrawn", user_id, withdrawn)
    return deleted
