# jobboard/services/ownership.py
"""Ownership checks applied by company and job handlers before mutation.

A caller who does not own the target gets exactly the same failure as a
caller asking for an id that does not exist.
"""
from typing import Any, Dict, Optional, Tuple

from jobboard.api.deps import AuthenticatedAccount
from jobboard.core.errors import NotFoundOrUnauthorized
from jobboard.repositories import companies as companies_repo
from jobboard.repositories import jobs as jobs_repo
from jobboard.repositories.common import parse_object_id


def ensure_owner(owner_id: Any, account: AuthenticatedAccount, resource: str, resource_id: Any) -> None:
    if owner_id is None or str(owner_id) != account.id:
        raise NotFoundOrUnauthorized(
            resource=resource, resource_id=str(resource_id), account_id=account.id, check="ownership"
        )


async def load_owned_company(db, company_id: str, account: AuthenticatedAccount) -> Dict[str, Any]:
    oid = parse_object_id(company_id)
    company: Optional[Dict[str, Any]] = await companies_repo.get_company(db, oid) if oid else None
    if company is None:
        raise NotFoundOrUnauthorized(resource="company", resource_id=company_id, check="exists")
    ensure_owner(company.get("companyHR"), account, "company", company_id)
    return company


async def load_owned_job(db, job_id: str, account: AuthenticatedAccount) -> Tuple[Dict[str, Any], Dict[str, Any]]:
    """Return ``(job, company)`` when the caller is HR of the job's company."""
    oid = parse_object_id(job_id)
    job = await jobs_repo.get_job(db, oid) if oid else None
    if job is None:
        raise NotFoundOrUnauthorized(resource="job", resource_id=job_id, check="exists")
    company = await companies_repo.get_company(db, job.get("addedBy"))
    if company is None:
        raise NotFoundOrUnauthorized(resource="job", resource_id=job_id, check="company_exists")
    ensure_owner(company.get("companyHR"), account, "job", job_id)
    return job, company
