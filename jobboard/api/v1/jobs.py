# jobboard/api/v1/jobs.py
import logging
from typing import Optional

from fastapi import APIRouter, Depends, Query, status
from pymongo.errors import DuplicateKeyError

from jobboard.api.deps import AuthenticatedAccount, AuthenticatedRoute, require_roles
from jobboard.api.v1.schemas import AddJobIn, ApplyJobIn, UpdateJobIn
from jobboard.core import roles
from jobboard.core.errors import Conflict, NotFound, ValidationFailed
from jobboard.db.mongo import get_db
from jobboard.models.enums import JobLocation, SeniorityLevel, WorkingTime
from jobboard.repositories import applications as applications_repo
from jobboard.repositories import companies as companies_repo
from jobboard.repositories import jobs as jobs_repo
from jobboard.repositories.common import parse_object_id, to_public
from jobboard.services.cascade import remove_job
from jobboard.services.ownership import load_owned_job

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/job", tags=["Job"], route_class=AuthenticatedRoute)

hr_only = require_roles(roles.COMPANY_HR)
user_or_hr = require_roles(roles.USER_COMPANY_HR)
user_only = require_roles(roles.USER)


async def _with_companies(db, jobs):
    companies = await companies_repo.get_companies(db, [j["addedBy"] for j in jobs if j.get("addedBy")])
    out = []
    for job in jobs:
        item = to_public(job)
        company = companies.get(job.get("addedBy"))
        if company:
            item["addedBy"] = to_public(company)
        out.append(item)
    return out


@router.post("/add", status_code=status.HTTP_201_CREATED)
async def add_job(
    payload: AddJobIn,
    account: AuthenticatedAccount = Depends(hr_only),
    db=Depends(get_db),
):
    company = await companies_repo.get_company_by_hr(db, parse_object_id(account.id))
    if company is None:
        raise NotFound("Company not found", "Add your company before posting jobs", account_id=account.id)

    doc = payload.model_dump(by_alias=True)
    doc["addedBy"] = company["_id"]
    job = await jobs_repo.insert_job(db, doc)
    logger.info("Job %s added to company %s", job["_id"], company["_id"])
    return {"message": "Job added successfully", "job": to_public(job)}


@router.put("/update/{job_id}")
async def update_job(
    job_id: str,
    payload: UpdateJobIn,
    account: AuthenticatedAccount = Depends(hr_only),
    db=Depends(get_db),
):
    job, _company = await load_owned_job(db, job_id, account)
    changes = payload.model_dump(by_alias=True, exclude_none=True)
    updated = await jobs_repo.update_job(db, job, changes)
    return {"message": "Job updated successfully", "job": to_public(updated)}


@router.delete("/delete/{job_id}")
async def delete_job(
    job_id: str,
    account: AuthenticatedAccount = Depends(hr_only),
    db=Depends(get_db),
):
    job, _company = await load_owned_job(db, job_id, account)
    await remove_job(db, job)
    return {"message": "Job deleted successfully"}


@router.get("/all")
async def get_all_jobs(account: AuthenticatedAccount = Depends(user_or_hr), db=Depends(get_db)):
    jobs = await _with_companies(db, await jobs_repo.list_jobs(db))
    return {"message": f"Number of jobs fetched: {len(jobs)}", "jobs": jobs}


@router.get("/company-jobs")
async def get_company_jobs(
    company_name: str = Query(..., alias="companyName", min_length=1),
    account: AuthenticatedAccount = Depends(user_or_hr),
    db=Depends(get_db),
):
    company = await companies_repo.get_company_by_name(db, company_name)
    if company is None:
        raise NotFound("Company not found", company_name=company_name)
    jobs = await jobs_repo.list_company_jobs(db, company["_id"])
    return {"message": f"Number of jobs fetched: {len(jobs)}", "jobs": [to_public(j) for j in jobs]}


@router.get("/filter")
async def filter_jobs(
    working_time: Optional[WorkingTime] = Query(None, alias="workingTime"),
    job_location: Optional[JobLocation] = Query(None, alias="jobLocation"),
    seniority_level: Optional[SeniorityLevel] = Query(None, alias="seniorityLevel"),
    job_title: Optional[str] = Query(None, alias="jobTitle", min_length=3, max_length=100),
    technical_skills: Optional[str] = Query(None, alias="technicalSkills"),
    account: AuthenticatedAccount = Depends(user_or_hr),
    db=Depends(get_db),
):
    skills = [s.strip() for s in technical_skills.split(",") if s.strip()] if technical_skills else None
    filters = jobs_repo.build_filter(
        working_time=working_time.value if working_time else None,
        job_location=job_location.value if job_location else None,
        seniority_level=seniority_level.value if seniority_level else None,
        job_title=job_title,
        technical_skills=skills,
    )
    if not filters:
        raise ValidationFailed(description="At least one filter must be applied")

    jobs = await _with_companies(db, await jobs_repo.list_jobs(db, filters))
    return {"message": f"Number of jobs fetched: {len(jobs)}", "jobs": jobs}


@router.post("/apply/{job_id}", status_code=status.HTTP_201_CREATED)
async def apply_to_job(
    job_id: str,
    payload: ApplyJobIn,
    account: AuthenticatedAccount = Depends(user_only),
    db=Depends(get_db),
):
    oid = parse_object_id(job_id)
    job = await jobs_repo.get_job(db, oid) if oid else None
    if job is None:
        raise NotFound("Job Not exists", job_id=job_id)

    user_id = parse_object_id(account.id)
    if await applications_repo.find_application(db, job["_id"], user_id):
        raise Conflict("You have already applied to this job", job_id=job_id)

    doc = payload.model_dump(by_alias=True)
    doc.update({"jobId": job["_id"], "userId": user_id})
    try:
        application = await applications_repo.insert_application(db, doc)
    except DuplicateKeyError:
        # lost the race against a concurrent apply from the same account
        raise Conflict("You have already applied to this job", job_id=job_id)
    return {"message": "Application submitted successfully", "application": to_public(application)}
