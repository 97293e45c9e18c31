# jobboard/api/v1/companies.py
import logging
from datetime import date, datetime, time, timedelta, timezone
from typing import Optional

from fastapi import APIRouter, Depends, Query, Response, status
from pymongo.errors import DuplicateKeyError

from jobboard.api.deps import AuthenticatedAccount, AuthenticatedRoute, require_roles
from jobboard.api.v1.schemas import AddCompanyIn, UpdateCompanyIn
from jobboard.core import roles
from jobboard.core.errors import Conflict, Forbidden, NotFound
from jobboard.db.mongo import get_db
from jobboard.repositories import applications as applications_repo
from jobboard.repositories import companies as companies_repo
from jobboard.repositories import jobs as jobs_repo
from jobboard.repositories import users as users_repo
from jobboard.repositories.common import duplicate_key_field, parse_object_id, to_public
from jobboard.services.cascade import remove_company
from jobboard.services.export import XLSX_MEDIA_TYPE, applications_workbook
from jobboard.services.ownership import load_owned_company, load_owned_job

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/company", tags=["Company"], route_class=AuthenticatedRoute)

hr_only = require_roles(roles.COMPANY_HR)
user_or_hr = require_roles(roles.USER_COMPANY_HR)

_ADD_CONFLICTS = {
    "companyName": "Company already exists",
    "companyEmail": "Company already exists",
    "companyHR": "You already own a company",
}
_UPDATE_CONFLICTS = {
    "companyName": "Company name already exists",
    "companyEmail": "Company Email already exists",
}


@router.post("/add", status_code=status.HTTP_201_CREATED)
async def add_company(
    payload: AddCompanyIn,
    account: AuthenticatedAccount = Depends(hr_only),
    db=Depends(get_db),
):
    if not account.is_confirmed:
        raise Forbidden(description="Please confirm your email first", check="company.add.confirmed")

    hr_id = parse_object_id(account.id)
    if await companies_repo.get_company_by_hr(db, hr_id):
        raise Conflict("You already own a company", check="company.add.one_per_hr")
    if await companies_repo.find_name_or_email(db, payload.company_name, payload.company_email):
        raise Conflict("Company already exists", check="company.add.name_or_email")

    doc = payload.model_dump(by_alias=True, exclude_none=True)
    doc["companyHR"] = hr_id
    try:
        company = await companies_repo.insert_company(db, doc)
    except DuplicateKeyError as exc:
        field = duplicate_key_field(exc, ("companyName", "companyEmail", "companyHR"))
        raise Conflict(_ADD_CONFLICTS[field], check=f"company.add.{field}.index")
    logger.info("Company %s added by %s", company["_id"], account.id)
    return {"message": "Company added successfully", "company": to_public(company)}


@router.put("/update/{company_id}")
async def update_company(
    company_id: str,
    payload: UpdateCompanyIn,
    account: AuthenticatedAccount = Depends(hr_only),
    db=Depends(get_db),
):
    company = await load_owned_company(db, company_id, account)

    if payload.company_email and payload.company_email != company.get("companyEmail"):
        if await companies_repo.get_company_by_email(db, payload.company_email):
            raise Conflict("Company Email already exists", check="company.update.email")
    if payload.company_name and payload.company_name != company.get("companyName"):
        if await companies_repo.get_company_by_name(db, payload.company_name):
            raise Conflict("Company name already exists", check="company.update.name")

    changes = payload.model_dump(by_alias=True, exclude_none=True)
    try:
        updated = await companies_repo.update_company(db, company, changes)
    except DuplicateKeyError as exc:
        fields = [f for f in ("companyEmail", "companyName") if f in changes] or ["companyName"]
        field = duplicate_key_field(exc, fields)
        raise Conflict(_UPDATE_CONFLICTS[field], check=f"company.update.{field}.index")
    return {"message": "Company updated successfully", "company": to_public(updated)}


@router.delete("/delete/{company_id}")
async def delete_company(
    company_id: str,
    account: AuthenticatedAccount = Depends(hr_only),
    db=Depends(get_db),
):
    company = await load_owned_company(db, company_id, account)
    await remove_company(db, company)
    return {"message": "Company deleted successfully"}


@router.get("/data/{company_id}")
async def get_company_data(
    company_id: str,
    account: AuthenticatedAccount = Depends(hr_only),
    db=Depends(get_db),
):
    oid = parse_object_id(company_id)
    company = await companies_repo.get_company(db, oid) if oid else None
    if company is None:
        raise NotFound("Company not found", company_id=company_id)

    hr = await users_repo.get_user(db, company.get("companyHR"))
    jobs = await jobs_repo.list_company_jobs(db, company["_id"])
    out = to_public(company)
    out["companyHR"] = users_repo.public_user(hr) if hr else out.get("companyHR")
    return {
        "message": "Company data fetched successfully",
        "company": out,
        "jobs": [to_public(j) for j in jobs],
    }


@router.get("/search")
async def search_company(
    company_name: str = Query(..., alias="companyName", min_length=1),
    account: AuthenticatedAccount = Depends(user_or_hr),
    db=Depends(get_db),
):
    companies = await companies_repo.search_companies(db, company_name)
    return {
        "message": f"Number of companies fetched: {len(companies)}",
        "companies": [to_public(c) for c in companies],
    }


@router.get("/applications/{job_id}")
async def get_job_applications(
    job_id: str,
    account: AuthenticatedAccount = Depends(hr_only),
    db=Depends(get_db),
):
    job, _company = await load_owned_job(db, job_id, account)
    applications = await applications_repo.list_job_applications(db, job["_id"])
    applicants = await users_repo.get_users(db, [a["userId"] for a in applications])

    items = []
    for app_doc in applications:
        item = to_public(app_doc)
        item["jobId"] = to_public(job)
        applicant = applicants.get(app_doc["userId"])
        if applicant:
            item["userId"] = users_repo.public_user(applicant)
        items.append(item)
    return {"message": f"Number of applications fetched: {len(items)}", "applications": items}


@router.get("/applications-company/{company_id}")
async def get_company_applications_on_day(
    company_id: str,
    day: Optional[date] = Query(None, alias="date"),
    account: AuthenticatedAccount = Depends(hr_only),
    db=Depends(get_db),
):
    company = await load_owned_company(db, company_id, account)
    day = day or datetime.now(timezone.utc).date()
    start = datetime.combine(day, time.min)
    end = start + timedelta(days=1)

    jobs = {j["_id"]: j for j in await jobs_repo.list_company_jobs(db, company["_id"])}
    applications = await applications_repo.list_applications_between(db, list(jobs), start, end)
    applicants = await users_repo.get_users(db, [a["userId"] for a in applications])

    rows = []
    for app_doc in applications:
        applicant = applicants.get(app_doc["userId"]) or {}
        rows.append(
            {
                "Applicant": applicant.get("userName", ""),
                "Email": applicant.get("email", ""),
                "Mobile Number": applicant.get("mobileNumber", ""),
                "Job Title": jobs[app_doc["jobId"]].get("jobTitle", ""),
                "Technical Skills": app_doc.get("userTechSkills", []),
                "Soft Skills": app_doc.get("userSoftSkills", []),
                "Resume": app_doc.get("userResume", ""),
                "Applied At": app_doc.get("createdAt"),
            }
        )

    content = applications_workbook(rows, title=f"Applications {day.isoformat()}")
    filename = f"applications-{company['_id']}-{day.isoformat()}.xlsx"
    logger.info("Exported %d applications for company %s on %s", len(rows), company["_id"], day)
    return Response(
        content=content,
        media_type=XLSX_MEDIA_TYPE,
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )
