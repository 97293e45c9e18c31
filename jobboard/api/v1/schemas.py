# jobboard/api/v1/schemas.py
import re
from datetime import date
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator, model_validator
from pydantic.alias_generators import to_camel

from jobboard.core.roles import Role
from jobboard.models.enums import CompanySize, JobLocation, SeniorityLevel, WorkingTime

_PASSWORD_RE = re.compile(r"^(?=.*[a-z])(?=.*[A-Z])(?=.*\d)(?=.*[$!%*?&])[A-Za-z\d$!%*?&]{8,}$")
_PASSWORD_MSG = (
    "Password must have at least one lowercase letter, one uppercase letter, "
    "one number and one special character"
)
_MOBILE_PATTERN = r"^\+?[0-9\s\-()]{7,15}$"
_ALLOWED_TLDS = ("com", "net", "org")
_NAME_PATTERN = r"^[A-Za-z0-9]{3,30}$"


def _strong_password(v: str) -> str:
    if not _PASSWORD_RE.match(v):
        raise ValueError(_PASSWORD_MSG)
    return v


def _allowed_tld(v: Optional[str]) -> Optional[str]:
    if v is not None and v.rsplit(".", 1)[-1].lower() not in _ALLOWED_TLDS:
        raise ValueError("Email domain must end with .com, .net or .org")
    return v


class CamelModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        use_enum_values=True,
        str_strip_whitespace=True,
        extra="forbid",
    )


def _require_any(model: BaseModel, message: str) -> None:
    if not any(v is not None for v in model.__dict__.values()):
        raise ValueError(message)


# ---------- user ----------

class SignUpIn(CamelModel):
    first_name: str = Field(pattern=_NAME_PATTERN)
    last_name: str = Field(pattern=_NAME_PATTERN)
    email: EmailStr
    password: str
    recovery_email: Optional[EmailStr] = None
    dob: date = Field(alias="DOB")
    mobile_number: str = Field(pattern=_MOBILE_PATTERN)
    role: Role = Role.USER

    @field_validator("first_name", "last_name")
    @classmethod
    def _lower(cls, v: str) -> str:
        return v.lower()

    @field_validator("email", "recovery_email")
    @classmethod
    def _tld(cls, v):
        return _allowed_tld(v)

    @field_validator("password")
    @classmethod
    def _password(cls, v: str) -> str:
        return _strong_password(v)

    @field_validator("dob")
    @classmethod
    def _past(cls, v: date) -> date:
        if v >= date.today():
            raise ValueError("Date of Birth must be in the past")
        return v


class LoginIn(CamelModel):
    credential: str = Field(min_length=3)
    password: str = Field(min_length=1)

    @field_validator("credential")
    @classmethod
    def _email_or_mobile(cls, v: str) -> str:
        if "@" in v or re.match(_MOBILE_PATTERN, v):
            return v
        raise ValueError("credential must be an email or a mobile number")


class UpdateUserIn(CamelModel):
    email: Optional[EmailStr] = None
    mobile_number: Optional[str] = Field(default=None, pattern=r"^\+?[1-9]\d{1,14}$")
    recovery_email: Optional[EmailStr] = None
    dob: Optional[date] = Field(default=None, alias="DOB")
    last_name: Optional[str] = Field(default=None, pattern=_NAME_PATTERN)
    first_name: Optional[str] = Field(default=None, pattern=_NAME_PATTERN)

    @field_validator("first_name", "last_name")
    @classmethod
    def _lower(cls, v: Optional[str]) -> Optional[str]:
        return v.lower() if v else v

    @model_validator(mode="after")
    def _at_least_one(self):
        _require_any(self, "At least one field must be updated")
        return self


class UpdatePasswordIn(CamelModel):
    old_password: str = Field(min_length=1)
    new_password: str

    @field_validator("new_password")
    @classmethod
    def _password(cls, v: str) -> str:
        return _strong_password(v)


class ForgotPasswordIn(CamelModel):
    email: EmailStr


class ResetPasswordIn(CamelModel):
    new_password: str

    @field_validator("new_password")
    @classmethod
    def _password(cls, v: str) -> str:
        return _strong_password(v)


# ---------- company ----------

class AddCompanyIn(CamelModel):
    company_name: str = Field(min_length=2, max_length=100)
    description: Optional[str] = Field(default=None, max_length=2000)
    industry: Optional[str] = Field(default=None, max_length=100)
    address: Optional[str] = Field(default=None, max_length=300)
    number_of_employees: CompanySize
    company_email: EmailStr


class UpdateCompanyIn(CamelModel):
    company_name: Optional[str] = Field(default=None, min_length=2, max_length=100)
    description: Optional[str] = Field(default=None, max_length=2000)
    industry: Optional[str] = Field(default=None, max_length=100)
    address: Optional[str] = Field(default=None, max_length=300)
    number_of_employees: Optional[CompanySize] = None
    company_email: Optional[EmailStr] = None

    @model_validator(mode="after")
    def _at_least_one(self):
        _require_any(self, "At least one field must be updated")
        return self


# ---------- job ----------

class AddJobIn(CamelModel):
    job_title: str = Field(min_length=3, max_length=100)
    job_location: JobLocation
    working_time: WorkingTime
    seniority_level: SeniorityLevel
    job_description: str = Field(min_length=10, max_length=1000)
    technical_skills: List[str] = Field(default_factory=list)
    soft_skills: List[str] = Field(default_factory=list)

    @field_validator("technical_skills", "soft_skills")
    @classmethod
    def _no_blank(cls, v: List[str]) -> List[str]:
        if any(not s.strip() for s in v):
            raise ValueError("skills should not be empty")
        return [s.strip() for s in v]


class UpdateJobIn(CamelModel):
    job_title: Optional[str] = Field(default=None, min_length=3, max_length=100)
    job_location: Optional[JobLocation] = None
    working_time: Optional[WorkingTime] = None
    seniority_level: Optional[SeniorityLevel] = None
    job_description: Optional[str] = Field(default=None, min_length=10, max_length=1000)
    technical_skills: Optional[List[str]] = None
    soft_skills: Optional[List[str]] = None

    @model_validator(mode="after")
    def _at_least_one(self):
        _require_any(self, "At least one field must be updated")
        return self


class ApplyJobIn(CamelModel):
    user_tech_skills: List[str] = Field(default_factory=list)
    user_soft_skills: List[str] = Field(default_factory=list)
    user_resume: str = Field(min_length=1)
