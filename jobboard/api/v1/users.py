# jobboard/api/v1/users.py
import logging
from datetime import date, datetime, time
from typing import Any, Dict

from fastapi import APIRouter, Depends, Request, status
from pymongo.errors import DuplicateKeyError

from jobboard.api.deps import (
    AuthenticatedAccount,
    AuthenticatedRoute,
    get_hasher,
    get_mailer,
    get_tokens,
    require_roles,
)
from jobboard.api.v1.schemas import (
    ForgotPasswordIn,
    LoginIn,
    ResetPasswordIn,
    SignUpIn,
    UpdatePasswordIn,
    UpdateUserIn,
)
from jobboard.core import roles
from jobboard.core.errors import BadRequest, Conflict, NotFound
from jobboard.core.security import PasswordHasher
from jobboard.db.mongo import get_db
from jobboard.models.enums import AccountStatus
from jobboard.repositories import users as users_repo
from jobboard.repositories.common import duplicate_key_field, parse_object_id
from jobboard.services.cascade import remove_account
from jobboard.services.mailer import Mailer, MailDeliveryError, confirmation_email, reset_password_email
from jobboard.services.tokens import TokenPurpose, TokenService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/user", tags=["User"], route_class=AuthenticatedRoute)


def _as_datetime(d: date) -> datetime:
    # BSON has no plain date type
    return datetime.combine(d, time.min)


_CONFLICT_MESSAGES = {
    "email": "Email already exists",
    "mobileNumber": "Mobile number already exists",
}


def _account_conflict(exc: DuplicateKeyError, fields, check: str) -> Conflict:
    # a concurrent request won the unique index after our pre-check passed
    field = duplicate_key_field(exc, list(fields) or ["email"])
    return Conflict(_CONFLICT_MESSAGES[field], check=f"{check}.{field}.index")


async def _load_self(db, account: AuthenticatedAccount) -> Dict[str, Any]:
    user = await users_repo.get_user(db, parse_object_id(account.id))
    if user is None:
        raise NotFound("User not found", account_id=account.id)
    return user


@router.post("/sign-up", status_code=status.HTTP_201_CREATED)
async def sign_up(
    payload: SignUpIn,
    request: Request,
    db=Depends(get_db),
    hasher: PasswordHasher = Depends(get_hasher),
    tokens: TokenService = Depends(get_tokens),
    mailer: Mailer = Depends(get_mailer),
):
    if await users_repo.get_user_by_email(db, payload.email):
        raise Conflict("Email already exists", check="signup.email")
    if await users_repo.get_user_by_mobile(db, payload.mobile_number):
        raise Conflict("Mobile number already exists", check="signup.mobile")

    doc = payload.model_dump(by_alias=True, exclude_none=True)
    doc.update(
        {
            "DOB": _as_datetime(payload.dob),
            "userName": f"{payload.first_name} {payload.last_name}",
            "password": hasher.hash(payload.password),
            "isConfirmed": False,
            "status": AccountStatus.OFFLINE.value,
        }
    )
    try:
        user = await users_repo.insert_user(db, doc)
    except DuplicateKeyError as exc:
        raise _account_conflict(exc, ("email", "mobileNumber"), "signup")

    token = tokens.issue_confirmation(str(user["_id"]))
    link = str(request.url_for("confirm_email", token=token))
    subject, text, html = confirmation_email(payload.first_name, link)
    try:
        await mailer.send(payload.email, subject, text, html)
    except MailDeliveryError as exc:
        # no mail, no account
        await users_repo.delete_user(db, user["_id"])
        raise BadRequest("Email not sent", check="signup.mail", error=str(exc))

    logger.info("Account %s created with role %s", user["_id"], user["role"])
    return {
        "message": "User created successfully",
        "confirmation": "A confirmation email has been sent!",
        "user": users_repo.public_user(user),
    }


@router.get("/confirm-email/{token}", name="confirm_email")
async def confirm_email(token: str, db=Depends(get_db), tokens: TokenService = Depends(get_tokens)):
    subject = tokens.verify(token, TokenPurpose.CONFIRMATION)
    user_id = parse_object_id(subject)
    if user_id is None or not await users_repo.mark_confirmed(db, user_id):
        raise BadRequest("User not found", check="confirm.unconfirmed_account", account_id=subject)
    return {"message": "Email confirmed"}


@router.post("/login")
async def login(
    payload: LoginIn,
    db=Depends(get_db),
    hasher: PasswordHasher = Depends(get_hasher),
    tokens: TokenService = Depends(get_tokens),
):
    user = await users_repo.get_user_by_credential(db, payload.credential)
    if user is None or not hasher.matches(payload.password, user.get("password", "")):
        raise BadRequest("Invalid credentials", check="login")

    token = tokens.issue_login(str(user["_id"]))
    await users_repo.set_status(db, user["_id"], AccountStatus.ONLINE.value)
    return {"message": "User signed in successfully", "token": token}


@router.post("/logout")
async def logout(account: AuthenticatedAccount = Depends(require_roles(roles.ALL)), db=Depends(get_db)):
    await users_repo.set_status(db, parse_object_id(account.id), AccountStatus.OFFLINE.value)
    return {"message": "User signed out successfully"}


@router.put("/update")
async def update_account(
    payload: UpdateUserIn,
    account: AuthenticatedAccount = Depends(require_roles(roles.USER_COMPANY_HR)),
    db=Depends(get_db),
):
    user = await _load_self(db, account)
    changes = payload.model_dump(by_alias=True, exclude_none=True)

    if payload.email and payload.email != user.get("email"):
        if await users_repo.get_user_by_email(db, payload.email):
            raise Conflict("Email already exists", check="update.email")
    if payload.mobile_number and payload.mobile_number != user.get("mobileNumber"):
        if await users_repo.get_user_by_mobile(db, payload.mobile_number):
            raise Conflict("Mobile number already exists", check="update.mobile")
    if payload.dob:
        changes["DOB"] = _as_datetime(payload.dob)
    if payload.first_name or payload.last_name:
        first = payload.first_name or user.get("firstName", "")
        last = payload.last_name or user.get("lastName", "")
        changes["userName"] = f"{first} {last}"

    try:
        updated = await users_repo.update_user(db, user, changes)
    except DuplicateKeyError as exc:
        raise _account_conflict(exc, [f for f in ("email", "mobileNumber") if f in changes], "update")
    return {"message": "User updated successfully", "user": users_repo.public_user(updated)}


@router.delete("/delete")
async def delete_account(
    account: AuthenticatedAccount = Depends(require_roles(roles.USER_COMPANY_HR)),
    db=Depends(get_db),
):
    if not await remove_account(db, parse_object_id(account.id)):
        raise NotFound("User not found", account_id=account.id)
    return {"message": "User account deleted successfully"}


@router.get("/account")
async def get_account_data(
    account: AuthenticatedAccount = Depends(require_roles(roles.USER_COMPANY_HR)),
    db=Depends(get_db),
):
    user = await _load_self(db, account)
    return {"message": "User account data fetched successfully", "user": users_repo.public_user(user)}


@router.get("/profile/{user_id}")
async def get_profile_data(user_id: str, db=Depends(get_db)):
    oid = parse_object_id(user_id)
    user = await users_repo.get_user(db, oid) if oid else None
    if user is None:
        raise NotFound("User not found", user_id=user_id)
    return {"message": "User profile data fetched successfully", "user": users_repo.public_user(user)}


@router.put("/update-password")
async def update_password(
    payload: UpdatePasswordIn,
    account: AuthenticatedAccount = Depends(require_roles(roles.USER_COMPANY_HR)),
    db=Depends(get_db),
    hasher: PasswordHasher = Depends(get_hasher),
):
    user = await _load_self(db, account)
    if not hasher.matches(payload.old_password, user.get("password", "")):
        raise BadRequest("Invalid old password", check="update_password.old")
    await users_repo.update_user(db, user, {"password": hasher.hash(payload.new_password)})
    return {"message": "Password updated successfully"}


@router.post("/forgot-password")
async def forgot_password(
    payload: ForgotPasswordIn,
    request: Request,
    db=Depends(get_db),
    tokens: TokenService = Depends(get_tokens),
    mailer: Mailer = Depends(get_mailer),
):
    user = await users_repo.get_user_by_email(db, payload.email)
    if user is None:
        raise NotFound("User not found", check="forgot_password")

    token = tokens.issue_reset(str(user["_id"]))
    link = str(request.url_for("reset_password", token=token))
    subject, text, html = reset_password_email(user.get("firstName", ""), link)
    try:
        await mailer.send(payload.email, subject, text, html)
    except MailDeliveryError as exc:
        raise BadRequest("Email not sent", check="forgot_password.mail", error=str(exc))
    return {"message": "Password reset email sent"}


@router.post("/reset-password/{token}", name="reset_password")
async def reset_password(
    token: str,
    payload: ResetPasswordIn,
    db=Depends(get_db),
    hasher: PasswordHasher = Depends(get_hasher),
    tokens: TokenService = Depends(get_tokens),
):
    subject = tokens.verify(token, TokenPurpose.RESET)
    user_id = parse_object_id(subject)
    if user_id is None or not await users_repo.set_password(db, user_id, hasher.hash(payload.new_password)):
        raise NotFound("User not found", account_id=subject)
    return {"message": "Password reset successfully"}


@router.get("/recovery-email-accounts/{recovery_email}")
async def get_accounts_by_recovery_email(
    recovery_email: str,
    account: AuthenticatedAccount = Depends(require_roles(roles.ALL)),
    db=Depends(get_db),
):
    users = await users_repo.list_users_by_recovery_email(db, recovery_email)
    if not users:
        raise NotFound(
            "No accounts found for the provided recovery email",
            "No accounts found",
            requested_by=account.id,
        )
    return {
        "message": f"{len(users)} accounts fetched successfully",
        "users": [users_repo.public_user(u) for u in users],
    }
