# tests/test_users_api.py
import pytest
from bson import ObjectId

from conftest import PASSWORD, RESET_LINK_RE, signup_payload
from jobboard.repositories import users as users_repo


@pytest.mark.asyncio
async def test_sign_up_sends_confirmation_and_hides_password(client, mailer, db):
    payload = signup_payload(firstName="Alice", recoveryEmail="backup@jobs.com")
    r = await client.post("/user/sign-up", json=payload)
    assert r.status_code == 201
    body = r.json()
    assert body["message"] == "User created successfully"
    user = body["user"]
    assert "password" not in user
    assert user["firstName"] == "alice"
    assert user["userName"] == "alice smith"
    assert user["isConfirmed"] is False
    assert user["status"] == "offline"
    assert user["role"] == "User"

    assert len(mailer.outbox) == 1
    assert mailer.outbox[0]["to"] == payload["email"]
    assert "/user/confirm-email/" in mailer.outbox[0]["text"]

    stored = await db["users"].find_one({"email": payload["email"]})
    assert stored["password"] != PASSWORD


@pytest.mark.asyncio
async def test_sign_up_with_existing_email_is_rejected(client, db):
    first = signup_payload()
    assert (await client.post("/user/sign-up", json=first)).status_code == 201

    dup = signup_payload(email=first["email"])
    r = await client.post("/user/sign-up", json=dup)
    assert r.status_code == 400
    assert "Email already exists" in r.json()["message"]
    assert await db["users"].count_documents({}) == 1


@pytest.mark.asyncio
async def test_sign_up_with_existing_mobile_is_rejected(client, db):
    first = signup_payload()
    assert (await client.post("/user/sign-up", json=first)).status_code == 201

    r = await client.post("/user/sign-up", json=signup_payload(mobileNumber=first["mobileNumber"]))
    assert r.status_code == 400
    assert r.json()["message"] == "Mobile number already exists"
    assert await db["users"].count_documents({}) == 1


@pytest.mark.asyncio
async def test_mail_failure_creates_no_account(client, mailer, db):
    mailer.fail = True
    r = await client.post("/user/sign-up", json=signup_payload())
    assert r.status_code == 400
    assert r.json()["message"] == "Email not sent"
    assert await db["users"].count_documents({}) == 0


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "override",
    [
        {"password": "weakpass"},
        {"email": "alice@jobs.io"},
        {"DOB": "2999-01-01"},
        {"mobileNumber": "12"},
        {"role": "superuser"},
        {"firstName": "a-b"},
    ],
)
async def test_sign_up_validation(client, db, override):
    r = await client.post("/user/sign-up", json=signup_payload(**override))
    assert r.status_code == 400
    assert r.json()["message"] == "Validation error"
    assert await db["users"].count_documents({}) == 0


@pytest.mark.asyncio
async def test_confirm_email_once(client, mailer, db):
    payload = signup_payload()
    await client.post("/user/sign-up", json=payload)
    token = mailer.last_token()

    r = await client.get(f"/user/confirm-email/{token}")
    assert r.status_code == 200
    assert r.json() == {"message": "Email confirmed"}
    assert (await db["users"].find_one({"email": payload["email"]}))["isConfirmed"] is True

    again = await client.get(f"/user/confirm-email/{token}")
    assert again.status_code == 400
    assert again.json()["message"] == "User not found"


@pytest.mark.asyncio
async def test_confirm_email_rejects_login_token(client, make_account):
    account = await make_account(confirmed=False)
    r = await client.get(f"/user/confirm-email/{account['token']}")
    assert r.status_code == 401


@pytest.mark.asyncio
async def test_login_returns_token_and_sets_online(client, db, make_account):
    account = await make_account(login=False)
    r = await client.post("/user/login", json={"credential": account["email"], "password": PASSWORD})
    assert r.status_code == 200
    body = r.json()
    assert body["message"] == "User signed in successfully"
    assert body["token"]
    stored = await db["users"].find_one({"_id": ObjectId(account["id"])})
    assert stored["status"] == "online"


@pytest.mark.asyncio
async def test_login_with_mobile_number(client, make_account):
    account = await make_account(login=False)
    r = await client.post("/user/login", json={"credential": account["mobile"], "password": PASSWORD})
    assert r.status_code == 200


@pytest.mark.asyncio
@pytest.mark.parametrize("credential, password", [("known", "Wrong1!pass"), ("nobody@jobs.com", PASSWORD)])
async def test_login_with_bad_credentials(client, db, make_account, credential, password):
    account = await make_account(login=False)
    if credential == "known":
        credential = account["email"]
    r = await client.post("/user/login", json={"credential": credential, "password": password})
    assert r.status_code == 400
    assert r.json()["message"] == "Invalid credentials"
    assert (await db["users"].find_one({"_id": ObjectId(account["id"])}))["status"] == "offline"


@pytest.mark.asyncio
async def test_logout_sets_offline(client, db, make_account):
    account = await make_account()
    r = await client.post("/user/logout", headers=account["headers"])
    assert r.status_code == 200
    assert (await db["users"].find_one({"_id": ObjectId(account["id"])}))["status"] == "offline"


@pytest.mark.asyncio
async def test_account_data(client, make_account):
    account = await make_account()
    r = await client.get("/user/account", headers=account["headers"])
    assert r.status_code == 200
    user = r.json()["user"]
    assert user["id"] == account["id"]
    assert user["email"] == account["email"]
    assert "password" not in user


@pytest.mark.asyncio
async def test_update_account(client, db, make_account):
    account = await make_account()
    r = await client.put("/user/update", json={"lastName": "Jones", "DOB": "1990-01-01"}, headers=account["headers"])
    assert r.status_code == 200
    user = r.json()["user"]
    assert user["lastName"] == "jones"
    assert user["userName"] == "alice jones"
    assert user["version"] == 2  # confirmation + this update
    assert user["DOB"].startswith("1990-01-01")


@pytest.mark.asyncio
async def test_update_account_conflicts(client, make_account):
    first = await make_account()
    second = await make_account()
    r = await client.put("/user/update", json={"email": first["email"]}, headers=second["headers"])
    assert r.status_code == 400
    assert r.json()["message"] == "Email already exists"

    r = await client.put("/user/update", json={"mobileNumber": first["mobile"]}, headers=second["headers"])
    assert r.status_code == 400
    assert r.json()["message"] == "Mobile number already exists"


@pytest.mark.asyncio
async def test_update_account_requires_a_field(client, make_account):
    account = await make_account()
    r = await client.put("/user/update", json={}, headers=account["headers"])
    assert r.status_code == 400
    assert "At least one field" in r.json()["description"]


@pytest.mark.asyncio
async def test_update_password(client, make_account):
    account = await make_account()
    r = await client.put(
        "/user/update-password",
        json={"oldPassword": "Wrong1!pass", "newPassword": "N3wPass!word"},
        headers=account["headers"],
    )
    assert r.status_code == 400
    assert r.json()["message"] == "Invalid old password"

    r = await client.put(
        "/user/update-password",
        json={"oldPassword": PASSWORD, "newPassword": "N3wPass!word"},
        headers=account["headers"],
    )
    assert r.status_code == 200

    old = await client.post("/user/login", json={"credential": account["email"], "password": PASSWORD})
    assert old.status_code == 400
    new = await client.post("/user/login", json={"credential": account["email"], "password": "N3wPass!word"})
    assert new.status_code == 200


@pytest.mark.asyncio
async def test_forgot_and_reset_password(client, mailer, make_account):
    account = await make_account()
    r = await client.post("/user/forgot-password", json={"email": account["email"]})
    assert r.status_code == 200
    assert mailer.outbox[-1]["subject"] == "Reset Your Password"
    token = mailer.last_token(RESET_LINK_RE)

    # a reset token is not a session
    r = await client.get("/user/account", headers={"Authorization": f"Bearer {token}"})
    assert r.status_code == 401

    r = await client.post(f"/user/reset-password/{token}", json={"newPassword": "Fr3sh!pass"})
    assert r.status_code == 200
    r = await client.post("/user/login", json={"credential": account["email"], "password": "Fr3sh!pass"})
    assert r.status_code == 200


@pytest.mark.asyncio
async def test_forgot_password_unknown_email(client):
    r = await client.post("/user/forgot-password", json={"email": "ghost@jobs.com"})
    assert r.status_code == 404


@pytest.mark.asyncio
async def test_reset_password_rejects_confirmation_token(client, mailer):
    await client.post("/user/sign-up", json=signup_payload())
    token = mailer.last_token()
    r = await client.post(f"/user/reset-password/{token}", json={"newPassword": "Fr3sh!pass"})
    assert r.status_code == 401


@pytest.mark.asyncio
async def test_delete_account_revokes_access(client, db, make_account):
    account = await make_account()
    r = await client.delete("/user/delete", headers=account["headers"])
    assert r.status_code == 200
    assert await db["users"].count_documents({"_id": ObjectId(account["id"])}) == 0

    r = await client.get("/user/account", headers=account["headers"])
    assert r.status_code == 401


@pytest.mark.asyncio
async def test_profile_is_public(client, make_account):
    account = await make_account()
    r = await client.get(f"/user/profile/{account['id']}")
    assert r.status_code == 200
    assert "password" not in r.json()["user"]

    assert (await client.get(f"/user/profile/{ObjectId()}")).status_code == 404
    assert (await client.get("/user/profile/not-an-id")).status_code == 404


@pytest.mark.asyncio
async def test_accounts_by_recovery_email(client, make_account):
    first = await make_account(recoveryEmail="shared@jobs.com")
    await make_account(recoveryEmail="shared@jobs.com")
    r = await client.get("/user/recovery-email-accounts/shared@jobs.com", headers=first["headers"])
    assert r.status_code == 200
    assert r.json()["message"] == "2 accounts fetched successfully"
    assert all("password" not in u for u in r.json()["users"])

    r = await client.get("/user/recovery-email-accounts/none@jobs.com", headers=first["headers"])
    assert r.status_code == 404


async def _nobody(*args, **kwargs):
    return None


@pytest.mark.asyncio
async def test_sign_up_losing_unique_race_is_a_conflict(client, db, mailer, monkeypatch):
    first = signup_payload()
    assert (await client.post("/user/sign-up", json=first)).status_code == 201

    # the pre-check misses the concurrent insert; the unique index does not
    monkeypatch.setattr(users_repo, "get_user_by_email", _nobody)
    r = await client.post("/user/sign-up", json=signup_payload(email=first["email"]))
    assert r.status_code == 400
    assert r.json()["message"] == "Email already exists"
    assert await db["users"].count_documents({}) == 1
    assert len(mailer.outbox) == 1


@pytest.mark.asyncio
async def test_update_losing_unique_race_is_a_conflict(client, db, make_account, monkeypatch):
    first = await make_account()
    second = await make_account()

    monkeypatch.setattr(users_repo, "get_user_by_email", _nobody)
    r = await client.put("/user/update", json={"email": first["email"]}, headers=second["headers"])
    assert r.status_code == 400
    assert r.json()["message"] == "Email already exists"
    stored = await db["users"].find_one({"_id": ObjectId(second["id"])})
    assert stored["email"] == second["email"]


@pytest.mark.asyncio
async def test_deleting_an_applicant_withdraws_applications(client, db, make_account, make_company, make_job):
    hr = await make_account(role="Company_HR")
    await make_company(hr)
    job = await make_job(hr)
    applicant = await make_account()
    apply = {"userTechSkills": ["python"], "userSoftSkills": [], "userResume": "cv.pdf"}
    assert (await client.post(f"/job/apply/{job['id']}", json=apply, headers=applicant["headers"])).status_code == 201

    r = await client.delete("/user/delete", headers=applicant["headers"])
    assert r.status_code == 200
    assert await db["applications"].count_documents({}) == 0
    assert await db["jobs"].count_documents({}) == 1


@pytest.mark.asyncio
async def test_deleting_an_hr_account_removes_its_company(client, db, make_account, make_company, make_job):
    hr = await make_account(role="Company_HR")
    company = await make_company(hr)
    job = await make_job(hr)
    applicant = await make_account()
    apply = {"userTechSkills": ["python"], "userSoftSkills": [], "userResume": "cv.pdf"}
    await client.post(f"/job/apply/{job['id']}", json=apply, headers=applicant["headers"])

    r = await client.delete("/user/delete", headers=hr["headers"])
    assert r.status_code == 200
    assert await db["companies"].count_documents({"_id": ObjectId(company["id"])}) == 0
    assert await db["jobs"].count_documents({}) == 0
    assert await db["applications"].count_documents({}) == 0
    assert await db["users"].count_documents({"_id": ObjectId(applicant["id"])}) == 1

    # the name is free again for a new owner
    successor = await make_account(role="Company_HR")
    await make_company(successor, companyName=company["companyName"])
