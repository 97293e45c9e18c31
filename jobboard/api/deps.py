# jobboard/api/deps.py
"""Request authentication and route-level authorization.

``get_current_account`` resolves the bearer token to an account snapshot;
``require_roles`` wraps it with an allow-set check. Routes declare their
allow-set when they are composed, e.g.::

    account: AuthenticatedAccount = Depends(require_roles(roles.COMPANY_HR))

Routers built with ``route_class=AuthenticatedRoute`` run the same checks
before the request body is read, so a malformed body from an anonymous
caller is still a 401.
"""
import logging
from typing import Callable, Optional, Tuple

from fastapi import Depends, Request, Response
from fastapi.dependencies.models import Dependant
from fastapi.routing import APIRoute
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from pydantic import BaseModel, ConfigDict

from jobboard.core.config import Settings
from jobboard.core.errors import Forbidden, Unauthenticated
from jobboard.core.roles import AllowSet, Role, is_allowed
from jobboard.core.security import PasswordHasher
from jobboard.db.mongo import get_db
from jobboard.repositories.common import parse_object_id
from jobboard.repositories.users import get_user
from jobboard.services.mailer import Mailer
from jobboard.services.tokens import TokenPurpose, TokenService

logger = logging.getLogger(__name__)

_bearer = HTTPBearer(auto_error=False)


class AuthenticatedAccount(BaseModel):
    """Immutable view of the caller, valid for one request."""

    model_config = ConfigDict(frozen=True)

    id: str
    role: Role
    is_confirmed: bool = False


def get_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_tokens(request: Request) -> TokenService:
    return request.app.state.tokens


def get_hasher(request: Request) -> PasswordHasher:
    return request.app.state.hasher


def get_mailer(request: Request) -> Mailer:
    return request.app.state.mailer


async def authenticate(
    credentials: Optional[HTTPAuthorizationCredentials], tokens: TokenService, db
) -> AuthenticatedAccount:
    if credentials is None or not credentials.credentials:
        raise Unauthenticated("Please login first", reason="missing_bearer")

    subject = tokens.verify(credentials.credentials, TokenPurpose.LOGIN)

    user_id = parse_object_id(subject)
    if user_id is None:
        raise Unauthenticated("Invalid token payload", reason="subject_not_object_id")

    user = await get_user(db, user_id)
    if user is None:
        raise Unauthenticated("Please signUp first", reason="account_missing", account_id=subject)

    try:
        role = Role(user.get("role"))
    except ValueError:
        raise Unauthenticated(reason="unknown_role", account_id=subject)

    return AuthenticatedAccount(id=str(user["_id"]), role=role, is_confirmed=bool(user.get("isConfirmed")))


def authorize(account: AuthenticatedAccount, allowed: AllowSet) -> AuthenticatedAccount:
    if not is_allowed(account.role, allowed):
        raise Forbidden(
            description="You are not allowed to access this resource",
            account_id=account.id,
            role=account.role.value,
            allowed=sorted(r.value for r in allowed),
        )
    return account


async def get_current_account(
    request: Request,
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(_bearer),
    tokens: TokenService = Depends(get_tokens),
    db=Depends(get_db),
) -> AuthenticatedAccount:
    # already resolved by AuthenticatedRoute for this request
    account = getattr(request.state, "account", None)
    if account is not None:
        return account
    return await authenticate(credentials, tokens, db)


def require_roles(allowed: AllowSet):
    """Build a dependency that authenticates, then checks ``role in allowed``."""

    async def _authorize(account: AuthenticatedAccount = Depends(get_current_account)) -> AuthenticatedAccount:
        return authorize(account, allowed)

    _authorize.allow_set = allowed
    return _authorize


def _account_guard(dependant: Dependant) -> Tuple[bool, Optional[AllowSet]]:
    """Whether ``dependant`` needs a caller, and the allow-set it declares."""
    for sub in dependant.dependencies:
        allowed = getattr(sub.call, "allow_set", None)
        if allowed is not None:
            return True, allowed
        if sub.call is get_current_account:
            return True, None
        needed, allowed = _account_guard(sub)
        if needed:
            return needed, allowed
    return False, None


class AuthenticatedRoute(APIRoute):
    """Route that authenticates (and authorizes) ahead of body parsing.

    Routes without an account dependency are served unchanged.
    """

    def get_route_handler(self) -> Callable:
        handler = super().get_route_handler()
        needed, allowed = _account_guard(self.dependant)
        if not needed:
            return handler

        async def guarded_handler(request: Request) -> Response:
            state = request.app.state
            account = await authenticate(await _bearer(request), state.tokens, state.db)
            if allowed is not None:
                authorize(account, allowed)
            request.state.account = account
            return await handler(request)

        return guarded_handler
