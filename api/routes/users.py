"""
api/routes/users.py -- Registration, login, and user record endpoints.

Routes:
  POST   /register      -- create an account (public)
  POST   /login         -- password login; returns a user-audience token (public)
  GET    /              -- list every user (admin-audience token)
  GET    /{user_id}     -- fetch one user (user-audience token)
  PATCH  /{user_id}     -- partial update; token email must equal body email
  DELETE /{user_id}     -- remove a user (user-audience token)

Response conventions:
  /register and /login always answer 200 and report failures inside the body
  ({"status": "error", ...}); existing clients parse those bodies.
  The record endpoints use status codes via the AccountError handler in
  api/main.py.

build_router() returns a fresh APIRouter per application so the login rate
limit is bound to that application's Limiter.
"""

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse, PlainTextResponse
from slowapi import Limiter

from accounts.service import AccountService
from api.models import LoginRequest, LoginResult, RegisterFailure, RegisterRequest, UserPatch, UserRecord, UserResponse
from auth.dependencies import bearer_token, get_accounts
from core.errors import AccountError, ErrorKind

# ---------------------------------------------------------------------------
# Public endpoints
# ---------------------------------------------------------------------------


def register(body: RegisterRequest, accounts: AccountService = Depends(get_accounts)):
    """Create an account. A duplicate email is reported in a 200 body."""
    try:
        accounts.register(body.name, body.email, body.password)
    except AccountError as exc:
        if exc.kind is not ErrorKind.CONFLICT:
            raise
        return JSONResponse(content=RegisterFailure(error="Duplicate email").model_dump())
    return PlainTextResponse("User Added to the Database")


def login(request: Request, body: LoginRequest, accounts: AccountService = Depends(get_accounts)) -> JSONResponse:
    """Exchange email and password for a user-audience token.

    Unknown email and wrong password keep their historical body shapes:
    {"status": "error", "error": "Invalid Login"} and
    {"status": "error", "user": false}.
    """
    try:
        token = accounts.login(body.email, body.password)
    except AccountError as exc:
        if exc.kind is not ErrorKind.INVALID_CREDENTIALS:
            raise
        if exc.reason == "password_mismatch":
            result = LoginResult(status="error", user=False)
        else:
            result = LoginResult(status="error", error="Invalid Login")
    else:
        result = LoginResult(status="Ok", user=token)

    resp = JSONResponse(content=result.model_dump(exclude_none=True))
    resp.headers["Cache-Control"] = "no-store"
    return resp


# ---------------------------------------------------------------------------
# Token-gated endpoints
# ---------------------------------------------------------------------------


def list_users(
    request: Request,
    token: str | None = Depends(bearer_token),
    accounts: AccountService = Depends(get_accounts),
) -> list[UserRecord]:
    """List every account. Requires an admin-audience token."""
    include_hash = request.app.state.settings.list_exposes_password_hash
    return [UserRecord.from_user(u, include_hash=include_hash) for u in accounts.list_all(token)]


def get_user(
    user_id: str,
    token: str | None = Depends(bearer_token),
    accounts: AccountService = Depends(get_accounts),
) -> UserResponse:
    return UserResponse.from_user(accounts.get_by_id(token, user_id))


def update_user(
    user_id: str,
    body: UserPatch,
    token: str | None = Depends(bearer_token),
    accounts: AccountService = Depends(get_accounts),
) -> UserResponse:
    """Apply a partial update. Only fields present in the body are written."""
    fields = body.model_dump(exclude_unset=True)
    return UserResponse.from_user(accounts.update(token, user_id, fields))


def delete_user(
    user_id: str,
    token: str | None = Depends(bearer_token),
    accounts: AccountService = Depends(get_accounts),
) -> UserResponse:
    """Remove an account and return the record as it was before deletion."""
    return UserResponse.from_user(accounts.delete(token, user_id))


# ---------------------------------------------------------------------------
# Router assembly
# ---------------------------------------------------------------------------


def build_router(limiter: Limiter, login_rate_limit: str) -> APIRouter:
    router = APIRouter()
    router.add_api_route("/register", register, methods=["POST"])
    router.add_api_route("/login", limiter.limit(login_rate_limit)(login), methods=["POST"])
    router.add_api_route(
        "/",
        list_users,
        methods=["GET"],
        response_model=list[UserRecord],
        response_model_exclude_none=True,
    )
    router.add_api_route("/{user_id}", get_user, methods=["GET"], response_model=UserResponse)
    router.add_api_route("/{user_id}", update_user, methods=["PATCH"], response_model=UserResponse)
    router.add_api_route("/{user_id}", delete_user, methods=["DELETE"], response_model=UserResponse)
    return router
