# backend/app/routes/v1/auth.py
"""
Authentication routes - API v1

Versioned auth endpoints under /api/v1/auth. Responses never reveal
whether an email address belongs to an account.

Endpoints:
    POST /register - Password registration (customer or studio owner)
    POST /login - Password login, sets the session cookie
    POST /logout - End the current session
    GET /me - Current user with effective roles and permissions
    POST /magic-link/request - Mail a one-time sign-in link
    POST /magic-link/verify - Redeem a magic link from the SPA
    GET /magic-link/verify - Redeem a magic link clicked in an email
    GET /verify-email - Confirm email ownership
"""

import asyncio
import logging
from typing import Optional
from urllib.parse import quote

from fastapi import APIRouter, Depends, Query, Request, Response, status
from fastapi.responses import RedirectResponse

from ...api.dependencies import get_auth_service, get_current_user
from ...auth import extract_session_token
from ...core.config import settings
from ...core.exceptions import DomainException, NotFoundException, ValidationException
from ...dependencies.permissions import get_permission_service
from ...models.user import User
from ...ratelimit import AUTH, MAGIC_LINK, rate_limit
from ...schemas.auth import (
    AuthResponse,
    LoginRequest,
    LoginResponse,
    MagicLinkRequest,
    MagicLinkResponse,
    MagicLinkVerifyRequest,
    MeResponse,
    MessageResponse,
    RegisterRequest,
    UserResponse,
)
from ...services.auth_service import MAGIC_LINK_SENT, AuthService
from ...services.permission_service import PermissionService
from ...utils.cookies import clear_session_cookie, set_session_cookie

logger = logging.getLogger(__name__)

# V1 router - no prefix here, will be added when mounting in main.py
router = APIRouter(tags=["auth-v1"])

DEFAULT_CALLBACK_PATH = "/dashboard"


def _frontend_redirect(path: str) -> RedirectResponse:
    return RedirectResponse(
        url=f"{settings.frontend_url.rstrip('/')}{path}",
        status_code=status.HTTP_307_TEMPORARY_REDIRECT,
    )


def _safe_callback(callback_url: Optional[str]) -> str:
    """Only same-site relative paths are honoured as post-login targets."""
    if not callback_url or not callback_url.startswith("/") or callback_url.startswith("//"):
        return DEFAULT_CALLBACK_PATH
    return callback_url


@router.post(
    "/register",
    response_model=AuthResponse,
    status_code=status.HTTP_201_CREATED,
    dependencies=[Depends(rate_limit(AUTH))],
)
async def register(
    request: Request,
    payload: RegisterRequest,
    auth_service: AuthService = Depends(get_auth_service),
) -> AuthResponse:
    """
    Register a new password account.

    Customers need 8+ characters; studio owners need a strong password.
    A taken email yields the same generic 400 as any other rejection.
    """
    try:
        user = await asyncio.to_thread(
            auth_service.register_user,
            email=payload.email,
            password=payload.password,
            name=payload.name,
            phone=payload.phone,
            role=payload.role,
            request=request,
        )
    except DomainException as e:
        raise e.to_http_exception()

    return AuthResponse(
        user=UserResponse.model_validate(user),
        message="Registration successful. Please check your inbox to verify your email address.",
    )


@router.post("/login", response_model=LoginResponse, dependencies=[Depends(rate_limit(AUTH))])
async def login(
    request: Request,
    response: Response,
    payload: LoginRequest,
    auth_service: AuthService = Depends(get_auth_service),
) -> LoginResponse:
    try:
        grant = await asyncio.to_thread(auth_service.login, payload.email, payload.password, request)
    except DomainException as e:
        raise e.to_http_exception()

    set_session_cookie(response, grant.token, max_age=grant.max_age)
    return LoginResponse(user=UserResponse.model_validate(grant.user), session_token=grant.token)


@router.post("/logout", response_model=MessageResponse)
async def logout(
    request: Request,
    response: Response,
    auth_service: AuthService = Depends(get_auth_service),
) -> MessageResponse:
    await asyncio.to_thread(auth_service.logout, extract_session_token(request), request)
    clear_session_cookie(response)
    return MessageResponse(message="Signed out")


@router.get("/me", response_model=MeResponse)
async def read_users_me(
    current_user: User = Depends(get_current_user),
    permission_service: PermissionService = Depends(get_permission_service),
) -> MeResponse:
    """Current user with effective roles and the union of their permissions."""
    permissions = sorted(p.value for p in permission_service.permissions_for_user(current_user))
    me = MeResponse.model_validate(current_user)
    return me.model_copy(update={"permissions": permissions})


@router.post(
    "/magic-link/request",
    response_model=MagicLinkResponse,
    dependencies=[Depends(rate_limit(MAGIC_LINK))],
)
async def request_magic_link(
    payload: MagicLinkRequest,
    auth_service: AuthService = Depends(get_auth_service),
) -> MagicLinkResponse:
    url = await asyncio.to_thread(auth_service.request_magic_link, payload.email, payload.callback_url)
    return MagicLinkResponse(
        message=MAGIC_LINK_SENT,
        magic_link=None if settings.is_production else url,
    )


@router.post("/magic-link/verify", response_model=LoginResponse)
async def verify_magic_link(
    request: Request,
    response: Response,
    payload: MagicLinkVerifyRequest,
    auth_service: AuthService = Depends(get_auth_service),
) -> LoginResponse:
    try:
        email = await asyncio.to_thread(auth_service.verify_magic_link, payload.token)
        if email is None:
            raise ValidationException("Invalid or expired sign-in link", code="INVALID_TOKEN")
        grant = await asyncio.to_thread(auth_service.sign_in_with_email, email, request)
        if grant is None:
            raise NotFoundException("User not found", code="USER_NOT_FOUND")
    except DomainException as e:
        raise e.to_http_exception()

    set_session_cookie(response, grant.token, max_age=grant.max_age)
    return LoginResponse(user=UserResponse.model_validate(grant.user), session_token=grant.token)


@router.get("/magic-link/verify", response_class=RedirectResponse)
async def verify_magic_link_redirect(
    request: Request,
    token: str = Query(..., min_length=1),
    callback_url: Optional[str] = Query(None, alias="callbackUrl"),
    auth_service: AuthService = Depends(get_auth_service),
) -> RedirectResponse:
    """Email-click flow: always answers with a 307 to the frontend."""
    email = await asyncio.to_thread(auth_service.verify_magic_link, token)
    if email is None:
        return _frontend_redirect("/auth/magic-link-expired")

    grant = await asyncio.to_thread(auth_service.sign_in_with_email, email, request)
    if grant is None:
        return _frontend_redirect("/auth/error?error=UserNotFound")

    target = _safe_callback(callback_url)
    redirect = _frontend_redirect(
        f"/auth/signin?email={quote(email, safe='')}&verified=true&callbackUrl={quote(target, safe='')}"
    )
    set_session_cookie(redirect, grant.token, max_age=grant.max_age)
    return redirect


@router.get("/verify-email", response_model=AuthResponse)
async def verify_email(
    request: Request,
    token: str = Query(..., min_length=1),
    auth_service: AuthService = Depends(get_auth_service),
) -> AuthResponse:
    try:
        user = await asyncio.to_thread(auth_service.verify_email, token, request)
    except DomainException as e:
        raise e.to_http_exception()
    return AuthResponse(user=UserResponse.model_validate(user), message="Email address verified")
