from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, HTTPException, Request, Response
from fastapi.security import HTTPAuthorizationCredentials

from taskboard.auth.deps import bearer, get_auth_service, get_identity_cache, session_token
from taskboard.auth.identity_cache import CachedIdentity, IdentityCache
from taskboard.auth.profiles import load_profile
from taskboard.auth.service import (
    EMAIL_NOT_CONFIRMED,
    INVALID_CREDENTIALS,
    TOKEN_EXPIRED,
    TOKEN_INVALID,
    TOKEN_USED,
    AuthError,
    AuthService,
)
from taskboard.config import settings
from taskboard.ratelimit import rate_limit
from taskboard.rbac.perms import resolve
from taskboard.realtime.deps import get_presence
from taskboard.realtime.presence import PresenceTracker, PresenceUser
from taskboard.schemas.auth import (
    ConfirmIn,
    IdentityOut,
    MessageOut,
    ResetConfirmIn,
    ResetRequestIn,
    ResetRequestOut,
    SessionOut,
    SignInIn,
    SignUpIn,
    SignUpOut,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/auth", tags=["auth"])

# what the sign-in form shows for the two errors people actually hit
SIGN_IN_MESSAGES = {
    INVALID_CREDENTIALS: "Invalid email or password. If you haven't registered yet, please sign up first.",
    EMAIL_NOT_CONFIRMED: (
        "Please confirm your email address before signing in. Check your inbox for a confirmation link."
    ),
}

RECOVERY_LINK_INVALID = "Recovery link is invalid or expired."
LINK_ERRORS = frozenset({TOKEN_INVALID, TOKEN_USED, TOKEN_EXPIRED})

def _bad_request(e: AuthError) -> HTTPException:
    return HTTPException(status_code=e.status_code, detail=e.message)

@router.get("/login", response_model=MessageOut)
def login_page() -> MessageOut:
    # redirect target for protected routes
    return MessageOut(message="Sign in required", redirect_to=f"{settings.base_url}/auth/sign-in")

@router.post("/sign-up", response_model=SignUpOut)
def sign_up(
    payload: SignUpIn,
    auth: AuthService = Depends(get_auth_service),
    _: None = Depends(
        rate_limit(
            "auth:sign_up",
            limit_per_window=settings.rate_limit_auth_sign_up_per_min,
            window_seconds=60,
        )
    ),
) -> SignUpOut:
    try:
        result = auth.sign_up(payload.email, payload.password, payload.full_name, payload.role)
    except AuthError as e:
        raise _bad_request(e)

    token = result.confirmation_token
    # confirmation links go out by email in prod; dev hands the token back
    return SignUpOut(
        user_id=result.user.id,
        email=result.user.email,
        confirmation_required=token is not None,
        token=token if settings.app_env != "prod" else None,
    )

@router.post("/confirm", response_model=MessageOut)
def confirm(payload: ConfirmIn, auth: AuthService = Depends(get_auth_service)) -> MessageOut:
    try:
        auth.confirm_email(payload.token)
    except AuthError as e:
        raise _bad_request(e)
    return MessageOut(message="Email confirmed. You can sign in now.", redirect_to="/auth/login")

@router.post("/sign-in", response_model=SessionOut)
def sign_in(
    payload: SignInIn,
    response: Response,
    auth: AuthService = Depends(get_auth_service),
    identity_cache: IdentityCache = Depends(get_identity_cache),
    presence: PresenceTracker = Depends(get_presence),
    _: None = Depends(
        rate_limit(
            "auth:sign_in",
            limit_per_window=settings.rate_limit_auth_sign_in_per_min,
            window_seconds=60,
        )
    ),
) -> SessionOut:
    try:
        result = auth.sign_in(payload.email, payload.password)
    except AuthError as e:
        logger.info("Sign-in failed: %s", e.message)
        raise HTTPException(status_code=400, detail=SIGN_IN_MESSAGES.get(e.message, e.message))

    user = result.user
    profile = load_profile(auth.db, user.id)
    identity = CachedIdentity(id=str(user.id), email=user.email, name=profile.full_name, role=profile.role)
    identity_cache.remember(identity)
    presence.join(PresenceUser(id=identity.id, name=identity.name, email=identity.email))

    response.set_cookie(
        settings.session_cookie_name,
        result.access_token,
        max_age=settings.jwt_expires_minutes * 60,
        httponly=True,
        samesite="lax",
        secure=settings.app_env == "prod",
    )
    return SessionOut(
        access_token=result.access_token,
        user=IdentityOut(**identity.model_dump(), permissions=resolve(profile.role)),
    )

@router.post("/sign-out", response_model=MessageOut)
def sign_out(
    request: Request,
    response: Response,
    creds: HTTPAuthorizationCredentials | None = Depends(bearer),
    auth: AuthService = Depends(get_auth_service),
    identity_cache: IdentityCache = Depends(get_identity_cache),
    presence: PresenceTracker = Depends(get_presence),
) -> MessageOut:
    token = session_token(request, creds)
    if token is not None:
        try:
            presence.leave(str(auth.get_user(token).id))
        except AuthError:
            # stale or foreign token: still clear the session below
            logger.debug("Sign-out with an invalid session token")

    identity_cache.forget()
    response.delete_cookie(settings.session_cookie_name)
    return MessageOut(message="Signed out", redirect_to="/auth/login")

@router.post("/reset-password/request", response_model=ResetRequestOut)
def request_password_reset(
    payload: ResetRequestIn,
    auth: AuthService = Depends(get_auth_service),
    _: None = Depends(
        rate_limit(
            "auth:reset",
            limit_per_window=settings.rate_limit_auth_reset_per_min,
            window_seconds=60,
        )
    ),
) -> ResetRequestOut:
    redirect_to = payload.redirect_to or f"{settings.base_url}/auth/reset-password"
    link = auth.reset_password_for_email(payload.email, redirect_to)

    # same answer for known and unknown addresses
    if settings.app_env == "prod":
        return ResetRequestOut(sent=True, link=None)
    return ResetRequestOut(sent=True, link=link)

@router.post("/reset-password/confirm", response_model=MessageOut)
def confirm_password_reset(payload: ResetConfirmIn, auth: AuthService = Depends(get_auth_service)) -> MessageOut:
    if payload.password != payload.confirm_password:
        raise HTTPException(status_code=400, detail="Passwords do not match.")

    try:
        auth.reset_password(payload.token, payload.password)
    except AuthError as e:
        if e.message in LINK_ERRORS:
            raise HTTPException(status_code=400, detail=RECOVERY_LINK_INVALID)
        raise _bad_request(e)

    return MessageOut(
        message="Password updated successfully. Redirecting to sign in…",
        redirect_to="/auth/login?reset=success",
    )
