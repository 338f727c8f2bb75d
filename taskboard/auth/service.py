from __future__ import annotations

import logging
import uuid
from dataclasses import dataclass
from urllib.parse import urlencode

from sqlalchemy import select, update
from sqlalchemy.orm import Session

from taskboard.auth.passwords import hash_password, verify_password
from taskboard.auth.tokens import (
    as_utc,
    decode_access_token,
    hash_link_token,
    issue_access_token,
    link_expiry,
    new_link_token,
    now_utc,
)
from taskboard.config import settings
from taskboard.models.auth_token import AuthToken
from taskboard.models.enums import Role, TokenPurpose
from taskboard.models.profile import Profile
from taskboard.models.user import User

logger = logging.getLogger(__name__)

INVALID_CREDENTIALS = "Invalid login credentials"
EMAIL_NOT_CONFIRMED = "Email not confirmed"
ALREADY_REGISTERED = "User already registered"
TOKEN_INVALID = "invalid token"
TOKEN_USED = "token already used"
TOKEN_EXPIRED = "token expired"

class AuthError(Exception):
    def __init__(self, message: str, status_code: int = 400) -> None:
        super().__init__(message)
        self.message = message
        self.status_code = status_code

@dataclass
class SignUpResult:
    user: User
    confirmation_token: str | None

@dataclass
class SignInResult:
    user: User
    access_token: str

def normalize_email(email: str) -> str:
    return email.lower().strip()

class AuthService:
    """
    Email/password accounts over the users/profiles tables.

    Confirmation and recovery links are single-use hashed tokens with an
    expiry; the raw token only ever leaves through the return value.
    """

    def __init__(self, db: Session) -> None:
        self.db = db

    def _find(self, email: str) -> User | None:
        return self.db.scalar(select(User).where(User.email == normalize_email(email)))

    def _check_password(self, password: str) -> None:
        if len(password) < settings.password_min_length:
            raise AuthError(f"Password should be at least {settings.password_min_length} characters")

    def _issue_link(self, user_id: uuid.UUID, purpose: TokenPurpose, minutes: int) -> str:
        token = new_link_token()
        self.db.add(
            AuthToken(
                token_hash=hash_link_token(token),
                user_id=user_id,
                purpose=purpose,
                expires_at=link_expiry(minutes),
                used_at=None,
            )
        )
        return token

    def _consume_link(self, token: str, purpose: TokenPurpose) -> User:
        token_hash = hash_link_token(token.strip())
        now = now_utc()

        # atomic single-use + expiry gate
        stmt = (
            update(AuthToken)
            .where(AuthToken.token_hash == token_hash)
            .where(AuthToken.purpose == purpose)
            .where(AuthToken.used_at.is_(None))
            .where(AuthToken.expires_at > now)
            .values(used_at=now)
            .execution_options(synchronize_session=False)
        )
        result = self.db.execute(stmt)

        row = self.db.get(AuthToken, token_hash)
        if result.rowcount != 1:
            self.db.rollback()
            if row is None or row.purpose != purpose:
                raise AuthError(TOKEN_INVALID)
            if row.used_at is not None:
                raise AuthError(TOKEN_USED)
            if as_utc(row.expires_at) <= now:
                raise AuthError(TOKEN_EXPIRED)
            raise AuthError(TOKEN_INVALID)

        user = self.db.get(User, row.user_id) if row is not None else None
        if user is None:
            self.db.rollback()
            raise AuthError(TOKEN_INVALID)
        return user

    # ---- public API ----

    def sign_up(self, email: str, password: str, full_name: str, role: Role | str = Role.guest) -> SignUpResult:
        email = normalize_email(email)
        self._check_password(password)
        if self._find(email) is not None:
            raise AuthError(ALREADY_REGISTERED)

        user = User(email=email, password_hash=hash_password(password))
        if settings.auto_confirm_email:
            user.email_confirmed_at = now_utc()
        self.db.add(user)
        self.db.flush()

        self.db.add(Profile(user_id=user.id, full_name=full_name.strip(), role=Role.normalize(role).value))

        token = None
        if user.email_confirmed_at is None:
            token = self._issue_link(user.id, TokenPurpose.confirm, settings.confirm_token_expires_minutes)

        self.db.commit()
        logger.info("User signed up id=%s confirmed=%s", user.id, token is None)
        return SignUpResult(user=user, confirmation_token=token)

    def confirm_email(self, token: str) -> User:
        user = self._consume_link(token, TokenPurpose.confirm)
        if user.email_confirmed_at is None:
            user.email_confirmed_at = now_utc()
            self.db.add(user)
        self.db.commit()
        logger.info("Email confirmed user_id=%s", user.id)
        return user

    def sign_in(self, email: str, password: str) -> SignInResult:
        user = self._find(email)
        if user is None or not verify_password(password, user.password_hash):
            raise AuthError(INVALID_CREDENTIALS)
        if user.email_confirmed_at is None:
            raise AuthError(EMAIL_NOT_CONFIRMED)
        return SignInResult(user=user, access_token=issue_access_token(user.id))

    def get_user(self, access_token: str) -> User:
        try:
            payload = decode_access_token(access_token)
            user_id = uuid.UUID(payload["sub"])
        except Exception:
            raise AuthError("invalid token", status_code=401)

        user = self.db.get(User, user_id)
        if user is None:
            raise AuthError("user not found", status_code=401)
        return user

    def update_user(
        self,
        user: User,
        *,
        email: str | None = None,
        password: str | None = None,
        full_name: str | None = None,
    ) -> User:
        if email is not None:
            email = normalize_email(email)
            if email != user.email:
                other = self._find(email)
                if other is not None and other.id != user.id:
                    raise AuthError("A user with this email address has already been registered")
                user.email = email

        if password is not None:
            self._check_password(password)
            user.password_hash = hash_password(password)

        if full_name is not None:
            profile = self.db.get(Profile, user.id)
            if profile is None:
                profile = Profile(user_id=user.id, full_name=full_name.strip(), role=Role.guest.value)
            else:
                profile.full_name = full_name.strip()
            self.db.add(profile)

        self.db.add(user)
        self.db.commit()
        self.db.refresh(user)
        return user

    def reset_password_for_email(self, email: str, redirect_to: str) -> str | None:
        """
        Issue a recovery link for `email`. Unknown addresses return None
        without an error, so callers can't probe for accounts.
        """
        user = self._find(email)
        if user is None:
            logger.info("Password reset requested for unknown email")
            return None

        token = self._issue_link(user.id, TokenPurpose.recovery, settings.recovery_token_expires_minutes)
        self.db.commit()
        sep = "&" if "?" in redirect_to else "?"
        return f"{redirect_to}{sep}{urlencode({'token': token})}"

    def reset_password(self, token: str, password: str) -> User:
        self._check_password(password)
        user = self._consume_link(token, TokenPurpose.recovery)
        user.password_hash = hash_password(password)
        self.db.add(user)
        self.db.commit()
        logger.info("Password reset user_id=%s", user.id)
        return user
