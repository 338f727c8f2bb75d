from fastapi import Depends, HTTPException, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.orm import Session

from taskboard.auth.identity_cache import IdentityCache
from taskboard.auth.service import AuthError, AuthService
from taskboard.config import settings
from taskboard.db import get_db
from taskboard.models.user import User

bearer = HTTPBearer(auto_error=False)

def get_auth_service(db: Session = Depends(get_db)) -> AuthService:
    return AuthService(db)

def get_identity_cache(request: Request) -> IdentityCache:
    return request.app.state.identity_cache

def session_token(request: Request, creds: HTTPAuthorizationCredentials | None) -> str | None:
    # an explicit bearer header wins over the browser's session cookie
    if creds is not None and creds.scheme.lower() == "bearer":
        return creds.credentials
    return request.cookies.get(settings.session_cookie_name) or None

def get_current_user(
    request: Request,
    creds: HTTPAuthorizationCredentials | None = Depends(bearer),
    auth: AuthService = Depends(get_auth_service),
) -> User:
    token = session_token(request, creds)
    if token is None:
        raise HTTPException(status_code=401, detail="missing session")

    try:
        return auth.get_user(token)
    except AuthError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)
