from fastapi import APIRouter, Depends, HTTPException

from taskboard.auth.deps import get_auth_service
from taskboard.auth.profiles import load_profile
from taskboard.auth.service import AuthError, AuthService
from taskboard.rbac.deps import Principal, get_principal
from taskboard.rbac.perms import resolve
from taskboard.schemas.auth import IdentityOut, ProfileUpdateIn

router = APIRouter(prefix="/profile", tags=["profile"])

def _identity(principal: Principal) -> IdentityOut:
    return IdentityOut(
        id=principal.id,
        email=principal.email,
        name=principal.profile.full_name,
        role=principal.role,
        permissions=principal.permissions,
    )

@router.get("", response_model=IdentityOut)
def get_profile(principal: Principal = Depends(get_principal)) -> IdentityOut:
    return _identity(principal)

@router.patch("", response_model=IdentityOut)
def update_profile(
    payload: ProfileUpdateIn,
    principal: Principal = Depends(get_principal),
    auth: AuthService = Depends(get_auth_service),
) -> IdentityOut:
    try:
        user = auth.update_user(
            principal.user,
            email=payload.email,
            password=payload.password,
            full_name=payload.full_name,
        )
    except AuthError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)

    profile = load_profile(auth.db, user.id)
    return IdentityOut(
        id=str(user.id),
        email=user.email,
        name=profile.full_name,
        role=profile.role,
        permissions=resolve(profile.role),
    )
