import uuid
from pydantic import BaseModel, EmailStr

from taskboard.models.enums import Role
from taskboard.rbac.perms import PermissionSet

class SignUpIn(BaseModel):
    email: EmailStr
    password: str
    full_name: str = ""
    role: str | None = None

class SignUpOut(BaseModel):
    user_id: uuid.UUID
    email: str
    confirmation_required: bool
    token: str | None = None

class ConfirmIn(BaseModel):
    token: str

class SignInIn(BaseModel):
    email: EmailStr
    password: str

class IdentityOut(BaseModel):
    id: str
    email: str
    name: str
    role: Role
    permissions: PermissionSet

class SessionOut(BaseModel):
    access_token: str
    token_type: str = "bearer"
    redirect_to: str = "/dashboard"
    user: IdentityOut

class ResetRequestIn(BaseModel):
    email: EmailStr
    redirect_to: str | None = None

class ResetRequestOut(BaseModel):
    sent: bool = True
    link: str | None = None

class ResetConfirmIn(BaseModel):
    token: str
    password: str
    confirm_password: str

class MessageOut(BaseModel):
    message: str
    redirect_to: str | None = None

class ProfileUpdateIn(BaseModel):
    email: EmailStr | None = None
    password: str | None = None
    full_name: str | None = None
