import logging
import uuid
from dataclasses import dataclass

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from taskboard.models.enums import Role
from taskboard.models.profile import Profile

logger = logging.getLogger(__name__)

DEFAULT_NAME = "Demo User"
DEFAULT_ROLE = Role.user

@dataclass(frozen=True, slots=True)
class PrincipalProfile:
    full_name: str
    role: Role

DEFAULT_PROFILE = PrincipalProfile(full_name=DEFAULT_NAME, role=DEFAULT_ROLE)

def load_profile(db: Session, user_id: uuid.UUID) -> PrincipalProfile:
    """
    Name and role for a user. A missing row or a failed lookup yields the
    default profile; neither is an error for the caller.
    """
    try:
        row = db.get(Profile, user_id)
    except SQLAlchemyError:
        logger.warning("Profile fetch error user_id=%s", user_id, exc_info=True)
        db.rollback()
        return DEFAULT_PROFILE

    if row is None:
        return DEFAULT_PROFILE

    return PrincipalProfile(full_name=row.full_name or DEFAULT_NAME, role=Role.normalize(row.role))
