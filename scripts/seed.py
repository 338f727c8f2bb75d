import os
from dataclasses import dataclass

from sqlalchemy import select
from sqlalchemy.orm import Session

from taskboard.auth.passwords import hash_password
from taskboard.auth.tokens import now_utc
from taskboard.db import SessionLocal, init_db
from taskboard.models.enums import Role
from taskboard.models.profile import Profile
from taskboard.models.user import User

# the people the sample board refers to
DEMO_USERS: list[tuple[str, str, Role]] = [
    ("admin@example.com", "Admin User", Role.user),
    ("manager@example.com", "Manager User", Role.user),
    ("user@example.com", "Regular User", Role.user),
    ("guest@example.com", "Guest User", Role.guest),
]

@dataclass
class SeedResult:
    created: list[str]
    existing: list[str]

def get_or_create_user(db: Session, email: str, password: str) -> tuple[User, bool]:
    email = email.lower().strip()
    u = db.scalar(select(User).where(User.email == email))
    if u is not None:
        return u, False

    u = User(email=email, password_hash=hash_password(password), email_confirmed_at=now_utc())
    db.add(u)
    db.flush()
    return u, True

def get_or_create_profile(db: Session, user: User, full_name: str, role: Role) -> Profile:
    p = db.get(Profile, user.id)
    if p is None:
        p = Profile(user_id=user.id, full_name=full_name, role=role.value)
        db.add(p)
        db.flush()
    elif p.role != role.value:
        p.role = role.value
        db.add(p)
        db.flush()
    return p

def seed_demo_users(db: Session, password: str) -> SeedResult:
    result = SeedResult(created=[], existing=[])
    for email, name, role in DEMO_USERS:
        user, created = get_or_create_user(db, email, password)
        get_or_create_profile(db, user, name, role)
        (result.created if created else result.existing).append(email)
    db.commit()
    return result

def main() -> None:
    password = os.environ.get("SEED_PASSWORD", "password123")
    init_db()
    with SessionLocal() as db:
        res = seed_demo_users(db, password)

    print("seeded demo users")
    for email in res.created:
        print(f"  created  {email}")
    for email in res.existing:
        print(f"  existing {email}")
    print(f"password: {password}")

if __name__ == "__main__":
    main()
