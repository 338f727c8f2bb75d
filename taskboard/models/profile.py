import uuid
from datetime import datetime

from sqlalchemy import DateTime, ForeignKey, String, Uuid, func
from sqlalchemy.orm import Mapped, mapped_column

from taskboard.db import Base

class Profile(Base):
    __tablename__ = "profiles"

    user_id: Mapped[uuid.UUID] = mapped_column(Uuid, ForeignKey("users.id"), primary_key=True)

    full_name: Mapped[str] = mapped_column(String(200), nullable=False, default="")

    # kept as plain text: rows may carry roles this app doesn't know, normalized on read
    role: Mapped[str] = mapped_column(String(32), nullable=False, default="guest")

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )
