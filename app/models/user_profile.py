from datetime import datetime
from sqlalchemy import String, Text, DateTime, func
from sqlalchemy.orm import Mapped, mapped_column

from app.db.base import Base


class UserProfileRecord(Base):
    __tablename__ = "user_profile"

    id: Mapped[str] = mapped_column(String(128), primary_key=True)
    name: Mapped[str] = mapped_column(String(256), nullable=False)
    pronouns: Mapped[str | None] = mapped_column(String(64), nullable=True)
    goals: Mapped[str | None] = mapped_column(
        Text, nullable=True,
        comment="JSON array of goal strings",
    )
    preferred_activities: Mapped[str | None] = mapped_column(
        Text, nullable=True,
        comment="JSON array of wellness activity strings",
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        onupdate=func.now(),
        nullable=False,
    )
