from datetime import datetime
from sqlalchemy import String, Text, DateTime, func
from sqlalchemy.orm import Mapped, mapped_column

from app.db.base import Base


class CalendarRecord(Base):
    """
    One row per identity holding the whole calendar as a JSON array.

    Key-value by design: the store always reads and writes the full sequence.
    """

    __tablename__ = "calendar"

    user_id: Mapped[str] = mapped_column(String(128), primary_key=True)
    data: Mapped[str] = mapped_column(Text, nullable=False, comment="JSON array of calendar days")
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        onupdate=func.now(),
        nullable=False,
    )
