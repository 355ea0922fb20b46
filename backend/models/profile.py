from datetime import datetime
from uuid import uuid4
from sqlalchemy import DateTime
from sqlalchemy.orm import Mapped, mapped_column
from database import Model
from utils.dates import utcnow




class ProfileOrm(Model):
    __tablename__ = "profiles"
    
    id: Mapped[str] = mapped_column(primary_key=True, default=lambda: str(uuid4()))
    name: Mapped[str] = mapped_column(nullable=False)
    email: Mapped[str] = mapped_column(nullable=True)
    type: Mapped[str] = mapped_column(nullable=False, default="volunteer")  # volunteer, organization
    stats_events_held: Mapped[int] = mapped_column(default=0)
    stats_volunteers_impacted: Mapped[int] = mapped_column(default=0)
    stats_hours_contributed: Mapped[int] = mapped_column(default=0)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow)
