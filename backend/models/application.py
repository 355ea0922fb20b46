from datetime import datetime
from uuid import uuid4
from sqlalchemy import DateTime, Index, text
from sqlalchemy.orm import Mapped, mapped_column
from database import Model
from utils.dates import utcnow




class ApplicationOrm(Model):
    __tablename__ = "applications"
    __table_args__ = (
        # no máximo uma candidatura não cancelada por par evento/voluntário
        Index(
            "uq_applications_active_pair",
            "event_id",
            "volunteer_id",
            unique=True,
            sqlite_where=text("status != 'cancelled'"),
            postgresql_where=text("status != 'cancelled'"),
        ),
    )
    
    id: Mapped[str] = mapped_column(primary_key=True, default=lambda: str(uuid4()))
    event_id: Mapped[str] = mapped_column(nullable=False, index=True)
    volunteer_id: Mapped[str] = mapped_column(nullable=False, index=True)
    status: Mapped[str] = mapped_column(nullable=False, default="pending")  # pending, approved, rejected, cancelled
    message: Mapped[str] = mapped_column(nullable=True)
    attachment_path: Mapped[str] = mapped_column(nullable=True)
    attachment_name: Mapped[str] = mapped_column(nullable=True)
    attachment_mime_type: Mapped[str] = mapped_column(nullable=True)
    attachment_size_bytes: Mapped[int] = mapped_column(nullable=True)
    applied_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow)
    # incrementada em cada transição; predicado do update condicional
    version: Mapped[int] = mapped_column(nullable=False, default=0)
