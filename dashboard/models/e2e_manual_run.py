from datetime import datetime
from sqlalchemy import Integer, String, DateTime, ForeignKey
from sqlalchemy.orm import Mapped, mapped_column, relationship
from dashboard.db.base import Base


class E2EManualRun(Base):
    __tablename__ = "e2e_manual_runs"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, index=True)

    app_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("apps.id", ondelete="CASCADE"),
        nullable=False, index=True
    )
    pipeline_id: Mapped[str] = mapped_column(String(100), nullable=False)

    created_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=datetime.utcnow, index=True)

    app = relationship("Application", back_populates="manual_runs")
