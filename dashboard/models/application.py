from datetime import datetime

from sqlalchemy import String, Integer, DateTime, Boolean, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from dashboard.db.base import Base


class Application(Base):
    __tablename__ = "apps"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, index=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False, index=True)
    code: Mapped[str] = mapped_column(String(100), unique=True, nullable=False, index=True)
    pipeline_url: Mapped[str | None] = mapped_column(String(500), nullable=True)
    # Raw JSON body posted to CircleCI when a manual run is triggered
    e2e_trigger_configuration: Mapped[str | None] = mapped_column(Text, nullable=True)
    watching: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False, index=True)

    created_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=datetime.utcnow)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime, nullable=False, default=datetime.utcnow, onupdate=datetime.utcnow
    )

    manual_runs = relationship(
        "E2EManualRun", back_populates="app", cascade="all, delete-orphan", passive_deletes=True
    )
    report_details = relationship(
        "E2EReportDetail", back_populates="app", cascade="all, delete-orphan", passive_deletes=True
    )
