import enum
from datetime import date as calendar_date, datetime

from sqlalchemy import (
    Integer, String, DateTime, Date, ForeignKey, Numeric, UniqueConstraint
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from dashboard.db.base import Base


class ReportStatus(str, enum.Enum):
    pending = "pending"
    ready = "ready"
    failed = "failed"


class E2EReportSummary(Base):
    __tablename__ = "e2e_report_summaries"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, index=True)
    date: Mapped[calendar_date] = mapped_column(Date, unique=True, nullable=False, index=True)
    status: Mapped[str] = mapped_column(String(20), nullable=False, default=ReportStatus.pending.value)

    total_runs: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    passed_runs: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    failed_runs: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    success_rate: Mapped[float] = mapped_column(Numeric(5, 4, asdecimal=False), nullable=False, default=0)

    created_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=datetime.utcnow)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime, nullable=False, default=datetime.utcnow, onupdate=datetime.utcnow
    )

    details = relationship(
        "E2EReportDetail",
        back_populates="summary",
        cascade="all, delete-orphan",
        passive_deletes=True,
        order_by="E2EReportDetail.app_id",
    )


class E2EReportDetail(Base):
    __tablename__ = "e2e_report_details"
    __table_args__ = (
        UniqueConstraint("report_summary_id", "app_id", name="uq_e2e_report_detail_summary_app"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, index=True)

    report_summary_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("e2e_report_summaries.id", ondelete="CASCADE"),
        nullable=False, index=True
    )
    app_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("apps.id", ondelete="CASCADE"),
        nullable=False, index=True
    )

    total_runs: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    passed_runs: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    failed_runs: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    success_rate: Mapped[float] = mapped_column(Numeric(5, 4, asdecimal=False), nullable=False, default=0)

    last_run_status: Mapped[str] = mapped_column(String(20), nullable=False)
    last_failed_run_at: Mapped[datetime | None] = mapped_column(DateTime, nullable=True)
    last_run_at: Mapped[datetime] = mapped_column(DateTime, nullable=False)

    created_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=datetime.utcnow)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime, nullable=False, default=datetime.utcnow, onupdate=datetime.utcnow
    )

    summary = relationship("E2EReportSummary", back_populates="details")
    app = relationship("Application", back_populates="report_details")
