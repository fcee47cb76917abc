from datetime import datetime
from sqlalchemy import Integer, String, DateTime, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column
from dashboard.db.base import Base


class PullRequest(Base):
    __tablename__ = "pull_requests"
    __table_args__ = (
        UniqueConstraint("repository", "pull_request_number", name="uq_pull_request_repo_number"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, index=True)

    pull_request_number: Mapped[int] = mapped_column(Integer, nullable=False)
    # "owner/repo"
    repository: Mapped[str] = mapped_column(String(255), nullable=False, index=True)

    created_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=datetime.utcnow)
