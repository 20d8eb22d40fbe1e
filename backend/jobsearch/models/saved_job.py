"""
SavedJob Model - a user's bookmark of one job candidate

Status Flow:
    interested → applied → interviewing → offer/rejected
"""

from sqlalchemy import Column, String, Text, DateTime, ForeignKey
from sqlalchemy.orm import relationship
from jobsearch.database import Base, utcnow
import uuid

SAVED_JOB_STATUSES = ("interested", "applied", "interviewing", "rejected", "offer")


class SavedJob(Base):
    __tablename__ = "saved_jobs"

    id = Column(String, primary_key=True, default=lambda: str(uuid.uuid4()))
    job_id = Column(
        String,
        ForeignKey("job_candidates.id", ondelete="CASCADE"),
        nullable=False,
        unique=True,
    )
    notes = Column(Text, nullable=True)
    status = Column(String(20), nullable=False, default="interested", index=True)
    created_at = Column(DateTime, nullable=False, default=utcnow)
    updated_at = Column(DateTime, nullable=False, default=utcnow, onupdate=utcnow)

    job = relationship("JobCandidate", back_populates="saved_job")
