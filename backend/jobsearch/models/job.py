"""
JobCandidate Model - SQLAlchemy ORM model for retrieved job postings

One validated, enriched and scored posting, owned by the SearchRequest that
produced it. Rows are immutable after creation; a repeated search writes new
rows under the new SearchRequest.

Attributes:
    url: Source posting URL (globally unique)
    company/location/salary/...: Fields extracted from the posting text
    skills: Comma-separated skill list
    content: Full posting text as returned by the search provider
    score: Fit score 1-10 (0 before scoring)
"""

from sqlalchemy import Column, String, Integer, Text, DateTime, JSON, ForeignKey
from sqlalchemy.orm import relationship
from jobsearch.database import Base, utcnow
import uuid


class JobCandidate(Base):
    __tablename__ = "job_candidates"

    id = Column(String, primary_key=True, default=lambda: str(uuid.uuid4()))
    url = Column(String(2000), nullable=False, unique=True)
    title = Column(String(500), nullable=False)
    company = Column(String(500), nullable=False)
    location = Column(String(500), nullable=False)
    salary = Column(String(200), nullable=True)
    experience_level = Column(String(100), nullable=True)
    job_type = Column(String(100), nullable=True)
    skills = Column(String(1000), nullable=True)
    remote_policy = Column(String(100), nullable=True)
    apply_method = Column(String(200), nullable=True)
    benefits = Column(JSON, nullable=False, default=list)
    company_size = Column(String(50), nullable=True)
    content = Column(Text, nullable=False)
    score = Column(Integer, nullable=False, default=0, index=True)
    published_at = Column(DateTime, nullable=True)
    search_id = Column(
        String,
        ForeignKey("search_requests.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    created_at = Column(DateTime, nullable=False, default=utcnow)
    updated_at = Column(DateTime, nullable=False, default=utcnow, onupdate=utcnow)

    search = relationship("SearchRequest", back_populates="jobs")
    saved_job = relationship(
        "SavedJob",
        back_populates="job",
        uselist=False,
        cascade="all, delete-orphan",
        passive_deletes=True,
    )
