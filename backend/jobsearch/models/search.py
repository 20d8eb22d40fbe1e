"""
SearchRequest Model - one user-initiated job search

Records the free-text query and the preference filters submitted with it.
Rows are written once per search and never updated; deleting a search
removes its job candidates (and their bookmarks) through the FK cascade.
"""

from sqlalchemy import Column, String, Text, DateTime
from sqlalchemy.orm import relationship
from jobsearch.database import Base, utcnow
import uuid


class SearchRequest(Base):
    __tablename__ = "search_requests"

    id = Column(String, primary_key=True, default=lambda: str(uuid.uuid4()))
    query = Column(Text, nullable=False)
    location = Column(String(500), nullable=True)
    job_type = Column(String(100), nullable=True)
    experience_level = Column(String(100), nullable=True)
    salary = Column(String(100), nullable=True)
    technologies = Column(String(1000), nullable=True)
    company_size = Column(String(100), nullable=True)
    created_at = Column(DateTime, nullable=False, default=utcnow)

    jobs = relationship(
        "JobCandidate",
        back_populates="search",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )
