from datetime import datetime, timezone

from sqlalchemy import Column, DateTime, Float, Integer, String
from sqlalchemy.orm import declarative_base

Base = declarative_base()


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class AssessmentResult(Base):
    __tablename__ = "assessment_results"
    # One row per respondent; resubmitting overwrites it
    email = Column(String(320), primary_key=True)
    overall_score = Column(Float, nullable=False)
    overall_stage = Column(Integer, nullable=False)
    capture_score = Column(Float, nullable=False)
    capture_stage = Column(Integer, nullable=False)
    storage_score = Column(Float, nullable=False)
    storage_stage = Column(Integer, nullable=False)
    analytics_score = Column(Float, nullable=False)
    analytics_stage = Column(Integer, nullable=False)
    governance_score = Column(Float, nullable=False)
    governance_stage = Column(Integer, nullable=False)
    created_at = Column(DateTime(timezone=True), default=_utcnow, nullable=False)
    updated_at = Column(DateTime(timezone=True), default=_utcnow, onupdate=_utcnow, nullable=False)
