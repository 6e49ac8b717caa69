from sqlalchemy import Column, String, Float, Integer, Text, DateTime, ForeignKey, JSON
from sqlalchemy.orm import relationship
from datetime import datetime, timezone
from infra.db.session import Base


def utcnow() -> datetime:
    return datetime.now(timezone.utc).replace(tzinfo=None)


class ResumeRecord(Base):
    __tablename__ = "resumes"
    id = Column(String, primary_key=True)
    company_id = Column(String, nullable=True, index=True)
    candidate_id = Column(String, nullable=True, index=True)
    job_id = Column(String, nullable=True, index=True)
    uploaded_by = Column(String, nullable=True)
    file_name = Column(String, nullable=False)
    file_path = Column(String, nullable=False)
    file_size = Column(Integer, nullable=False, default=0)
    file_type = Column(String, nullable=False)   # '.pdf' | '.docx' | '.doc'
    mime_type = Column(String, nullable=True)
    parsed_data = Column(JSON, nullable=True)
    status = Column(String, nullable=False, default="uploaded")
    error = Column(Text, nullable=True)
    uploaded_at = Column(DateTime, default=utcnow)
    processed_at = Column(DateTime, nullable=True)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow)

class JobRecord(Base):
    __tablename__ = "jobs"
    id = Column(String, primary_key=True)
    company_id = Column(String, nullable=True, index=True)
    created_by = Column(String, nullable=True)
    title = Column(String, nullable=False)
    description = Column(Text, nullable=False)
    requirements = Column(JSON, nullable=False, default=list)
    responsibilities = Column(JSON, nullable=False, default=list)
    location = Column(String, nullable=False)
    type = Column(String, nullable=False)
    level = Column(String, nullable=False)
    salary = Column(JSON, nullable=True)
    status = Column(String, nullable=False, default="draft")
    deadline = Column(DateTime, nullable=True)
    published_at = Column(DateTime, nullable=True)
    closed_at = Column(DateTime, nullable=True)
    created_at = Column(DateTime, default=utcnow)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow)
    screenings = relationship("ScreeningRecord", back_populates="job", cascade="all, delete-orphan")

class ScreeningRecord(Base):
    __tablename__ = "screenings"
    id = Column(String, primary_key=True)
    company_id = Column(String, nullable=True, index=True)
    job_id = Column(String, ForeignKey("jobs.id"), nullable=False, index=True)
    resume_id = Column(String, ForeignKey("resumes.id"), nullable=False)
    candidate_id = Column(String, nullable=True, index=True)
    score = Column(Float, nullable=True)   # 0-100
    breakdown = Column(JSON, nullable=True)
    ai_analysis = Column(JSON, nullable=True)
    status = Column(String, nullable=False, default="pending")
    error = Column(Text, nullable=True)
    started_at = Column(DateTime, nullable=True)
    completed_at = Column(DateTime, nullable=True)
    created_at = Column(DateTime, default=utcnow)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow)
    job = relationship("JobRecord", back_populates="screenings")
    notes = relationship("ReviewerNoteRecord", back_populates="screening", cascade="all, delete-orphan")

class ReviewerNoteRecord(Base):
    __tablename__ = "reviewer_notes"
    id = Column(String, primary_key=True)
    screening_id = Column(String, ForeignKey("screenings.id"), nullable=False, index=True)
    reviewer_id = Column(String, nullable=True)
    reviewer_name = Column(String, nullable=True)
    note = Column(Text, nullable=False)
    rating = Column(Integer, nullable=True)
    created_at = Column(DateTime, default=utcnow)
    screening = relationship("ScreeningRecord", back_populates="notes")
