from datetime import datetime
from typing import Any, Dict, List, Literal, Optional

from pydantic import BaseModel, Field, field_validator

ResumeStatus = Literal["uploaded", "processing", "processed", "failed"]
JobStatus = Literal["draft", "active", "paused", "closed", "archived"]
JobType = Literal["full-time", "part-time", "contract", "internship", "freelance"]
JobLevel = Literal["entry", "junior", "mid", "senior", "lead", "executive"]
SkillLevel = Literal["beginner", "intermediate", "advanced", "expert"]
ScreeningStatus = Literal["pending", "in_progress", "completed", "reviewed", "rejected"]


class Pagination(BaseModel):
    page: int
    limit: int
    total: int
    total_pages: int
    has_next: bool
    has_prev: bool


class ApiResponse(BaseModel):
    success: bool = True
    data: Any = None
    message: Optional[str] = None
    error: Optional[str] = None
    pagination: Optional[Pagination] = None


class ResumeUpdate(BaseModel):
    status: Optional[ResumeStatus] = None
    parsed_data: Optional[Dict[str, Any]] = None


class JobRequirement(BaseModel):
    skill: str = Field(..., min_length=1)
    level: SkillLevel
    required: bool
    weight: float = Field(..., ge=0.0, le=1.0)

    @field_validator("skill")
    @classmethod
    def skill_present(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("Skill name is required")
        return value


class SalaryRange(BaseModel):
    min: Optional[float] = Field(None, ge=0)
    max: Optional[float] = Field(None, ge=0)
    currency: str = "USD"


def _trimmed_length(value: str, lo: int, hi: int, label: str) -> str:
    value = value.strip()
    if not lo <= len(value) <= hi:
        raise ValueError(f"{label} must be between {lo} and {hi} characters")
    return value


def _location(value: str) -> str:
    value = value.strip()
    if not value:
        raise ValueError("Location is required")
    return value


class JobCreate(BaseModel):
    title: str
    description: str
    requirements: List[JobRequirement] = Field(..., min_length=1)
    responsibilities: List[str] = Field(..., min_length=1)
    location: str
    type: JobType
    level: JobLevel
    salary: Optional[SalaryRange] = None
    deadline: Optional[datetime] = None

    @field_validator("title")
    @classmethod
    def title_length(cls, value: str) -> str:
        return _trimmed_length(value, 5, 200, "Job title")

    @field_validator("description")
    @classmethod
    def description_length(cls, value: str) -> str:
        return _trimmed_length(value, 50, 5000, "Job description")

    @field_validator("location")
    @classmethod
    def location_present(cls, value: str) -> str:
        return _location(value)


class JobUpdate(BaseModel):
    title: Optional[str] = None
    description: Optional[str] = None
    status: Optional[JobStatus] = None
    requirements: Optional[List[JobRequirement]] = None
    responsibilities: Optional[List[str]] = None
    location: Optional[str] = None
    type: Optional[JobType] = None
    level: Optional[JobLevel] = None
    salary: Optional[SalaryRange] = None
    deadline: Optional[datetime] = None

    @field_validator("title")
    @classmethod
    def title_length(cls, value: Optional[str]) -> Optional[str]:
        return None if value is None else _trimmed_length(value, 5, 200, "Job title")

    @field_validator("description")
    @classmethod
    def description_length(cls, value: Optional[str]) -> Optional[str]:
        return None if value is None else _trimmed_length(value, 50, 5000, "Job description")

    @field_validator("location")
    @classmethod
    def location_present(cls, value: Optional[str]) -> Optional[str]:
        return None if value is None else _location(value)


class ScreeningCreate(BaseModel):
    job_id: str
    resume_id: str
    candidate_id: Optional[str] = None


class ScreeningUpdate(BaseModel):
    status: Optional[ScreeningStatus] = None
    score: Optional[float] = Field(None, ge=0.0, le=100.0)


class NoteCreate(BaseModel):
    note: str = Field(..., min_length=1)
    rating: Optional[int] = Field(None, ge=1, le=5)


class BulkScreeningRequest(BaseModel):
    job_id: str
    resume_ids: List[str] = Field(..., min_length=1)
