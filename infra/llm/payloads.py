from typing import Dict, List, Optional

from pydantic import BaseModel, Field, field_validator

SKILL_LEVELS = ["beginner", "intermediate", "advanced", "expert"]
FIT_LEVELS = ["excellent", "good", "average", "poor"]


def _as_str_list(value):
    if value is None:
        return []
    if isinstance(value, str):
        return [value]
    if isinstance(value, list):
        return [str(item) for item in value if item is not None]
    raise ValueError("must be a string or list of strings")


def _as_level(value):
    level = str(value or "").strip().lower()
    return level if level in SKILL_LEVELS else "intermediate"


class PersonalInfo(BaseModel):
    first_name: str = ""
    last_name: str = ""
    email: str = ""
    phone: Optional[str] = None
    location: Optional[str] = None
    linkedin: Optional[str] = None
    github: Optional[str] = None
    portfolio: Optional[str] = None


class Education(BaseModel):
    institution: str = ""
    degree: str = ""
    field: str = ""
    start_date: Optional[str] = None
    end_date: Optional[str] = None
    gpa: Optional[float] = None
    description: Optional[str] = None


class WorkExperience(BaseModel):
    company: str = ""
    position: str = ""
    start_date: Optional[str] = None
    end_date: Optional[str] = None
    description: str = ""
    achievements: List[str] = []
    technologies: List[str] = []

    @field_validator("achievements", "technologies", mode="before")
    @classmethod
    def ensure_lists(cls, value):
        return _as_str_list(value)


class Skill(BaseModel):
    name: str
    level: str = "intermediate"
    category: str = "technical"
    years_of_experience: Optional[float] = None

    @field_validator("level", mode="before")
    @classmethod
    def known_level(cls, value):
        return _as_level(value)


class Certification(BaseModel):
    name: str
    issuer: str = ""
    date: Optional[str] = None
    expiry_date: Optional[str] = None
    credential_id: Optional[str] = None


class Language(BaseModel):
    name: str
    proficiency: str = "conversational"


class ParsedResume(BaseModel):
    personal_info: PersonalInfo = PersonalInfo()
    education: List[Education] = []
    experience: List[WorkExperience] = []
    skills: List[Skill] = []
    certifications: List[Certification] = []
    languages: List[Language] = []
    summary: Optional[str] = None
    raw_text: str = ""


class SkillGap(BaseModel):
    skill: str
    current_level: str = "beginner"
    required_level: str = "intermediate"
    upskilling_suggestions: List[str] = []
    estimated_time_to_upskill: str = ""


class BiasAnalysis(BaseModel):
    detected: bool = False
    types: List[str] = []
    confidence: float = Field(0.0, ge=0.0, le=1.0)
    mitigation_suggestions: List[str] = []
    biased_phrases: List[str] = []
    recommendations: List[str] = []

    @field_validator("types", "mitigation_suggestions", "biased_phrases", "recommendations", mode="before")
    @classmethod
    def ensure_lists(cls, value):
        return _as_str_list(value)


class ResumeAnalysis(BaseModel):
    summary: str = ""
    strengths: List[str] = []
    weaknesses: List[str] = []
    recommendations: List[str] = []
    skill_gaps: List[SkillGap] = []
    bias_analysis: BiasAnalysis = BiasAnalysis()
    sentiment_score: float = Field(0.0, ge=0.0, le=1.0)
    communication_score: Optional[float] = Field(None, ge=0.0, le=1.0)

    @field_validator("strengths", "weaknesses", "recommendations", mode="before")
    @classmethod
    def ensure_lists(cls, value):
        return _as_str_list(value)


class SkillExtraction(BaseModel):
    technical_skills: List[str] = []
    soft_skills: List[str] = []
    languages: List[str] = []
    tools: List[str] = []
    frameworks: List[str] = []
    certifications: List[str] = []
    skill_levels: Dict[str, str] = {}


class ValidationIssue(BaseModel):
    type: str
    field: str = ""
    description: str = ""
    severity: str = "low"


class ResumeValidation(BaseModel):
    is_valid: bool
    completeness: float = Field(..., ge=0.0, le=1.0)
    consistency: float = Field(..., ge=0.0, le=1.0)
    quality: float = Field(..., ge=0.0, le=1.0)
    issues: List[ValidationIssue] = []
    suggestions: List[str] = []
    overall_score: float = Field(..., ge=0.0, le=1.0)


class SkillScore(BaseModel):
    skill: str
    required: bool = True
    candidate_level: Optional[str] = None
    required_level: str = "intermediate"
    score: float = Field(0.0, ge=0.0, le=100.0)
    gap: float = 0.0


class JobMatch(BaseModel):
    overall_score: float = Field(..., ge=0.0, le=100.0)
    skill_match: float = Field(0.0, ge=0.0, le=100.0)
    experience_match: float = Field(0.0, ge=0.0, le=100.0)
    education_match: float = Field(0.0, ge=0.0, le=100.0)
    cultural_fit: float = Field(0.0, ge=0.0, le=100.0)
    skill_breakdown: List[SkillScore] = []
    strengths: List[str] = []
    weaknesses: List[str] = []
    recommendations: List[str] = []
    fit_level: str = "poor"

    @field_validator("strengths", "weaknesses", "recommendations", mode="before")
    @classmethod
    def ensure_lists(cls, value):
        return _as_str_list(value)

    @field_validator("fit_level", mode="before")
    @classmethod
    def known_fit(cls, value):
        level = str(value or "").strip().lower()
        if level not in FIT_LEVELS:
            raise ValueError(f"fit_level must be one of {', '.join(FIT_LEVELS)}")
        return level


class InterviewQuestions(BaseModel):
    technical_questions: List[Dict] = []
    behavioral_questions: List[Dict] = []
    situational_questions: List[Dict] = []
    cultural_fit_questions: List[Dict] = []
