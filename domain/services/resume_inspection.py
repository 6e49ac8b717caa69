"""Heuristic resume checks that run without an LLM.

These back the file-validation and stats endpoints, and provide the parsed
document used when no LLM provider is configured.
"""
import os
import re
import logging
from typing import Dict, List, Optional

from app.settings import settings
from infra.documents.parser import (
    DocumentParseError,
    UnsupportedFileType,
    clean_text,
    extract_text,
)

logger = logging.getLogger(__name__)

EMAIL_RE = re.compile(r"\b[A-Za-z0-9._%+-]+@[A-Za-z0-9.-]+\.[A-Za-z]{2,}\b")
PHONE_RE = re.compile(r"(?:\+\d{1,3}[-.\s]?)?\(?\d{3}\)?[-.\s]?\d{3}[-.\s]?\d{4}")
NAME_RE = re.compile(r"^[A-Za-z\s]+$")
MIN_TEXT_LENGTH = 50

EDUCATION_KEYWORDS = [
    "education", "academic", "degree", "university", "college", "school",
    "bachelor", "master", "phd", "diploma", "certificate", "graduation",
]
EXPERIENCE_KEYWORDS = [
    "experience", "work history", "employment", "career", "job",
    "position", "role", "responsibilities", "achievements", "projects",
]
SKILLS_KEYWORDS = [
    "skills", "technologies", "tools", "languages", "frameworks",
    "programming", "software", "competencies", "expertise",
]


def extract_emails(text: str) -> List[str]:
    return EMAIL_RE.findall(text or "")


def extract_phones(text: str) -> List[str]:
    return PHONE_RE.findall(text or "")


def extract_name(text: str) -> Optional[str]:
    for line in (text or "").split("\n")[:5]:
        candidate = line.strip()
        if 2 < len(candidate) < 50 and NAME_RE.match(candidate) and len(candidate.split()) <= 4:
            return candidate
    return None


def _has_any(text: str, keywords: List[str]) -> bool:
    lower = (text or "").lower()
    return any(k in lower for k in keywords)


def has_education_section(text: str) -> bool:
    return _has_any(text, EDUCATION_KEYWORDS)


def has_experience_section(text: str) -> bool:
    return _has_any(text, EXPERIENCE_KEYWORDS)


def has_skills_section(text: str) -> bool:
    return _has_any(text, SKILLS_KEYWORDS)


def basic_info(text: str) -> Dict:
    return {
        "email": extract_emails(text),
        "phone": extract_phones(text),
        "name": extract_name(text),
        "word_count": len(text.split()) if text else 0,
        "character_count": len(text or ""),
        "has_education": has_education_section(text),
        "has_experience": has_experience_section(text),
        "has_skills": has_skills_section(text),
        "raw_text": text,
    }


def read_clean_text(path: str, file_type: str) -> str:
    return clean_text(extract_text(path, file_type))


def validate_resume_file(path: str, file_type: str) -> Dict:
    validation = {
        "is_valid": True,
        "errors": [],
        "warnings": [],
        "file_size": 0,
        "text_length": 0,
        "has_content": False,
    }

    def reject(message: str) -> Dict:
        validation["is_valid"] = False
        validation["errors"].append(message)
        return validation

    if not os.path.exists(path):
        return reject("File does not exist")

    size = os.path.getsize(path)
    validation["file_size"] = size
    if size == 0:
        return reject("File is empty")
    if size > settings.MAX_FILE_SIZE:
        return reject("File size exceeds maximum limit")

    try:
        text = read_clean_text(path, file_type)
    except UnsupportedFileType:
        return reject(f"Unsupported file type: {file_type}")
    except DocumentParseError:
        return reject("Failed to extract text from file")

    validation["text_length"] = len(text)
    if len(text) < MIN_TEXT_LENGTH:
        return reject("Document contains insufficient text")
    validation["has_content"] = True

    if not has_education_section(text):
        validation["warnings"].append("No education section detected")
    if not has_experience_section(text):
        validation["warnings"].append("No experience section detected")
    if not has_skills_section(text):
        validation["warnings"].append("No skills section detected")
    if not extract_emails(text):
        validation["warnings"].append("No email address found")
    if not extract_phones(text):
        validation["warnings"].append("No phone number found")
    return validation


def file_stats(path: str, file_type: str | None = None) -> Dict:
    size = os.path.getsize(path)
    info = basic_info(read_clean_text(path, file_type or os.path.splitext(path)[1]))
    return {
        "file_size": size,
        "file_size_mb": f"{size / 1024 / 1024:.2f}",
        "word_count": info["word_count"],
        "character_count": info["character_count"],
        "has_email": bool(info["email"]),
        "has_phone": bool(info["phone"]),
        "has_name": bool(info["name"]),
        "sections": {
            "education": info["has_education"],
            "experience": info["has_experience"],
            "skills": info["has_skills"],
        },
    }


def fallback_parsed_data(text: str) -> Dict:
    info = basic_info(text)
    first_name, last_name = "", ""
    if info["name"]:
        parts = info["name"].split()
        first_name, last_name = parts[0], " ".join(parts[1:])
    return {
        "personal_info": {
            "first_name": first_name,
            "last_name": last_name,
            "email": info["email"][0] if info["email"] else "",
            "phone": info["phone"][0] if info["phone"] else None,
        },
        "education": [],
        "experience": [],
        "skills": [],
        "certifications": [],
        "languages": [],
        "summary": None,
        "raw_text": text,
    }
