"""Offline resume/job matching used when no LLM provider is configured."""
import re
from typing import Dict, List, Optional

from infra.llm.payloads import SKILL_LEVELS

LEVEL_PENALTY = 25.0


def fit_level(score: float) -> str:
    if score >= 80:
        return "excellent"
    if score >= 65:
        return "good"
    if score >= 50:
        return "average"
    return "poor"


def _level_rank(level: Optional[str]) -> int:
    try:
        return SKILL_LEVELS.index((level or "").lower())
    except ValueError:
        return 1


def _candidate_skills(parsed: Dict) -> Dict[str, Optional[str]]:
    """Map lower-cased skill name -> stated level (None when only mentioned)."""
    skills: Dict[str, Optional[str]] = {}
    for exp in parsed.get("experience") or []:
        for tech in exp.get("technologies") or []:
            skills.setdefault(str(tech).strip().lower(), None)
    for skill in parsed.get("skills") or []:
        name = str(skill.get("name", "")).strip().lower()
        if name:
            skills[name] = skill.get("level")
    return skills


def _find_level(skill: str, known: Dict[str, Optional[str]], raw_text: str):
    """Return (found, level) for the skill named by a requirement."""
    if skill in known:
        return True, known[skill]
    if skill and re.search(r"(?<!\w)" + re.escape(skill) + r"(?!\w)", raw_text):
        return True, None
    return False, None


def score_match(parsed: Dict, requirements: List[Dict]) -> Dict:
    known = _candidate_skills(parsed or {})
    raw_text = str((parsed or {}).get("raw_text") or "").lower()

    breakdown = []
    strengths, weaknesses = [], []
    for req in requirements or []:
        skill = str(req.get("skill", "")).strip()
        required_level = (req.get("level") or "intermediate").lower()
        found, level = _find_level(skill.lower(), known, raw_text)
        if found:
            gap = max(0, _level_rank(required_level) - _level_rank(level or required_level))
            score = max(0.0, 100.0 - LEVEL_PENALTY * gap)
            strengths.append(skill)
        else:
            gap = _level_rank(required_level) + 1
            score = 0.0
            if req.get("required", True):
                weaknesses.append(skill)
        breakdown.append({
            "skill": skill,
            "required": bool(req.get("required", True)),
            "candidate_level": level if found else None,
            "required_level": required_level,
            "score": score,
            "gap": float(gap),
            "weight": float(req.get("weight") or 0.0),
        })

    overall = 0.0
    if breakdown:
        total_weight = sum(b["weight"] for b in breakdown)
        if total_weight <= 0:
            overall = sum(b["score"] for b in breakdown) / len(breakdown)
        else:
            overall = sum(b["score"] * b["weight"] for b in breakdown) / total_weight
    overall = round(overall, 2)

    recommendations = [f"Probe depth of experience with {s}" for s in strengths[:3]]
    if weaknesses:
        recommendations.append(f"Missing required skills: {', '.join(weaknesses[:5])}")

    return {
        "overall_score": overall,
        "skill_match": overall,
        "experience_match": 0.0,
        "education_match": 0.0,
        "cultural_fit": 0.0,
        "skill_breakdown": [{k: v for k, v in b.items() if k != "weight"} for b in breakdown],
        "strengths": [f"Has {s}" for s in strengths],
        "weaknesses": [f"No evidence of {s}" for s in weaknesses],
        "recommendations": recommendations,
        "fit_level": fit_level(overall),
    }
