import statistics
from collections import Counter
from datetime import datetime
from typing import Dict, List, Optional

from sqlalchemy import func, select

from domain.services.keyword_scorer import fit_level
from infra.db.session import SessionLocal
from infra.db.models import JobRecord, ResumeRecord, ScreeningRecord

RECENT_ACTIVITY_LIMIT = 10
TOP_SKILLS_LIMIT = 20
FIT_LEVELS = ["excellent", "good", "average", "poor"]


class DateRange:
    def __init__(self, start: Optional[datetime] = None, end: Optional[datetime] = None):
        self.start = start
        self.end = end

    def apply(self, stmt, column):
        if self.start is not None:
            stmt = stmt.where(column >= self.start)
        if self.end is not None:
            stmt = stmt.where(column <= self.end)
        return stmt


def _count(s, model, company_id, column, window: DateRange) -> int:
    stmt = select(func.count()).select_from(model).where(model.company_id == company_id)
    return s.scalar(window.apply(stmt, column)) or 0


def _by_status(s, model, company_id, column, window: DateRange) -> Dict[str, int]:
    stmt = (select(model.status, func.count())
            .where(model.company_id == company_id)
            .group_by(model.status))
    return {status: n for status, n in s.execute(window.apply(stmt, column)).all()}


def dashboard(company_id: Optional[str], window: DateRange = DateRange()) -> Dict:
    with SessionLocal() as s:
        avg_stmt = (select(func.avg(ScreeningRecord.score))
                    .where(ScreeningRecord.company_id == company_id,
                           ScreeningRecord.status.in_(["completed", "reviewed"])))
        avg_score = s.scalar(window.apply(avg_stmt, ScreeningRecord.created_at))

        resumes = s.execute(window.apply(
            select(ResumeRecord.id, ResumeRecord.file_name, ResumeRecord.status, ResumeRecord.uploaded_at)
            .where(ResumeRecord.company_id == company_id)
            .order_by(ResumeRecord.uploaded_at.desc())
            .limit(RECENT_ACTIVITY_LIMIT),
            ResumeRecord.uploaded_at)).all()
        screenings = s.execute(window.apply(
            select(ScreeningRecord.id, ScreeningRecord.status, ScreeningRecord.score, ScreeningRecord.updated_at)
            .where(ScreeningRecord.company_id == company_id)
            .order_by(ScreeningRecord.updated_at.desc())
            .limit(RECENT_ACTIVITY_LIMIT),
            ScreeningRecord.created_at)).all()

        activity = [
            {"type": "resume", "id": r.id, "description": f"Resume {r.file_name} {r.status}",
             "status": r.status, "at": r.uploaded_at}
            for r in resumes
        ] + [
            {"type": "screening", "id": sc.id, "description": f"Screening {sc.status}",
             "status": sc.status, "score": sc.score, "at": sc.updated_at}
            for sc in screenings
        ]
        activity.sort(key=lambda a: a["at"] or datetime.min, reverse=True)

        return {
            "total_resumes": _count(s, ResumeRecord, company_id, ResumeRecord.uploaded_at, window),
            "total_jobs": _count(s, JobRecord, company_id, JobRecord.created_at, window),
            "total_screenings": _count(s, ScreeningRecord, company_id, ScreeningRecord.created_at, window),
            "average_score": round(float(avg_score), 2) if avg_score is not None else 0.0,
            "recent_activity": activity[:RECENT_ACTIVITY_LIMIT],
        }


def _skill_names(parsed: Optional[Dict]) -> List[str]:
    names = set()
    for skill in (parsed or {}).get("skills") or []:
        name = str(skill.get("name", "")).strip().lower()
        if name:
            names.add(name)
    return sorted(names)


def skills(company_id: Optional[str], window: DateRange = DateRange()) -> Dict:
    with SessionLocal() as s:
        parsed_rows = s.scalars(window.apply(
            select(ResumeRecord.parsed_data)
            .where(ResumeRecord.company_id == company_id, ResumeRecord.status == "processed"),
            ResumeRecord.uploaded_at)).all()
        requirement_rows = s.scalars(
            select(JobRecord.requirements).where(JobRecord.company_id == company_id)).all()

    per_resume = [_skill_names(p) for p in parsed_rows]
    counts = Counter(name for names in per_resume for name in names)
    top = [{"skill": name, "count": n} for name, n in counts.most_common(TOP_SKILLS_LIMIT)]

    required = sorted({
        str(req.get("skill", "")).strip().lower()
        for reqs in requirement_rows for req in (reqs or [])
        if req.get("skill")
    })
    total = len(per_resume)
    gaps = [
        {"skill": name, "candidates_with_skill": counts.get(name, 0),
         "coverage": round(counts.get(name, 0) / total, 2) if total else 0.0}
        for name in required
    ]
    gaps.sort(key=lambda g: (g["candidates_with_skill"], g["skill"]))
    return {"top_skills": top, "skill_gaps": gaps, "resumes_analyzed": total}


def hiring_funnel(company_id: Optional[str], window: DateRange = DateRange()) -> Dict:
    with SessionLocal() as s:
        return {
            "resumes": _by_status(s, ResumeRecord, company_id, ResumeRecord.uploaded_at, window),
            "screenings": _by_status(s, ScreeningRecord, company_id, ScreeningRecord.created_at, window),
            "jobs": _by_status(s, JobRecord, company_id, JobRecord.created_at, window),
        }


def screening_efficiency(company_id: Optional[str], window: DateRange = DateRange()) -> Dict:
    with SessionLocal() as s:
        rows = s.execute(window.apply(
            select(ScreeningRecord.started_at, ScreeningRecord.completed_at, ScreeningRecord.error)
            .where(ScreeningRecord.company_id == company_id),
            ScreeningRecord.created_at)).all()
    durations = [
        (r.completed_at - r.started_at).total_seconds()
        for r in rows if r.started_at and r.completed_at
    ]
    return {
        "completed": len(durations),
        "failed": sum(1 for r in rows if r.error),
        "average_processing_seconds": round(statistics.fmean(durations), 3) if durations else None,
        "median_processing_seconds": round(statistics.median(durations), 3) if durations else None,
    }


def _scores(company_id: Optional[str], window: DateRange, job_id: Optional[str] = None) -> List[float]:
    stmt = select(ScreeningRecord.score).where(ScreeningRecord.score.is_not(None))
    if job_id is not None:
        stmt = stmt.where(ScreeningRecord.job_id == job_id)
    else:
        stmt = stmt.where(ScreeningRecord.company_id == company_id)
    with SessionLocal() as s:
        return [float(x) for x in s.scalars(window.apply(stmt, ScreeningRecord.created_at)).all()]


def _fit_distribution(scores: List[float]) -> Dict[str, int]:
    dist = {level: 0 for level in FIT_LEVELS}
    for score in scores:
        dist[fit_level(score)] += 1
    return dist


def candidate_quality(company_id: Optional[str], window: DateRange = DateRange()) -> Dict:
    scores = _scores(company_id, window)
    histogram = [{"range": f"{lo}-{lo + 10}", "count": 0} for lo in range(0, 100, 10)]
    for score in scores:
        histogram[min(int(score // 10), 9)]["count"] += 1
    return {
        "scored_candidates": len(scores),
        "fit_distribution": _fit_distribution(scores),
        "histogram": histogram,
    }


def job_analytics(job_id: str) -> Dict:
    with SessionLocal() as s:
        counts = {status: n for status, n in s.execute(
            select(ScreeningRecord.status, func.count())
            .where(ScreeningRecord.job_id == job_id)
            .group_by(ScreeningRecord.status)).all()}
    scores = _scores(None, DateRange(), job_id=job_id)
    return {
        "total_screenings": sum(counts.values()),
        "by_status": counts,
        "average_score": round(statistics.fmean(scores), 2) if scores else 0.0,
        "max_score": max(scores) if scores else 0.0,
        "fit_distribution": _fit_distribution(scores),
    }
