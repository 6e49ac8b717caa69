import uuid
from typing import Dict, List, Optional, Tuple

from sqlalchemy import select

from infra.db.session import SessionLocal
from infra.db.models import ReviewerNoteRecord, ScreeningRecord, utcnow
from infra.repositories.base import paginate, to_dict


class ScreeningsRepository:
    def create(self, job_id: str, resume_id: str, candidate_id: str | None,
               company_id: str | None = None) -> Dict:
        sid = str(uuid.uuid4())
        with SessionLocal() as s:
            rec = ScreeningRecord(id=sid, job_id=job_id, resume_id=resume_id,
                                  candidate_id=candidate_id, company_id=company_id,
                                  status="pending")
            s.add(rec)
            s.commit()
            return to_dict(rec)

    def get(self, screening_id: str, company_id: str | None = None, *, scoped: bool = True) -> Optional[Dict]:
        with SessionLocal() as s:
            rec = s.get(ScreeningRecord, screening_id)
            if not rec or (scoped and rec.company_id != company_id):
                return None
            return to_dict(rec)

    def list(self, company_id: str | None, *, page: int = 1, limit: int = 10,
             status: str | None = None, job_id: str | None = None,
             candidate_id: str | None = None) -> Tuple[List[Dict], Dict]:
        stmt = select(ScreeningRecord).where(ScreeningRecord.company_id == company_id)
        if status:
            stmt = stmt.where(ScreeningRecord.status == status)
        if job_id:
            stmt = stmt.where(ScreeningRecord.job_id == job_id)
        if candidate_id:
            stmt = stmt.where(ScreeningRecord.candidate_id == candidate_id)
        stmt = stmt.order_by(ScreeningRecord.created_at.desc())
        with SessionLocal() as s:
            return paginate(s, stmt, page, limit)

    def for_job(self, job_id: str) -> List[Dict]:
        with SessionLocal() as s:
            rows = s.scalars(select(ScreeningRecord).where(ScreeningRecord.job_id == job_id)).all()
            return [to_dict(r) for r in rows]

    def update(self, screening_id: str, **fields) -> Optional[Dict]:
        with SessionLocal() as s:
            rec = s.get(ScreeningRecord, screening_id)
            if not rec:
                return None
            for key, value in fields.items():
                setattr(rec, key, value)
            rec.updated_at = utcnow()
            s.commit()
            return to_dict(rec)

    def start(self, screening_id: str) -> None:
        self.update(screening_id, status="in_progress", started_at=utcnow(), error=None)

    def complete(self, screening_id: str, score: float, breakdown: Dict, ai_analysis: Dict) -> None:
        self.update(screening_id, status="completed", score=score, breakdown=breakdown,
                    ai_analysis=ai_analysis, completed_at=utcnow(), error=None)

    def fail(self, screening_id: str, error: str) -> None:
        self.update(screening_id, status="pending", error=error)

    def delete(self, screening_id: str) -> bool:
        with SessionLocal() as s:
            rec = s.get(ScreeningRecord, screening_id)
            if not rec:
                return False
            s.delete(rec)
            s.commit()
            return True

    def add_note(self, screening_id: str, note: str, rating: int | None = None,
                 reviewer_id: str | None = None, reviewer_name: str | None = None) -> Dict:
        with SessionLocal() as s:
            rec = ReviewerNoteRecord(id=str(uuid.uuid4()), screening_id=screening_id,
                                     reviewer_id=reviewer_id, reviewer_name=reviewer_name,
                                     note=note, rating=rating)
            s.add(rec)
            s.commit()
            return to_dict(rec)

    def notes(self, screening_id: str) -> List[Dict]:
        with SessionLocal() as s:
            rows = s.scalars(
                select(ReviewerNoteRecord)
                .where(ReviewerNoteRecord.screening_id == screening_id)
                .order_by(ReviewerNoteRecord.created_at)
            ).all()
            return [to_dict(r) for r in rows]
