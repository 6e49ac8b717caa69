import uuid
from typing import Dict, List, Optional, Tuple

from sqlalchemy import delete, select

from infra.db.session import SessionLocal
from infra.db.models import ResumeRecord, ReviewerNoteRecord, ScreeningRecord, utcnow
from infra.repositories.base import paginate, to_dict


class ResumesRepository:
    def create(self, *, file_name: str, file_path: str, file_size: int, file_type: str,
               mime_type: str | None = None, company_id: str | None = None,
               candidate_id: str | None = None, job_id: str | None = None,
               uploaded_by: str | None = None) -> Dict:
        rid = str(uuid.uuid4())
        with SessionLocal() as s:
            rec = ResumeRecord(
                id=rid, company_id=company_id, candidate_id=candidate_id, job_id=job_id,
                uploaded_by=uploaded_by, file_name=file_name, file_path=file_path,
                file_size=file_size, file_type=file_type, mime_type=mime_type,
                parsed_data={}, status="uploaded")
            s.add(rec)
            s.commit()
            return to_dict(rec)

    def get(self, resume_id: str, company_id: str | None = None, *, scoped: bool = True) -> Optional[Dict]:
        with SessionLocal() as s:
            rec = s.get(ResumeRecord, resume_id)
            if not rec or (scoped and rec.company_id != company_id):
                return None
            return to_dict(rec)

    def list(self, company_id: str | None, *, page: int = 1, limit: int = 10,
             status: str | None = None, candidate_id: str | None = None,
             job_id: str | None = None) -> Tuple[List[Dict], Dict]:
        stmt = select(ResumeRecord).where(ResumeRecord.company_id == company_id)
        if status:
            stmt = stmt.where(ResumeRecord.status == status)
        if candidate_id:
            stmt = stmt.where(ResumeRecord.candidate_id == candidate_id)
        if job_id:
            stmt = stmt.where(ResumeRecord.job_id == job_id)
        stmt = stmt.order_by(ResumeRecord.uploaded_at.desc())
        with SessionLocal() as s:
            return paginate(s, stmt, page, limit)

    def update(self, resume_id: str, **fields) -> Optional[Dict]:
        with SessionLocal() as s:
            rec = s.get(ResumeRecord, resume_id)
            if not rec:
                return None
            for key, value in fields.items():
                setattr(rec, key, value)
            rec.updated_at = utcnow()
            s.commit()
            return to_dict(rec)

    def update_status(self, resume_id: str, status: str) -> None:
        self.update(resume_id, status=status)

    def mark_processed(self, resume_id: str, parsed_data: Dict) -> None:
        self.update(resume_id, status="processed", parsed_data=parsed_data,
                    processed_at=utcnow(), error=None)

    def fail(self, resume_id: str, error: str) -> None:
        self.update(resume_id, status="failed", error=error)

    def delete(self, resume_id: str) -> bool:
        with SessionLocal() as s:
            rec = s.get(ResumeRecord, resume_id)
            if not rec:
                return False
            screening_ids = select(ScreeningRecord.id).where(ScreeningRecord.resume_id == resume_id)
            s.execute(delete(ReviewerNoteRecord).where(ReviewerNoteRecord.screening_id.in_(screening_ids)))
            s.execute(delete(ScreeningRecord).where(ScreeningRecord.resume_id == resume_id))
            s.delete(rec)
            s.commit()
            return True
