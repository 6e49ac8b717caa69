import uuid
from typing import Dict, List, Optional, Tuple

from sqlalchemy import select

from infra.db.session import SessionLocal
from infra.db.models import JobRecord, utcnow
from infra.repositories.base import paginate, to_dict

JOB_FIELDS = ("title", "description", "requirements", "responsibilities", "location",
              "type", "level", "salary", "deadline")


class JobsRepository:
    def create(self, data: Dict, company_id: str | None = None, created_by: str | None = None) -> Dict:
        jid = str(uuid.uuid4())
        with SessionLocal() as s:
            rec = JobRecord(id=jid, company_id=company_id, created_by=created_by, status="draft",
                            **{k: data.get(k) for k in JOB_FIELDS})
            s.add(rec)
            s.commit()
            return to_dict(rec)

    def get(self, job_id: str, company_id: str | None = None, *, scoped: bool = True) -> Optional[Dict]:
        with SessionLocal() as s:
            rec = s.get(JobRecord, job_id)
            if not rec or (scoped and rec.company_id != company_id):
                return None
            return to_dict(rec)

    def list(self, company_id: str | None, *, page: int = 1, limit: int = 10,
             status: str | None = None, type: str | None = None, level: str | None = None,
             location: str | None = None) -> Tuple[List[Dict], Dict]:
        stmt = select(JobRecord).where(JobRecord.company_id == company_id)
        if status:
            stmt = stmt.where(JobRecord.status == status)
        if type:
            stmt = stmt.where(JobRecord.type == type)
        if level:
            stmt = stmt.where(JobRecord.level == level)
        if location:
            stmt = stmt.where(JobRecord.location.ilike(f"%{location}%"))
        stmt = stmt.order_by(JobRecord.created_at.desc())
        with SessionLocal() as s:
            return paginate(s, stmt, page, limit)

    def update(self, job_id: str, **fields) -> Optional[Dict]:
        with SessionLocal() as s:
            rec = s.get(JobRecord, job_id)
            if not rec:
                return None
            for key, value in fields.items():
                setattr(rec, key, value)
            rec.updated_at = utcnow()
            s.commit()
            return to_dict(rec)

    def delete(self, job_id: str) -> bool:
        with SessionLocal() as s:
            rec = s.get(JobRecord, job_id)
            if not rec:
                return False
            s.delete(rec)
            s.commit()
            return True

    def duplicate(self, job_id: str, created_by: str | None = None) -> Optional[Dict]:
        with SessionLocal() as s:
            src = s.get(JobRecord, job_id)
            if not src:
                return None
            data = {k: getattr(src, k) for k in JOB_FIELDS}
            data["title"] = f"{src.title} (Copy)"
            company_id = src.company_id
        return self.create(data, company_id=company_id, created_by=created_by)
