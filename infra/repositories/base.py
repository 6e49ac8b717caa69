import math
from typing import Any, Dict, List, Optional, Tuple

from sqlalchemy import func, select
from sqlalchemy.orm import Session


def to_dict(record) -> Optional[Dict[str, Any]]:
    if record is None:
        return None
    return {c.name: getattr(record, c.name) for c in record.__table__.columns}


def pagination(page: int, limit: int, total: int) -> Dict[str, Any]:
    offset = (page - 1) * limit
    return {
        "page": page,
        "limit": limit,
        "total": total,
        "total_pages": math.ceil(total / limit) if limit else 0,
        "has_next": offset + limit < total,
        "has_prev": page > 1,
    }


def paginate(s: Session, stmt, page: int, limit: int) -> Tuple[List[Dict], Dict[str, Any]]:
    total = s.scalar(select(func.count()).select_from(stmt.order_by(None).subquery())) or 0
    rows = s.scalars(stmt.limit(limit).offset((page - 1) * limit)).all()
    return [to_dict(r) for r in rows], pagination(page, limit, total)
