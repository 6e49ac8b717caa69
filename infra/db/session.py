from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker, DeclarativeBase
from app.settings import settings

connect_args = {"check_same_thread": False} if settings.DATABASE_URL.startswith("sqlite") else {}
engine = create_engine(
    settings.DATABASE_URL, echo=False, future=True, pool_pre_ping=True, connect_args=connect_args)
SessionLocal = sessionmaker(
    bind=engine, autoflush=False, autocommit=False, expire_on_commit=False, future=True)


class Base(DeclarativeBase):
    pass


def init_db():
    from infra.db.models import ResumeRecord, JobRecord, ScreeningRecord, ReviewerNoteRecord
    Base.metadata.create_all(bind=engine)


def drop_db():
    from infra.db.models import ResumeRecord, JobRecord, ScreeningRecord, ReviewerNoteRecord
    Base.metadata.drop_all(bind=engine)
