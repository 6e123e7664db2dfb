# listsearch/db.py
from datetime import datetime
from typing import List, Sequence

from sqlalchemy import create_engine, Column, String, DateTime, Text, func, select
from sqlalchemy.orm import sessionmaker, declarative_base

from .config import DATABASE_URL
from .errors import InvalidRequestError, NotFoundError
from .models import KBInfo, KBListItem

# Engine & Session
_connect_args = {"check_same_thread": False} if DATABASE_URL.startswith("sqlite") else {}
engine = create_engine(DATABASE_URL, pool_pre_ping=True, future=True, connect_args=_connect_args)
SessionLocal = sessionmaker(bind=engine, autoflush=False, autocommit=False, future=True)

Base = declarative_base()


class KBInfoRow(Base):
    __tablename__ = "kb_info"

    kb_id = Column(String, primary_key=True)
    kb_name = Column(String, nullable=False)
    question_field = Column(String, nullable=False, default="")
    answer_fields = Column(Text, nullable=False, default="[]")  # JSON list of {Name, DisplayName}
    ranker_type = Column(String, nullable=True)  # null for kbs created before ranker config
    sharepoint_url = Column(Text, nullable=True)

    # audit
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now(), default=func.now())


# KBInfo attribute name -> column attribute
KB_FIELDS = {
    "KBId": "kb_id",
    "KBName": "kb_name",
    "QuestionField": "question_field",
    "AnswerFields": "answer_fields",
    "RankerType": "ranker_type",
    "SharePointUrl": "sharepoint_url",
}


def init_db():
    """Create tables if they don't exist."""
    Base.metadata.create_all(bind=engine)


# -------------------- Helpers --------------------

def _to_kb_info(row: KBInfoRow) -> KBInfo:
    return KBInfo(
        kb_id=row.kb_id,
        kb_name=row.kb_name,
        question_field=row.question_field or "",
        answer_fields=row.answer_fields or "[]",
        ranker_type=row.ranker_type or None,
        sharepoint_url=row.sharepoint_url,
    )


def get_kb_info(db, kb_id: str) -> KBInfo:
    if not kb_id:
        raise InvalidRequestError("kb_id is required")
    row = db.get(KBInfoRow, kb_id)
    if row is None:
        raise NotFoundError(f"kb {kb_id} not found")
    return _to_kb_info(row)


def get_all_kbs(db, fields: Sequence[str]) -> List[KBListItem]:
    """
    All kbs, projected to the requested KBInfo attribute names
    (e.g. ["KBName", "KBId"]); everything else is left out of the query.
    """
    unknown = [f for f in fields if f not in KB_FIELDS]
    if unknown:
        raise InvalidRequestError(f"unknown kb fields: {', '.join(unknown)}")
    if not fields:
        return []
    cols = [getattr(KBInfoRow, KB_FIELDS[f]) for f in fields]
    rows = db.execute(select(*cols).order_by(KBInfoRow.kb_name)).all()
    return [KBListItem(**dict(zip(fields, r))) for r in rows]


def upsert_kb_info(db, kb: KBInfo) -> KBInfoRow:
    row = db.get(KBInfoRow, kb.kb_id)
    if row is None:
        row = KBInfoRow(kb_id=kb.kb_id)
        db.add(row)

    row.kb_name = kb.kb_name
    row.question_field = kb.question_field
    row.answer_fields = kb.answer_fields
    row.ranker_type = kb.ranker_type.value if kb.ranker_type else None
    row.sharepoint_url = kb.sharepoint_url
    row.updated_at = datetime.utcnow()
    return row


def delete_kb_info(db, kb_id: str) -> bool:
    row = db.get(KBInfoRow, kb_id)
    if row is None:
        return False
    db.delete(row)
    return True


class KBStore:
    """Session-per-call facade over the helpers above."""

    def __init__(self, session_factory=SessionLocal):
        self._session_factory = session_factory

    def get_kb_info(self, kb_id: str) -> KBInfo:
        with self._session_factory() as db:
            return get_kb_info(db, kb_id)

    def get_all_kbs(self, fields: Sequence[str]) -> List[KBListItem]:
        with self._session_factory() as db:
            return get_all_kbs(db, fields)

    def save(self, kb: KBInfo) -> None:
        with self._session_factory() as db:
            upsert_kb_info(db, kb)
            db.commit()

    def delete(self, kb_id: str) -> bool:
        with self._session_factory() as db:
            deleted = delete_kb_info(db, kb_id)
            db.commit()
            return deleted
