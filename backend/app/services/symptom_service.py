"""Manual symptom log."""

from __future__ import annotations

import logging
from dataclasses import dataclass

from sqlalchemy import func, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.core.errors import PersistenceError
from app.models.analysis import SymptomEntry

logger = logging.getLogger(__name__)

MAX_SYMPTOM_LIMIT = 200


@dataclass
class SymptomSummary:
    total: int
    severe: int


def add_symptom(db: Session, *, user_id: str, symptom: str, severity: str, notes: str | None) -> SymptomEntry:
    entry = SymptomEntry(
        user_id=user_id,
        symptom=symptom.strip(),
        severity=severity,
        notes=(notes or "").strip() or None,
    )
    try:
        db.add(entry)
        db.commit()
        db.refresh(entry)
    except SQLAlchemyError as exc:
        db.rollback()
        logger.error("Database error saving symptom for user=%s", user_id, exc_info=True)
        raise PersistenceError("Failed to save symptom") from exc
    return entry


def list_symptoms(db: Session, *, user_id: str, limit: int = 50) -> list[SymptomEntry]:
    limit = max(1, min(limit, MAX_SYMPTOM_LIMIT))
    stmt = (
        select(SymptomEntry)
        .where(SymptomEntry.user_id == user_id)
        .order_by(SymptomEntry.created_at.desc())
        .limit(limit)
    )
    return list(db.execute(stmt).scalars().all())


def summarize_symptoms(db: Session, *, user_id: str) -> SymptomSummary:
    total = db.execute(
        select(func.count()).select_from(SymptomEntry).where(SymptomEntry.user_id == user_id)
    ).scalar_one()
    severe = db.execute(
        select(func.count())
        .select_from(SymptomEntry)
        .where(SymptomEntry.user_id == user_id, SymptomEntry.severity == "severe")
    ).scalar_one()
    return SymptomSummary(total=int(total), severe=int(severe))
