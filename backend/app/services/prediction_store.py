"""Append-only store for analysis results (``predictions`` table)."""

from __future__ import annotations

import logging
import uuid
from typing import Optional

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.core.errors import PersistenceError
from app.models.analysis import Prediction
from app.services.ai.vision.contracts import NormalizedAnalysis

logger = logging.getLogger(__name__)

MAX_HISTORY_LIMIT = 100


def _parse_uuid(value: str) -> Optional[uuid.UUID]:
    try:
        return uuid.UUID(str(value))
    except (TypeError, ValueError):
        return None


def insert_prediction(
    db: Session,
    *,
    user_id: Optional[str],
    image_path: str,
    analysis: NormalizedAnalysis,
) -> Prediction:
    """Write one result and return the stored row with its generated id.

    Failures are raised as ``PersistenceError``; a completed analysis is
    never dropped silently.
    """
    if not user_id:
        raise PersistenceError("Cannot save analysis without a verified user")

    row = Prediction(
        user_id=user_id,
        image_path=image_path,
        prediction_type=analysis.classification,
        confidence_score=analysis.confidence_score,
        analysis_details=analysis.details,
    )
    try:
        db.add(row)
        db.commit()
        db.refresh(row)
    except SQLAlchemyError as exc:
        db.rollback()
        logger.error("Database error saving prediction for user=%s", user_id, exc_info=True)
        raise PersistenceError(f"Failed to save analysis result: {exc.__class__.__name__}") from exc

    logger.info("Prediction %s saved for user=%s", row.id, user_id)
    return row


def list_predictions(db: Session, *, user_id: str, limit: int = 20) -> list[Prediction]:
    limit = max(1, min(limit, MAX_HISTORY_LIMIT))
    stmt = (
        select(Prediction)
        .where(Prediction.user_id == user_id)
        .order_by(Prediction.created_at.desc())
        .limit(limit)
    )
    return list(db.execute(stmt).scalars().all())


def get_prediction(db: Session, *, user_id: str, prediction_id: str) -> Optional[Prediction]:
    """Return the prediction only if it belongs to *user_id*."""
    parsed = _parse_uuid(prediction_id)
    if parsed is None:
        return None
    row = db.get(Prediction, parsed)
    owner = _parse_uuid(user_id) or user_id
    if row is None or str(row.user_id) != str(owner):
        return None
    return row
