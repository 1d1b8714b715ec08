"""Symptom tracker endpoints."""

from __future__ import annotations

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from app.core.auth import CurrentUser, get_current_user
from app.core.dependencies import get_db
from app.models.analysis import SymptomEntry
from app.schemas.analysis import (
    SymptomCreate,
    SymptomListResponse,
    SymptomOut,
    SymptomSummaryOut,
)
from app.services.symptom_service import add_symptom, list_symptoms, summarize_symptoms

router = APIRouter()


def _symptom_out(entry: SymptomEntry) -> SymptomOut:
    return SymptomOut(
        id=str(entry.id),
        symptom=entry.symptom,
        severity=entry.severity,
        notes=entry.notes,
        created_at=entry.created_at,
    )


@router.post("/symptoms", response_model=SymptomOut, status_code=201)
def create_symptom(
    body: SymptomCreate,
    current_user: CurrentUser = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    entry = add_symptom(
        db,
        user_id=current_user.id,
        symptom=body.symptom,
        severity=body.severity.value,
        notes=body.notes,
    )
    return _symptom_out(entry)


@router.get("/symptoms", response_model=SymptomListResponse)
def get_symptoms(
    limit: int = Query(50, ge=1, le=200),
    current_user: CurrentUser = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    entries = list_symptoms(db, user_id=current_user.id, limit=limit)
    return SymptomListResponse(items=[_symptom_out(e) for e in entries])


@router.get("/symptoms/summary", response_model=SymptomSummaryOut)
def get_symptom_summary(
    current_user: CurrentUser = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    summary = summarize_symptoms(db, user_id=current_user.id)
    return SymptomSummaryOut(total=summary.total, severe=summary.severe)
