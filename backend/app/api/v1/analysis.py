"""Image analysis endpoints: analyze, history."""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.orm import Session

from app.core.auth import CurrentUser, get_current_user
from app.core.config import get_settings
from app.core.dependencies import get_db
from app.core.errors import RateLimited
from app.core.image_ingress import build_analysis_request
from app.models.analysis import Prediction
from app.schemas.analysis import (
    AnalyzeImageRequest,
    AnalyzeImageResponse,
    MeResponse,
    PredictionListResponse,
    PredictionOut,
)
from app.services.ai.vision.service import analyze_image
from app.services.prediction_store import get_prediction, list_predictions
from app.utils.rate_limit import rate_limiter

logger = logging.getLogger(__name__)

router = APIRouter()

ANALYZE_WINDOW_SECONDS = 60


def _prediction_out(row: Prediction) -> PredictionOut:
    return PredictionOut(
        id=str(row.id),
        image_path=row.image_path,
        prediction_type=row.prediction_type,
        confidence_score=row.confidence_score,
        analysis_details=row.analysis_details or {},
        created_at=row.created_at,
    )


def _enforce_analyze_rate_limit(user: CurrentUser) -> None:
    limit = get_settings().rate_limit_analyze_per_min
    allowed, retry_after = rate_limiter.allow(f"analyze:user:{user.id}", limit, ANALYZE_WINDOW_SECONDS)
    if not allowed:
        logger.warning("Analyze rate limit hit for user=%s", user.id)
        raise RateLimited(retry_after=retry_after)


@router.post(
    "/analyze-image",
    response_model=AnalyzeImageResponse,
    summary="Classify a tissue image via the AI gateway and save the result",
)
async def analyze_image_endpoint(
    body: AnalyzeImageRequest,
    current_user: CurrentUser = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    settings = get_settings()
    request = build_analysis_request(
        requester_id=current_user.id,
        image_payload=body.image_base64,
        image_path=body.image_path,
        max_bytes=settings.max_image_bytes,
    )
    _enforce_analyze_rate_limit(current_user)

    result = await analyze_image(request, db)

    return AnalyzeImageResponse(
        prediction=result.analysis.classification,
        confidence=result.analysis.confidence_score,
        analysis=result.analysis.details,
        prediction_id=str(result.prediction.id),
    )


@router.get("/predictions", response_model=PredictionListResponse)
def list_predictions_endpoint(
    limit: int = Query(20, ge=1, le=100),
    current_user: CurrentUser = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    rows = list_predictions(db, user_id=current_user.id, limit=limit)
    return PredictionListResponse(items=[_prediction_out(row) for row in rows])


@router.get("/predictions/{prediction_id}", response_model=PredictionOut)
def get_prediction_endpoint(
    prediction_id: str,
    current_user: CurrentUser = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    row = get_prediction(db, user_id=current_user.id, prediction_id=prediction_id)
    if row is None:
        raise HTTPException(404, "Prediction not found")
    return _prediction_out(row)


@router.get("/auth/me", response_model=MeResponse)
def auth_me(current_user: CurrentUser = Depends(get_current_user)):
    return MeResponse(user_id=current_user.id, email=current_user.email)
