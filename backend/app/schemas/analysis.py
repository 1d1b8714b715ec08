from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


class Classification(str, Enum):
    BENIGN = "benign"
    MALIGNANT = "malignant"
    NORMAL = "normal"


class Severity(str, Enum):
    MILD = "mild"
    MODERATE = "moderate"
    SEVERE = "severe"


class AnalyzeImageRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    image_base64: Optional[str] = Field(default=None, alias="imageBase64")
    image_path: Optional[str] = Field(default=None, alias="imagePath", max_length=512)


class AnalyzeImageResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    prediction: Classification
    confidence: int = Field(ge=0, le=100)
    analysis: Dict[str, Any]
    prediction_id: str = Field(alias="predictionId")


class PredictionOut(BaseModel):
    id: str
    image_path: str
    prediction_type: Classification
    confidence_score: int
    analysis_details: Dict[str, Any]
    created_at: Optional[datetime] = None


class PredictionListResponse(BaseModel):
    items: List[PredictionOut]


class SymptomCreate(BaseModel):
    symptom: str = Field(..., max_length=200)
    severity: Severity = Severity.MILD
    notes: Optional[str] = Field(default=None, max_length=2000)

    @field_validator("symptom")
    @classmethod
    def _not_blank(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("Please enter a symptom")
        return value


class SymptomOut(BaseModel):
    id: str
    symptom: str
    severity: Severity
    notes: Optional[str] = None
    created_at: Optional[datetime] = None


class SymptomListResponse(BaseModel):
    items: List[SymptomOut]


class SymptomSummaryOut(BaseModel):
    total: int
    severe: int


class MeResponse(BaseModel):
    user_id: str
    email: Optional[str] = None
