from pydantic import BaseModel, ConfigDict, Field
from typing import List, Optional, Dict
from datetime import datetime


class DetectedAnswer(BaseModel):
    model_config = ConfigDict(frozen=True)

    questionNumber: int
    detected: Optional[str] = None  # None when no bubble cleared the fill threshold
    confidence: float = Field(0.0, ge=0.0, le=1.0)


class GradingResult(BaseModel):
    model_config = ConfigDict(frozen=True)

    examId: str
    rawScore: int
    maxScore: int
    percentage: float
    answers: Dict[int, Optional[str]]
    correctness: Dict[int, bool]
    detections: List[DetectedAnswer]
    gradedAt: datetime


class StoredResult(GradingResult):
    resultId: str
    studentId: Optional[str] = None
    sourceFile: Optional[str] = None
