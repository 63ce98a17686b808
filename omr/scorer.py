import logging
from datetime import datetime
from typing import Sequence

from models.exam import Question
from models.result import DetectedAnswer, GradingResult
from omr.errors import EmptyExam

logger = logging.getLogger(__name__)


def score_answers(
    exam_id: str,
    questions: Sequence[Question],
    detections: Sequence[DetectedAnswer],
    graded_at: datetime,
) -> GradingResult:
    """Score detected answers against the key with exact label equality."""
    if not questions:
        raise EmptyExam(f"Exam {exam_id} has no questions")

    logger.info(f"Scoring {len(detections)} answers against answer key")
    by_number = {d.questionNumber: d for d in detections}

    answers = {}
    correctness = {}
    for question in questions:
        detection = by_number.get(question.number)
        detected = detection.detected if detection else None
        answers[question.number] = detected
        correctness[question.number] = detected is not None and detected == question.correctAnswer

    raw_score = sum(1 for ok in correctness.values() if ok)
    max_score = len(questions)
    percentage = raw_score / max_score * 100

    logger.info(f"Scoring complete: {raw_score}/{max_score} ({percentage:.1f}%)")
    return GradingResult(
        examId=exam_id,
        rawScore=raw_score,
        maxScore=max_score,
        percentage=percentage,
        answers=answers,
        correctness=correctness,
        detections=list(detections),
        gradedAt=graded_at,
    )
