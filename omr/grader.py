import logging
from datetime import datetime
from typing import Optional

from models.exam import Exam
from models.result import GradingResult
from omr.decision import detect_answers
from omr.errors import EmptyExam
from omr.image import ScannedImage, binarize
from omr.layout import resolve_layout
from omr.scorer import score_answers

logger = logging.getLogger(__name__)


def grade_sheet(image: ScannedImage, exam: Exam, graded_at: Optional[datetime] = None) -> GradingResult:
    """Grade one photographed sheet against the exam it was printed for.

    The image is assumed to be framed to the page: bubble positions come from
    the exam's stored layout scaled to the image size, with no marker search.
    Pass ``graded_at`` to make the result reproducible.
    """
    if not exam.questions:
        raise EmptyExam(f"Exam {exam.examId} has no questions")

    logger.info(
        f"Grading exam {exam.examId}: {len(exam.questions)} questions, "
        f"{exam.layoutConfig.columnCount} columns, {exam.layoutConfig.bubbleSize.value} bubbles, "
        f"image {image.width}x{image.height}"
    )
    field = binarize(image)
    layouts = resolve_layout(exam.questions, exam.layoutConfig, (image.width, image.height))
    detections = detect_answers(field, layouts)

    return score_answers(
        exam.examId,
        exam.questions,
        detections,
        graded_at if graded_at is not None else datetime.utcnow(),
    )


def grade_sheet_bytes(image_data: bytes, exam: Exam, graded_at: Optional[datetime] = None) -> GradingResult:
    return grade_sheet(ScannedImage.from_bytes(image_data), exam, graded_at)
