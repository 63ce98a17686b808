import numpy as np
import logging
from typing import List, Sequence

from models.result import DetectedAnswer
from omr.layout import QuestionLayout
from omr.sampler import region_density

logger = logging.getLogger(__name__)

FILL_THRESHOLD = 0.35


def detect_answer(field: np.ndarray, question_layout: QuestionLayout) -> DetectedAnswer:
    """Pick the densest in-bounds bubble of one question.

    Candidates are visited in label order and only a strictly denser one
    replaces the current best, so on a tie the earlier label wins. Two solid
    marks are not flagged: the first one in order is reported.
    """
    field_h, field_w = field.shape[:2]
    best_label = None
    max_density = 0.0

    for region in question_layout.regions:
        rect = region.to_pixels()
        if not rect.fits(field_w, field_h):
            logger.warning(
                f"Q{question_layout.number} {region.label}: bubble ({rect.x}, {rect.y}, {rect.width}x{rect.height}) "
                f"falls outside the {field_w}x{field_h} image - skipped"
            )
            continue
        density = region_density(field, rect)
        logger.debug(f"Q{question_layout.number} {region.label}: density {density:.3f}")
        if best_label is None or density > max_density:
            best_label = region.label
            max_density = density

    if best_label is not None and max_density > FILL_THRESHOLD:
        return DetectedAnswer(questionNumber=question_layout.number, detected=best_label, confidence=max_density)

    return DetectedAnswer(questionNumber=question_layout.number, detected=None, confidence=max_density)


def detect_answers(field: np.ndarray, layouts: Sequence[QuestionLayout]) -> List[DetectedAnswer]:
    logger.info(f"Detecting marked bubbles for {len(layouts)} questions")
    detections = [detect_answer(field, question_layout) for question_layout in layouts]
    blank = sum(1 for d in detections if d.detected is None)
    logger.info(f"Detected {len(detections) - blank} marked questions, {blank} without a mark")
    return detections
