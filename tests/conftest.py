from datetime import datetime

import numpy as np
import pytest

from models.exam import Exam, LayoutConfig, Question, QuestionType

# Roughly A4 proportions
WIDTH = 850
HEIGHT = 1202

GRADED_AT = datetime(2024, 5, 1, 9, 30)


def make_exam(keys, types=None, options=4, column_count=2, bubble_size="medium", exam_id="exam-1"):
    types = types or [QuestionType.SINGLE_CHOICE] * len(keys)
    questions = [
        Question(id=f"q{i + 1}", number=i + 1, type=qtype, optionsCount=options, correctAnswer=key)
        for i, (key, qtype) in enumerate(zip(keys, types))
    ]
    return Exam(
        examId=exam_id,
        title="Unit test",
        subject="Science",
        gradeLevel="7",
        schoolName="North School",
        questions=questions,
        layoutConfig=LayoutConfig(columnCount=column_count, bubbleSize=bubble_size),
        createdAt=GRADED_AT,
    )


def blank_pixels(width=WIDTH, height=HEIGHT, channels=3):
    return np.full((height, width, channels), 255, dtype=np.uint8)


def fill_rect(pixels, rect, value=0, rows=None):
    """Darken ``rows`` rows (default all) of a pixel rectangle."""
    rows = rect.height if rows is None else rows
    pixels[rect.y:rect.y + rows, rect.x:rect.x + rect.width, :3] = value


@pytest.fixture
def four_question_exam():
    return make_exam(["A", "B", "C", "D"])
