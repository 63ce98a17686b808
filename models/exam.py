from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator
from typing import Optional, List
from datetime import datetime
from enum import Enum
import uuid

LETTERS = ["A", "B", "C", "D", "E", "F", "G", "H", "I", "J"]
TRUE_FALSE_LABELS = ["F", "T"]  # printed order, not alphabetical


class QuestionType(str, Enum):
    SINGLE_CHOICE = "SINGLE_CHOICE"
    TRUE_FALSE = "TRUE_FALSE"
    MATCHING = "MATCHING"


class BubbleSize(str, Enum):
    SMALL = "small"
    MEDIUM = "medium"
    LARGE = "large"


class BubbleSpacing(str, Enum):
    COMPACT = "compact"
    NORMAL = "normal"
    WIDE = "wide"


# Short size codes saved by older sheet editors
_SIZE_ALIASES = {"sm": "small", "md": "medium", "lg": "large"}


class Question(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str = Field(default_factory=lambda: str(uuid.uuid4()))
    number: int = Field(..., ge=1)
    type: QuestionType = QuestionType.SINGLE_CHOICE
    optionsCount: int = Field(4, ge=2, le=len(LETTERS))
    correctAnswer: str

    def labels(self) -> List[str]:
        """Bubble labels in the left-to-right order they are printed."""
        if self.type == QuestionType.TRUE_FALSE:
            return list(TRUE_FALSE_LABELS)
        return LETTERS[:self.optionsCount]

    @model_validator(mode="after")
    def validate_correct_answer(self):
        """Ensure the key is one of the bubbles printed for this question."""
        valid_answers = self.labels()
        if self.correctAnswer not in valid_answers:
            raise ValueError(
                f"Question {self.number}: answer must be one of {valid_answers}, got {self.correctAnswer}"
            )
        return self


class LayoutConfig(BaseModel):
    model_config = ConfigDict(frozen=True)

    columnCount: int = Field(2, ge=1, le=3)
    bubbleSize: BubbleSize = BubbleSize.MEDIUM
    bubbleSpacing: BubbleSpacing = BubbleSpacing.NORMAL

    @field_validator("bubbleSize", mode="before")
    @classmethod
    def expand_size_alias(cls, value):
        if isinstance(value, str):
            return _SIZE_ALIASES.get(value, value)
        return value


class ExamCreate(BaseModel):
    examId: Optional[str] = None
    title: str
    subject: str = ""
    gradeLevel: str = ""
    schoolName: str = ""
    questions: List[Question] = []
    layoutConfig: LayoutConfig = LayoutConfig()
    createdAt: Optional[datetime] = None

    @field_validator("questions")
    @classmethod
    def validate_numbering(cls, questions):
        """Question numbers must run 1..N in sheet order."""
        numbers = [q.number for q in questions]
        if numbers != list(range(1, len(questions) + 1)):
            raise ValueError(f"Question numbers must run 1..{len(questions)} in order, got {numbers}")
        return questions

    @model_validator(mode="after")
    def validate_columns_fit(self):
        """Every bubble has to stay inside its own column band."""
        from omr.layout import overflowing_regions, resolve_layout

        for question_layout in resolve_layout(self.questions, self.layoutConfig, (1.0, 1.0)):
            spill = overflowing_regions(question_layout, self.layoutConfig, 1.0)
            if spill:
                raise ValueError(
                    f"Question {question_layout.number}: bubbles {[r.label for r in spill]} do not fit "
                    f"a {self.layoutConfig.columnCount}-column layout, use fewer options or columns"
                )
        return self


class Exam(ExamCreate):
    examId: str
    createdAt: datetime
