"""Bubble geometry shared by the sheet renderer and the grader.

Every position is a fraction of the full page width or height, so the same
call places bubbles on a PDF page in points and on a photograph in pixels.
Nothing else in the project computes where a bubble is.
"""
import math
from dataclasses import dataclass
from typing import Any, Dict, Iterable, Iterator, List, Sequence, Tuple

from models.exam import BubbleSize, LayoutConfig, Question

# Layout Geometry Configuration (fractions of page width / height)
MARGIN_LEFT_PCT = 0.10
MARGIN_RIGHT_PCT = 0.10
START_Y_PCT = 0.34
QUESTION_NUM_OFFSET_PCT = 0.04  # clearance for the printed question number
BUBBLE_SPACING_PCT = 0.055
BUBBLE_WIDTH_PCT = 0.035
BUBBLE_HEIGHT_RATIO = 0.75  # of the row height
ROW_HEIGHT_PCT = {
    BubbleSize.SMALL: 0.028,
    BubbleSize.MEDIUM: 0.033,
    BubbleSize.LARGE: 0.040,
}
DEFAULT_ROW_HEIGHT_PCT = 0.033


@dataclass(frozen=True)
class PixelRect:
    x: int
    y: int
    width: int
    height: int

    def fits(self, width: int, height: int) -> bool:
        """True when the rectangle is non-empty and lies wholly inside a width x height raster."""
        return (
            self.width > 0
            and self.height > 0
            and self.x >= 0
            and self.y >= 0
            and self.x + self.width <= width
            and self.y + self.height <= height
        )


@dataclass(frozen=True)
class BubbleRegion:
    label: str
    x: float
    y: float
    width: float
    height: float

    def to_pixels(self) -> PixelRect:
        return PixelRect(
            x=math.floor(self.x),
            y=math.floor(self.y),
            width=math.floor(self.width),
            height=math.floor(self.height),
        )


@dataclass(frozen=True)
class QuestionLayout:
    number: int
    column: int
    row: int
    regions: Tuple[BubbleRegion, ...]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "number": self.number,
            "column": self.column,
            "row": self.row,
            "bubbles": [
                {"label": r.label, "x": r.x, "y": r.y, "width": r.width, "height": r.height}
                for r in self.regions
            ],
        }


def row_height_fraction(layout: LayoutConfig) -> float:
    return ROW_HEIGHT_PCT.get(layout.bubbleSize, DEFAULT_ROW_HEIGHT_PCT)


def questions_per_column(question_count: int, column_count: int) -> int:
    return math.ceil(question_count / column_count)


def resolve_layout(
    questions: Sequence[Question],
    layout: LayoutConfig,
    page_size: Tuple[float, float],
) -> List[QuestionLayout]:
    """Place every bubble of every question on a page of ``page_size`` (width, height).

    Questions fill columns in contiguous blocks of ``ceil(N / columnCount)``;
    the last column may be short or empty. Regions come back in label order.
    """
    width, height = page_size
    column_count = layout.columnCount

    start_y = height * START_Y_PCT
    row_h = height * row_height_fraction(layout)
    usable_width = width * (1 - MARGIN_LEFT_PCT - MARGIN_RIGHT_PCT)
    col_width = usable_width / column_count
    num_offset = width * QUESTION_NUM_OFFSET_PCT
    spacing = width * BUBBLE_SPACING_PCT
    bubble_w = width * BUBBLE_WIDTH_PCT
    bubble_h = row_h * BUBBLE_HEIGHT_RATIO

    per_column = questions_per_column(len(questions), column_count)
    layouts = []
    for index, question in enumerate(questions):
        col_index = index // per_column
        row_index = index % per_column

        col_start_x = (width * MARGIN_LEFT_PCT) + (col_index * col_width) + num_offset
        y = start_y + (row_index * row_h)

        regions = tuple(
            BubbleRegion(
                label=label,
                x=col_start_x + (i * spacing),
                y=y,
                width=bubble_w,
                height=bubble_h,
            )
            for i, label in enumerate(question.labels())
        )
        layouts.append(QuestionLayout(number=question.number, column=col_index, row=row_index, regions=regions))

    return layouts


def column_right_edge(column: int, layout: LayoutConfig, page_width: float) -> float:
    usable_width = page_width * (1 - MARGIN_LEFT_PCT - MARGIN_RIGHT_PCT)
    return page_width * MARGIN_LEFT_PCT + (column + 1) * usable_width / layout.columnCount


def overflowing_regions(
    question_layout: QuestionLayout,
    layout: LayoutConfig,
    page_width: float,
) -> List[BubbleRegion]:
    """Bubbles that run past the right edge of their column band.

    Such bubbles land in the next column (or off the page) and would share
    pixels with another question.
    """
    right = column_right_edge(question_layout.column, layout, page_width)
    return [region for region in question_layout.regions if region.x + region.width > right]


def iter_regions(layouts: Iterable[QuestionLayout]) -> Iterator[BubbleRegion]:
    for question_layout in layouts:
        yield from question_layout.regions
