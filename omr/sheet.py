"""Printable answer sheet (PDF) and raster preview.

Both renderers take bubble positions from :func:`omr.layout.resolve_layout`,
the same call the grader makes, and draw each bubble as a circle inscribed in
its sampling rectangle. The corner squares are printed for the student's
framing only; grading does not look for them.
"""
import io
import logging
import numpy as np
from typing import Dict, Optional
from PIL import Image, ImageDraw, ImageFont
from reportlab.pdfgen import canvas
from reportlab.lib.pagesizes import A4

from models.exam import Exam
from omr.layout import (
    MARGIN_LEFT_PCT,
    MARGIN_RIGHT_PCT,
    START_Y_PCT,
    overflowing_regions,
    questions_per_column,
    resolve_layout,
)

logger = logging.getLogger(__name__)

PAGE_SIZE = A4

# Sheet decoration (fractions of page width / height, y measured from the top)
CORNER_MARK_PCT = 0.025
CORNER_INSET_PCT = 0.038
SCHOOL_Y_PCT = 0.08
TITLE_Y_PCT = 0.12
NAME_BOX_TOP_PCT = 0.16
NAME_BOX_BOTTOM_PCT = 0.28
GRID_BOTTOM_PCT = 0.95
FOOTER_Y_PCT = 0.985
NUMBER_GAP_PCT = 0.008


def exam_code(exam: Exam) -> str:
    return exam.examId.split("-")[0]


def generate_sheet_pdf(exam: Exam) -> io.BytesIO:
    """Draw a one-page A4 answer sheet for ``exam``."""
    try:
        buffer = io.BytesIO()
        p = canvas.Canvas(buffer, pagesize=PAGE_SIZE)
        width, height = PAGE_SIZE
        p.setTitle(exam.title)

        # Corner squares
        mark = width * CORNER_MARK_PCT
        inset = width * CORNER_INSET_PCT
        for x in (inset, width - inset - mark):
            for y in (inset, height - inset - mark):
                p.rect(x, y, mark, mark, stroke=0, fill=1)

        # Header
        p.setFont("Helvetica-Bold", 16)
        p.drawCentredString(width / 2, height - height * SCHOOL_Y_PCT, exam.schoolName or "School")
        p.setFont("Helvetica", 11)
        details = [f"Exam: {exam.title}"]
        if exam.subject:
            details.append(f"Subject: {exam.subject}")
        if exam.gradeLevel:
            details.append(f"Grade: {exam.gradeLevel}")
        p.drawCentredString(width / 2, height - height * TITLE_Y_PCT, "    ".join(details))

        # Student name box
        left = width * MARGIN_LEFT_PCT
        right = width * (1 - MARGIN_RIGHT_PCT)
        box_top = height - height * NAME_BOX_TOP_PCT
        box_bottom = height - height * NAME_BOX_BOTTOM_PCT
        p.setLineWidth(1.2)
        p.rect(left, box_bottom, right - left, box_top - box_bottom)
        p.setFont("Helvetica-Bold", 10)
        p.drawString(left + 8, box_top - 16, "Student name:")
        p.setDash(2, 2)
        p.line(left + 12, box_bottom + 18, right - 12, box_bottom + 18)
        p.setDash()

        # Column dividers
        column_count = exam.layoutConfig.columnCount
        col_width = (right - left) / column_count
        p.setStrokeColorRGB(0.75, 0.75, 0.75)
        p.setLineWidth(0.5)
        for col in range(1, column_count):
            x = left + col * col_width
            p.line(x, height - height * START_Y_PCT, x, height - height * GRID_BOTTOM_PCT)
        p.setStrokeColorRGB(0, 0, 0)
        p.setLineWidth(0.8)

        # Bubbles
        layouts = resolve_layout(exam.questions, exam.layoutConfig, PAGE_SIZE)
        for question_layout in layouts:
            first = question_layout.regions[0]
            if first.y + first.height > height:
                logger.warning(f"Q{question_layout.number} does not fit on the page - not printed")
                continue

            number_size = first.height * 0.55
            center_y = height - (first.y + first.height / 2)
            p.setFont("Helvetica-Bold", number_size)
            p.drawRightString(first.x - width * NUMBER_GAP_PCT, center_y - number_size * 0.35, str(question_layout.number))

            spill = overflowing_regions(question_layout, exam.layoutConfig, width)
            if spill:
                logger.warning(
                    f"Q{question_layout.number} bubbles {[r.label for r in spill]} run past column "
                    f"{question_layout.column + 1} - not printed"
                )

            for region in question_layout.regions:
                if region in spill:
                    continue
                radius = min(region.width, region.height) / 2
                cx = region.x + region.width / 2
                cy = height - (region.y + region.height / 2)
                p.circle(cx, cy, radius, stroke=1, fill=0)
                p.setFont("Helvetica", radius * 0.9)
                p.drawCentredString(cx, cy - radius * 0.3, region.label)

        # Footer
        p.setFont("Courier", 7)
        p.setFillColorRGB(0.6, 0.6, 0.6)
        p.drawCentredString(width / 2, height - height * FOOTER_Y_PCT, f"Q-CODE: {exam_code(exam)} | {len(exam.questions)} questions")
        p.setFillColorRGB(0, 0, 0)

        p.showPage()
        p.save()
        buffer.seek(0)
        logger.info(
            f"Answer sheet generated for exam {exam.examId}: {len(exam.questions)} questions, "
            f"{questions_per_column(len(exam.questions), column_count)} per column"
        )
        return buffer

    except Exception as e:
        logger.error(f"Failed to generate answer sheet for exam {exam.examId}: {str(e)}")
        raise ValueError(f"Failed to generate answer sheet: {str(e)}")


def _text_size(draw: ImageDraw.ImageDraw, text: str, font) -> tuple:
    bbox = draw.textbbox((0, 0), text, font=font)
    return bbox[2] - bbox[0], bbox[3] - bbox[1]


def render_sheet_image(
    exam: Exam,
    width: int,
    height: int,
    marks: Optional[Dict[int, str]] = None,
) -> np.ndarray:
    """Rasterize the answer sheet at ``width`` x ``height`` as an RGB array.

    ``marks`` maps question numbers to a label whose bubble is filled solid,
    which is how a pencil mark looks after binarization.
    """
    marks = marks or {}
    img = Image.new("RGB", (width, height), "white")
    draw = ImageDraw.Draw(img)
    font = ImageFont.load_default()

    mark = round(width * CORNER_MARK_PCT)
    inset = round(width * CORNER_INSET_PCT)
    for x in (inset, width - inset - mark):
        for y in (inset, height - inset - mark):
            draw.rectangle([x, y, x + mark - 1, y + mark - 1], fill="black")

    header = exam.schoolName or "School"
    text_w, _ = _text_size(draw, header, font)
    draw.text(((width - text_w) // 2, round(height * SCHOOL_Y_PCT)), header, fill="black", font=font)
    title = f"Exam: {exam.title}"
    text_w, _ = _text_size(draw, title, font)
    draw.text(((width - text_w) // 2, round(height * TITLE_Y_PCT)), title, fill="black", font=font)
    draw.rectangle(
        [
            round(width * MARGIN_LEFT_PCT),
            round(height * NAME_BOX_TOP_PCT),
            round(width * (1 - MARGIN_RIGHT_PCT)),
            round(height * NAME_BOX_BOTTOM_PCT),
        ],
        outline="black",
        width=max(1, round(width * 0.002)),
    )

    outline = max(1, round(width * 0.002))
    for question_layout in resolve_layout(exam.questions, exam.layoutConfig, (width, height)):
        first = question_layout.regions[0]
        if first.y + first.height > height:
            continue

        number = str(question_layout.number)
        text_w, text_h = _text_size(draw, number, font)
        draw.text(
            (first.x - width * NUMBER_GAP_PCT - text_w, first.y + (first.height - text_h) / 2),
            number,
            fill="black",
            font=font,
        )

        spill = overflowing_regions(question_layout, exam.layoutConfig, width)
        if spill:
            logger.warning(
                f"Q{question_layout.number} bubbles {[r.label for r in spill]} run past column "
                f"{question_layout.column + 1} - not drawn"
            )

        for region in question_layout.regions:
            if region in spill:
                continue
            diameter = min(region.width, region.height)
            left = region.x + (region.width - diameter) / 2
            top = region.y + (region.height - diameter) / 2
            box = [left, top, left + diameter - 1, top + diameter - 1]
            if marks.get(question_layout.number) == region.label:
                draw.ellipse(box, fill="black", outline="black")
            else:
                draw.ellipse(box, outline="black", width=outline)

    return np.asarray(img, dtype=np.uint8).copy()
