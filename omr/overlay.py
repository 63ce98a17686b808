import base64
import cv2
import numpy as np
import logging
from PIL import Image, ImageDraw, ImageFont

from models.exam import Exam
from models.result import GradingResult
from omr.image import ScannedImage
from omr.layout import resolve_layout

logger = logging.getLogger(__name__)

# Result overlay configuration
RESULT_FOOTER_REGION = (0.3, 0.955, 0.4, 0.04)  # (x_start, y_start, width, height) as ratios
CORRECT_COLOR = (0, 160, 0)
WRONG_COLOR = (220, 0, 0)
SAMPLED_COLOR = (150, 150, 150)


def _load_font(size: int):
    try:
        return ImageFont.truetype("DejaVuSans-Bold.ttf", size)
    except OSError:
        return ImageFont.load_default()


def annotate_result(image: ScannedImage, exam: Exam, result: GradingResult) -> bytes:
    """Draw the sampled bubble rectangles and the score on a copy of the sheet, as JPEG bytes."""
    logger.info(f"Overlaying result on sheet: {result.rawScore}/{result.maxScore}")

    pil_img = Image.fromarray(np.ascontiguousarray(image.pixels[:, :, :3]))
    draw = ImageDraw.Draw(pil_img)
    img_width, img_height = image.width, image.height
    line = max(1, img_width // 400)

    for question_layout in resolve_layout(exam.questions, exam.layoutConfig, (img_width, img_height)):
        detected = result.answers.get(question_layout.number)
        correct = result.correctness.get(question_layout.number, False)
        for region in question_layout.regions:
            rect = region.to_pixels()
            if not rect.fits(img_width, img_height):
                continue
            if region.label == detected:
                color = CORRECT_COLOR if correct else WRONG_COLOR
            else:
                color = SAMPLED_COLOR
            draw.rectangle(
                [rect.x, rect.y, rect.x + rect.width - 1, rect.y + rect.height - 1],
                outline=color,
                width=line,
            )

    x_start = int(img_width * RESULT_FOOTER_REGION[0])
    y_start = int(img_height * RESULT_FOOTER_REGION[1])
    region_width = int(img_width * RESULT_FOOTER_REGION[2])

    font = _load_font(max(12, int(img_width * 0.02)))
    text = f"{result.rawScore}/{result.maxScore}  ({result.percentage:.0f}%)"
    bbox = draw.textbbox((0, 0), text, font=font)
    text_x = x_start + (region_width - (bbox[2] - bbox[0])) // 2
    draw.text((text_x, y_start), text, fill=WRONG_COLOR, font=font)

    ok, buffer = cv2.imencode(".jpg", cv2.cvtColor(np.array(pil_img), cv2.COLOR_RGB2BGR))
    if not ok:
        raise ValueError("Could not encode annotated image")
    return buffer.tobytes()


def annotate_result_base64(image: ScannedImage, exam: Exam, result: GradingResult) -> str:
    return base64.b64encode(annotate_result(image, exam, result)).decode("utf-8")
