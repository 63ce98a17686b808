from fastapi import APIRouter, HTTPException, Depends, UploadFile, File, Form
from datetime import datetime
import numpy as np
import logging
from typing import List, Optional

from models.exam import Exam
from omr.decision import FILL_THRESHOLD
from omr.errors import OMRError
from omr.grader import grade_sheet
from omr.image import ScannedImage, THRESHOLD_VALUE, LUMA_WEIGHTS, binarize
from omr import layout as geometry
from omr.overlay import annotate_result_base64
from omr.sheet import PAGE_SIZE
from routers.exams import load_exam
from routers.results import save_result

# Set up logging
logging.basicConfig(level=logging.INFO, format='%(asctime)s - %(levelname)s - %(message)s')
logger = logging.getLogger(__name__)

router = APIRouter()

def get_database():
    from main import app
    return app.state.database

# Image validation configuration
MIN_WIDTH = 600
MIN_HEIGHT = 800
ASPECT_RATIO_TOLERANCE = 0.05
PAGE_ASPECT_RATIO = PAGE_SIZE[0] / PAGE_SIZE[1]

def is_image_upload(upload: UploadFile) -> bool:
    return bool(upload.content_type) and upload.content_type.startswith('image/')

def grade_upload(image_data: bytes, exam: Exam) -> dict:
    """Grade one uploaded sheet and return the result with its annotated image."""
    scanned = ScannedImage.from_bytes(image_data)
    result = grade_sheet(scanned, exam)
    return {
        "result": result,
        "processedImage": annotate_result_base64(scanned, exam, result)
    }

@router.post("/process")
async def process_answer_sheet(
    image: UploadFile = File(...),
    examId: str = Form(...),
    studentId: Optional[str] = Form(None),
    save: bool = Form(True),
    db=Depends(get_database)
):
    """Process a single answer sheet image."""
    try:
        logger.info(f"Processing answer sheet for exam {examId}, student {studentId}")
        if not is_image_upload(image):
            raise HTTPException(status_code=400, detail="File must be an image")

        exam = await load_exam(db, examId)
        image_data = await image.read()

        graded = grade_upload(image_data, exam)
        result = graded["result"]

        result_id = None
        if save:
            result_id = await save_result(db, result, student_id=studentId, source_file=image.filename)

        logger.info(f"Answer sheet processed successfully: {result.rawScore}/{result.maxScore} ({result.percentage:.1f}%)")
        return {
            "success": True,
            "examId": examId,
            "studentId": studentId,
            "resultId": result_id,
            "result": result.model_dump(mode="json"),
            "processedImage": graded["processedImage"],
            "processingTime": datetime.utcnow().isoformat()
        }
    except HTTPException:
        raise
    except OMRError as e:
        logger.error(f"Answer sheet rejected: {str(e)}")
        raise HTTPException(status_code=400, detail=str(e))
    except Exception as e:
        logger.error(f"Failed to process answer sheet: {str(e)}")
        raise HTTPException(status_code=500, detail=f"Processing failed: {str(e)}")

@router.post("/batch-process")
async def batch_process_answer_sheets(
    images: List[UploadFile] = File(...),
    examId: str = Form(...),
    save: bool = Form(True),
    db=Depends(get_database)
):
    """Process multiple answer sheets in batch."""
    try:
        logger.info(f"Batch processing {len(images)} answer sheets for exam {examId}")
        exam = await load_exam(db, examId)
        if not exam.questions:
            raise HTTPException(status_code=400, detail=f"Exam {examId} has no questions")

        results = []
        for i, image in enumerate(images):
            student_id = f"STUDENT_{str(i+1).zfill(3)}"
            try:
                if not is_image_upload(image):
                    logger.warning(f"Skipping non-image file: {image.filename}")
                    results.append({
                        "studentId": student_id,
                        "filename": image.filename,
                        "success": False,
                        "error": "File must be an image"
                    })
                    continue

                image_data = await image.read()
                graded = grade_upload(image_data, exam)
                result = graded["result"]

                result_id = None
                if save:
                    result_id = await save_result(db, result, student_id=student_id, source_file=image.filename)

                results.append({
                    "studentId": student_id,
                    "filename": image.filename,
                    "resultId": result_id,
                    "result": result.model_dump(mode="json"),
                    "processedImage": graded["processedImage"],
                    "success": True
                })
                logger.info(f"Processed {student_id}: {result.rawScore}/{result.maxScore} ({result.percentage:.1f}%)")

            except Exception as e:
                logger.error(f"Failed to process image {i+1} ({image.filename}): {str(e)}")
                results.append({
                    "studentId": student_id,
                    "filename": image.filename,
                    "success": False,
                    "error": str(e)
                })

        return {
            "success": True,
            "examId": examId,
            "totalImages": len(images),
            "processedSuccessfully": len([r for r in results if r.get("success", False)]),
            "results": results,
            "processingTime": datetime.utcnow().isoformat()
        }

    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Batch processing failed: {str(e)}")
        raise HTTPException(status_code=500, detail=f"Batch processing failed: {str(e)}")

@router.post("/validate-image")
async def validate_image_for_omr(
    image: UploadFile = File(...)
):
    """Check whether a photo is framed and exposed well enough for fixed-frame grading."""
    try:
        image_data = await image.read()
        try:
            scanned = ScannedImage.from_bytes(image_data)
        except OMRError:
            return {
                "valid": False,
                "message": "Could not decode image file",
                "recommendations": ["Ensure the file is a valid image format (JPG, PNG, etc.)"]
            }

        width, height = scanned.width, scanned.height
        recommendations = []
        warnings = []

        if width < MIN_WIDTH or height < MIN_HEIGHT:
            warnings.append(f"Low resolution ({width}x{height}). Recommend at least {MIN_WIDTH}x{MIN_HEIGHT} for better accuracy")

        aspect_ratio = width / height
        aspect_ok = abs(aspect_ratio - PAGE_ASPECT_RATIO) <= ASPECT_RATIO_TOLERANCE
        if not aspect_ok:
            warnings.append(f"Aspect ratio {aspect_ratio:.3f} does not match the sheet ({PAGE_ASPECT_RATIO:.3f})")
            recommendations.append("Crop the photo to the sheet edges so the corner squares sit in the image corners")

        rgb = scanned.pixels[:, :, :3].astype(np.float64)
        mean_brightness = float(np.mean(rgb @ np.array(LUMA_WEIGHTS)))
        dark_ratio = float(np.mean(binarize(scanned)))

        if mean_brightness < 80:
            warnings.append("Image appears too dark - may affect bubble detection")
            recommendations.append("Increase brightness or improve lighting when capturing")
        elif dark_ratio > 0.5:
            warnings.append(f"{dark_ratio:.0%} of the image is below the mark threshold")
            recommendations.append("Avoid shadows across the sheet")

        return {
            "valid": aspect_ok and mean_brightness >= 80,
            "image_info": {
                "width": width,
                "height": height,
                "channels": int(scanned.pixels.shape[2]),
                "mean_brightness": round(mean_brightness, 2),
                "dark_ratio": round(dark_ratio, 4),
                "file_size": len(image_data)
            },
            "warnings": warnings,
            "recommendations": recommendations,
            "message": "Image validation completed"
        }
    except Exception as e:
        logger.error(f"Image validation failed: {str(e)}")
        return {
            "valid": False,
            "message": f"Validation failed: {str(e)}",
            "recommendations": ["Ensure the file is a valid image and try again"]
        }

@router.get("/processing-config")
async def get_processing_config():
    """Get current OMR processing configuration."""
    return {
        "binarization": {
            "threshold": THRESHOLD_VALUE,
            "luma_weights": LUMA_WEIGHTS
        },
        "fill_detection": {
            "fill_threshold": FILL_THRESHOLD
        },
        "layout": {
            "margin_left": geometry.MARGIN_LEFT_PCT,
            "margin_right": geometry.MARGIN_RIGHT_PCT,
            "start_y": geometry.START_Y_PCT,
            "question_number_offset": geometry.QUESTION_NUM_OFFSET_PCT,
            "bubble_spacing": geometry.BUBBLE_SPACING_PCT,
            "bubble_width": geometry.BUBBLE_WIDTH_PCT,
            "bubble_height_ratio": geometry.BUBBLE_HEIGHT_RATIO,
            "row_heights": {size.value: pct for size, pct in geometry.ROW_HEIGHT_PCT.items()}
        },
        "page": {
            "width": PAGE_SIZE[0],
            "height": PAGE_SIZE[1],
            "aspect_ratio": PAGE_ASPECT_RATIO
        }
    }
