from fastapi import APIRouter, HTTPException, Depends, Query
from fastapi.responses import StreamingResponse, Response
import cv2
import logging

from models.exam import Exam
from omr.layout import resolve_layout, questions_per_column
from omr.sheet import generate_sheet_pdf, render_sheet_image
from routers.exams import load_exam

router = APIRouter()

# Set up logging
logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)

def get_database():
    from main import app
    return app.state.database

def sheet_filename(exam: Exam, suffix: str) -> str:
    sanitized = ''.join(c for c in exam.title if c.isalnum() or c in (' ', '_')).replace(' ', '_')
    return f"{sanitized or 'Exam'}_{suffix}"

@router.get("/{exam_id}/sheet")
async def download_answer_sheet(exam_id: str, db=Depends(get_database)):
    try:
        exam = await load_exam(db, exam_id)
        pdf_buffer = generate_sheet_pdf(exam)

        return StreamingResponse(
            pdf_buffer,
            media_type="application/pdf",
            headers={"Content-Disposition": f"attachment; filename={sheet_filename(exam, 'Answer_Sheet.pdf')}"}
        )
    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Error generating answer sheet for exam {exam_id}: {str(e)}")
        raise HTTPException(status_code=500, detail=f"Failed to generate answer sheet: {str(e)}")

@router.get("/{exam_id}/preview")
async def preview_answer_sheet(
    exam_id: str,
    width: int = Query(1240, ge=200, le=5000),
    db=Depends(get_database)
):
    """PNG preview at ``width`` pixels, keeping the A4 proportions the grader expects."""
    try:
        exam = await load_exam(db, exam_id)
        height = round(width * 297 / 210)
        pixels = render_sheet_image(exam, width, height)

        ok, buffer = cv2.imencode('.png', cv2.cvtColor(pixels, cv2.COLOR_RGB2BGR))
        if not ok:
            raise ValueError("Could not encode preview")

        return Response(content=buffer.tobytes(), media_type="image/png")
    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Error rendering preview for exam {exam_id}: {str(e)}")
        raise HTTPException(status_code=500, detail=f"Failed to render preview: {str(e)}")

@router.get("/{exam_id}/layout")
async def get_sheet_layout(exam_id: str, db=Depends(get_database)):
    """Bubble rectangles as fractions of the page, for capture guides and debugging."""
    try:
        exam = await load_exam(db, exam_id)
        layouts = resolve_layout(exam.questions, exam.layoutConfig, (1.0, 1.0))

        return {
            "examId": exam.examId,
            "layoutConfig": exam.layoutConfig.model_dump(mode="json"),
            "questionsPerColumn": questions_per_column(len(exam.questions), exam.layoutConfig.columnCount),
            "questions": [question_layout.to_dict() for question_layout in layouts]
        }
    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Error resolving layout for exam {exam_id}: {str(e)}")
        raise HTTPException(status_code=500, detail=f"Failed to resolve layout: {str(e)}")
