from fastapi import APIRouter, HTTPException, Depends
from typing import List
from models.exam import ExamCreate, Exam
from datetime import datetime
import uuid
import logging

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)

router = APIRouter()

def get_database():
    from main import app
    return app.state.database

async def load_exam(db, exam_id: str) -> Exam:
    """Fetch an exam with its frozen layout, or 404."""
    exam = await db.exams.find_one({"examId": exam_id})
    if not exam:
        raise HTTPException(status_code=404, detail="Exam not found")
    exam.pop("_id", None)
    return Exam.model_validate(exam)

@router.post("/", response_model=dict)
async def create_exam(exam: ExamCreate, db=Depends(get_database)):
    try:
        # Layout defaults are resolved here and stored with the exam, so the
        # printed sheet and every later grading pass use the same geometry
        stored = Exam(
            **exam.model_dump(exclude={"examId", "createdAt"}),
            examId=exam.examId or str(uuid.uuid4()),
            createdAt=exam.createdAt or datetime.utcnow(),
        )
        exam_data = stored.model_dump(mode="json")
        exam_data["createdAt"] = stored.createdAt

        await db.exams.insert_one(exam_data)
        logger.info(f"Exam {stored.examId} created with {len(stored.questions)} questions")

        return {
            "examId": stored.examId,
            "layoutConfig": stored.layoutConfig.model_dump(mode="json"),
            "message": "Exam created successfully"
        }
    except Exception as e:
        logger.error(f"Failed to create exam: {str(e)}")
        raise HTTPException(status_code=500, detail="Failed to create exam")

@router.get("/", response_model=List[dict])
async def get_all_exams(db=Depends(get_database)):
    try:
        cursor = db.exams.find().sort("createdAt", -1)
        exams = await cursor.to_list(length=None)

        # Convert ObjectId to string
        for exam in exams:
            exam['_id'] = str(exam['_id'])

        return exams
    except Exception as e:
        logger.error(f"Failed to fetch exams: {str(e)}")
        raise HTTPException(status_code=500, detail="Failed to fetch exams")

@router.get("/{exam_id}", response_model=dict)
async def get_exam(exam_id: str, db=Depends(get_database)):
    try:
        exam = await load_exam(db, exam_id)
        return exam.model_dump(mode="json")
    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Failed to fetch exam {exam_id}: {str(e)}")
        raise HTTPException(status_code=500, detail="Failed to fetch exam")

@router.delete("/{exam_id}")
async def delete_exam(exam_id: str, db=Depends(get_database)):
    try:
        result = await db.exams.delete_one({"examId": exam_id})

        if result.deleted_count == 0:
            raise HTTPException(status_code=404, detail="Exam not found")

        return {"message": "Exam deleted successfully"}
    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Failed to delete exam {exam_id}: {str(e)}")
        raise HTTPException(status_code=500, detail="Failed to delete exam")
