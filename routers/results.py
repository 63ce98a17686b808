from fastapi import APIRouter, HTTPException, Depends
from typing import Optional
from models.result import GradingResult, StoredResult
import uuid
import logging

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)

router = APIRouter()

def get_database():
    from main import app
    return app.state.database

async def save_result(db, result: GradingResult, student_id: Optional[str] = None, source_file: Optional[str] = None) -> str:
    """Persist a grading result as-is and return its id."""
    stored = StoredResult(
        **result.model_dump(),
        resultId=str(uuid.uuid4()),
        studentId=student_id,
        sourceFile=source_file,
    )
    result_data = stored.model_dump(mode="json")
    result_data["gradedAt"] = stored.gradedAt

    await db.results.insert_one(result_data)
    logger.info(f"Result {stored.resultId} saved for exam {stored.examId}: {stored.rawScore}/{stored.maxScore}")
    return stored.resultId

@router.get("/exam/{exam_id}")
async def get_exam_results(
    exam_id: str,
    page: int = 1,
    limit: int = 20,
    order: str = "desc",
    db=Depends(get_database)
):
    try:
        # Verify exam exists
        exam = await db.exams.find_one({"examId": exam_id})
        if not exam:
            raise HTTPException(status_code=404, detail="Exam not found")

        sort_order = -1 if order == "desc" else 1
        page = max(1, page)
        limit = max(1, limit)
        skip = (page - 1) * limit

        cursor = db.results.find({"examId": exam_id}).sort("gradedAt", sort_order).skip(skip).limit(limit)
        results = await cursor.to_list(length=None)

        total = await db.results.count_documents({"examId": exam_id})

        # Convert ObjectId to string
        for result in results:
            result['_id'] = str(result['_id'])

        stats = await calculate_exam_stats(exam_id, db)

        return {
            "results": results,
            "pagination": {
                "page": page,
                "limit": limit,
                "total": total,
                "pages": (total + limit - 1) // limit
            },
            "statistics": stats
        }

    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Failed to fetch results for exam {exam_id}: {str(e)}")
        raise HTTPException(status_code=500, detail="Failed to fetch results")

@router.get("/{result_id}")
async def get_result(result_id: str, db=Depends(get_database)):
    try:
        result = await db.results.find_one({"resultId": result_id})
        if not result:
            raise HTTPException(status_code=404, detail="Result not found")

        result['_id'] = str(result['_id'])
        return result
    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Failed to fetch result {result_id}: {str(e)}")
        raise HTTPException(status_code=500, detail="Failed to fetch result")

async def calculate_exam_stats(exam_id: str, db):
    cursor = db.results.find({"examId": exam_id})
    results = await cursor.to_list(length=None)

    if not results:
        return {
            "totalSheets": 0,
            "averagePercentage": 0,
            "highestScore": 0,
            "lowestScore": 0,
            "unansweredRate": 0
        }

    scores = [r["rawScore"] for r in results]
    percentages = [r["percentage"] for r in results]
    answered = [a for r in results for a in r["answers"].values()]
    unanswered = len([a for a in answered if a is None])

    return {
        "totalSheets": len(results),
        "averagePercentage": round(sum(percentages) / len(percentages), 2),
        "highestScore": max(scores),
        "lowestScore": min(scores),
        "unansweredRate": round(unanswered / len(answered) * 100, 2) if answered else 0
    }
