import logging
import re
from typing import Any, Dict, Optional

from fastapi import APIRouter, Depends, HTTPException
from pymongo.errors import DuplicateKeyError

from auth import CurrentStudent, get_current_student
from database import collection, get_document, get_documents, now, to_str_id
from errors import internal_error
from schemas import Result, SubmitExamIn
from scoring import score_answers
from settings import Settings, get_settings

logger = logging.getLogger(__name__)

router = APIRouter(tags=["exams"])


def public_exam(exam: Dict[str, Any], settings: Settings) -> Dict[str, Any]:
    """Exam payload for students; correct answers removed unless exposed."""
    exam = to_str_id(exam)
    if settings.EXPOSE_ANSWERS:
        return exam
    exam["questions"] = [
        {k: v for k, v in q.items() if k != "correctAnswer"}
        for q in exam.get("questions", [])
    ]
    return exam


def list_exams(query: Dict[str, Any], settings: Settings):
    exams = collection("exam").find(query).sort([("conductedAt", -1), ("_id", -1)])
    return [public_exam(e, settings) for e in exams]


@router.get("/active-exams")
def active_exams(classNum: Optional[int] = None, settings: Settings = Depends(get_settings)):
    return list_exams({} if classNum is None else {"classNum": classNum}, settings)


@router.get("/api/exams/available/{class_num}")
def available_exams(class_num: int, settings: Settings = Depends(get_settings)):
    return list_exams({"classNum": class_num}, settings)


@router.get("/exam/{exam_id}")
def get_exam(exam_id: str, settings: Settings = Depends(get_settings)):
    exam = get_document("exam", exam_id)
    if not exam:
        raise HTTPException(status_code=404, detail="Exam not found")
    return public_exam(exam, settings)


@router.post("/submit-exam")
def submit_exam(
    body: SubmitExamIn,
    student: CurrentStudent = Depends(get_current_student),
    settings: Settings = Depends(get_settings),
):
    exam = get_document("exam", body.examId)
    if not exam:
        raise HTTPException(status_code=404, detail="Exam not found")
    exam_id = str(exam["_id"])

    if collection("result").find_one({"studentMobile": student.mobile, "examId": exam_id}):
        raise HTTPException(status_code=409, detail="Exam already submitted")

    card = score_answers(
        [q.get("correctAnswer") for q in exam.get("questions", [])],
        body.answers,
        case_sensitive=settings.CASE_SENSITIVE_SCORING,
    )
    # Exam fields are copied so the result stays readable on its own.
    result = Result(
        studentMobile=student.mobile,
        studentName=student.name,
        examId=exam_id,
        examTitle=exam.get("title"),
        examSubject=exam.get("subject"),
        examTestNumber=exam.get("testNumber"),
        correct=card.correct,
        wrong=card.wrong,
        score=card.correct,
        total=card.total,
        percentage=card.percentage,
        answers=body.answers,
    )
    doc = result.model_dump()
    doc["submittedAt"] = now()
    try:
        result_id = collection("result").insert_one(doc).inserted_id
    except DuplicateKeyError:
        raise HTTPException(status_code=409, detail="Exam already submitted")
    except Exception as e:
        raise internal_error(e, "Failed to submit exam")

    logger.info("Student %s scored %d/%d on exam %s", student.mobile, card.correct, card.total, exam_id)
    return {
        "message": "Exam submitted successfully!",
        "resultId": str(result_id),
        "correct": card.correct,
        "wrong": card.wrong,
        "score": card.correct,
        "total": card.total,
        "percentage": card.percentage,
    }


# ---------------------------------------------------------------------------
# Results
# ---------------------------------------------------------------------------

@router.get("/results")
def list_results():
    return get_documents("result", sort=[("submittedAt", -1)])


@router.get("/my-results")
def my_results(student: CurrentStudent = Depends(get_current_student)):
    return get_documents("result", {"studentMobile": student.mobile}, sort=[("submittedAt", -1)])


@router.get("/results/student/{mobile}")
def student_results(mobile: str):
    return get_documents("result", {"studentMobile": mobile}, sort=[("submittedAt", -1)])


@router.get("/results/exam")
def exam_results(subject: Optional[str] = None, testNumber: Optional[str] = None):
    if not subject or not testNumber:
        raise HTTPException(status_code=400, detail="subject and testNumber query params required")
    try:
        test_number = int(testNumber)
    except ValueError:
        raise HTTPException(status_code=400, detail="testNumber must be a number")
    query = {
        "examSubject": {"$regex": f"^{re.escape(subject)}$", "$options": "i"},
        "examTestNumber": test_number,
    }
    return get_documents("result", query, sort=[("correct", -1)])
