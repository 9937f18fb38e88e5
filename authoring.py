"""
Exam authoring: manual, bulk-paste and PDF intake, answer setting,
finalizing pending drafts and conducting drafts into live exams.

    pending draft --set-answer*--> answered --finalize--> draft --conduct--> exam

Pending drafts (collection: pdf_draft) come from the extractor and start
without correct answers. Standard drafts live in the "draft" collection and
carry a version number that PUT can check.
"""

import logging
from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Depends, File, Form, HTTPException, UploadFile
from pymongo import ReturnDocument
from pymongo.errors import DuplicateKeyError

from database import (
    collection,
    create_document,
    delete_document,
    get_document,
    get_documents,
    now,
    parse_object_id,
    to_str_id,
)
from errors import internal_error
from extractor import ExtractionError, ExtractionReport, extract_pdf_text, parse_questions
from resources import get_media_storage
from schemas import BulkExamIn, DraftIn, SetAnswerIn, normalize_answer
from settings import Settings, get_settings
from storage import StorageError

logger = logging.getLogger(__name__)

router = APIRouter(tags=["authoring"])


def draft_document(
    title: str,
    subject: str,
    test_number: int,
    class_num: Optional[int],
    questions: List[Dict[str, Any]],
    origin: str,
    duration: Optional[int] = None,
) -> Dict[str, Any]:
    return {
        "title": title,
        "subject": subject,
        "testNumber": test_number,
        "classNum": class_num,
        "duration": duration,
        "origin": origin,
        "questions": questions,
        "totalQuestions": len(questions),
        "version": 1,
        "createdAt": now(),
        "updatedAt": now(),
    }


def unanswered(questions: List[Dict[str, Any]]) -> List[int]:
    return [i for i, q in enumerate(questions) if not q.get("correctAnswer")]


def extract_questions(text: str, settings: Settings) -> ExtractionReport:
    return parse_questions(
        text,
        strategy=settings.EXTRACT_STRATEGY,
        min_options=settings.MIN_OPTIONS,
        max_questions=settings.MAX_QUESTIONS,
        placeholder_options=settings.PLACEHOLDER_OPTIONS,
    )


def save_pending_draft(
    title: str, subject: str, test_number: int, report: ExtractionReport, source: str
) -> Dict[str, Any]:
    if not report.questions:
        logger.warning("No questions found in %s upload for %s", source, title)
        raise HTTPException(status_code=422, detail={
            "error": "No questions could be parsed. Check the document format.",
            "unparsedLines": report.unparsed_lines,
            "rejected": [r.model_dump() for r in report.rejected],
        })
    draft_id = create_document("pdf_draft", {
        "title": title,
        "subject": subject,
        "testNumber": test_number,
        "source": source,
        "questions": [q.model_dump() for q in report.questions],
        "unparsedLines": report.unparsed_lines,
    })
    logger.info("Saved pending draft %s with %d questions", draft_id, len(report.questions))
    return {
        "message": "Questions extracted successfully",
        "draftId": draft_id,
        "questionCount": len(report.questions),
        "unparsedLines": report.unparsed_lines,
        "rejectedCount": len(report.rejected),
        "truncated": report.truncated,
    }


# ---------------------------------------------------------------------------
# Manual drafts
# ---------------------------------------------------------------------------

@router.get("/drafts")
def list_drafts():
    return get_documents("draft", sort=[("createdAt", -1)])


@router.get("/drafts/{draft_id}")
def get_draft(draft_id: str):
    draft = get_document("draft", draft_id)
    if not draft:
        raise HTTPException(status_code=404, detail="Draft not found")
    return to_str_id(draft)


@router.post("/drafts")
def create_draft(body: DraftIn):
    if not body.questions:
        raise HTTPException(status_code=400, detail="At least one question required")
    doc = draft_document(
        body.title, body.subject, body.testNumber, body.classNum,
        [q.model_dump() for q in body.questions], origin="manual", duration=body.duration,
    )
    try:
        draft_id = create_document("draft", doc)
    except Exception as e:
        raise internal_error(e, "Failed to create draft")
    return {"message": "Draft created", "draftId": draft_id, "version": 1}


@router.put("/drafts/{draft_id}")
def update_draft(draft_id: str, body: DraftIn):
    if not body.questions:
        raise HTTPException(status_code=400, detail="At least one question required")
    oid = parse_object_id(draft_id)
    if oid is None:
        raise HTTPException(status_code=404, detail="Draft not found")

    query: Dict[str, Any] = {"_id": oid}
    if body.version is not None:
        query["version"] = body.version
    questions = [q.model_dump() for q in body.questions]
    updated = collection("draft").find_one_and_update(
        query,
        {
            "$set": {
                "title": body.title,
                "subject": body.subject,
                "testNumber": body.testNumber,
                "classNum": body.classNum,
                "duration": body.duration,
                "questions": questions,
                "totalQuestions": len(questions),
                "updatedAt": now(),
            },
            "$inc": {"version": 1},
        },
        return_document=ReturnDocument.AFTER,
    )
    if updated is None:
        if body.version is not None and collection("draft").find_one({"_id": oid}):
            raise HTTPException(status_code=409, detail="Draft was modified since it was loaded")
        raise HTTPException(status_code=404, detail="Draft not found")
    return {"message": "Draft updated", "draft": to_str_id(updated)}


@router.delete("/drafts/{draft_id}")
def delete_draft(draft_id: str):
    if not delete_document("draft", draft_id):
        raise HTTPException(status_code=404, detail="Draft not found")
    return {"message": "Draft deleted"}


@router.post("/drafts/{draft_id}/questions/{index}/image")
def upload_question_image(
    draft_id: str,
    index: int,
    image: Optional[UploadFile] = File(None),
    storage=Depends(get_media_storage),
):
    if image is None:
        raise HTTPException(status_code=400, detail="No image file")
    if not (image.content_type or "").startswith("image/"):
        raise HTTPException(status_code=400, detail="File must be an image")
    draft = get_document("draft", draft_id, projection={"questions": 1})
    if not draft:
        raise HTTPException(status_code=404, detail="Draft not found")
    if index < 0 or index >= len(draft.get("questions", [])):
        raise HTTPException(status_code=400, detail="Invalid question index")

    try:
        url = storage.save(image.file, image.filename, "question-images")
    except StorageError as e:
        raise internal_error(e, "Image upload failed")
    updated = collection("draft").find_one_and_update(
        {"_id": draft["_id"]},
        {"$set": {f"questions.{index}.imageUrl": url, "updatedAt": now()}, "$inc": {"version": 1}},
        return_document=ReturnDocument.AFTER,
    )
    if updated is None:
        raise HTTPException(status_code=404, detail="Draft not found")
    return {"message": "Image uploaded", "imageUrl": url, "version": updated["version"]}


@router.post("/api/save-bulk-exam")
def save_bulk_exam(body: BulkExamIn, settings: Settings = Depends(get_settings)):
    if body.questions:
        doc = draft_document(
            body.title, body.subject, body.testNumber, body.classNum,
            [q.model_dump() for q in body.questions], origin="bulk", duration=body.duration,
        )
        draft_id = create_document("draft", doc)
        return {
            "message": "Bulk exam saved as draft",
            "draftId": draft_id,
            "version": 1,
            "questionCount": len(doc["questions"]),
        }
    if body.text and body.text.strip():
        report = extract_questions(body.text, settings)
        return save_pending_draft(body.title, body.subject, body.testNumber, report, "text")
    raise HTTPException(status_code=400, detail="questions or text required")


# ---------------------------------------------------------------------------
# PDF intake and pending drafts
# ---------------------------------------------------------------------------

@router.post("/api/exam/pdf-upload")
def upload_pdf(
    pdf: Optional[UploadFile] = File(None),
    title: Optional[str] = Form(None),
    subject: Optional[str] = Form(None),
    testNumber: Optional[int] = Form(None),
    settings: Settings = Depends(get_settings),
):
    if pdf is None:
        raise HTTPException(status_code=400, detail="No PDF file uploaded")
    if not title or not subject or testNumber is None:
        raise HTTPException(status_code=400, detail="title, subject, testNumber required")

    data = pdf.file.read(settings.MAX_PDF_BYTES + 1)
    if len(data) > settings.MAX_PDF_BYTES:
        raise HTTPException(status_code=413, detail="PDF exceeds the upload size limit")

    try:
        text = extract_pdf_text(data)
    except ExtractionError as e:
        logger.warning("PDF extraction failed for %s: %s", pdf.filename, e.__cause__)
        raise HTTPException(status_code=422, detail=str(e))

    report = extract_questions(text, settings)
    return save_pending_draft(title, subject, testNumber, report, "pdf")


@router.get("/api/pdf-drafts")
def list_pdf_drafts():
    return get_documents("pdf_draft", sort=[("createdAt", -1)])


@router.get("/api/pdf-draft/{draft_id}")
def get_pdf_draft(draft_id: str):
    draft = get_document("pdf_draft", draft_id)
    if not draft:
        raise HTTPException(status_code=404, detail="Draft not found")
    return to_str_id(draft)


@router.patch("/api/pdf-draft/{draft_id}/set-answer")
def set_answer(draft_id: str, body: SetAnswerIn):
    if body.questionIndex is None or not body.correctAnswer:
        raise HTTPException(status_code=400, detail="questionIndex and correctAnswer required")
    try:
        letter = normalize_answer(body.correctAnswer)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    if letter is None:
        raise HTTPException(status_code=400, detail="questionIndex and correctAnswer required")

    draft = get_document("pdf_draft", draft_id, projection={"questions": 1})
    if not draft:
        raise HTTPException(status_code=404, detail="Draft not found")
    index = body.questionIndex
    if index < 0 or index >= len(draft.get("questions", [])):
        raise HTTPException(status_code=400, detail="Invalid question index")

    collection("pdf_draft").update_one(
        {"_id": draft["_id"]},
        {"$set": {f"questions.{index}.correctAnswer": letter}},
    )
    return {"message": "Answer updated", "questionIndex": index, "correctAnswer": letter}


@router.post("/api/pdf-draft/{draft_id}/finalize")
def finalize_pdf_draft(draft_id: str):
    pending = get_document("pdf_draft", draft_id)
    if not pending:
        raise HTTPException(status_code=404, detail="PDF draft not found")
    missing = unanswered(pending.get("questions", []))
    if missing:
        raise HTTPException(status_code=400, detail={
            "error": "Some questions missing correct answer",
            "missing": missing,
        })

    claimed = collection("pdf_draft").find_one_and_delete({"_id": pending["_id"]})
    if claimed is None:
        raise HTTPException(status_code=404, detail="PDF draft not found")
    try:
        doc = draft_document(
            claimed.get("title"), claimed.get("subject"), claimed.get("testNumber"),
            None, claimed.get("questions", []), origin="pdf",
        )
        draft_exam_id = create_document("draft", doc)
    except Exception as e:
        collection("pdf_draft").insert_one(claimed)
        raise internal_error(e, "Failed to finalize draft")
    logger.info("Finalized pending draft %s into draft %s", draft_id, draft_exam_id)
    return {"message": "Draft finalized and moved to drafts", "draftExamId": draft_exam_id}


# ---------------------------------------------------------------------------
# Conduct
# ---------------------------------------------------------------------------

@router.post("/conduct/{draft_id}")
def conduct_exam(draft_id: str):
    draft = get_document("draft", draft_id)
    if not draft:
        raise HTTPException(status_code=404, detail="Draft not found")
    missing = unanswered(draft.get("questions", []))
    if missing:
        raise HTTPException(status_code=400, detail={
            "error": "Some questions missing correct answer",
            "missing": missing,
        })
    already = f'Exam "{draft.get("title")}" Test {draft.get("testNumber")} has already been conducted'
    if collection("exam").find_one({"title": draft.get("title"), "testNumber": draft.get("testNumber")}):
        raise HTTPException(status_code=409, detail=already)

    # Claiming the draft first means only one caller can promote it.
    claimed = collection("draft").find_one_and_delete({"_id": draft["_id"]})
    if claimed is None:
        raise HTTPException(status_code=404, detail="Draft not found")
    # The draft may have been edited between the read and the claim.
    missing = unanswered(claimed.get("questions", []))
    if missing:
        collection("draft").insert_one(claimed)
        raise HTTPException(status_code=400, detail={
            "error": "Some questions missing correct answer",
            "missing": missing,
        })

    exam = {
        "title": claimed.get("title"),
        "subject": claimed.get("subject"),
        "classNum": claimed.get("classNum"),
        "duration": claimed.get("duration"),
        "testNumber": claimed.get("testNumber"),
        "questions": claimed.get("questions", []),
        "totalQuestions": len(claimed.get("questions", [])),
        "draftId": str(claimed["_id"]),
        "conductedAt": now(),
    }
    try:
        exam_id = collection("exam").insert_one(exam).inserted_id
    except DuplicateKeyError:
        collection("draft").insert_one(claimed)
        raise HTTPException(status_code=409, detail=already)
    except Exception as e:
        collection("draft").insert_one(claimed)
        raise internal_error(e, "Failed to conduct exam")
    logger.info("Conducted exam %s from draft %s", exam_id, draft_id)
    return {"message": "Exam conducted successfully!", "examId": str(exam_id)}
