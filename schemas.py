"""
Database Schemas for the Academy Portal

Each Pydantic model represents a collection in MongoDB (or a request body
that becomes one). Collection names are the lowercase entity names, e.g.
Draft -> "draft", PdfDraft -> "pdf_draft".
"""

from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

ANSWER_LETTERS = ("A", "B", "C", "D")


def normalize_answer(value: Optional[str]) -> Optional[str]:
    if value is None:
        return None
    letter = str(value).strip().upper()
    if not letter:
        return None
    if letter not in ANSWER_LETTERS:
        raise ValueError("correctAnswer must be one of A, B, C, D")
    return letter


class Question(BaseModel):
    """Multiple-choice question embedded in a draft or exam"""
    questionText: Optional[str] = Field(None, description="Question prompt text")
    imageUrl: Optional[str] = Field(None, description="Image reference for image questions")
    options: List[str] = Field(default_factory=list, description="Answer options in order")
    correctAnswer: Optional[str] = Field(None, description="A-D, or null until set")

    @field_validator("correctAnswer", mode="before")
    @classmethod
    def check_answer(cls, value):
        return normalize_answer(value)


# ---------------------------------------------------------------------------
# Students
# ---------------------------------------------------------------------------

class StudentCreate(BaseModel):
    name: Optional[str] = None
    roll: Optional[str] = None
    mobile: Optional[str] = None
    password: Optional[str] = None

    @field_validator("password")
    @classmethod
    def check_password_bytes(cls, value):
        # bcrypt only reads the first 72 bytes.
        if value is not None and len(value.encode("utf-8")) > 72:
            raise ValueError("password must be at most 72 bytes")
        return value


class StudentLogin(BaseModel):
    mobile: Optional[str] = None
    password: Optional[str] = None


# ---------------------------------------------------------------------------
# Exam authoring
# ---------------------------------------------------------------------------

class DraftIn(BaseModel):
    """Manual draft body (collection: draft)"""
    title: str = Field(..., description="Exam title")
    subject: str = Field(..., description="Subject name, e.g., Science")
    testNumber: int = Field(..., description="Test number within the subject")
    classNum: Optional[int] = Field(None, description="Class the exam is meant for")
    duration: Optional[int] = Field(None, ge=1, description="Time allowed in minutes")
    questions: List[Question] = Field(default_factory=list)
    version: Optional[int] = Field(None, description="Expected version on update")


class BulkExamIn(BaseModel):
    """Bulk-paste body: either structured questions or raw pasted text"""
    title: str
    subject: str
    testNumber: int
    classNum: Optional[int] = None
    duration: Optional[int] = Field(None, ge=1)
    questions: Optional[List[Question]] = None
    text: Optional[str] = None


class SetAnswerIn(BaseModel):
    questionIndex: Optional[int] = None
    correctAnswer: Optional[str] = None


# ---------------------------------------------------------------------------
# Delivery & results
# ---------------------------------------------------------------------------

class SubmitExamIn(BaseModel):
    examId: str = Field(..., description="Reference to Exam _id as string")
    answers: List[Optional[str]] = Field(default_factory=list, description="Answer letter per question, by position")


class Result(BaseModel):
    """A student's scored attempt (collection: result)"""
    studentMobile: str
    studentName: Optional[str] = None
    examId: str
    examTitle: Optional[str] = None
    examSubject: Optional[str] = None
    examTestNumber: Optional[int] = None
    correct: int = Field(0, ge=0)
    wrong: int = Field(0, ge=0)
    score: int = Field(0, ge=0)
    total: int = Field(0, ge=0)
    percentage: float = Field(0, ge=0, le=100)
    answers: List[Optional[str]] = Field(default_factory=list)


# ---------------------------------------------------------------------------
# Ancillary resources
# ---------------------------------------------------------------------------

class VideoIn(BaseModel):
    """Video lesson link (collection: video), keyed by subject + class"""
    model_config = ConfigDict(populate_by_name=True)

    subject: Optional[str] = None
    classNum: Optional[int] = Field(None, alias="class")
    videoId: Optional[str] = Field(None, description="11 character YouTube id")
    title: Optional[str] = None


class VideoUpdate(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    subject: Optional[str] = None
    classNum: Optional[int] = Field(None, alias="class")
    videoId: Optional[str] = None
    title: Optional[str] = None


class NoteIn(BaseModel):
    """Free-text note (collection: note)"""
    title: Optional[str] = None
    content: Optional[str] = None


class ArmyVideoIn(BaseModel):
    """Training video link (collection: army_video)"""
    title: Optional[str] = None
    url: Optional[str] = None
