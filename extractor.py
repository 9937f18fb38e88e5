"""
Question extraction from PDF or pasted text.

The parser is a line-oriented heuristic, not a grammar:

    1. Question text here          <- numbered line starts a question
    which may wrap onto more lines <- joined to the question text
    A) first option                <- Latin option markers A-D
    ಬಿ) second option               <- Kannada markers ಎ ಬಿ ಸಿ ಡಿ

Lines it cannot place are returned in `unparsed_lines`, and questions with
too few options in `rejected`, so a reviewer can see what was dropped.
"""

import io
import logging
import re
from typing import List

import pdfplumber
from pydantic import BaseModel, Field

from schemas import Question

logger = logging.getLogger(__name__)

QUESTION_RE = re.compile(r"^(\d+)\s*[.)\-]\s*(.*)$")
SPLIT_RE = re.compile(r"(?m)^\s*\d+\s*[.)\-]\s*")
LATIN_OPTION_RE = re.compile(r"^\(?[A-D]\s*[).:]", re.IGNORECASE)
KANNADA_OPTION_RE = re.compile(r"^\(?(?:ಎ|ಬಿ|ಸಿ|ಡಿ)\s*[).:]")

PLACEHOLDER_OPTIONS = ["A)", "B)", "C)", "D)"]
STRATEGIES = ("lines", "split")


class ExtractionError(Exception):
    """Raised when text cannot be pulled out of an uploaded document."""


class RejectedBlock(BaseModel):
    questionText: str
    options: List[str] = Field(default_factory=list)
    reason: str


class ExtractionReport(BaseModel):
    questions: List[Question] = Field(default_factory=list)
    unparsed_lines: List[str] = Field(default_factory=list)
    rejected: List[RejectedBlock] = Field(default_factory=list)
    truncated: bool = False


class _Block:
    def __init__(self, text: str = ""):
        self.text = text
        self.options: List[str] = []

    def add(self, line: str, unparsed: List[str]) -> None:
        if is_option_line(line):
            self.options.append(line)
        elif not self.options:
            self.text = f"{self.text} {line}".strip()
        else:
            unparsed.append(line)


def is_option_line(line: str) -> bool:
    return bool(LATIN_OPTION_RE.match(line) or KANNADA_OPTION_RE.match(line))


def extract_pdf_text(data: bytes) -> str:
    """Return the plain text of every page of the PDF in `data`."""
    try:
        with pdfplumber.open(io.BytesIO(data)) as pdf:
            pages = [page.extract_text() or "" for page in pdf.pages]
    except Exception as exc:
        raise ExtractionError("PDF is too complex or corrupted") from exc
    return "\n".join(pages)


def _clean_lines(text: str) -> List[str]:
    return [line.strip() for line in text.splitlines() if line.strip()]


def _blocks_by_lines(text: str, unparsed: List[str]) -> List[_Block]:
    blocks: List[_Block] = []
    current = None
    for line in _clean_lines(text):
        match = QUESTION_RE.match(line)
        if match:
            current = _Block(match.group(2).strip())
            blocks.append(current)
        elif current is None:
            unparsed.append(line)
        else:
            current.add(line, unparsed)
    return blocks


def _blocks_by_split(text: str, unparsed: List[str]) -> List[_Block]:
    chunks = SPLIT_RE.split(text)
    # anything before the first number is preamble
    unparsed.extend(_clean_lines(chunks[0]))
    blocks: List[_Block] = []
    for chunk in chunks[1:]:
        lines = _clean_lines(chunk)
        if not lines:
            continue
        block = _Block()
        for line in lines:
            block.add(line, unparsed)
        blocks.append(block)
    return blocks


def parse_questions(
    text: str,
    strategy: str = "lines",
    min_options: int = 3,
    max_questions: int = 100,
    placeholder_options: bool = False,
) -> ExtractionReport:
    """
    Split raw document text into questions with no correct answer set.

    A block is kept when it collected at least `min_options` options. With
    `placeholder_options` a block without options gets A)-D) placeholders
    and a single option is enough. At most `max_questions` are returned.
    """
    if strategy not in STRATEGIES:
        raise ValueError(f"Unknown strategy {strategy!r}")

    unparsed: List[str] = []
    if strategy == "lines":
        blocks = _blocks_by_lines(text or "", unparsed)
    else:
        blocks = _blocks_by_split(text or "", unparsed)

    required = 1 if placeholder_options else min_options
    report = ExtractionReport(unparsed_lines=unparsed)
    for block in blocks:
        options = list(block.options)
        if not options and placeholder_options:
            options = list(PLACEHOLDER_OPTIONS)
        if len(options) < required:
            report.rejected.append(RejectedBlock(
                questionText=block.text,
                options=options,
                reason=f"found {len(options)} options, need {required}",
            ))
            continue
        if len(report.questions) >= max_questions:
            report.truncated = True
            break
        report.questions.append(Question(questionText=block.text, options=options))

    logger.info(
        "Extracted %d questions (%d rejected, %d unparsed lines)",
        len(report.questions), len(report.rejected), len(report.unparsed_lines),
    )
    return report
