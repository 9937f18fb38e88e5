import pytest

from extractor import ExtractionError, extract_pdf_text, is_option_line, parse_questions

SAMPLE = """Science Test 1
1. What is the boiling point
of water at sea level?
A) 90 C
B) 100 C
C) 110 C
D) 120 C
2) Which planet is red?
A. Venus
B. Mars
C. Jupiter
Page 2
3- Only two options here
A) yes
B) no
4. ಕನ್ನಡ ಪ್ರಶ್ನೆ
ಎ) ಒಂದು
ಬಿ) ಎರಡು
ಸಿ) ಮೂರು
"""


def test_parses_numbered_questions_and_options():
    report = parse_questions(SAMPLE)

    assert [q.questionText for q in report.questions] == [
        "What is the boiling point of water at sea level?",
        "Which planet is red?",
        "ಕನ್ನಡ ಪ್ರಶ್ನೆ",
    ]
    assert report.questions[0].options == ["A) 90 C", "B) 100 C", "C) 110 C", "D) 120 C"]
    assert all(q.correctAnswer is None for q in report.questions)


def test_kannada_option_markers():
    report = parse_questions(SAMPLE)
    assert report.questions[2].options == ["ಎ) ಒಂದು", "ಬಿ) ಎರಡು", "ಸಿ) ಮೂರು"]


def test_question_with_two_options_is_rejected():
    report = parse_questions(SAMPLE)

    assert len(report.rejected) == 1
    assert report.rejected[0].questionText == "Only two options here"
    assert report.rejected[0].options == ["A) yes", "B) no"]


def test_three_options_is_enough():
    report = parse_questions("1. Pick one\nA) x\nB) y\nC) z")
    assert len(report.questions) == 1


def test_unplaced_lines_are_reported():
    report = parse_questions(SAMPLE)
    assert report.unparsed_lines == ["Science Test 1", "Page 2"]


def test_same_input_gives_same_output():
    first = parse_questions(SAMPLE)
    second = parse_questions(SAMPLE)
    assert first.model_dump() == second.model_dump()


def test_output_is_capped():
    text = "\n".join(f"{n}. Q{n}\nA) a\nB) b\nC) c" for n in range(1, 6))

    report = parse_questions(text, max_questions=2)

    assert [q.questionText for q in report.questions] == ["Q1", "Q2"]
    assert report.truncated


def test_placeholder_options():
    report = parse_questions("1. Describe photosynthesis", placeholder_options=True)

    assert len(report.questions) == 1
    assert report.questions[0].options == ["A)", "B)", "C)", "D)"]


def test_split_strategy():
    report = parse_questions(SAMPLE, strategy="split")

    assert [q.questionText for q in report.questions][:2] == [
        "What is the boiling point of water at sea level?",
        "Which planet is red?",
    ]
    assert "Science Test 1" in report.unparsed_lines


def test_unknown_strategy():
    with pytest.raises(ValueError):
        parse_questions(SAMPLE, strategy="grammar")


def test_empty_text():
    report = parse_questions("")
    assert report.questions == []
    assert report.unparsed_lines == []


def test_option_markers():
    assert is_option_line("A) one")
    assert is_option_line("d. four")
    assert is_option_line("(C) three")
    assert is_option_line("ಡಿ) ನಾಲ್ಕು")
    assert not is_option_line("E) five")
    assert not is_option_line("Apples are red")


def test_extract_pdf_text_rejects_garbage():
    with pytest.raises(ExtractionError):
        extract_pdf_text(b"this is not a pdf")
