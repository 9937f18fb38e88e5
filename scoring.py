from typing import NamedTuple, Optional, Sequence


class ScoreCard(NamedTuple):
    correct: int
    wrong: int
    total: int

    @property
    def percentage(self) -> float:
        if not self.total:
            return 0.0
        return round(self.correct / self.total * 100, 2)


def _same(expected: Optional[str], given: Optional[str], case_sensitive: bool) -> bool:
    if not isinstance(expected, str) or not isinstance(given, str):
        return False
    expected, given = expected.strip(), given.strip()
    if not expected:
        return False
    if case_sensitive:
        return expected == given
    return expected.upper() == given.upper()


def score_answers(
    correct_answers: Sequence[Optional[str]],
    submitted: Sequence[Optional[str]],
    case_sensitive: bool = False,
) -> ScoreCard:
    """Compare answers position by position.

    Missing submissions count as wrong, extra ones are ignored, and a
    question without a stored answer never matches.
    """
    total = len(correct_answers)
    correct = 0
    for i, expected in enumerate(correct_answers):
        given = submitted[i] if i < len(submitted) else None
        if _same(expected, given, case_sensitive):
            correct += 1
    return ScoreCard(correct=correct, wrong=total - correct, total=total)
