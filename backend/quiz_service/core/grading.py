"""
Quiz grading.

Grading depends only on the stored question snapshot and the stored answers,
so any submitted attempt can be re-graded later for an audit and will produce
the same outcome.

Scoring rules
=============
- A question is correct only when the user picked an index and it equals the
  snapshot's correct index. Unanswered questions count as wrong.
- ``score = round(correct / total * 100)``, rounding halves up
  (1 of 8 correct is 12.5 -> 13).
- ``passed = score >= pass_score``. An education without a pass score has no
  threshold and every submission passes.
"""

from dataclasses import dataclass, field
from typing import List, Mapping, NamedTuple, Optional, Sequence


class AnswerKey(NamedTuple):
    """Answer key entry for one snapshot question."""

    question_id: int
    correct_index: Optional[int]


@dataclass(frozen=True)
class GradedQuestion:
    question_id: int
    selected_index: Optional[int]
    correct_index: Optional[int]
    is_correct: bool


@dataclass(frozen=True)
class GradingResult:
    """Outcome of grading one attempt."""

    score: int
    passed: bool
    correct_count: int
    wrong_count: int
    total_count: int
    graded: List[GradedQuestion] = field(default_factory=list)


def calculate_score(correct_count: int, total_count: int) -> int:
    """
    Percentage score rounded half-up to an integer in [0, 100].

    Integer arithmetic avoids float rounding surprises at exact halves.
    An empty snapshot scores 0.
    """
    if total_count <= 0:
        return 0
    return (correct_count * 200 + total_count) // (2 * total_count)


def is_passed(score: int, pass_score: Optional[int]) -> bool:
    """Apply the education's pass threshold; no threshold means passed."""
    if pass_score is None:
        return True
    return score >= pass_score


def grade_attempt(
    answer_key: Sequence[AnswerKey],
    answers: Mapping[int, int],
    pass_score: Optional[int],
) -> GradingResult:
    """
    Grade answers against the snapshot answer key.

    Args:
        answer_key: One entry per snapshot question, in question order
        answers: Final answers, question id -> selected index
        pass_score: Education pass threshold, or None

    Returns:
        GradingResult with per-question detail
    """
    graded: List[GradedQuestion] = []
    for entry in answer_key:
        selected = answers.get(entry.question_id)
        is_correct = (
            selected is not None
            and entry.correct_index is not None
            and selected == entry.correct_index
        )
        graded.append(
            GradedQuestion(
                question_id=entry.question_id,
                selected_index=selected,
                correct_index=entry.correct_index,
                is_correct=is_correct,
            )
        )

    total = len(graded)
    correct = sum(1 for g in graded if g.is_correct)
    score = calculate_score(correct, total)
    return GradingResult(
        score=score,
        passed=is_passed(score, pass_score),
        correct_count=correct,
        wrong_count=total - correct,
        total_count=total,
        graded=graded,
    )
