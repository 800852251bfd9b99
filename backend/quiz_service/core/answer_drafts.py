"""
Answer draft buffer for in-progress attempts.

Drafts are stored on the attempt as a JSON object keyed by question id.
JSON object keys are always strings, so every read goes through
``load_answers`` and every write through ``dump_answers``.
"""
from typing import Any, Dict, Mapping, Optional, Sequence

from quiz_service.core.error_responses import ErrorMessages
from quiz_service.core.quiz_errors import InvalidAnswer

AnswerMap = Dict[int, int]


def load_answers(raw: Optional[Mapping[Any, Any]]) -> AnswerMap:
    """Decode a stored draft into ``{question_id: selected_index}``."""
    if not raw:
        return {}
    answers: AnswerMap = {}
    for key, value in raw.items():
        if value is None:
            continue
        answers[int(key)] = int(value)
    return answers


def dump_answers(answers: Mapping[int, int]) -> Dict[str, int]:
    """Encode answers for the JSON column."""
    return {str(question_id): index for question_id, index in answers.items()}


def normalize_answers(
    answers: Optional[Mapping[int, Optional[int]]], questions: Sequence[Any]
) -> AnswerMap:
    """
    Validate client answers against the attempt's question snapshot.

    ``None`` values mean "no answer" and are dropped. Anything else must refer
    to a snapshot question and pick an index inside its choice list; a bad
    index is rejected rather than clamped.

    Args:
        answers: Client-supplied map of question id to selected index
        questions: Snapshot questions (objects with ``id`` and ``choices``)

    Returns:
        Cleaned answer map containing only answered questions

    Raises:
        InvalidAnswer: Unknown question id or out-of-range choice index
    """
    if not answers:
        return {}

    choice_counts = {q.id: len(q.choices or []) for q in questions}

    unknown = {qid for qid in answers if qid not in choice_counts}
    if unknown:
        raise InvalidAnswer(ErrorMessages.unknown_question_ids(unknown))

    cleaned: AnswerMap = {}
    for question_id, selected in answers.items():
        if selected is None:
            continue
        choice_count = choice_counts[question_id]
        if selected < 0 or selected >= choice_count:
            raise InvalidAnswer(
                ErrorMessages.choice_out_of_range(question_id, selected, choice_count)
            )
        cleaned[question_id] = selected
    return cleaned


def merge_answers(draft: Mapping[int, int], submitted: Mapping[int, int]) -> AnswerMap:
    """Overlay submitted answers on the saved draft; submitted keys win."""
    merged = dict(draft)
    merged.update(submitted)
    return merged
