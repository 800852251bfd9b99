"""
Read-side statistics over submitted quiz attempts.

All functions are pure: the store selects the rows (submitted, not deleted,
inside the period window, optionally one department) and these functions
roll them up. Departments are always the snapshot stored on the attempt at
submission time, never the user's current department, so historical
reports stay stable.

Rates are percentages in [0, 100] rounded to one decimal place.
"""
from collections import defaultdict
from dataclasses import dataclass
from typing import Dict, Iterable, List, Mapping, Optional, Sequence


@dataclass(frozen=True)
class ScoredAttempt:
    """One submitted attempt as seen by the statistics queries."""

    user_id: str
    education_id: int
    score: int
    department: Optional[str] = None
    education_version: Optional[int] = None
    education_title: Optional[str] = None


@dataclass(frozen=True)
class SummaryStats:
    average_score: float
    attempt_count: int
    participant_count: int
    pass_rate: float
    participation_rate: Optional[float]


@dataclass(frozen=True)
class DepartmentScore:
    department: str
    average_score: float
    attempt_count: int
    participant_count: int
    pass_rate: float
    participation_rate: Optional[float]


@dataclass(frozen=True)
class QuizStat:
    education_id: int
    education_title: Optional[str]
    education_version: Optional[int]
    average_score: float
    attempt_count: int
    participant_count: int
    pass_rate: float


@dataclass(frozen=True)
class DepartmentProgress:
    department: str
    average_score: float
    participant_count: int
    progress: float


def _percent(part: int, whole: int) -> float:
    if whole <= 0:
        return 0.0
    return round(part * 100.0 / whole, 1)


def _mean(values: Sequence[float]) -> float:
    if not values:
        return 0.0
    return round(sum(values) / len(values), 1)


def _participation(participants: int, eligible: Optional[int]) -> Optional[float]:
    # Unknown eligible population: rate is not reported
    if eligible is None:
        return None
    if eligible <= 0:
        return 0.0
    return min(100.0, _percent(participants, eligible))


def summarize(
    rows: Sequence[ScoredAttempt],
    pass_threshold: int,
    eligible_count: Optional[int] = None,
) -> SummaryStats:
    """
    Headline numbers for a set of attempts.

    Args:
        rows: Submitted attempts in the window
        pass_threshold: Fixed cross-education pass line (score >= threshold)
        eligible_count: Users who completed the prerequisite education, or None

    Returns:
        SummaryStats; every field is zero for an empty window
    """
    participants = {r.user_id for r in rows}
    passed = sum(1 for r in rows if r.score >= pass_threshold)
    return SummaryStats(
        average_score=_mean([r.score for r in rows]),
        attempt_count=len(rows),
        participant_count=len(participants),
        pass_rate=_percent(passed, len(rows)),
        participation_rate=_participation(len(participants), eligible_count),
    )


def department_scores(
    rows: Iterable[ScoredAttempt],
    pass_threshold: int,
    eligible_by_department: Optional[Mapping[str, int]] = None,
    unknown_department: Optional[str] = None,
) -> List[DepartmentScore]:
    """
    ``summarize`` grouped by stored department, sorted by department name.

    Attempts without a department are skipped unless ``unknown_department``
    names a bucket for them.
    """
    groups: Dict[str, List[ScoredAttempt]] = defaultdict(list)
    for row in rows:
        department = row.department or unknown_department
        if department is None:
            continue
        groups[department].append(row)

    result = []
    for department in sorted(groups):
        eligible = (
            eligible_by_department.get(department, 0)
            if eligible_by_department is not None
            else None
        )
        stats = summarize(groups[department], pass_threshold, eligible)
        result.append(
            DepartmentScore(
                department=department,
                average_score=stats.average_score,
                attempt_count=stats.attempt_count,
                participant_count=stats.participant_count,
                pass_rate=stats.pass_rate,
                participation_rate=stats.participation_rate,
            )
        )
    return result


def quiz_stats(rows: Iterable[ScoredAttempt], pass_threshold: int) -> List[QuizStat]:
    """
    Per-education statistics restricted to each education's latest version.

    Attempts taken against an older version of an education are left out so
    a reworked quiz is not averaged together with its predecessor.
    """
    by_education: Dict[int, List[ScoredAttempt]] = defaultdict(list)
    for row in rows:
        by_education[row.education_id].append(row)

    result = []
    for education_id in sorted(by_education):
        group = by_education[education_id]
        versions = [r.education_version for r in group if r.education_version is not None]
        latest = max(versions) if versions else None
        current = [r for r in group if r.education_version == latest]
        stats = summarize(current, pass_threshold)
        result.append(
            QuizStat(
                education_id=education_id,
                education_title=current[0].education_title if current else None,
                education_version=latest,
                average_score=stats.average_score,
                attempt_count=stats.attempt_count,
                participant_count=stats.participant_count,
                pass_rate=stats.pass_rate,
            )
        )
    return result


def department_progress(
    rows: Iterable[ScoredAttempt], unknown_department: str
) -> List[DepartmentProgress]:
    """
    Per-department averages of per-user mean scores for one education.

    Each user contributes one value (the mean of their attempts) so a user
    with many retries does not outweigh colleagues. A user's department is the
    one stored on their most recent attempt in ``rows`` order.

    ``progress`` is the department's share of all participants, sorted
    highest first.
    """
    user_scores: Dict[str, List[int]] = defaultdict(list)
    user_department: Dict[str, str] = {}
    for row in rows:
        user_scores[row.user_id].append(row.score)
        user_department[row.user_id] = row.department or unknown_department

    by_department: Dict[str, List[float]] = defaultdict(list)
    for user_id, scores in user_scores.items():
        by_department[user_department[user_id]].append(sum(scores) / len(scores))

    total_participants = len(user_scores)
    result = [
        DepartmentProgress(
            department=department,
            average_score=_mean(means),
            participant_count=len(means),
            progress=_percent(len(means), total_participants),
        )
        for department, means in by_department.items()
    ]
    result.sort(key=lambda d: (-d.progress, d.department))
    return result
