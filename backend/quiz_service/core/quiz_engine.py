"""
Quiz attempt engine.

Orchestrates the attempt lifecycle (start, save, leave, timer, submit) and the
read-side views over it. The engine owns transaction boundaries: each
mutating operation commits exactly once, or rolls back and raises.

Lifecycle:
    NOT_STARTED -> IN_PROGRESS -> SUBMITTED (terminal)

``EXPIRED`` is not a stored state. It is derived on every read from the
attempt's start time and the time limit copied onto it at start.

Concurrency:
    - start: the partial unique index ``ix_quiz_attempts_active`` allows one
      in-progress attempt per (user, education). When two starts race, the
      loser's insert fails, it rolls back and returns the winner's attempt.
    - submit: the outcome is written with ``UPDATE ... WHERE submitted_at IS
      NULL``; a duplicate submit updates no row and gets AttemptConflict.
    - save, leave: written with the same guard, so neither can touch an
      attempt submitted after it was read; they get AttemptNotFound instead.
      Leave counters are incremented in SQL.
    - start releases its read transaction before calling the question
      generator, so no connection is held during the network call.
"""
import logging
from collections import defaultdict
from datetime import datetime
from typing import List, Mapping, Optional

from sqlalchemy.exc import IntegrityError

from quiz_service.core.answer_drafts import (
    load_answers,
    merge_answers,
    normalize_answers,
)
from quiz_service.core.attempt_store import AttemptStore, to_outcome
from quiz_service.core.auth import CallerContext
from quiz_service.core.config import Settings, settings
from quiz_service.core.datetime_utils import (
    Clock,
    ensure_timezone_aware,
    optional_aware,
    period_start,
    utc_now,
)
from quiz_service.core.error_responses import ErrorMessages
from quiz_service.core.graceful_failure import graceful_failure
from quiz_service.core.grading import AnswerKey, grade_attempt
from quiz_service.core.leave_audit import build_leave_event, counted_seconds
from quiz_service.core.quiz_errors import (
    AttemptConflict,
    AttemptExpired,
    AttemptNotFound,
    EducationNotFound,
    GenerationUnavailable,
    RetryExhausted,
)
from quiz_service.core.quiz_stats import (
    department_progress,
    department_scores,
    quiz_stats,
    summarize,
)
from quiz_service.core.retry_policy import best_attempt_ids, evaluate_retry
from quiz_service.core.timer import compute_timer, is_past_deadline
from quiz_service.models.models import EducationQuizPolicy, QuizAttempt, QuizQuestion
from quiz_service.observability import quiz_metrics
from quiz_service.schemas.quiz import (
    AvailableEducationItem,
    DashboardSummaryResponse,
    DeleteAttemptsResponse,
    DepartmentScoreItem,
    DepartmentScoreResponse,
    DepartmentStatsItem,
    LeaveResponse,
    MyAttemptItem,
    QuestionItem,
    QuizStatsItem,
    QuizStatsResponse,
    ResultResponse,
    RetryInfoResponse,
    SaveResponse,
    StartResponse,
    SubmitResponse,
    TimerResponse,
    TopicScoreItem,
    TopicScoreResponse,
    WrongNoteItem,
)
from quiz_service.services.education_catalog import EducationCatalog, EducationSnapshot
from quiz_service.services.question_generator import (
    GeneratedQuestion,
    QuestionGenerationError,
    QuestionGenerator,
    placeholder_questions,
)

logger = logging.getLogger(__name__)


class QuizEngine:
    """Attempt engine bound to one database session."""

    def __init__(
        self,
        store: AttemptStore,
        catalog: EducationCatalog,
        generator: QuestionGenerator,
        clock: Clock = utc_now,
        config: Settings = settings,
    ):
        self.store = store
        self.catalog = catalog
        self.generator = generator
        self.clock = clock
        self.config = config

    # =========================================================================
    # Helpers
    # =========================================================================

    def _require_policy(self, education_id: int) -> EducationQuizPolicy:
        policy = self.catalog.get_policy(education_id)
        if policy is None:
            raise EducationNotFound(ErrorMessages.education_not_found(education_id))
        return policy

    def _owned_attempt(self, attempt_id: str, caller: CallerContext) -> QuizAttempt:
        """Fetch an attempt owned by the caller; foreign and unknown look the same."""
        attempt = self.store.get(attempt_id)
        if attempt is None or attempt.user_id != caller.user_id:
            raise AttemptNotFound(ErrorMessages.attempt_not_found(attempt_id))
        return attempt

    def _in_progress_attempt(
        self, attempt_id: str, caller: CallerContext
    ) -> QuizAttempt:
        attempt = self._owned_attempt(attempt_id, caller)
        if attempt.submitted_at is not None:
            raise AttemptNotFound(ErrorMessages.ATTEMPT_NOT_IN_PROGRESS)
        return attempt

    def _submitted_attempt(self, attempt_id: str, caller: CallerContext) -> QuizAttempt:
        attempt = self._owned_attempt(attempt_id, caller)
        if attempt.submitted_at is None:
            raise AttemptNotFound(ErrorMessages.ATTEMPT_NOT_SUBMITTED)
        return attempt

    def _period_days(self, period_days: Optional[int]) -> int:
        if period_days is None or period_days <= 0:
            return self.config.STATS_DEFAULT_PERIOD_DAYS
        return period_days

    @staticmethod
    def _start_response(attempt: QuizAttempt, resumed: bool) -> StartResponse:
        saved = load_answers(attempt.answers)
        return StartResponse(
            attempt_id=attempt.id,
            education_id=attempt.education_id,
            attempt_no=attempt.attempt_no,
            questions=[
                QuestionItem(
                    question_id=q.id,
                    order=q.question_order,
                    question=q.prompt,
                    choices=list(q.choices or []),
                    answer_index=saved.get(q.id),
                )
                for q in attempt.questions
            ],
            time_limit=attempt.time_limit_seconds,
            started_at=ensure_timezone_aware(attempt.created_at),
            resumed=resumed,
        )

    # =========================================================================
    # Lifecycle
    # =========================================================================

    def start(self, education_id: int, caller: CallerContext) -> StartResponse:
        """
        Start a quiz attempt, or resume the one already in progress.

        Resuming returns the exact question snapshot and saved answers.
        Otherwise the retry policy is checked, a question set is generated and
        the attempt is written together with its snapshot in one transaction.

        Raises:
            EducationNotFound: Unknown or deleted education
            RetryExhausted: No attempts left
            GenerationUnavailable: Question generation failed (nothing persisted)
        """
        policy = self._require_policy(education_id)

        existing = self.store.find_unsubmitted(caller.user_id, education_id)
        if existing is not None:
            logger.info(
                f"Resuming quiz attempt {existing.id} for user {caller.user_id}",
                extra={"attempt_id": existing.id, "education_id": education_id},
            )
            with graceful_failure("record start metrics", logger):
                quiz_metrics.record_started(resumed=True)
            return self._start_response(existing, resumed=True)

        outcomes = [
            to_outcome(a)
            for a in self.store.submitted_attempts(caller.user_id, education_id)
        ]
        status = evaluate_retry(outcomes, policy.max_attempts)
        if not status.can_retry:
            with graceful_failure("record rejection metrics", logger):
                quiz_metrics.record_rejected("retry_exhausted")
            raise RetryExhausted(ErrorMessages.retry_exhausted(policy.max_attempts or 0))

        attempt_no = self.store.next_attempt_no(caller.user_id, education_id)
        exclude = (
            self.store.previous_prompts(caller.user_id, education_id)
            if attempt_no > 1
            else []
        )
        education = EducationSnapshot.from_policy(policy)
        # Release the connection while the generator runs
        self.store.rollback()
        generated = self._generate_questions(education, exclude)

        now = self.clock()
        attempt = QuizAttempt(
            user_id=caller.user_id,
            education_id=education_id,
            education_version=education.version,
            attempt_no=attempt_no,
            answers={},
            leave_count=0,
            total_leave_seconds=0,
            time_limit_seconds=education.time_limit_seconds,
            pass_score=education.pass_score,
            time_limit_exceeded=False,
            created_at=now,
        )
        questions = [
            QuizQuestion(
                question_order=order,
                prompt=q.prompt,
                choices=list(q.choices),
                correct_index=q.correct_index,
                explanation=q.explanation,
            )
            for order, q in enumerate(generated)
        ]

        try:
            self.store.insert(attempt, questions)
            self.store.commit()
        except IntegrityError:
            # A concurrent start created the in-progress attempt first
            self.store.rollback()
            winner = self.store.find_unsubmitted(caller.user_id, education_id)
            if winner is None:
                logger.warning(
                    f"Quiz start race for user {caller.user_id} on education "
                    f"{education_id} left no in-progress attempt"
                )
                raise AttemptConflict(ErrorMessages.ATTEMPT_START_CONFLICT)
            logger.warning(
                f"Quiz start race resolved for user {caller.user_id}: "
                f"returning attempt {winner.id}",
                extra={"attempt_id": winner.id, "education_id": education_id},
            )
            with graceful_failure("record start metrics", logger):
                quiz_metrics.record_started(resumed=True)
            return self._start_response(winner, resumed=True)

        self.store.refresh(attempt)
        logger.info(
            f"Created quiz attempt {attempt.id} (attempt #{attempt_no}) "
            f"for user {caller.user_id} with {len(questions)} questions",
            extra={"attempt_id": attempt.id, "education_id": education_id},
        )
        with graceful_failure("record start metrics", logger):
            quiz_metrics.record_started(resumed=False)
        return self._start_response(attempt, resumed=False)

    def _generate_questions(
        self, education: EducationSnapshot, exclude: List[str]
    ) -> List[GeneratedQuestion]:
        """Ask the generator for a question set; retries exclude earlier prompts."""
        try:
            generated = self.generator.generate(
                education,
                num_questions=self.config.QUIZ_QUESTION_COUNT,
                max_options=self.config.QUIZ_MAX_OPTIONS,
                exclude=exclude,
            )
            if not generated:
                raise QuestionGenerationError("Generator returned no questions")
            return generated
        except QuestionGenerationError as e:
            fallback = self.config.QUIZ_GENERATION_FALLBACK_ENABLED
            logger.error(
                f"Question generation failed for education {education.education_id} "
                f"(fallback={'on' if fallback else 'off'}): {e}",
                extra={"education_id": education.education_id},
            )
            with graceful_failure("record generation failure metrics", logger):
                quiz_metrics.record_generation_failure(fallback=fallback)
            if not fallback:
                raise GenerationUnavailable(ErrorMessages.GENERATION_FAILED) from e
            return placeholder_questions(
                self.config.QUIZ_PLACEHOLDER_QUESTION_COUNT,
                self.config.QUIZ_MAX_OPTIONS,
            )

    def save(
        self,
        attempt_id: str,
        caller: CallerContext,
        answers: Mapping[int, Optional[int]],
    ) -> SaveResponse:
        """
        Replace the draft answers of an in-progress attempt (last write wins).

        The timer is not checked: saving after expiry keeps the user's work.

        Raises:
            AttemptNotFound: Missing, foreign or submitted (also when a submit
                lands between the read and the write)
            InvalidAnswer: Unknown question or out-of-range choice
        """
        attempt = self._in_progress_attempt(attempt_id, caller)
        cleaned = normalize_answers(answers, attempt.questions)
        if not self.store.update_answers(attempt.id, cleaned):
            self.store.rollback()
            logger.info(
                f"Draft save rejected for quiz attempt {attempt_id}: no longer in progress",
                extra={"attempt_id": attempt_id},
            )
            raise AttemptNotFound(ErrorMessages.ATTEMPT_NOT_IN_PROGRESS)
        self.store.commit()
        return SaveResponse(saved=True, saved_count=len(cleaned), saved_at=self.clock())

    def leave(
        self,
        attempt_id: str,
        caller: CallerContext,
        timestamp: Optional[datetime] = None,
        reason: Optional[str] = None,
        leave_seconds: Optional[int] = None,
    ) -> LeaveResponse:
        """
        Record that the user left the quiz screen. Purely observational.

        Raises:
            AttemptNotFound: Missing, foreign or already submitted
        """
        attempt = self._in_progress_attempt(attempt_id, caller)
        event = build_leave_event(
            attempt.id,
            now=self.clock(),
            timestamp=timestamp,
            reason=reason,
            leave_seconds=leave_seconds,
        )
        if not self.store.apply_leave(
            attempt.id, event.occurred_at, counted_seconds(leave_seconds)
        ):
            self.store.rollback()
            raise AttemptNotFound(ErrorMessages.ATTEMPT_NOT_IN_PROGRESS)
        self.store.add_leave_event(event)
        self.store.commit()
        self.store.refresh(attempt)
        with graceful_failure(
            "record leave metrics", logger, context={"attempt_id": attempt_id}
        ):
            quiz_metrics.record_leave()
        return LeaveResponse(
            recorded=True,
            leave_count=attempt.leave_count,
            last_leave_at=optional_aware(attempt.last_leave_at),
        )

    def timer(self, attempt_id: str, caller: CallerContext) -> TimerResponse:
        """
        Remaining time of an in-progress attempt.

        Raises:
            AttemptNotFound: Missing, foreign or already submitted
        """
        attempt = self._in_progress_attempt(attempt_id, caller)
        state = compute_timer(attempt.created_at, attempt.time_limit_seconds, self.clock())
        return TimerResponse(
            time_limit=state.time_limit_seconds,
            started_at=state.started_at,
            expires_at=state.expires_at,
            remaining_seconds=state.remaining_seconds,
            is_expired=state.is_expired,
        )

    def submit(
        self,
        attempt_id: str,
        caller: CallerContext,
        answers: Mapping[int, Optional[int]],
    ) -> SubmitResponse:
        """
        Grade and finalize an attempt. Runs at most once per attempt.

        Final answers are the submitted answers merged over the saved draft
        (submitted keys win). The caller's department is stored on the attempt
        for reporting.

        Late submissions (past the time limit plus the grace period) are
        graded normally and flagged ``time_limit_exceeded``. When
        QUIZ_REJECT_EXPIRED_SUBMISSIONS is on, the attempt is instead closed
        with its saved draft and AttemptExpired is raised.

        Raises:
            AttemptNotFound: Missing or foreign
            AttemptConflict: Already submitted
            AttemptExpired: Late and expiry is enforced
            InvalidAnswer: Unknown question or out-of-range choice
        """
        attempt = self._owned_attempt(attempt_id, caller)
        if attempt.submitted_at is not None:
            logger.info(
                f"Duplicate submit rejected for quiz attempt {attempt_id}",
                extra={"attempt_id": attempt_id},
            )
            with graceful_failure("record rejection metrics", logger):
                quiz_metrics.record_rejected("duplicate_submit")
            raise AttemptConflict(ErrorMessages.ATTEMPT_ALREADY_SUBMITTED)

        now = self.clock()
        late = is_past_deadline(
            attempt.created_at,
            attempt.time_limit_seconds,
            now,
            grace_seconds=self.config.QUIZ_SUBMIT_GRACE_SECONDS,
        )
        draft = load_answers(attempt.answers)
        reject_late = late and self.config.QUIZ_REJECT_EXPIRED_SUBMISSIONS

        if reject_late:
            final_answers = draft
        else:
            submitted = normalize_answers(answers, attempt.questions)
            final_answers = merge_answers(draft, submitted)

        answer_key = [AnswerKey(q.id, q.correct_index) for q in attempt.questions]
        result = grade_attempt(answer_key, final_answers, attempt.pass_score)

        finalized = self.store.finalize_submission(
            attempt,
            answers=final_answers,
            result=result,
            department=caller.department,
            submitted_at=now,
            time_limit_exceeded=late,
        )
        if not finalized:
            self.store.rollback()
            logger.info(
                f"Concurrent submit lost the race for quiz attempt {attempt_id}",
                extra={"attempt_id": attempt_id},
            )
            with graceful_failure("record rejection metrics", logger):
                quiz_metrics.record_rejected("duplicate_submit")
            raise AttemptConflict(ErrorMessages.ATTEMPT_ALREADY_SUBMITTED)
        self.store.commit()

        if late:
            logger.warning(
                f"Quiz attempt {attempt_id} submitted after its time limit "
                f"({attempt.time_limit_seconds}s)",
                extra={"attempt_id": attempt_id},
            )
        logger.info(
            f"Graded quiz attempt {attempt_id}: score={result.score} "
            f"({result.correct_count}/{result.total_count}), passed={result.passed}",
            extra={"attempt_id": attempt_id},
        )
        with graceful_failure(
            "record submit metrics", logger, context={"attempt_id": attempt_id}
        ):
            quiz_metrics.record_submitted(result.score, late=late)

        if reject_late:
            with graceful_failure("record rejection metrics", logger):
                quiz_metrics.record_rejected("expired")
            raise AttemptExpired(ErrorMessages.ATTEMPT_EXPIRED)

        return SubmitResponse(
            attempt_id=attempt_id,
            score=result.score,
            passed=result.passed,
            correct_count=result.correct_count,
            wrong_count=result.wrong_count,
            total_count=result.total_count,
            submitted_at=now,
            time_limit_exceeded=late,
        )

    def result(self, attempt_id: str, caller: CallerContext) -> ResultResponse:
        """
        Outcome of a submitted attempt.

        Raises:
            AttemptNotFound: Missing, foreign or not yet submitted
        """
        attempt = self._submitted_attempt(attempt_id, caller)
        return ResultResponse(
            attempt_id=attempt.id,
            score=attempt.score,
            passed=bool(attempt.passed),
            pass_score=attempt.pass_score,
            correct_count=attempt.correct_count,
            wrong_count=attempt.wrong_count,
            total_count=attempt.total_count,
            finished_at=ensure_timezone_aware(attempt.submitted_at),
            time_limit_exceeded=bool(attempt.time_limit_exceeded),
        )

    def wrongs(self, attempt_id: str, caller: CallerContext) -> List[WrongNoteItem]:
        """
        Review list of wrong and unanswered questions of a submitted attempt.

        Raises:
            AttemptNotFound: Missing, foreign or not yet submitted
        """
        attempt = self._submitted_attempt(attempt_id, caller)
        return [
            WrongNoteItem(
                question_id=q.id,
                order=q.question_order,
                question=q.prompt,
                choices=list(q.choices or []),
                user_answer_index=q.selected_index,
                correct_answer_index=q.correct_index,
                explanation=q.explanation,
            )
            for q in attempt.questions
            if q.selected_index is None or q.selected_index != q.correct_index
        ]

    # =========================================================================
    # Per-user views
    # =========================================================================

    def available_educations(self, caller: CallerContext) -> List[AvailableEducationItem]:
        """Quiz status for every education the caller completed."""
        education_ids = self.catalog.completed_education_ids(caller.user_id)
        policies = self.catalog.get_policies(education_ids)

        submitted_by_education = defaultdict(list)
        for attempt in self.store.submitted_attempts(caller.user_id):
            submitted_by_education[attempt.education_id].append(to_outcome(attempt))
        in_progress = self.store.in_progress_by_education(caller.user_id)

        items = []
        for education_id in education_ids:
            policy = policies.get(education_id)
            if policy is None:
                continue
            status = evaluate_retry(
                submitted_by_education.get(education_id, []), policy.max_attempts
            )
            items.append(
                AvailableEducationItem(
                    education_id=education_id,
                    title=policy.title,
                    category=policy.category,
                    attempt_count=status.current_attempt_count,
                    max_attempts=policy.max_attempts,
                    can_retry=status.can_retry,
                    has_attempted=status.current_attempt_count > 0,
                    best_score=status.best_score,
                    passed=status.passed,
                    in_progress_attempt_id=in_progress.get(education_id),
                )
            )
        return items

    def my_attempts(self, caller: CallerContext) -> List[MyAttemptItem]:
        """Submitted attempts, newest first, with the personal best flagged."""
        attempts = self.store.submitted_attempts(caller.user_id)

        by_education = defaultdict(list)
        for attempt in attempts:
            by_education[attempt.education_id].append(to_outcome(attempt))
        best_ids = {
            attempt_id
            for outcomes in by_education.values()
            for attempt_id in best_attempt_ids(outcomes)
        }
        policies = self.catalog.get_policies(by_education.keys())

        return [
            MyAttemptItem(
                attempt_id=attempt.id,
                education_id=attempt.education_id,
                education_title=(
                    policies[attempt.education_id].title
                    if attempt.education_id in policies
                    else None
                ),
                score=attempt.score,
                passed=bool(attempt.passed),
                attempt_no=attempt.attempt_no,
                submitted_at=ensure_timezone_aware(attempt.submitted_at),
                is_best_score=attempt.id in best_ids,
            )
            for attempt in attempts
        ]

    def retry_info(self, education_id: int, caller: CallerContext) -> RetryInfoResponse:
        """
        Retry eligibility and best score for one education.

        Raises:
            EducationNotFound: Unknown or deleted education
        """
        policy = self._require_policy(education_id)
        outcomes = [
            to_outcome(a)
            for a in self.store.submitted_attempts(caller.user_id, education_id)
        ]
        status = evaluate_retry(outcomes, policy.max_attempts)
        return RetryInfoResponse(
            education_id=education_id,
            education_title=policy.title,
            can_retry=status.can_retry,
            current_attempt_count=status.current_attempt_count,
            max_attempts=status.max_attempts,
            remaining_attempts=status.remaining_attempts,
            best_score=status.best_score,
            passed=status.passed,
            last_attempt_at=status.last_attempt_at,
        )

    def score_by_topic(self, user_id: str, topic: str) -> TopicScoreResponse:
        """
        Best score and pass status of a user for every education in a topic.

        Topics are education categories, matched case-insensitively. The
        average is taken over best scores of attempted educations only.
        """
        policies = self.catalog.policies_by_category(topic)
        education_ids = {p.education_id for p in policies}

        outcomes_by_education = defaultdict(list)
        for attempt in self.store.submitted_attempts(user_id):
            if attempt.education_id in education_ids:
                outcomes_by_education[attempt.education_id].append(to_outcome(attempt))

        items = []
        for policy in policies:
            outcomes = outcomes_by_education.get(policy.education_id, [])
            status = evaluate_retry(outcomes, policy.max_attempts)
            items.append(
                TopicScoreItem(
                    education_id=policy.education_id,
                    title=policy.title,
                    has_attempt=bool(outcomes),
                    best_score=status.best_score,
                    passed=status.passed,
                    attempt_count=status.current_attempt_count,
                    pass_score=policy.pass_score,
                    last_attempt_at=status.last_attempt_at,
                )
            )

        best_scores = [i.best_score for i in items if i.best_score is not None]
        attempted = sum(1 for i in items if i.has_attempt)
        return TopicScoreResponse(
            topic=topic.strip().upper(),
            education_count=len(items),
            attempted_count=attempted,
            passed_count=sum(1 for i in items if i.passed),
            has_attempt=attempted > 0,
            average_score=(
                round(sum(best_scores) / len(best_scores), 1) if best_scores else 0.0
            ),
            items=items,
        )

    def department_stats(
        self, education_id: Optional[int] = None
    ) -> List[DepartmentStatsItem]:
        """Per-department average of per-user mean scores, by participation share."""
        rows = self.store.scored_attempts(education_id=education_id)
        return [
            DepartmentStatsItem(
                department_name=d.department,
                average_score=d.average_score,
                progress_percent=d.progress,
                participant_count=d.participant_count,
            )
            for d in department_progress(rows, self.config.STATS_UNKNOWN_DEPARTMENT)
        ]

    # =========================================================================
    # Admin dashboard
    # =========================================================================

    def dashboard_summary(
        self, period_days: Optional[int] = None, department: Optional[str] = None
    ) -> DashboardSummaryResponse:
        days = self._period_days(period_days)
        rows = self.store.scored_attempts(
            since=period_start(self.clock(), days), department=department
        )
        eligible = self.catalog.eligible_count(department=department)
        stats = summarize(rows, self.config.STATS_PASS_THRESHOLD, eligible)
        return DashboardSummaryResponse(
            period_days=days,
            department=department,
            overall_average_score=stats.average_score,
            attempt_count=stats.attempt_count,
            participant_count=stats.participant_count,
            pass_rate=stats.pass_rate,
            participation_rate=stats.participation_rate,
        )

    def department_scores(
        self, period_days: Optional[int] = None, department: Optional[str] = None
    ) -> DepartmentScoreResponse:
        days = self._period_days(period_days)
        rows = self.store.scored_attempts(
            since=period_start(self.clock(), days), department=department
        )
        groups = department_scores(
            rows,
            self.config.STATS_PASS_THRESHOLD,
            eligible_by_department=self.catalog.eligible_by_department(),
            unknown_department=self.config.STATS_UNKNOWN_DEPARTMENT,
        )
        return DepartmentScoreResponse(
            period_days=days,
            items=[
                DepartmentScoreItem(
                    department=g.department,
                    average_score=g.average_score,
                    attempt_count=g.attempt_count,
                    participant_count=g.participant_count,
                    pass_rate=g.pass_rate,
                    participation_rate=g.participation_rate,
                )
                for g in groups
            ],
        )

    def quiz_stats(
        self, period_days: Optional[int] = None, department: Optional[str] = None
    ) -> QuizStatsResponse:
        days = self._period_days(period_days)
        rows = self.store.scored_attempts(
            since=period_start(self.clock(), days), department=department
        )
        return QuizStatsResponse(
            period_days=days,
            items=[
                QuizStatsItem(
                    education_id=s.education_id,
                    quiz_title=s.education_title,
                    education_version=s.education_version,
                    average_score=s.average_score,
                    attempt_count=s.attempt_count,
                    participant_count=s.participant_count,
                    pass_rate=s.pass_rate,
                )
                for s in quiz_stats(rows, self.config.STATS_PASS_THRESHOLD)
            ],
        )

    def delete_attempts(self, education_id: int, user_id: str) -> DeleteAttemptsResponse:
        """Soft-delete every attempt of a user for an education."""
        deleted = self.store.soft_delete(user_id, education_id, self.clock())
        self.store.commit()
        logger.info(
            f"Soft-deleted {deleted} quiz attempts of user {user_id}",
            extra={"education_id": education_id},
        )
        return DeleteAttemptsResponse(
            education_id=education_id, user_id=user_id, deleted_count=deleted
        )
