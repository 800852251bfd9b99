"""Question generation client.

The attempt engine asks the generation service for a fresh question set when
it creates an attempt. The engine only depends on the ``QuestionGenerator``
protocol; ``HttpQuestionGenerator`` is the production implementation talking
to the AI service over HTTP.
"""

import logging
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Protocol, Sequence

import httpx

from quiz_service.core.config import settings
from quiz_service.services.education_catalog import EducationSnapshot

logger = logging.getLogger(__name__)

GENERATE_PATH = "/ai/quiz/generate"


class QuestionGenerationError(Exception):
    """The generation service failed or returned an unusable question set."""


@dataclass(frozen=True)
class GeneratedQuestion:
    """One generated question, answer key included."""

    prompt: str
    choices: List[str]
    correct_index: Optional[int]
    explanation: Optional[str] = None


class QuestionGenerator(Protocol):
    def generate(
        self,
        education: EducationSnapshot,
        num_questions: int,
        max_options: int,
        exclude: Sequence[str] = (),
    ) -> List[GeneratedQuestion]:
        """Return a new question set for the education.

        Args:
            education: Education the quiz is for
            num_questions: Requested number of questions
            max_options: Maximum choices per question
            exclude: Prompts from the user's previous attempts to avoid

        Raises:
            QuestionGenerationError: Generation failed
        """
        ...


class HttpQuestionGenerator:
    """Generates questions by calling the AI service.

    Attributes:
        base_url: Base URL of the AI service
        token: Internal token sent as X-Internal-Token (optional)
        language: Language code for generated questions
        timeout: httpx timeout; generation is an LLM call and reads are slow
    """

    def __init__(
        self,
        base_url: str,
        token: str = "",
        language: str = "ko",
        read_timeout: float = 600.0,
        connect_timeout: float = 30.0,
    ):
        self.base_url = base_url.rstrip("/")
        self.token = token
        self.language = language
        self.timeout = httpx.Timeout(read_timeout, connect=connect_timeout)

    def _get_headers(self) -> Dict[str, str]:
        headers = {"Content-Type": "application/json"}
        if self.token:
            headers["X-Internal-Token"] = self.token
        return headers

    def _build_payload(
        self,
        education: EducationSnapshot,
        num_questions: int,
        max_options: int,
        exclude: Sequence[str],
    ) -> Dict[str, Any]:
        payload: Dict[str, Any] = {
            "educationId": education.education_id,
            "educationTitle": education.title,
            "educationVersion": education.version,
            "language": self.language,
            "numQuestions": num_questions,
            "maxOptions": max_options,
        }
        if exclude:
            payload["excludePreviousQuestions"] = [{"stem": stem} for stem in exclude]
        return payload

    def generate(
        self,
        education: EducationSnapshot,
        num_questions: int,
        max_options: int,
        exclude: Sequence[str] = (),
    ) -> List[GeneratedQuestion]:
        """Request a question set from the AI service.

        Raises:
            QuestionGenerationError: Transport failure, non-2xx status, or a
                response without any usable question
        """
        url = f"{self.base_url}{GENERATE_PATH}"
        payload = self._build_payload(education, num_questions, max_options, exclude)
        logger.info(
            f"Requesting {num_questions} questions for education "
            f"{education.education_id} (excluding {len(exclude)} previous)"
        )

        try:
            with httpx.Client(timeout=self.timeout) as client:
                response = client.post(url, json=payload, headers=self._get_headers())
                response.raise_for_status()
                data = response.json()
        except httpx.TimeoutException as e:
            raise QuestionGenerationError(f"Timeout calling generation service: {e}") from e
        except httpx.HTTPStatusError as e:
            raise QuestionGenerationError(
                f"Generation service returned HTTP {e.response.status_code}"
            ) from e
        except httpx.HTTPError as e:
            raise QuestionGenerationError(f"Error calling generation service: {e}") from e
        except ValueError as e:
            raise QuestionGenerationError(f"Invalid JSON from generation service: {e}") from e

        questions = parse_generated_questions(data)
        if not questions:
            raise QuestionGenerationError("Generation service returned no usable questions")
        logger.info(
            f"Generated {len(questions)} questions for education {education.education_id}"
        )
        return questions


def parse_generated_questions(data: Any) -> List[GeneratedQuestion]:
    """Convert a generation response body into GeneratedQuestion objects.

    Expected shape::

        {"questions": [{"stem": "...", "explanation": "...",
                        "options": [{"text": "...", "isCorrect": true}, ...]}]}

    Questions without a stem or with fewer than two options are skipped. The
    first option flagged correct is the answer key.
    """
    if not isinstance(data, dict):
        return []

    questions: List[GeneratedQuestion] = []
    for item in data.get("questions") or []:
        if not isinstance(item, dict):
            continue
        stem = (item.get("stem") or "").strip()
        options = [o for o in item.get("options") or [] if isinstance(o, dict)]
        if not stem or len(options) < 2:
            logger.warning("Skipping malformed generated question")
            continue

        correct_index = next(
            (i for i, o in enumerate(options) if o.get("isCorrect") is True), None
        )
        questions.append(
            GeneratedQuestion(
                prompt=stem,
                choices=[str(o.get("text") or "") for o in options],
                correct_index=correct_index,
                explanation=item.get("explanation"),
            )
        )
    return questions


def placeholder_questions(count: int, max_options: int) -> List[GeneratedQuestion]:
    """Stand-in question set used when generation fails and fallback is enabled."""
    return [
        GeneratedQuestion(
            prompt=f"Placeholder question {n}",
            choices=[f"Option {i + 1}" for i in range(max_options)],
            correct_index=0,
            explanation=None,
        )
        for n in range(1, count + 1)
    ]


def get_question_generator() -> QuestionGenerator:
    """FastAPI dependency returning the configured generator."""
    return HttpQuestionGenerator(
        base_url=settings.QUIZ_AI_BASE_URL,
        token=settings.QUIZ_AI_TOKEN,
        language=settings.QUIZ_LANGUAGE,
        read_timeout=settings.QUIZ_AI_TIMEOUT_SECONDS,
        connect_timeout=settings.QUIZ_AI_CONNECT_TIMEOUT_SECONDS,
    )
