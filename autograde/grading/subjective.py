"""
AI-assisted grading for free-text short answers.

The only grader that waits on an external call. The provider call is wrapped
so that it always yields a ProviderResult; the grader then chooses between
the AI-derived grade and a deterministic similarity grade without letting a
provider failure escape.
"""

import logging
import threading
from collections.abc import Sequence
from typing import NamedTuple

from autograde.config import Settings, get_settings
from autograde.grading.base import round_marks
from autograde.grading.llm_client import GradingProvider, LLMClient
from autograde.grading.prompt_builder import PromptBuilder
from autograde.grading.scorer import ParsedGrade, ResponseParser
from autograde.models import (
    AIAnalysis,
    GradingMethod,
    GradingResult,
    ReferenceSource,
)
from autograde.plagiarism import PlagiarismDetector
from autograde.text import cosine_similarity

logger = logging.getLogger(__name__)


class ProviderResult(NamedTuple):
    """Outcome of one provider call: the raw text, or the error it failed with."""

    text: str | None
    error: Exception | None = None

    @property
    def ok(self) -> bool:
        return self.error is None


class SubjectiveGrader:
    """
    Grades short answers with the AI provider, falling back to text similarity.

    Decision rules:
    - AI score >= 0.7 counts as correct
    - malformed AI output is graded from a fixed low-confidence default
    - a failed or missing provider falls back to cosine similarity with
      confidence 0.6, correct when similarity > 0.7

    Long answers and essays are never graded automatically; see `grade_manual`.
    """

    CORRECT_SCORE = 0.7
    FALLBACK_CORRECT_SIMILARITY = 0.7
    FALLBACK_CONFIDENCE = 0.6

    def __init__(
        self,
        provider: GradingProvider | None = None,
        settings: Settings | None = None,
        detector: PlagiarismDetector | None = None,
    ):
        """
        Initialize the grader.

        Args:
            provider: AI grading provider. Without one every answer is graded
                by the similarity fallback.
            settings: Configuration settings. Uses global settings if not provided.
            detector: Plagiarism detector for questions with reference sources.
        """
        self._settings = settings or get_settings()
        self._provider = provider
        self._detector = detector or PlagiarismDetector(self._settings.plagiarism_threshold)
        self._prompt_builder = PromptBuilder()
        self._response_parser = ResponseParser()
        # Shared by every thread using this grader: caps calls in flight
        # against the provider's rate limit.
        self._provider_slots = threading.BoundedSemaphore(self._settings.ai_max_concurrent_calls)

    @classmethod
    def from_settings(cls, settings: Settings | None = None) -> "SubjectiveGrader":
        """Create a grader with an LLMClient when an API key is configured."""
        settings = settings or get_settings()
        provider = LLMClient(settings) if settings.ai_enabled else None
        return cls(provider=provider, settings=settings)

    @property
    def has_provider(self) -> bool:
        return self._provider is not None

    def grade(
        self,
        question_text: str,
        correct_answer: object,
        student_answer: str | None,
        max_marks: float,
        reference_sources: Sequence[ReferenceSource] = (),
    ) -> GradingResult:
        """
        Grade a free-text short answer.

        Args:
            question_text: The question as shown to the student.
            correct_answer: The reference answer.
            student_answer: The student's answer text.
            max_marks: Marks the question is worth.
            reference_sources: Sources to check the answer against for copying.

        Returns:
            GradingResult from the AI path or the similarity fallback.
        """
        reference = "" if correct_answer is None else str(correct_answer)
        answer = student_answer or ""

        if self._provider is None:
            result = self.grade_by_similarity(answer, reference, max_marks)
        else:
            prompt = self._prompt_builder.build_grading_prompt(
                question_text, reference, answer, max_marks
            )
            outcome = self._call_provider(self._provider, prompt)
            if outcome.ok:
                parsed = self._response_parser.parse(outcome.text)
                if parsed is None:
                    parsed = ParsedGrade.unparsed()
                result = self._from_parsed(parsed, max_marks)
            else:
                logger.warning(
                    "AI grading failed, using similarity fallback: %s", outcome.error
                )
                result = self.grade_by_similarity(answer, reference, max_marks)

        if reference_sources:
            result = self._check_plagiarism(result, answer, reference_sources)

        return result

    def grade_manual(self, max_marks: float) -> GradingResult:
        """
        Route a long answer or essay to a human grader.

        No AI call and no fallback grading is attempted.
        """
        return GradingResult(
            is_correct=None,
            marks_awarded=0.0,
            max_marks=max_marks,
            confidence=0.0,
            explanation="Requires manual grading",
            grading_method=GradingMethod.MANUAL,
            needs_manual_grading=True,
        )

    def grade_by_similarity(
        self, student_answer: str, correct_answer: str, max_marks: float
    ) -> GradingResult:
        """Deterministic grade from word-frequency cosine similarity."""
        similarity = cosine_similarity(student_answer, correct_answer)
        return GradingResult(
            is_correct=similarity > self.FALLBACK_CORRECT_SIMILARITY,
            marks_awarded=round_marks(similarity * max_marks, max_marks),
            max_marks=max_marks,
            confidence=self.FALLBACK_CONFIDENCE,
            explanation=f"Text similarity: {round(similarity * 100)}%",
            grading_method=GradingMethod.SIMILARITY_FALLBACK,
        )

    def _call_provider(self, provider: GradingProvider, prompt: str) -> ProviderResult:
        """Invoke the provider, capturing any failure instead of raising it."""
        system_prompt = self._prompt_builder.get_system_prompt()
        with self._provider_slots:
            try:
                return ProviderResult(text=provider.generate(system_prompt, prompt))
            except Exception as e:
                return ProviderResult(text=None, error=e)

    def _from_parsed(self, parsed: ParsedGrade, max_marks: float) -> GradingResult:
        """Turn a parsed AI decision into a GradingResult."""
        marks = parsed.marks_awarded
        if marks is None:
            marks = parsed.score * max_marks

        return GradingResult(
            is_correct=parsed.score >= self.CORRECT_SCORE,
            marks_awarded=round_marks(max(marks, 0.0), max_marks),
            max_marks=max_marks,
            confidence=parsed.confidence,
            explanation=parsed.explanation,
            grading_method=GradingMethod.AI,
            ai_analysis=AIAnalysis(
                key_points_covered=parsed.key_points,
                quality_score=parsed.quality_score,
                relevance_score=parsed.relevance_score,
            ),
        )

    def _check_plagiarism(
        self,
        result: GradingResult,
        answer: str,
        reference_sources: Sequence[ReferenceSource],
    ) -> GradingResult:
        """Attach a plagiarism report, sending flagged answers to manual review."""
        report = self._detector.detect(answer, reference_sources)
        if not report.is_plagiarized:
            return result.model_copy(update={"plagiarism": report})

        return result.model_copy(
            update={
                "plagiarism": report,
                "needs_manual_grading": True,
                "explanation": (
                    f"{result.explanation}. Possible plagiarism "
                    f"({round(report.plagiarism_score * 100)}% similar to a reference source)"
                ),
            }
        )
