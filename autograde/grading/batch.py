"""
Batch grading of a submission's responses.

Each response is graded independently. Items are routed first: deterministic
items run on the main worker pool, and items that call the AI provider run on
a separate pool no wider than the provider limit. A slow provider therefore
never holds the workers that objective, blank and numeric items need.
"""

import logging
from collections.abc import Iterable, Sequence
from concurrent.futures import Future, ThreadPoolExecutor, as_completed
from typing import NamedTuple

from autograde.config import Settings, get_settings
from autograde.grading.dispatcher import GradingDispatcher, GradingRoute, resolve_route
from autograde.models import (
    AssessmentGradingConfig,
    GradingMethod,
    GradingResult,
    Question,
    StudentResponse,
)

logger = logging.getLogger(__name__)


class BatchGradingReport(NamedTuple):
    """Results of one batch run plus the responses that could not be matched."""

    results: list[GradingResult]
    skipped_question_ids: list[str]


class BatchOrchestrator:
    """
    Grades an ordered collection of responses against their questions.

    Responses whose question is missing from the supplied collection are
    skipped, not failed: they are logged and listed in the report's
    `skipped_question_ids`, and produce no result.
    """

    def __init__(
        self,
        dispatcher: GradingDispatcher | None = None,
        settings: Settings | None = None,
        max_workers: int | None = None,
    ):
        """
        Initialize the orchestrator.

        Args:
            dispatcher: Dispatcher used for every response.
            settings: Configuration settings. Uses global settings if not provided.
            max_workers: Override the worker thread count.
        """
        self._settings = settings or get_settings()
        self._dispatcher = dispatcher or GradingDispatcher(self._settings)
        self._max_workers = max_workers or self._settings.batch_max_workers

    def grade_batch(
        self,
        responses: Sequence[StudentResponse],
        questions: Iterable[Question],
        config: AssessmentGradingConfig | None = None,
    ) -> list[GradingResult]:
        """
        Grade every response that has a matching question.

        Args:
            responses: Responses in submission order.
            questions: Question records to look responses up in.
            config: Assessment grading policy.

        Returns:
            Results carrying `question_id`, in the order of `responses`.
        """
        return self.run(responses, questions, config).results

    def run(
        self,
        responses: Sequence[StudentResponse],
        questions: Iterable[Question],
        config: AssessmentGradingConfig | None = None,
    ) -> BatchGradingReport:
        """
        Grade a batch and report which responses were skipped.

        Args:
            responses: Responses in submission order.
            questions: Question records to look responses up in.
            config: Assessment grading policy.

        Returns:
            BatchGradingReport.
        """
        policy = config or AssessmentGradingConfig()
        # First record wins when ids repeat
        questions_by_id: dict[str, Question] = {}
        for question in questions:
            questions_by_id.setdefault(question.id, question)

        work: list[tuple[StudentResponse, Question]] = []
        skipped: list[str] = []
        for response in responses:
            question = questions_by_id.get(response.question_id)
            if question is None:
                logger.warning(
                    "No question found for response to %s, skipping", response.question_id
                )
                skipped.append(response.question_id)
                continue
            work.append((response, question))

        if not work:
            return BatchGradingReport(results=[], skipped_question_ids=skipped)

        results = self._grade_all(work, policy)

        logger.info("Graded %d responses, skipped %d", len(results), len(skipped))
        return BatchGradingReport(results=results, skipped_question_ids=skipped)

    def _grade_all(
        self, work: list[tuple[StudentResponse, Question]], config: AssessmentGradingConfig
    ) -> list[GradingResult]:
        """
        Grade matched items, keeping provider-bound items off the main pool.

        Returns results in the order of `work`.
        """
        deterministic: list[int] = []
        provider_bound: list[int] = []
        for index, (_, question) in enumerate(work):
            route = resolve_route(question.question_type, question.subject)
            if route is GradingRoute.SUBJECTIVE:
                provider_bound.append(index)
            else:
                deterministic.append(index)

        provider_width = min(self._max_workers, self._settings.ai_max_concurrent_calls)
        results: list[GradingResult | None] = [None] * len(work)
        futures: dict[Future[GradingResult], int] = {}
        pools: list[ThreadPoolExecutor] = []
        try:
            lanes = ((deterministic, self._max_workers), (provider_bound, provider_width))
            for indices, width in lanes:
                if not indices:
                    continue
                pool = ThreadPoolExecutor(max_workers=min(width, len(indices)))
                pools.append(pool)
                for index in indices:
                    futures[pool.submit(self._grade_item, *work[index], config)] = index

            for future in as_completed(futures):
                results[futures[future]] = future.result()
        finally:
            for pool in pools:
                pool.shutdown()

        return [result for result in results if result is not None]

    def _grade_item(
        self, response: StudentResponse, question: Question, config: AssessmentGradingConfig
    ) -> GradingResult:
        """Grade one item, turning an unexpected failure into a manual-review result."""
        try:
            result = self._dispatcher.grade_one(response, question, config)
        except Exception as e:
            logger.exception("Grading failed for question %s", question.id)
            result = GradingResult(
                is_correct=None,
                marks_awarded=0.0,
                max_marks=response.max_marks,
                confidence=0.0,
                explanation=f"Grading failed: {e}",
                grading_method=GradingMethod.MANUAL,
                needs_manual_grading=True,
            )
        return result.model_copy(update={"question_id": response.question_id})
