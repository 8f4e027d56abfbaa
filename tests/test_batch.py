"""
Tests for batch grading and score summaries.
"""

import logging
import threading
import time
from unittest.mock import MagicMock

import pytest

from autograde.config import Settings
from autograde.grading import (
    DEFAULT_GRADING_SCALE,
    BatchOrchestrator,
    GradingDispatcher,
    SubjectiveGrader,
    letter_grade,
    summarize_scores,
)
from autograde.models import (
    Answer,
    AssessmentGradingConfig,
    GradeBand,
    GradingMethod,
    GradingResult,
    Question,
    StudentResponse,
)


# ==============================================================================
# Batch Grading
# ==============================================================================


class TestBatchOrchestrator:
    """Tests for BatchOrchestrator."""

    @pytest.fixture
    def orchestrator(
        self, dispatcher: GradingDispatcher, test_settings: Settings
    ) -> BatchOrchestrator:
        return BatchOrchestrator(dispatcher=dispatcher, settings=test_settings)

    def test_grades_every_type_in_order(
        self,
        orchestrator: BatchOrchestrator,
        sample_questions: list[Question],
        sample_responses: list[StudentResponse],
        negative_marking_config: AssessmentGradingConfig,
    ) -> None:
        """Test results follow submission order and each used the right grader."""
        results = orchestrator.grade_batch(
            sample_responses, sample_questions, negative_marking_config
        )

        assert [r.question_id for r in results] == [r.question_id for r in sample_responses]
        assert [r.grading_method for r in results] == [
            GradingMethod.OBJECTIVE,
            GradingMethod.OBJECTIVE,
            GradingMethod.PARTIAL_CREDIT,
            GradingMethod.NUMERIC,
            GradingMethod.AI,
            GradingMethod.MANUAL,
        ]
        assert [r.marks_awarded for r in results] == [4, -1.0, 4.0, 2, 4, 0]

    def test_order_independent_of_completion(
        self, test_settings: Settings, short_answer_question: Question
    ) -> None:
        """Test slow early items still come back first."""
        delays = iter([0.05, 0.0, 0.0, 0.0])
        lock = threading.Lock()

        def generate(system_prompt: str, user_prompt: str) -> str:
            with lock:
                delay = next(delays)
            time.sleep(delay)
            score = user_prompt.split("answer-")[1][0]
            return f'{{"score": 0.{score}}}'

        provider = MagicMock()
        provider.generate.side_effect = generate
        subjective = SubjectiveGrader(provider=provider, settings=test_settings)
        orchestrator = BatchOrchestrator(
            GradingDispatcher(test_settings, subjective=subjective), test_settings
        )
        responses = [
            StudentResponse(
                question_id="q-short",
                answer=Answer(text_answer=f"answer-{i}"),
                max_marks=10,
            )
            for i in range(1, 5)
        ]

        results = orchestrator.grade_batch(responses, [short_answer_question])

        assert [r.marks_awarded for r in results] == [1.0, 2.0, 3.0, 4.0]

    def test_missing_question_skipped(
        self,
        orchestrator: BatchOrchestrator,
        mcq_question: Question,
        caplog: pytest.LogCaptureFixture,
    ) -> None:
        """Test responses without a question are logged and reported, not graded."""
        responses = [
            StudentResponse(question_id="q-gone", answer=Answer(selected_option="A"), max_marks=1),
            StudentResponse(question_id="q-mcq", answer=Answer(selected_option="B"), max_marks=4),
        ]

        with caplog.at_level(logging.WARNING, logger="autograde.grading.batch"):
            report = orchestrator.run(responses, [mcq_question])

        assert [r.question_id for r in report.results] == ["q-mcq"]
        assert report.skipped_question_ids == ["q-gone"]
        assert "q-gone" in caplog.text

    def test_empty_batch(self, orchestrator: BatchOrchestrator) -> None:
        """Test an empty batch returns no results."""
        report = orchestrator.run([], [])

        assert report.results == []
        assert report.skipped_question_ids == []

    def test_grader_crash_becomes_manual_result(
        self, test_settings: Settings, mcq_question: Question
    ) -> None:
        """Test one failing item does not abort the batch."""
        dispatcher = MagicMock()
        ok = GradingResult(
            is_correct=True,
            marks_awarded=4,
            max_marks=4,
            confidence=1.0,
            explanation="Correct answer selected",
            grading_method=GradingMethod.OBJECTIVE,
        )
        dispatcher.grade_one.side_effect = [RuntimeError("grader exploded"), ok]
        orchestrator = BatchOrchestrator(dispatcher=dispatcher, settings=test_settings, max_workers=1)
        responses = [
            StudentResponse(question_id="q-mcq", answer=Answer(selected_option="B"), max_marks=4),
            StudentResponse(question_id="q-mcq", answer=Answer(selected_option="B"), max_marks=4),
        ]

        results = orchestrator.grade_batch(responses, [mcq_question])

        assert results[0].is_correct is None
        assert results[0].needs_manual_grading is True
        assert results[0].confidence == 0
        assert results[0].explanation == "Grading failed: grader exploded"
        assert results[0].question_id == "q-mcq"
        assert results[1].is_correct is True

    def test_ai_calls_throttled_across_batch(
        self, short_answer_question: Question
    ) -> None:
        """Test the provider limit holds even with more worker threads."""
        settings = Settings(  # type: ignore[call-arg]
            _env_file=None, ai_api_key=None, ai_max_concurrent_calls=1, batch_max_workers=4
        )
        lock = threading.Lock()
        state = {"active": 0, "peak": 0}

        def generate(system_prompt: str, user_prompt: str) -> str:
            with lock:
                state["active"] += 1
                state["peak"] = max(state["peak"], state["active"])
            time.sleep(0.01)
            with lock:
                state["active"] -= 1
            return '{"score": 1}'

        provider = MagicMock()
        provider.generate.side_effect = generate
        subjective = SubjectiveGrader(provider=provider, settings=settings)
        orchestrator = BatchOrchestrator(GradingDispatcher(settings, subjective=subjective), settings)
        responses = [
            StudentResponse(question_id="q-short", answer=Answer(text_answer="x"), max_marks=1)
            for _ in range(8)
        ]

        results = orchestrator.grade_batch(responses, [short_answer_question])

        assert len(results) == 8
        assert state["peak"] == 1

    def test_objective_items_not_blocked_by_provider(
        self, short_answer_question: Question, mcq_question: Question
    ) -> None:
        """Test deterministic items finish while every provider slot is held."""
        settings = Settings(  # type: ignore[call-arg]
            _env_file=None, ai_api_key=None, ai_max_concurrent_calls=1, batch_max_workers=2
        )
        objective_done = threading.Event()
        lock = threading.Lock()
        graded_objective = []

        class RecordingDispatcher(GradingDispatcher):
            def grade_one(self, response, question, config=None):
                result = super().grade_one(response, question, config)
                if result.grading_method is GradingMethod.OBJECTIVE:
                    with lock:
                        graded_objective.append(result)
                        if len(graded_objective) == 2:
                            objective_done.set()
                return result

        waited = []

        def generate(system_prompt: str, user_prompt: str) -> str:
            waited.append(objective_done.wait(timeout=5))
            return '{"score": 1}'

        provider = MagicMock()
        provider.generate.side_effect = generate
        subjective = SubjectiveGrader(provider=provider, settings=settings)
        orchestrator = BatchOrchestrator(
            RecordingDispatcher(settings, subjective=subjective), settings
        )
        responses = [
            StudentResponse(question_id="q-short", answer=Answer(text_answer="x"), max_marks=1)
            for _ in range(3)
        ] + [
            StudentResponse(question_id="q-mcq", answer=Answer(selected_option="B"), max_marks=4)
            for _ in range(2)
        ]

        results = orchestrator.grade_batch(responses, [short_answer_question, mcq_question])

        assert waited == [True, True, True]
        assert [r.question_id for r in results] == ["q-short"] * 3 + ["q-mcq"] * 2
        assert [r.grading_method for r in results] == [GradingMethod.AI] * 3 + [
            GradingMethod.OBJECTIVE
        ] * 2

    def test_duplicate_question_ids_first_wins(self, orchestrator: BatchOrchestrator) -> None:
        """Test the first record is used when a question id repeats."""
        questions = [
            Question(id="1", question_type="MCQ", correct_answer="A"),
            Question(id="1", question_type="MCQ", correct_answer="B"),
        ]
        responses = [
            StudentResponse(question_id="1", answer=Answer(selected_option="A"), max_marks=2)
        ]

        results = orchestrator.grade_batch(responses, questions)

        assert results[0].is_correct is True
        assert results[0].marks_awarded == 2


# ==============================================================================
# Score Summary
# ==============================================================================


def _result(marks: float, max_marks: float = 10, manual: bool = False) -> GradingResult:
    return GradingResult(
        is_correct=None if manual else marks > 0,
        marks_awarded=marks,
        max_marks=max_marks,
        confidence=1.0,
        explanation="test",
        grading_method=GradingMethod.MANUAL if manual else GradingMethod.OBJECTIVE,
        needs_manual_grading=manual,
    )


class TestLetterGrade:
    """Tests for letter_grade."""

    @pytest.mark.parametrize(
        "percentage,expected",
        [(100, "A+"), (90, "A+"), (89, "A"), (75, "B"), (60, "C"), (50, "D"), (49, "F"), (0, "F")],
    )
    def test_default_scale(self, percentage: int, expected: str) -> None:
        """Test band edges of the default scale."""
        assert letter_grade(percentage) == expected

    def test_no_matching_band(self) -> None:
        """Test a gap in a custom scale yields no grade."""
        scale = (GradeBand(grade="Pass", min=50, max=100),)

        assert letter_grade(20, scale) is None

    def test_default_scale_covers_all_whole_percentages(self) -> None:
        """Test every whole percentage has a grade."""
        assert all(letter_grade(p, DEFAULT_GRADING_SCALE) for p in range(101))

    def test_inverted_band_rejected(self) -> None:
        """Test a band with min above max is invalid."""
        with pytest.raises(ValueError):
            GradeBand(grade="X", min=80, max=70)


class TestSummarizeScores:
    """Tests for summarize_scores."""

    def test_negative_marks_subtracted(self) -> None:
        """Test deductions are totalled separately and subtracted."""
        summary = summarize_scores([_result(4), _result(-1), _result(2.5)], total_marks=10)

        assert summary.marks_obtained == 5.5
        assert summary.negative_marks == 1
        assert summary.percentage == 55
        assert summary.grade == "D"

    def test_obtained_never_negative(self) -> None:
        """Test heavy deductions floor the total at zero."""
        summary = summarize_scores([_result(-2), _result(-3)], total_marks=20)

        assert summary.marks_obtained == 0
        assert summary.negative_marks == 5
        assert summary.percentage == 0
        assert summary.grade == "F"

    def test_zero_total(self) -> None:
        """Test an assessment worth nothing has a 0% score."""
        summary = summarize_scores([], total_marks=0)

        assert summary.percentage == 0
        assert summary.graded_count == 0

    def test_counts(self) -> None:
        """Test graded and pending manual counts."""
        summary = summarize_scores([_result(3), _result(0, manual=True)], total_marks=20)

        assert summary.graded_count == 2
        assert summary.pending_manual_count == 1

    def test_percentage_rounded(self) -> None:
        """Test the percentage is a whole number."""
        summary = summarize_scores([_result(2)], total_marks=3)

        assert summary.percentage == 67
        assert summary.grade == "C"
