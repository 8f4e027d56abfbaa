"""
Exact-match grading for single-best-answer questions (MCQ, True/False).
"""

from autograde.grading.base import round_marks
from autograde.models import GradingMethod, GradingResult, NegativeMarkingConfig


class ObjectiveGrader:
    """
    Grades a selected option against the correct option.

    Correctness is plain equality, so confidence is always 1.0. A wrong
    answer earns zero, or a deduction when negative marking is enabled.
    """

    def grade(
        self,
        selected: str | None,
        correct: object,
        max_marks: float,
        negative_marking: NegativeMarkingConfig | None = None,
    ) -> GradingResult:
        """
        Grade a single objective answer.

        Args:
            selected: The option the student selected, None if unanswered.
            correct: The correct option from the question record.
            max_marks: Marks the question is worth.
            negative_marking: Deduction policy for wrong answers.

        Returns:
            GradingResult with confidence 1.0.
        """
        if selected is not None and selected == correct:
            return GradingResult(
                is_correct=True,
                marks_awarded=max_marks,
                max_marks=max_marks,
                confidence=1.0,
                explanation="Correct answer selected",
                grading_method=GradingMethod.OBJECTIVE,
            )

        return GradingResult(
            is_correct=False,
            marks_awarded=self._penalty(max_marks, negative_marking),
            max_marks=max_marks,
            confidence=1.0,
            explanation=f"Incorrect. Correct answer: {correct}",
            grading_method=GradingMethod.OBJECTIVE,
        )

    @staticmethod
    def _penalty(max_marks: float, negative_marking: NegativeMarkingConfig | None) -> float:
        """Marks for a wrong answer, never deducting more than the question is worth."""
        if negative_marking is None or not negative_marking.enabled:
            return 0.0
        deduction = max_marks * negative_marking.percentage / 100
        return round_marks(-deduction, max_marks)
