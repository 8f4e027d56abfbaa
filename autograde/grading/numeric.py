"""
Numeric and expression grading for mathematical short answers.

Numbers are compared within an absolute tolerance. Anything that is not a
number is compared as a normalized expression string; there is no symbolic
evaluation, so equivalent but differently written expressions do not match.
"""

import logging
import math

from autograde.config import get_settings
from autograde.models import GradingMethod, GradingResult
from autograde.text import normalize_expression

logger = logging.getLogger(__name__)


def parse_number(value: object) -> float | None:
    """Parse a finite float from a number or numeric string, else None."""
    if isinstance(value, bool) or value is None:
        return None
    if isinstance(value, (int, float)):
        number = float(value)
    else:
        try:
            number = float(str(value).strip())
        except ValueError:
            return None
    return number if math.isfinite(number) else None


class NumericExpressionGrader:
    """Grades answers to Mathematics and Physics short answer questions."""

    NUMERIC_CONFIDENCE = 0.95
    INVALID_NUMBER_CONFIDENCE = 0.9
    EXPRESSION_CONFIDENCE = 0.8
    ERROR_CONFIDENCE = 0.1

    def __init__(self, tolerance: float | None = None):
        """
        Initialize the grader.

        Args:
            tolerance: Default absolute tolerance. Uses settings if not provided.
        """
        self._tolerance = tolerance if tolerance is not None else get_settings().numeric_tolerance

    def grade(
        self,
        student_answer: str | None,
        correct_answer: object,
        max_marks: float,
        tolerance: float | None = None,
    ) -> GradingResult:
        """
        Grade a numeric or expression answer.

        Never raises: evaluation errors produce a low-confidence wrong result.

        Args:
            student_answer: The student's text answer.
            correct_answer: Reference number or expression.
            max_marks: Marks the question is worth.
            tolerance: Override the absolute tolerance for this call.

        Returns:
            GradingResult.
        """
        tol = tolerance if tolerance is not None else self._tolerance
        try:
            correct_number = parse_number(correct_answer)
            if correct_number is not None:
                return self._grade_numeric(student_answer, correct_number, max_marks, tol)
            return self._grade_expression(student_answer, correct_answer, max_marks)
        except Exception:
            logger.exception("Mathematical grading failed")
            return GradingResult(
                is_correct=False,
                marks_awarded=0.0,
                max_marks=max_marks,
                confidence=self.ERROR_CONFIDENCE,
                explanation="Error in mathematical evaluation",
                grading_method=GradingMethod.NUMERIC,
            )

    def _grade_numeric(
        self,
        student_answer: str | None,
        correct_number: float,
        max_marks: float,
        tolerance: float,
    ) -> GradingResult:
        """Compare two numbers within the tolerance."""
        student_number = parse_number(student_answer)
        if student_number is None:
            return GradingResult(
                is_correct=False,
                marks_awarded=0.0,
                max_marks=max_marks,
                confidence=self.INVALID_NUMBER_CONFIDENCE,
                explanation="Invalid numerical answer",
                grading_method=GradingMethod.NUMERIC,
            )

        is_correct = abs(student_number - correct_number) <= tolerance
        explanation = (
            "Numerical answer is correct"
            if is_correct
            else f"Expected: {correct_number:.10g}, Got: {student_number:.10g}"
        )
        return GradingResult(
            is_correct=is_correct,
            marks_awarded=max_marks if is_correct else 0.0,
            max_marks=max_marks,
            confidence=self.NUMERIC_CONFIDENCE,
            explanation=explanation,
            grading_method=GradingMethod.NUMERIC,
        )

    def _grade_expression(
        self, student_answer: str | None, correct_answer: object, max_marks: float
    ) -> GradingResult:
        """Compare normalized expression strings for equality."""
        if student_answer is None or correct_answer is None:
            raise ValueError("Expression comparison needs both a student and a reference answer")

        is_correct = normalize_expression(student_answer) == normalize_expression(str(correct_answer))
        return GradingResult(
            is_correct=is_correct,
            marks_awarded=max_marks if is_correct else 0.0,
            max_marks=max_marks,
            confidence=self.EXPRESSION_CONFIDENCE,
            explanation=(
                "Expression matches" if is_correct else "Expression does not match expected answer"
            ),
            grading_method=GradingMethod.EXPRESSION,
        )
