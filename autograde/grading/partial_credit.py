"""
Per-blank fuzzy grading for fill in the blanks questions.
"""

from collections.abc import Sequence

from autograde.grading.base import round_marks
from autograde.models import BlankResult, GradingMethod, GradingResult
from autograde.text import compare_answers


class PartialCreditGrader:
    """
    Compares each blank with its accepted answer using fuzzy matching.

    Two policies:
    - all-or-nothing: full marks only when every blank matches
    - proportional: marks scale with the share of matching blanks

    In both, `is_correct` requires every blank to match. Fuzzy matching
    makes the decision less certain, so confidence is 0.9.
    """

    CONFIDENCE = 0.9

    def grade(
        self,
        student_blanks: Sequence[str],
        correct_blanks: Sequence[str] | str | float | None,
        max_marks: float,
        partial_marking: bool = False,
    ) -> GradingResult:
        """
        Grade the blanks of one response.

        Args:
            student_blanks: The student's fills in blank order.
            correct_blanks: Accepted answer per blank. A scalar is one blank.
            max_marks: Marks the question is worth.
            partial_marking: Use the proportional policy.

        Returns:
            GradingResult with per-blank `detailed_results`.
        """
        accepted = self._accepted_answers(correct_blanks)
        total_blanks = len(accepted)

        if total_blanks == 0:
            return GradingResult(
                is_correct=False,
                marks_awarded=0.0,
                max_marks=max_marks,
                confidence=0.1,
                explanation="No accepted answers are defined for this question",
                grading_method=GradingMethod.PARTIAL_CREDIT,
                detailed_results=(),
                partial_credit=partial_marking,
            )

        detailed: list[BlankResult] = []
        for index, (student, correct) in enumerate(zip(student_blanks, accepted), start=1):
            detailed.append(
                BlankResult(
                    index=index,
                    student_answer=student,
                    correct_answer=correct,
                    is_correct=compare_answers(student, correct),
                )
            )

        correct_count = sum(1 for blank in detailed if blank.is_correct)
        all_correct = correct_count == total_blanks

        if partial_marking:
            marks = round_marks(correct_count / total_blanks * max_marks, max_marks)
        else:
            marks = max_marks if all_correct else 0.0

        return GradingResult(
            is_correct=all_correct,
            marks_awarded=marks,
            max_marks=max_marks,
            confidence=self.CONFIDENCE,
            explanation=f"{correct_count}/{total_blanks} blanks filled correctly",
            grading_method=GradingMethod.PARTIAL_CREDIT,
            detailed_results=tuple(detailed),
            partial_credit=partial_marking,
        )

    @staticmethod
    def _accepted_answers(correct_blanks: Sequence[str] | str | float | None) -> list[str]:
        """Coerce the question's correct answer into a list of blank values."""
        if correct_blanks is None:
            return []
        if isinstance(correct_blanks, (str, int, float)):
            return [str(correct_blanks)]
        return [str(value) for value in correct_blanks]
