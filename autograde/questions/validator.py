"""
Question validation module.

Checks question records for problems that would make automatic grading
meaningless: an unknown type, a missing reference answer, or a reference
answer of the wrong shape for the question type.
"""

from collections.abc import Iterable

from autograde.grading.dispatcher import GradingRoute, resolve_route
from autograde.models import Question


class QuestionValidationError(Exception):
    """Raised when question validation fails."""

    def __init__(self, errors: list[str]):
        self.errors = errors
        message = "Question validation failed:\n" + "\n".join(f"  - {e}" for e in errors)
        super().__init__(message)


class QuestionValidator:
    """
    Validates question records for automatic grading.

    Checks:
    1. The question type is one the engine can route
    2. A reference answer exists where the grader needs one
    3. Fill in the blanks answers are non-empty lists
    4. Free-text questions carry question text for the AI prompt
    """

    def validate(self, question: Question) -> tuple[bool, list[str]]:
        """
        Validate a question and return any issues found.

        Args:
            question: The question to validate.

        Returns:
            Tuple of (is_valid, list of issues).
        """
        prefix = f"Question {question.id}"
        route = resolve_route(question.question_type, question.subject)

        if route is GradingRoute.UNKNOWN:
            return False, [f"{prefix}: Unknown question type '{question.question_type}'"]

        if route is GradingRoute.MANUAL:
            return True, []

        issues: list[str] = []
        answer = question.correct_answer

        if answer is None or (isinstance(answer, str) and not answer.strip()):
            issues.append(f"{prefix}: Correct answer is missing")
            return False, issues

        if route is GradingRoute.PARTIAL_CREDIT:
            issues.extend(self._validate_blanks(answer, prefix))
        elif route is GradingRoute.OBJECTIVE:
            if isinstance(answer, list):
                issues.append(f"{prefix}: Objective questions need a single correct option")
        elif route is GradingRoute.NUMERIC:
            if isinstance(answer, list):
                issues.append(f"{prefix}: Mathematical answers must be a number or expression")
        elif route is GradingRoute.SUBJECTIVE:
            if not question.question_text.strip():
                issues.append(f"{prefix}: Question text is required for AI grading")

        return len(issues) == 0, issues

    def validate_all(self, questions: Iterable[Question]) -> tuple[bool, list[str]]:
        """Validate several questions, collecting every issue."""
        issues: list[str] = []
        seen_ids: set[str] = set()

        for question in questions:
            if question.id in seen_ids:
                issues.append(f"Duplicate question id: '{question.id}'")
            seen_ids.add(question.id)
            issues.extend(self.validate(question)[1])

        return len(issues) == 0, issues

    def validate_or_raise(self, questions: Iterable[Question]) -> None:
        """
        Validate questions and raise if any is invalid.

        Raises:
            QuestionValidationError: If validation fails.
        """
        is_valid, issues = self.validate_all(questions)
        if not is_valid:
            raise QuestionValidationError(issues)

    @staticmethod
    def _validate_blanks(answer: object, prefix: str) -> list[str]:
        """Check the accepted answers of a fill in the blanks question."""
        if not isinstance(answer, list):
            return [f"{prefix}: Fill in the blanks answers must be a list, one entry per blank"]
        if not answer:
            return [f"{prefix}: Fill in the blanks question has no blanks"]
        empty = [i for i, value in enumerate(answer, start=1) if not str(value).strip()]
        if empty:
            return [f"{prefix}: Blank(s) {empty} have an empty accepted answer"]
        return []
