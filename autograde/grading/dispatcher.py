"""
Routes a single response to the grader for its question type.

Routing is a finite table keyed by question type, with one subject rule for
short answers. Every QuestionType member must have an entry; unrecognized
type strings take the UNKNOWN route.
"""

from collections.abc import Callable
from enum import Enum

from autograde.config import Settings, get_settings
from autograde.grading.numeric import NumericExpressionGrader
from autograde.grading.objective import ObjectiveGrader
from autograde.grading.partial_credit import PartialCreditGrader
from autograde.grading.subjective import SubjectiveGrader
from autograde.models import (
    AssessmentGradingConfig,
    GradingMethod,
    GradingResult,
    Question,
    QuestionType,
    StudentResponse,
)


class GradingRoute(str, Enum):
    """Which grader handles a question."""

    OBJECTIVE = "objective"
    PARTIAL_CREDIT = "partial_credit"
    NUMERIC = "numeric"
    SUBJECTIVE = "subjective"
    MANUAL = "manual"
    UNKNOWN = "unknown"


# Short answers in these subjects are graded numerically instead of by AI
NUMERIC_SUBJECTS = frozenset({"Mathematics", "Physics"})

ROUTE_TABLE: dict[QuestionType, GradingRoute] = {
    QuestionType.MCQ: GradingRoute.OBJECTIVE,
    QuestionType.TRUE_FALSE: GradingRoute.OBJECTIVE,
    QuestionType.FILL_IN_THE_BLANKS: GradingRoute.PARTIAL_CREDIT,
    QuestionType.SHORT_ANSWER: GradingRoute.SUBJECTIVE,
    QuestionType.LONG_ANSWER: GradingRoute.MANUAL,
    QuestionType.ESSAY: GradingRoute.MANUAL,
}

_unrouted = set(QuestionType) - set(ROUTE_TABLE)
if _unrouted:
    raise RuntimeError(f"Question types without a grading route: {sorted(t.value for t in _unrouted)}")


def resolve_route(question_type: str | QuestionType, subject: str = "") -> GradingRoute:
    """
    Look up the grading route for a question type and subject.

    Args:
        question_type: Stored question type string or enum member.
        subject: The question's subject.

    Returns:
        The route, UNKNOWN for unrecognized types.
    """
    known = QuestionType.lookup(question_type)
    if known is None:
        return GradingRoute.UNKNOWN

    route = ROUTE_TABLE[known]
    if route is GradingRoute.SUBJECTIVE and subject in NUMERIC_SUBJECTS:
        return GradingRoute.NUMERIC
    return route


class GradingDispatcher:
    """
    Grades one response with the grader its question requires.

    Whatever grader runs, the caller receives a GradingResult and no
    exception.
    """

    def __init__(
        self,
        settings: Settings | None = None,
        subjective: SubjectiveGrader | None = None,
        numeric: NumericExpressionGrader | None = None,
    ):
        """
        Initialize the dispatcher.

        Args:
            settings: Configuration settings. Uses global settings if not provided.
            subjective: Subjective grader; built from settings if not provided.
            numeric: Numeric grader; built from settings if not provided.
        """
        self._settings = settings or get_settings()
        self._objective = ObjectiveGrader()
        self._partial_credit = PartialCreditGrader()
        self._numeric = numeric or NumericExpressionGrader(self._settings.numeric_tolerance)
        self._subjective = subjective or SubjectiveGrader.from_settings(self._settings)

        self._handlers: dict[
            GradingRoute,
            Callable[[StudentResponse, Question, AssessmentGradingConfig], GradingResult],
        ] = {
            GradingRoute.OBJECTIVE: self._grade_objective,
            GradingRoute.PARTIAL_CREDIT: self._grade_partial_credit,
            GradingRoute.NUMERIC: self._grade_numeric,
            GradingRoute.SUBJECTIVE: self._grade_subjective,
            GradingRoute.MANUAL: self._grade_manual,
            GradingRoute.UNKNOWN: self._grade_unknown,
        }

    @property
    def subjective(self) -> SubjectiveGrader:
        return self._subjective

    def grade_one(
        self,
        response: StudentResponse,
        question: Question,
        config: AssessmentGradingConfig | None = None,
    ) -> GradingResult:
        """
        Grade a single response.

        The question record's type and subject decide the route.

        Args:
            response: The student's response.
            question: The question it answers.
            config: Assessment grading policy. Defaults apply if not provided.

        Returns:
            GradingResult.
        """
        route = resolve_route(question.question_type, question.subject)
        return self._handlers[route](response, question, config or AssessmentGradingConfig())

    def _grade_objective(
        self, response: StudentResponse, question: Question, config: AssessmentGradingConfig
    ) -> GradingResult:
        return self._objective.grade(
            response.answer.selected_option,
            question.correct_answer,
            response.max_marks,
            config.negative_marking,
        )

    def _grade_partial_credit(
        self, response: StudentResponse, question: Question, config: AssessmentGradingConfig
    ) -> GradingResult:
        return self._partial_credit.grade(
            response.answer.fill_answers,
            question.correct_answer,
            response.max_marks,
            config.partial_marking,
        )

    def _grade_numeric(
        self, response: StudentResponse, question: Question, config: AssessmentGradingConfig
    ) -> GradingResult:
        return self._numeric.grade(
            response.answer.text_answer,
            question.correct_answer,
            response.max_marks,
        )

    def _grade_subjective(
        self, response: StudentResponse, question: Question, config: AssessmentGradingConfig
    ) -> GradingResult:
        return self._subjective.grade(
            question.question_text,
            question.correct_answer,
            response.answer.text_answer,
            response.max_marks,
            question.reference_sources,
        )

    def _grade_manual(
        self, response: StudentResponse, question: Question, config: AssessmentGradingConfig
    ) -> GradingResult:
        return self._subjective.grade_manual(response.max_marks)

    def _grade_unknown(
        self, response: StudentResponse, question: Question, config: AssessmentGradingConfig
    ) -> GradingResult:
        return GradingResult(
            is_correct=False,
            marks_awarded=0.0,
            max_marks=response.max_marks,
            confidence=0.0,
            explanation="Unknown question type",
            grading_method=GradingMethod.UNKNOWN,
        )
