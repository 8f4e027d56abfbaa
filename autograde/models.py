"""
Pydantic models for the grading engine.

These models define the schemas for:
- Question and student response records supplied by the assessment workflow
- Per-assessment grading configuration
- Grading results, plagiarism reports and score summaries

Input records are read-only and every model is frozen: a GradingResult is
created fresh per grading call and never mutated afterwards.
"""

from enum import Enum
from typing import Any

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    computed_field,
    field_validator,
    model_validator,
)


# ==============================================================================
# Question Types
# ==============================================================================


class QuestionType(str, Enum):
    """Question types as stored by the assessment platform."""

    MCQ = "MCQ"
    TRUE_FALSE = "True/False"
    FILL_IN_THE_BLANKS = "Fill in the Blanks"
    SHORT_ANSWER = "Short Answer"
    LONG_ANSWER = "Long Answer"
    ESSAY = "Essay"

    @classmethod
    def lookup(cls, value: "str | QuestionType") -> "QuestionType | None":
        """Return the member for a stored type string, or None if unknown."""
        if isinstance(value, QuestionType):
            return value
        return _QUESTION_TYPES_BY_VALUE.get(value)


_QUESTION_TYPES_BY_VALUE: dict[str, QuestionType] = {t.value: t for t in QuestionType}


class GradingMethod(str, Enum):
    """Which grading path produced a result."""

    OBJECTIVE = "objective"
    PARTIAL_CREDIT = "partial_credit"
    NUMERIC = "numeric"
    EXPRESSION = "expression"
    AI = "ai"
    SIMILARITY_FALLBACK = "similarity_fallback"
    MANUAL = "manual"
    UNKNOWN = "unknown"


# ==============================================================================
# Input Records
# ==============================================================================


class ReferenceSource(BaseModel):
    """A reference text that free-text answers are checked against for copying."""

    model_config = ConfigDict(frozen=True)

    source: str = Field(..., min_length=1, description="Where the reference text came from")
    text: str = Field(..., description="The reference text")


class Question(BaseModel):
    """
    A question record as supplied by the question data source.

    `correct_answer` depends on the question type: the selected option id for
    MCQ and True/False, the ordered accepted values for fill in the blanks,
    reference text for free-text answers, or a number/expression string for
    mathematical short answers.
    """

    model_config = ConfigDict(frozen=True)

    id: str = Field(..., min_length=1, description="Question identifier")

    question_type: str = Field(..., description="Stored question type string")

    subject: str = Field(default="", description="Subject the question belongs to")

    correct_answer: str | float | list[str] | None = Field(
        default=None,
        description="Reference answer, shape depends on question type",
    )

    question_text: str = Field(default="", description="The question as shown to students")

    reference_sources: tuple[ReferenceSource, ...] = Field(
        default=(),
        description="Reference texts for plagiarism checks on free-text answers",
    )

    @field_validator("id", mode="before")
    @classmethod
    def convert_id_to_str(cls, v: Any) -> Any:
        """Accept numeric ids from loosely typed sources."""
        if isinstance(v, int):
            return str(v)
        return v

    @field_validator("correct_answer", mode="before")
    @classmethod
    def convert_option_to_str(cls, v: Any) -> Any:
        """
        Keep boolean and integer answer keys as option ids.

        Without this the union would coerce `true` to 1.0 and `2` to 2.0,
        which never equal the selected option string.
        """
        if isinstance(v, int):  # includes bool
            return str(v)
        if isinstance(v, list):
            return [str(item) if isinstance(item, (int, float)) else item for item in v]
        return v

    @property
    def known_type(self) -> QuestionType | None:
        """The question type as an enum member, or None if unrecognized."""
        return QuestionType.lookup(self.question_type)


class Answer(BaseModel):
    """A student's answer; only the field matching the question type is used."""

    model_config = ConfigDict(frozen=True)

    selected_option: str | None = Field(
        default=None,
        description="Selected option id for MCQ and True/False",
    )

    fill_answers: tuple[str, ...] = Field(
        default=(),
        description="Blank fills in order for fill in the blanks",
    )

    text_answer: str | None = Field(
        default=None,
        description="Free text, number or expression",
    )


class StudentResponse(BaseModel):
    """A single student response to one question."""

    model_config = ConfigDict(frozen=True)

    question_id: str = Field(..., min_length=1)

    question_type: str = Field(default="", description="Question type as recorded on the response")

    answer: Answer = Field(default_factory=Answer)

    max_marks: float = Field(..., gt=0, description="Marks the question is worth")

    @field_validator("question_id", mode="before")
    @classmethod
    def convert_id_to_str(cls, v: Any) -> Any:
        """Accept numeric ids from loosely typed sources."""
        if isinstance(v, int):
            return str(v)
        return v


# ==============================================================================
# Grading Configuration
# ==============================================================================


class NegativeMarkingConfig(BaseModel):
    """Deduction applied to wrong objective answers."""

    model_config = ConfigDict(frozen=True)

    enabled: bool = False

    percentage: float = Field(
        default=25.0,
        ge=0,
        le=100,
        description="Deduction as a percentage of the question's max marks",
    )


class AssessmentGradingConfig(BaseModel):
    """Per-assessment grading policy, fixed for the duration of a grading pass."""

    model_config = ConfigDict(frozen=True)

    negative_marking: NegativeMarkingConfig = Field(default_factory=NegativeMarkingConfig)

    partial_marking: bool = Field(
        default=False,
        description="Award proportional marks for partially correct blanks",
    )


# ==============================================================================
# Grading Result Models
# ==============================================================================


class BlankResult(BaseModel):
    """Outcome for a single blank of a fill in the blanks question."""

    model_config = ConfigDict(frozen=True)

    index: int = Field(..., ge=1, description="1-based blank position")
    student_answer: str
    correct_answer: str
    is_correct: bool


class AIAnalysis(BaseModel):
    """Extra signals reported by the AI grader."""

    model_config = ConfigDict(frozen=True)

    key_points_covered: tuple[str, ...] = ()
    quality_score: float = Field(default=0.0, ge=0.0, le=1.0)
    relevance_score: float = Field(default=0.0, ge=0.0, le=1.0)


class PlagiarismMatch(BaseModel):
    """A reference source whose similarity to the answer exceeded the threshold."""

    model_config = ConfigDict(frozen=True)

    source: str
    similarity: float = Field(..., ge=0.0, le=1.0)
    matched_text: tuple[str, ...] = Field(
        default=(),
        description="3-word phrases found verbatim in both texts",
    )


class PlagiarismReport(BaseModel):
    """Result of comparing one answer against a reference corpus."""

    model_config = ConfigDict(frozen=True)

    is_plagiarized: bool = False
    plagiarism_score: float = Field(default=0.0, ge=0.0, le=1.0)
    matches: tuple[PlagiarismMatch, ...] = ()


class GradingResult(BaseModel):
    """
    The engine's single output shape, whatever grader produced it.

    `is_correct` is None only when the answer needs a human grader.
    `confidence` is the engine's own certainty in the decision; values near
    zero and `needs_manual_grading` are what the surrounding workflow should
    surface for manual review.
    """

    model_config = ConfigDict(frozen=True)

    is_correct: bool | None = Field(
        ...,
        description="Correctness, or None when undetermined",
    )

    marks_awarded: float = Field(
        ...,
        description="Signed marks, negative only under negative marking",
    )

    max_marks: float = Field(..., ge=0)

    confidence: float = Field(..., ge=0.0, le=1.0)

    explanation: str = Field(..., description="Human-readable explanation")

    grading_method: GradingMethod = Field(..., description="Which grading path produced this result")

    detailed_results: tuple[BlankResult, ...] | None = None

    partial_credit: bool | None = None

    needs_manual_grading: bool = False

    ai_analysis: AIAnalysis | None = None

    plagiarism: PlagiarismReport | None = None

    question_id: str | None = None

    @model_validator(mode="after")
    def validate_marks_range(self) -> "GradingResult":
        """Ensure awarded marks never exceed the question's worth in magnitude."""
        if abs(self.marks_awarded) > self.max_marks:
            raise ValueError(
                f"Awarded marks ({self.marks_awarded}) exceed max marks ({self.max_marks}) "
                "in magnitude"
            )
        return self

    @model_validator(mode="after")
    def validate_undetermined(self) -> "GradingResult":
        """An undetermined result must be routed to a human."""
        if self.is_correct is None and not self.needs_manual_grading:
            raise ValueError("is_correct may only be None when manual grading is needed")
        return self

    @computed_field  # type: ignore[prop-decorator]
    @property
    def percentage(self) -> float:
        """Marks awarded as a percentage of max marks."""
        if self.max_marks == 0:
            return 0.0
        return self.marks_awarded / self.max_marks * 100


# ==============================================================================
# Score Summary Models
# ==============================================================================


class GradeBand(BaseModel):
    """A letter grade covering an inclusive percentage range."""

    model_config = ConfigDict(frozen=True)

    grade: str = Field(..., min_length=1)
    min: float = Field(..., ge=0, le=100)
    max: float = Field(..., ge=0, le=100)
    description: str = ""

    @model_validator(mode="after")
    def validate_range(self) -> "GradeBand":
        """Ensure the band's range is not inverted."""
        if self.min > self.max:
            raise ValueError(f"Grade band {self.grade}: min ({self.min}) exceeds max ({self.max})")
        return self


class ScoreSummary(BaseModel):
    """Totals for one graded attempt."""

    model_config = ConfigDict(frozen=True)

    total_marks: float = Field(..., ge=0)
    marks_obtained: float = Field(..., ge=0)
    negative_marks: float = Field(..., ge=0)
    percentage: int
    grade: str | None = None
    graded_count: int = Field(..., ge=0)
    pending_manual_count: int = Field(..., ge=0)
