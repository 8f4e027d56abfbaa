"""
Score totals and letter grades for a graded attempt.
"""

from collections.abc import Iterable, Sequence

from autograde.models import GradeBand, GradingResult, ScoreSummary

DEFAULT_GRADING_SCALE: tuple[GradeBand, ...] = (
    GradeBand(grade="A+", min=90, max=100, description="Outstanding"),
    GradeBand(grade="A", min=80, max=89, description="Excellent"),
    GradeBand(grade="B", min=70, max=79, description="Good"),
    GradeBand(grade="C", min=60, max=69, description="Satisfactory"),
    GradeBand(grade="D", min=50, max=59, description="Acceptable"),
    GradeBand(grade="F", min=0, max=49, description="Needs Improvement"),
)


def letter_grade(
    percentage: float, grading_scale: Sequence[GradeBand] = DEFAULT_GRADING_SCALE
) -> str | None:
    """Return the first band containing the percentage, or None if no band does."""
    for band in grading_scale:
        if band.min <= percentage <= band.max:
            return band.grade
    return None


def summarize_scores(
    results: Iterable[GradingResult],
    total_marks: float,
    grading_scale: Sequence[GradeBand] = DEFAULT_GRADING_SCALE,
) -> ScoreSummary:
    """
    Total the marks of an attempt.

    Deductions are summed separately and subtracted from the positive marks;
    the obtained marks never drop below zero. Percentages are whole numbers.

    Args:
        results: Grading results of every response in the attempt.
        total_marks: Marks the whole assessment is worth.
        grading_scale: Letter grade bands, checked in order.

    Returns:
        ScoreSummary.
    """
    positive = 0.0
    negative = 0.0
    graded = 0
    pending_manual = 0

    for result in results:
        graded += 1
        if result.needs_manual_grading:
            pending_manual += 1
        if result.marks_awarded > 0:
            positive += result.marks_awarded
        elif result.marks_awarded < 0:
            negative += abs(result.marks_awarded)

    obtained = max(0.0, round(positive - negative, 2))
    percentage = round(obtained / total_marks * 100) if total_marks > 0 else 0

    return ScoreSummary(
        total_marks=total_marks,
        marks_obtained=obtained,
        negative_marks=round(negative, 2),
        percentage=percentage,
        grade=letter_grade(percentage, grading_scale),
        graded_count=graded,
        pending_manual_count=pending_manual,
    )
