"""
Question Record Module.

Validation of question records before they are used for grading.
"""

from autograde.questions.validator import QuestionValidationError, QuestionValidator

__all__ = [
    "QuestionValidationError",
    "QuestionValidator",
]
