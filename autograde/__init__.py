"""
Autograde - automated grading engine for assessment responses.

This package scores student answers (objective, fill in the blanks, numeric
and free text) against a question's reference answer. Free-text answers are
graded by an AI provider with a deterministic similarity fallback.
"""

__version__ = "1.0.0"
__author__ = "Autograde Team"
