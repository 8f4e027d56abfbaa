"""
Shared helpers for the individual graders.
"""


def round_marks(value: float, max_marks: float) -> float:
    """Round marks to 2 decimal places without leaving [-max_marks, max_marks]."""
    rounded = round(value, 2)
    return max(-max_marks, min(rounded, max_marks))


def clamp_unit(value: float) -> float:
    """Clamp a score or confidence into [0, 1]."""
    return max(0.0, min(float(value), 1.0))
