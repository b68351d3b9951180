import math
from typing import Optional

from campus.core.exceptions import ValidationError

MIN_GRADE = 0
MAX_GRADE = 100

# (lower bound, letter), checked top down
LETTER_THRESHOLDS = (
    (90, "A"),
    (80, "B"),
    (70, "C"),
    (60, "D"),
)

def validate_final_grade(final_grade: float) -> float:
    if final_grade is None or not MIN_GRADE <= final_grade <= MAX_GRADE:
        raise ValidationError(
            f"Final grade must be between {MIN_GRADE} and {MAX_GRADE}",
            details={"final_grade": final_grade},
        )
    return final_grade

def letter_grade(final_grade: Optional[float]) -> Optional[str]:
    """Map a numeric grade to A-F. Boundary values take the higher band."""
    if final_grade is None:
        return None
    for threshold, letter in LETTER_THRESHOLDS:
        if final_grade >= threshold:
            return letter
    return "F"

def validate_points(points: float, max_points: int) -> float:
    if points is None or not math.isfinite(points):
        raise ValidationError("Points must be a finite number", details={"points": points})
    if points < 0:
        raise ValidationError("Points cannot be negative", details={"points": points})
    if points > max_points:
        raise ValidationError(
            f"Points cannot exceed maximum points ({max_points})",
            details={"points": points, "max_points": max_points},
        )
    return points

def apply_late_penalty(points: float, penalty_percentage: int, is_late: bool) -> float:
    if not is_late or not penalty_percentage:
        return points
    return round(points * (100 - penalty_percentage) / 100, 2)
