import math
from enum import Enum


class GradeLabel(str, Enum):
    A_PLUS = "A+"
    A = "A"
    B_PLUS = "B+"
    B = "B"
    C = "C"
    D = "D"
    F = "F"


# Highest first, inclusive lower bounds
GRADE_BANDS = [
    (90, GradeLabel.A_PLUS),
    (80, GradeLabel.A),
    (70, GradeLabel.B_PLUS),
    (60, GradeLabel.B),
    (50, GradeLabel.C),
    (40, GradeLabel.D),
]

GRADE_ORDER = [label.value for _, label in GRADE_BANDS] + [GradeLabel.F.value]


def round2(value: float) -> float:
    """Round to 2 decimals, halves away from zero (0.125 -> 0.13)"""
    scaled = value * 100
    return math.copysign(math.floor(abs(scaled) + 0.5), scaled) / 100


def grade_of(percentage: float) -> str:
    """
    Map a percentage to its letter grade

    Not clamped: anything below 40 (negatives included) is F.
    Callers round the percentage before asking for the grade.
    """
    for lower_bound, label in GRADE_BANDS:
        if percentage >= lower_bound:
            return label.value
    return GradeLabel.F.value


def grade_histogram(grades) -> dict:
    histogram = {label: 0 for label in GRADE_ORDER}
    for grade in grades:
        histogram[grade] += 1
    return histogram
