# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Letter grades from exam marks."""

# Lower bound of each grade band, in percent, highest first
GRADE_BANDS: tuple[tuple[float, str], ...] = (
    (90, "A+"),
    (80, "A"),
    (70, "B+"),
    (60, "B"),
    (50, "C+"),
    (40, "C"),
    (30, "D"),
)
FAILING_GRADE = "F"


def percentage(marks_obtained: float, total_marks: float) -> float:
    """Marks as a percentage of the total; 0 when total is not positive."""
    if total_marks <= 0:
        return 0.0
    return marks_obtained / total_marks * 100


def calculate_grade(marks_obtained: float, total_marks: float) -> str:
    """Map marks to a letter grade.

    >>> calculate_grade(45, 50)
    'A+'
    >>> calculate_grade(29, 100)
    'F'
    """
    score = percentage(marks_obtained, total_marks)
    for lower_bound, grade in GRADE_BANDS:
        if score >= lower_bound:
            return grade
    return FAILING_GRADE
