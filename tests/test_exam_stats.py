# tests/test_exam_stats.py

from datetime import datetime

import pytest

from conftest import make_result
from institute.analytics.errors import InvalidExamConfiguration
from institute.analytics.exam_stats import percentage_of, rank_results, stats_of
from institute.analytics.grading import grade_of


def test_stats_of_two_results():
    results = [make_result("EXM_1", "S1", 90), make_result("EXM_1", "S2", 45)]

    assert stats_of(results, 100) == {
        "total_students": 2,
        "average_marks": 67.5,
        "highest_marks": 90,
        "lowest_marks": 45,
        "total_marks": 100,
    }
    assert grade_of(percentage_of(90, 100)) == "A+"
    assert grade_of(percentage_of(45, 100)) == "D"


def test_stats_of_empty_results():
    assert stats_of([], 50) == {
        "total_students": 0,
        "average_marks": 0,
        "highest_marks": 0,
        "lowest_marks": 0,
        "total_marks": 50,
    }


def test_average_is_rounded_but_extremes_are_not():
    results = [
        make_result("EXM_1", "S1", 1),
        make_result("EXM_1", "S2", 2),
        make_result("EXM_1", "S3", 2.345),
    ]
    stats = stats_of(results, 10)

    assert stats["average_marks"] == 1.78
    assert stats["highest_marks"] == 2.345
    assert stats["lowest_marks"] == 1


@pytest.mark.parametrize("total", [0, -10, None])
def test_invalid_total_marks_raise(total):
    with pytest.raises(InvalidExamConfiguration):
        percentage_of(5, total)
    with pytest.raises(InvalidExamConfiguration):
        stats_of([], total)


def test_percentage_of_rounds_to_two_places():
    assert percentage_of(1, 3) == 33.33
    assert percentage_of(2, 3) == 66.67
    assert percentage_of(10, 10) == 100


def test_rank_results_breaks_ties_by_submission_then_student():
    early = datetime(2025, 5, 1, 9, 0)
    late = datetime(2025, 5, 1, 10, 0)
    results = [
        make_result("EXM_1", "S3", 70, late),
        make_result("EXM_1", "S2", 70, early),
        make_result("EXM_1", "S4", 95, late),
        make_result("EXM_1", "S1", 70, late),
    ]

    ranked = [r["student_id"] for r in rank_results(results)]

    assert ranked == ["S4", "S2", "S1", "S3"]


def test_rank_results_is_stable_across_calls():
    results = [make_result("EXM_1", f"S{i}", 50) for i in range(5)]

    assert rank_results(results) == rank_results(list(reversed(results)))
