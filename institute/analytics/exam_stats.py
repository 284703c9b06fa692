from datetime import datetime
from typing import Iterable, List

from institute.analytics.errors import InvalidExamConfiguration
from institute.analytics.grading import round2


def check_total_marks(total_marks, exam_id=None):
    if total_marks is None or total_marks <= 0:
        raise InvalidExamConfiguration(total_marks, exam_id)


def percentage_of(marks: float, total_marks: float) -> float:
    """marks / total x 100, rounded to 2 decimals"""
    check_total_marks(total_marks)
    return round2(marks / total_marks * 100)


def stats_of(results: Iterable[dict], total_marks: float) -> dict:
    """
    Count, mean, max and min of marks_obtained for one exam

    Empty input gives zeros; highest and lowest are never rounded.
    """
    check_total_marks(total_marks)
    marks = [result["marks_obtained"] for result in results]

    if not marks:
        return {
            "total_students": 0,
            "average_marks": 0,
            "highest_marks": 0,
            "lowest_marks": 0,
            "total_marks": total_marks,
        }

    return {
        "total_students": len(marks),
        "average_marks": round2(sum(marks) / len(marks)),
        "highest_marks": max(marks),
        "lowest_marks": min(marks),
        "total_marks": total_marks,
    }


def submitted_at(result: dict) -> datetime:
    # Results without a timestamp rank after every timestamped one
    return result.get("created_at") or datetime.max


def rank_key(result: dict):
    return (-result["marks_obtained"], submitted_at(result), result["student_id"])


def rank_results(results: Iterable[dict]) -> List[dict]:
    """Marks descending, then earliest submission, then student id"""
    return sorted(results, key=rank_key)
