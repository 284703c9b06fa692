"""
Attendance aggregation over already fetched attendance records

A record is the stored attendance document:
    {"batch_id", "date", "present_students": [...], "absent_students": [...]}
"""

from typing import Dict, Iterable, List

from institute.analytics.grading import round2


def is_present(record: dict, student_id: str) -> bool:
    return student_id in record.get("present_students", [])


def status_of(record: dict, student_id: str) -> str:
    """present / absent, or not_marked when the student is in neither list"""
    if is_present(record, student_id):
        return "present"
    if student_id in record.get("absent_students", []):
        return "absent"
    return "not_marked"


def _summary(total: int, present: int) -> dict:
    return {
        "total_classes": total,
        "present_classes": present,
        "absent_classes": total - present,
        "percentage": round2(present / total * 100) if total else 0,
    }


def summarize(records: Iterable[dict], student_id: str) -> dict:
    """
    Attendance summary of one student

    Every record counts toward total_classes; only records listing the
    student as present count toward present_classes.
    """
    records = list(records)
    present = sum(1 for record in records if is_present(record, student_id))
    return _summary(len(records), present)


def summarize_batch(records: Iterable[dict], student_ids: Iterable[str]) -> Dict[str, dict]:
    """Per student summaries for a whole roster, students without records included"""
    records = list(records)
    return {student_id: summarize(records, student_id) for student_id in student_ids}


def average_attendance(student_stats: Dict[str, dict], total_classes: int) -> float:
    """sum(present) / (total_classes x roster size) x 100"""
    possible = total_classes * len(student_stats)
    if not possible:
        return 0
    present = sum(stats["present_classes"] for stats in student_stats.values())
    return round2(present / possible * 100)


def batch_attendance(records: Iterable[dict], student_ids: List[str]) -> dict:
    records = list(records)
    student_stats = summarize_batch(records, student_ids)
    return {
        "total_classes": len(records),
        "average_attendance": average_attendance(student_stats, len(records)),
        "student_stats": student_stats,
    }
