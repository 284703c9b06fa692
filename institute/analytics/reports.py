"""
Performance Report Composer

Combines attendance summaries, exam statistics and grades into the
student and batch reports served by the reports and dashboard routers.
Everything here is pure: records are fetched by the caller beforehand.
"""

from datetime import datetime
from typing import Dict, Iterable, List, Optional, Tuple

from institute.analytics.attendance import batch_attendance, summarize
from institute.analytics.exam_stats import (
    check_total_marks,
    percentage_of,
    stats_of,
    submitted_at,
)
from institute.analytics.grading import grade_histogram, grade_of, round2


def _exam_date(entry: dict) -> datetime:
    return entry.get("date") or datetime.min


def exam_entry(result: dict, exam: dict) -> dict:
    """One exam line of a student report"""
    check_total_marks(exam.get("total_marks"), exam.get("exam_id"))
    percentage = percentage_of(result["marks_obtained"], exam["total_marks"])
    return {
        "exam_id": exam["exam_id"],
        "exam_name": exam.get("name"),
        "subject": exam.get("subject"),
        "marks_obtained": result["marks_obtained"],
        "total_marks": exam["total_marks"],
        "percentage": percentage,
        "grade": grade_of(percentage),
        "date": exam.get("date"),
    }


def overall_performance(entries: List[dict]) -> dict:
    """
    average_marks is the plain mean of marks obtained;
    average_percentage weighs every exam by its total marks.
    """
    if not entries:
        return {
            "total_exams": 0,
            "average_marks": 0,
            "average_percentage": 0,
            "total_marks_obtained": 0,
            "grades": grade_histogram([]),
        }

    obtained = sum(entry["marks_obtained"] for entry in entries)
    possible = sum(entry["total_marks"] for entry in entries)

    return {
        "total_exams": len(entries),
        "average_marks": round2(obtained / len(entries)),
        "average_percentage": round2(obtained / possible * 100),
        "total_marks_obtained": obtained,
        "grades": grade_histogram(entry["grade"] for entry in entries),
    }


def compose_student_report(
    student: dict,
    attendance_records: Iterable[dict],
    results_with_exam: Iterable[Tuple[dict, dict]],
) -> dict:
    entries = [exam_entry(result, exam) for result, exam in results_with_exam]
    # Newest exam first, ties by exam id
    entries.sort(key=lambda entry: entry["exam_id"])
    entries.sort(key=_exam_date, reverse=True)

    return {
        "student": {
            "student_id": student.get("user_id"),
            "name": student.get("name"),
            "email": student.get("email"),
        },
        "attendance": summarize(attendance_records, student.get("user_id")),
        "exam_results": entries,
        "overall_performance": overall_performance(entries),
    }


def _student_standings(
    roster: List[str],
    exams: List[dict],
    results_by_exam: Dict[str, List[dict]],
) -> List[dict]:
    members = set(roster)
    totals = {}

    for exam in exams:
        for result in results_by_exam.get(exam["exam_id"], []):
            student_id = result["student_id"]
            if student_id not in members:
                continue
            standing = totals.setdefault(student_id, {
                "student_id": student_id,
                "exams_taken": 0,
                "total_marks_obtained": 0,
                "total_possible_marks": 0,
                "first_submitted_at": None,
            })
            standing["exams_taken"] += 1
            standing["total_marks_obtained"] += result["marks_obtained"]
            standing["total_possible_marks"] += exam["total_marks"]
            stamp = submitted_at(result)
            if standing["first_submitted_at"] is None or stamp < standing["first_submitted_at"]:
                standing["first_submitted_at"] = stamp

    standings = []
    for standing in totals.values():
        standing["average_percentage"] = round2(
            standing["total_marks_obtained"] / standing["total_possible_marks"] * 100
        )
        standings.append(standing)

    standings.sort(key=lambda s: (-s["average_percentage"], s["first_submitted_at"], s["student_id"]))
    return standings


def compose_batch_report(
    batch: dict,
    attendance_records: Iterable[dict],
    exams: Iterable[dict],
    results_by_exam: Dict[str, List[dict]],
) -> dict:
    roster = list(batch.get("students", []))
    exams = list(exams)

    exam_statistics = []
    for exam in exams:
        check_total_marks(exam.get("total_marks"), exam.get("exam_id"))
        stats = stats_of(results_by_exam.get(exam["exam_id"], []), exam["total_marks"])
        exam_statistics.append({
            "exam_id": exam["exam_id"],
            "exam_name": exam.get("name"),
            "date": exam.get("date"),
            **stats,
        })

    standings = _student_standings(roster, exams, results_by_exam)

    average_performance = 0
    if standings:
        average_performance = round2(
            sum(s["average_percentage"] for s in standings) / len(standings)
        )

    top_performer: Optional[dict] = None
    if roster and standings:
        best = standings[0]
        top_performer = {
            "student_id": best["student_id"],
            "average_percentage": best["average_percentage"],
            "total_marks_obtained": best["total_marks_obtained"],
            "exams_taken": best["exams_taken"],
        }

    return {
        "batch": {
            "batch_id": batch.get("batch_id"),
            "name": batch.get("name"),
            "course_id": batch.get("course_id"),
        },
        "attendance": batch_attendance(attendance_records, roster),
        "exam_statistics": exam_statistics,
        "student_performance": [
            {key: value for key, value in s.items() if key != "first_submitted_at"}
            for s in standings
        ],
        "overall_stats": {
            "total_students": len(roster),
            "total_exams": len(exams),
            "average_performance": average_performance,
            "top_performer": top_performer,
        },
    }
