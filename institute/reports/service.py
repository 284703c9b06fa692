"""
Report services

Glue between the record sources and the pure report composer. Sources are
passed in by the caller (the routers build them from the request's database
handle), which keeps these functions usable with any source implementation.
"""

from typing import List, Optional

from institute.analytics.reports import compose_batch_report, compose_student_report


async def student_performance(
    student: dict,
    attendance_source,
    result_source,
    batch_id: Optional[str] = None,
) -> dict:
    records = await attendance_source.fetch_by_student(student["user_id"], batch_id)
    results_with_exam = await result_source.fetch_by_student(student["user_id"])
    return compose_student_report(student, records, results_with_exam)


async def batch_performance(
    batch: dict,
    exams: List[dict],
    attendance_source,
    result_source,
) -> dict:
    records = await attendance_source.fetch_by_batch(batch["batch_id"])

    results_by_exam = await result_source.fetch_by_exams([exam["exam_id"] for exam in exams])

    return compose_batch_report(batch, records, exams, results_by_exam)
