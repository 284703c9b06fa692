# tests/test_attendance_aggregator.py

import copy

from institute.analytics.attendance import (
    average_attendance,
    batch_attendance,
    status_of,
    summarize,
    summarize_batch,
)


def test_summarize_batch_two_students(two_day_records):
    stats = summarize_batch(two_day_records, ["S1", "S2"])

    assert stats["S1"] == {
        "total_classes": 2,
        "present_classes": 2,
        "absent_classes": 0,
        "percentage": 100,
    }
    assert stats["S2"] == {
        "total_classes": 2,
        "present_classes": 1,
        "absent_classes": 1,
        "percentage": 50,
    }


def test_batch_average_attendance(two_day_records):
    report = batch_attendance(two_day_records, ["S1", "S2"])

    assert report["total_classes"] == 2
    assert report["average_attendance"] == 75
    assert set(report["student_stats"]) == {"S1", "S2"}


def test_batch_average_matches_per_student_presence(two_day_records):
    roster = ["S1", "S2", "S3"]
    stats = summarize_batch(two_day_records, roster)
    present = sum(s["present_classes"] for s in stats.values())

    assert average_attendance(stats, 2) == round(present / (2 * len(roster)) * 100, 2)


def test_unknown_student_counts_every_record(two_day_records):
    summary = summarize(two_day_records, "S9")

    assert summary["percentage"] == 0
    assert summary["total_classes"] == len(two_day_records)
    assert summary["present_classes"] == 0
    assert summary["absent_classes"] == 2


def test_no_records_gives_zero_percentage():
    assert summarize([], "S1") == {
        "total_classes": 0,
        "present_classes": 0,
        "absent_classes": 0,
        "percentage": 0,
    }
    assert batch_attendance([], ["S1"])["average_attendance"] == 0


def test_empty_roster():
    report = batch_attendance([], [])

    assert report["student_stats"] == {}
    assert report["average_attendance"] == 0


def test_roster_member_without_records_still_listed(two_day_records):
    stats = summarize_batch(two_day_records, ["S1", "NEW"])

    assert stats["NEW"]["total_classes"] == 2
    assert stats["NEW"]["present_classes"] == 0


def test_summarize_accepts_a_generator(two_day_records):
    summary = summarize((r for r in two_day_records), "S1")

    assert summary["present_classes"] == 2


def test_aggregators_are_idempotent(two_day_records):
    before = copy.deepcopy(two_day_records)

    first = batch_attendance(two_day_records, ["S1", "S2"])
    second = batch_attendance(two_day_records, ["S1", "S2"])

    assert first == second
    assert summarize(two_day_records, "S2") == summarize(two_day_records, "S2")
    assert two_day_records == before


def test_status_of(two_day_records):
    second_day = two_day_records[1]

    assert status_of(second_day, "S1") == "present"
    assert status_of(second_day, "S2") == "absent"
    assert status_of(second_day, "S3") == "not_marked"
