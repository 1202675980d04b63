import threading
from decimal import Decimal

import pytest

from unimonitor.core.committee import committee_stats
from unimonitor.core.engine import count_grades, counters_from_snapshot
from unimonitor.core.errors import InvalidInput, MissingRecord
from unimonitor.core.models import (
    Enrollment,
    GradeEntry,
    GrantApplication,
    StudentRecord,
)
from unimonitor.core.records import InMemoryRecordStore


def test_loaded_student_year_is_int(store):
    student = store.get_student("stu-1")
    assert student.year == 2
    assert student.attendance_percentage == Decimal("85.00")
    assert store.get_student_by_user_id("user-3").id == "stu-3"


def test_missing_student(store):
    with pytest.raises(MissingRecord):
        store.get_student("nope")
    with pytest.raises(MissingRecord):
        store.get_student_by_user_id("nope")
    with pytest.raises(MissingRecord):
        store.snapshot("nope")


def test_snapshot_counts_every_grade(store):
    snap = store.snapshot("stu-3")
    assert len(snap.enrollments) == 2
    assert count_grades(snap) == (3, 6)
    c = counters_from_snapshot(snap)
    assert (c.year, c.retake_count, c.pass_count) == (1, 3, 6)


def test_excellent_and_good_do_not_count(store):
    assert count_grades(store.snapshot("stu-1")) == (0, 2)


def test_student_without_enrollments(store):
    snap = store.snapshot("stu-4")
    assert snap.enrollments == []
    c = counters_from_snapshot(snap)
    assert c.attendance_percentage == Decimal(0)


def test_snapshot_is_isolated_from_later_writes(store):
    snap = store.snapshot("stu-1")
    store.add_grade(GradeEntry("enr-1", "retake"))
    store.set_attendance_percentage("stu-1", "10")
    assert count_grades(snap) == (0, 2)
    assert snap.student.attendance_percentage == Decimal("85.00")
    assert count_grades(store.snapshot("stu-1")) == (1, 2)


def test_unknown_grade_rejected(store):
    with pytest.raises(InvalidInput):
        store.add_grade(GradeEntry("enr-1", "fail"))


def test_grade_for_unknown_enrollment(store):
    with pytest.raises(MissingRecord):
        store.add_grade(GradeEntry("enr-404", "pass"))


def test_invalid_year_in_payload():
    with pytest.raises(InvalidInput):
        InMemoryRecordStore.from_json({"students": [{"id": "s", "year": "first"}]})


def test_concurrent_grade_entry_keeps_exact_counts():
    store = InMemoryRecordStore()
    store.add_student(StudentRecord("s", "u", 2, Decimal("90")))
    store.add_enrollment(Enrollment("e", "s", "math", "2024-25"))

    def enter(grade):
        for _ in range(200):
            store.add_grade(GradeEntry("e", grade))

    threads = [threading.Thread(target=enter, args=(g,)) for g in ("pass", "retake", "good")]
    for t in threads:
        t.start()
    for t in threads:
        t.join()
    assert count_grades(store.snapshot("s")) == (200, 200)


def test_list_applications_by_status(store):
    assert {a.id for a in store.list_applications("pending")} == {"app-1", "app-2"}
    assert len(store.list_applications()) == 5


def test_unknown_grant_type_rejected(store):
    with pytest.raises(InvalidInput):
        store.add_application(GrantApplication("x", "stu-1", "platinum", "2024-25"))


def test_committee_stats(store):
    stats = committee_stats(store.list_applications(), "2024-25")
    assert stats == {
        "pending_reviews": 2,
        "golden_minds_apps": 1,
        "unicorn_apps": 1,
        "approved_this_year": 1,
    }


def test_out_of_range_year_in_payload():
    with pytest.raises(InvalidInput):
        InMemoryRecordStore.from_json({"students": [{"id": "s", "year": "5"}]})


def test_committee_stats_counts_every_grant_type():
    apps = [
        GrantApplication("a", "s1", "unicorn", "2024-25"),
        GrantApplication("b", "s2", "merit_award", "2024-25"),
        GrantApplication("c", "s3", "merit_award", "2024-25"),
    ]
    stats = committee_stats(apps, "2024-25")
    assert stats["pending_reviews"] == 3
    assert stats["golden_minds_apps"] == 0
    assert stats["unicorn_apps"] == 1
    assert stats["merit_award_apps"] == 2
