import logging
import threading
from collections import defaultdict
from decimal import Decimal, InvalidOperation
from typing import List, Protocol, Optional, Dict, Any

from unimonitor.core.errors import InvalidInput, MissingRecord
from unimonitor.core.models import (
    GRADES,
    YEARS,
    GRANT_TYPES,
    APPLICATION_STATUSES,
    StudentRecord,
    Enrollment,
    GradeEntry,
    AttendanceEntry,
    GrantApplication,
    StudentSnapshot,
)

logger = logging.getLogger(__name__)


class RecordProvider(Protocol):
    def get_student(self, student_id: str) -> StudentRecord: ...
    def get_student_by_user_id(self, user_id: str) -> StudentRecord: ...
    def list_enrollments(self, student_id: str) -> List[Enrollment]: ...
    def list_grades(self, enrollment_id: str) -> List[GradeEntry]: ...
    def list_attendance(self, enrollment_id: str) -> List[AttendanceEntry]: ...
    def get_attendance_percentage(self, student_id: str) -> Optional[Decimal]: ...
    def list_applications(self, status: Optional[str] = None) -> List[GrantApplication]: ...
    def snapshot(self, student_id: str) -> StudentSnapshot: ...


def _parse_year(raw) -> int:
    # stored as "1".."4" upstream
    try:
        year = int(str(raw).strip())
    except ValueError:
        raise InvalidInput(f"Invalid year: {raw!r}") from None
    if year not in YEARS:
        raise InvalidInput(f"Invalid year: {raw!r}")
    return year


def _parse_percentage(raw) -> Optional[Decimal]:
    if raw is None or raw == "":
        return None
    try:
        return Decimal(str(raw))
    except InvalidOperation:
        raise InvalidInput(f"Invalid attendance percentage: {raw!r}") from None


class InMemoryRecordStore:
    """
    Thread-safe record store. Every write and every multi-record read takes
    the same lock, so ``snapshot`` never observes a grade entered halfway
    through an attendance update.
    """

    def __init__(self) -> None:
        self._lock = threading.RLock()
        self._students: Dict[str, StudentRecord] = {}
        self._enrollments: Dict[str, Enrollment] = {}
        self._grades: Dict[str, List[GradeEntry]] = defaultdict(list)
        self._attendance: Dict[str, List[AttendanceEntry]] = defaultdict(list)
        self._applications: Dict[str, GrantApplication] = {}

    # ---------- writes ----------

    def add_student(self, student: StudentRecord) -> None:
        with self._lock:
            self._students[student.id] = student

    def add_enrollment(self, enrollment: Enrollment) -> None:
        with self._lock:
            self._require_student(enrollment.student_id)
            self._enrollments[enrollment.id] = enrollment

    def add_grade(self, entry: GradeEntry) -> None:
        if entry.grade not in GRADES:
            raise InvalidInput(f"Unknown grade: {entry.grade!r}")
        with self._lock:
            self._require_enrollment(entry.enrollment_id)
            self._grades[entry.enrollment_id].append(entry)

    def add_attendance(self, entry: AttendanceEntry) -> None:
        with self._lock:
            self._require_enrollment(entry.enrollment_id)
            self._attendance[entry.enrollment_id].append(entry)

    def set_attendance_percentage(self, student_id: str, value) -> None:
        with self._lock:
            student = self._require_student(student_id)
            student.attendance_percentage = _parse_percentage(value)

    def add_application(self, application: GrantApplication) -> None:
        if application.grant_type not in GRANT_TYPES:
            raise InvalidInput(f"Unknown grant type: {application.grant_type!r}")
        if application.status not in APPLICATION_STATUSES:
            raise InvalidInput(f"Unknown application status: {application.status!r}")
        with self._lock:
            self._applications[application.id] = application

    # ---------- reads ----------

    def get_student(self, student_id: str) -> StudentRecord:
        with self._lock:
            return self._require_student(student_id)

    def get_student_by_user_id(self, user_id: str) -> StudentRecord:
        with self._lock:
            for s in self._students.values():
                if s.user_id == user_id:
                    return s
        raise MissingRecord("Student profile", user_id)

    def list_enrollments(self, student_id: str) -> List[Enrollment]:
        with self._lock:
            return [e for e in self._enrollments.values() if e.student_id == student_id]

    def list_grades(self, enrollment_id: str) -> List[GradeEntry]:
        with self._lock:
            return list(self._grades.get(enrollment_id, []))

    def list_attendance(self, enrollment_id: str) -> List[AttendanceEntry]:
        with self._lock:
            return list(self._attendance.get(enrollment_id, []))

    def get_attendance_percentage(self, student_id: str) -> Optional[Decimal]:
        with self._lock:
            return self._require_student(student_id).attendance_percentage

    def list_applications(self, status: Optional[str] = None) -> List[GrantApplication]:
        with self._lock:
            apps = list(self._applications.values())
        if status is None:
            return apps
        return [a for a in apps if a.status == status]

    def snapshot(self, student_id: str) -> StudentSnapshot:
        with self._lock:
            student = self._require_student(student_id)
            enrollments = self.list_enrollments(student_id)
            grades = {e.id: self.list_grades(e.id) for e in enrollments}
            frozen = StudentRecord(
                id=student.id,
                user_id=student.user_id,
                year=student.year,
                attendance_percentage=student.attendance_percentage,
            )
        return StudentSnapshot(student=frozen, enrollments=enrollments, grades=grades)

    # ---------- helpers ----------

    def _require_student(self, student_id: str) -> StudentRecord:
        student = self._students.get(student_id)
        if student is None:
            raise MissingRecord("Student profile", student_id)
        return student

    def _require_enrollment(self, enrollment_id: str) -> Enrollment:
        enrollment = self._enrollments.get(enrollment_id)
        if enrollment is None:
            raise MissingRecord("Enrollment", enrollment_id)
        return enrollment

    # ---------- loading ----------

    @classmethod
    def from_json(cls, payload: Dict[str, Any]) -> "InMemoryRecordStore":
        store = cls()
        for s in payload.get("students", []):
            store.add_student(StudentRecord(
                id=s["id"],
                user_id=s.get("user_id", s["id"]),
                year=_parse_year(s["year"]),
                attendance_percentage=_parse_percentage(s.get("attendance_percentage")),
            ))
        for e in payload.get("enrollments", []):
            store.add_enrollment(Enrollment(
                id=e["id"],
                student_id=e["student_id"],
                subject_id=e.get("subject_id", ""),
                academic_year=e.get("academic_year", ""),
            ))
        for g in payload.get("grades", []):
            store.add_grade(GradeEntry(enrollment_id=g["enrollment_id"], grade=g["grade"]))
        for a in payload.get("attendance", []):
            store.add_attendance(AttendanceEntry(
                enrollment_id=a["enrollment_id"],
                date=a.get("date", ""),
                present=bool(a.get("present", False)),
            ))
        for app in payload.get("applications", []):
            store.add_application(GrantApplication(
                id=app["id"],
                student_id=app["student_id"],
                grant_type=app["grant_type"],
                academic_year=app.get("academic_year", ""),
                status=app.get("status", "pending"),
            ))
        logger.info(
            "Loaded %d students, %d enrollments, %d applications",
            len(store._students), len(store._enrollments), len(store._applications),
        )
        return store
