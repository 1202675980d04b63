from dataclasses import dataclass, field
from decimal import Decimal
from typing import List, Optional, Any, FrozenSet

GRADES = ("excellent", "good", "pass", "retake")
YEARS = (1, 2, 3, 4)
GRANT_TYPES = ("golden_minds", "unicorn")
APPLICATION_STATUSES = ("pending", "approved", "rejected")

@dataclass
class StudentRecord:
    id: str
    user_id: str
    year: int
    attendance_percentage: Optional[Decimal] = None

@dataclass
class Enrollment:
    id: str
    student_id: str
    subject_id: str
    academic_year: str

@dataclass
class GradeEntry:
    enrollment_id: str
    grade: str

@dataclass
class AttendanceEntry:
    enrollment_id: str
    date: str
    present: bool

@dataclass
class StudentSnapshot:
    student: StudentRecord
    enrollments: List[Enrollment] = field(default_factory=list)
    grades: dict = field(default_factory=dict)  # enrollment id -> List[GradeEntry]

    def grades_for(self, enrollment_id: str) -> List[GradeEntry]:
        return self.grades.get(enrollment_id, [])

@dataclass(frozen=True)
class AcademicCounters:
    year: int
    attendance_percentage: Decimal
    retake_count: int
    pass_count: int

@dataclass(frozen=True)
class CriterionResult:
    label: str
    met: bool
    evidence: str

@dataclass(frozen=True)
class EligibilityReport:
    grant_type: str
    percentage: int
    criteria: List[CriterionResult]

    @property
    def status(self) -> str:
        # same bands as the dashboard badge
        if self.percentage >= 80:
            return "eligible"
        if self.percentage >= 50:
            return "at_risk"
        return "ineligible"

@dataclass
class GrantProgram:
    id: str
    name: str
    report_key: str
    years: FrozenSet[int]
    rules: List[Any]  # CriterionRule at runtime

    def applies_to(self, year: int) -> bool:
        return year in self.years

@dataclass
class GrantApplication:
    id: str
    student_id: str
    grant_type: str
    academic_year: str
    status: str = "pending"
