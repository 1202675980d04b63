from decimal import Decimal
from typing import Protocol, Optional, Dict
from unimonitor.core.models import AcademicCounters, CriterionResult


def format_attendance(value: Decimal) -> str:
    # 85, 85.0, "85.00" -> "85%"; "72.50" -> "72.5%"; never exponent notation
    if value == value.to_integral_value():
        return f"{int(value)}%"
    return format(value, "f").rstrip("0").rstrip(".") + "%"


class CriterionRule(Protocol):
    def evaluate(self, counters: AcademicCounters) -> CriterionResult: ...


class RetakeLimitRule:
    def __init__(self, label: str, max_retakes: int):
        self.label = label
        self.max_retakes = int(max_retakes)

    def evaluate(self, counters: AcademicCounters) -> CriterionResult:
        met = counters.retake_count <= self.max_retakes
        return CriterionResult(self.label, met, f"{counters.retake_count} retakes")


class PassLimitRule:
    """
    Upper bound on 'pass' grades. The bound (and its label) may depend on the
    student's year: Golden Minds allows three passes in year 2 and none in year 3.
    Years missing from ``by_year`` fall back to ``max_passes``.
    """

    def __init__(
        self,
        label: str,
        max_passes: Optional[int] = None,
        by_year: Optional[Dict[int, Dict]] = None,
    ):
        self.label = label
        self.max_passes = max_passes
        self.by_year = by_year or {}
        if max_passes is None and not self.by_year:
            raise ValueError("PassLimitRule needs max_passes or by_year")

    def _limit_for(self, year: int):
        override = self.by_year.get(year)
        if override is not None:
            return int(override["max_passes"]), override.get("label", self.label)
        if self.max_passes is None:
            raise ValueError(f"PassLimitRule has no limit for year {year}")
        return int(self.max_passes), self.label

    def evaluate(self, counters: AcademicCounters) -> CriterionResult:
        limit, label = self._limit_for(counters.year)
        met = counters.pass_count <= limit
        return CriterionResult(label, met, f"{counters.pass_count} passes")


class AttendanceFloorRule:
    def __init__(self, label: str, min_percentage):
        self.label = label
        self.min_percentage = Decimal(str(min_percentage))

    def evaluate(self, counters: AcademicCounters) -> CriterionResult:
        met = counters.attendance_percentage >= self.min_percentage
        return CriterionResult(self.label, met, format_attendance(counters.attendance_percentage))
