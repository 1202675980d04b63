import logging
from decimal import Decimal, InvalidOperation
from fractions import Fraction
from functools import lru_cache
from typing import List, Dict, Optional, Tuple

from unimonitor.core.errors import InvalidInput
from unimonitor.core.models import (
    YEARS,
    AcademicCounters,
    CriterionResult,
    EligibilityReport,
    GrantProgram,
    StudentSnapshot,
)
from unimonitor.core.repositories import GrantRepository, JsonGrantRepository, DEFAULT_GRANTS
from unimonitor.core.rule_factory import RuleFactory

logger = logging.getLogger(__name__)

_HUNDRED = Decimal(100)


def _require_count(name: str, value) -> int:
    if isinstance(value, bool) or not isinstance(value, int):
        raise InvalidInput(f"{name} must be an integer, got {value!r}")
    if value < 0:
        raise InvalidInput(f"{name} must be non-negative, got {value}")
    return value


def _require_attendance(value) -> Decimal:
    if value is None:
        return Decimal(0)
    if isinstance(value, bool):
        raise InvalidInput(f"attendance_percentage must be a number, got {value!r}")
    try:
        pct = value if isinstance(value, Decimal) else Decimal(str(value).strip())
    except InvalidOperation:
        raise InvalidInput(f"attendance_percentage must be a number, got {value!r}") from None
    if not pct.is_finite() or pct < 0 or pct > _HUNDRED:
        raise InvalidInput(f"attendance_percentage must be within [0, 100], got {value!r}")
    return pct


def build_counters(year, attendance_percentage, retake_count, pass_count) -> AcademicCounters:
    """Validate raw evaluator input. Nothing is coerced except a missing attendance (-> 0)."""
    if isinstance(year, bool) or not isinstance(year, int) or year not in YEARS:
        raise InvalidInput(f"year must be one of {YEARS}, got {year!r}")
    return AcademicCounters(
        year=year,
        attendance_percentage=_require_attendance(attendance_percentage),
        retake_count=_require_count("retake_count", retake_count),
        pass_count=_require_count("pass_count", pass_count),
    )


def count_grades(snapshot: StudentSnapshot) -> Tuple[int, int]:
    """Return (retakes, passes) over every grade of every enrollment in the snapshot."""
    retakes = 0
    passes = 0
    for enrollment in snapshot.enrollments:
        for entry in snapshot.grades_for(enrollment.id):
            if entry.grade == "retake":
                retakes += 1
            elif entry.grade == "pass":
                passes += 1
    return retakes, passes


def counters_from_snapshot(snapshot: StudentSnapshot) -> AcademicCounters:
    retakes, passes = count_grades(snapshot)
    student = snapshot.student
    return build_counters(student.year, student.attendance_percentage, retakes, passes)


def percentage_of(met: int, total: int) -> int:
    # round() on a Fraction is round-half-even and exact: 2/3 -> 67, 1/3 -> 33
    if total <= 0:
        raise ValueError("a grant must define at least one criterion")
    return round(Fraction(100 * met, total))


class EligibilityEngine:
    def __init__(self, repo: GrantRepository):
        self.repo = repo
        self.grants: List[GrantProgram] = repo.list_grants()

    def evaluate_grant(self, grant: GrantProgram, counters: AcademicCounters) -> EligibilityReport:
        criteria: List[CriterionResult] = [rule.evaluate(counters) for rule in grant.rules]
        met = sum(1 for c in criteria if c.met)
        return EligibilityReport(
            grant_type=grant.id,
            percentage=percentage_of(met, len(criteria)),
            criteria=criteria,
        )

    def evaluate(self, counters: AcademicCounters) -> Dict[str, Optional[EligibilityReport]]:
        results: Dict[str, Optional[EligibilityReport]] = {}
        for grant in self.grants:
            if not grant.applies_to(counters.year):
                results[grant.report_key] = None
                continue
            results[grant.report_key] = self.evaluate_grant(grant, counters)
        logger.debug(
            "Evaluated year=%s retakes=%s passes=%s attendance=%s -> %s",
            counters.year, counters.retake_count, counters.pass_count,
            counters.attendance_percentage,
            {k: (r.percentage if r else None) for k, r in results.items()},
        )
        return results

    def evaluate_snapshot(self, snapshot: StudentSnapshot) -> Dict[str, Optional[EligibilityReport]]:
        return self.evaluate(counters_from_snapshot(snapshot))


@lru_cache(maxsize=1)
def default_engine() -> EligibilityEngine:
    return EligibilityEngine(JsonGrantRepository(DEFAULT_GRANTS, RuleFactory()))


def evaluate_eligibility(
    year, attendance_percentage, retake_count, pass_count
) -> Dict[str, Optional[EligibilityReport]]:
    """
    Evaluate both grant rubrics for one student's aggregated counters.

    Returns {"goldenMinds": report or None, "unicorn": report}. Golden Minds is
    None outside years 2 and 3. Raises InvalidInput for an unknown year, a
    negative count or an attendance value outside [0, 100].
    """
    counters = build_counters(year, attendance_percentage, retake_count, pass_count)
    return default_engine().evaluate(counters)
