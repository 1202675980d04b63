from decimal import Decimal

import pytest

from unimonitor.core.models import AcademicCounters
from unimonitor.core.repositories import DEFAULT_GRANTS, JsonGrantRepository
from unimonitor.core.rule_factory import RuleFactory
from unimonitor.core.rules import (
    AttendanceFloorRule,
    PassLimitRule,
    RetakeLimitRule,
    format_attendance,
)


def counters(year=2, attendance="85", retakes=0, passes=0):
    return AcademicCounters(year, Decimal(attendance), retakes, passes)


@pytest.mark.parametrize("raw, text", [
    ("85", "85%"),
    ("85.00", "85%"),
    ("72.50", "72.5%"),
    ("0", "0%"),
    ("100", "100%"),
    ("0.0000001", "0.0000001%"),
    ("79.99999999999999999999999999999", "79.99999999999999999999999999999%"),
])
def test_format_attendance(raw, text):
    assert format_attendance(Decimal(raw)) == text


def test_retake_limit_rule():
    rule = RetakeLimitRule("Max 2 retakes", 2)
    assert rule.evaluate(counters(retakes=2)).met is True
    result = rule.evaluate(counters(retakes=3))
    assert result.met is False
    assert result.evidence == "3 retakes"


def test_pass_limit_by_year_overrides_label():
    rule = PassLimitRule(
        "Pass-grade limit",
        by_year={2: {"max_passes": 3, "label": "Max 3"}, 3: {"max_passes": 0, "label": "None"}},
    )
    r2 = rule.evaluate(counters(year=2, passes=3))
    assert (r2.label, r2.met, r2.evidence) == ("Max 3", True, "3 passes")
    r3 = rule.evaluate(counters(year=3, passes=1))
    assert (r3.label, r3.met) == ("None", False)


def test_pass_limit_without_limit_for_year():
    rule = PassLimitRule("x", by_year={2: {"max_passes": 3}})
    with pytest.raises(ValueError):
        rule.evaluate(counters(year=1))


def test_pass_limit_requires_some_limit():
    with pytest.raises(ValueError):
        PassLimitRule("x")


def test_attendance_floor_rule():
    rule = AttendanceFloorRule("High attendance", 75)
    assert rule.evaluate(counters(attendance="75")).met is True
    assert rule.evaluate(counters(attendance="74.99")).met is False


def test_factory_builds_each_rule_type():
    f = RuleFactory()
    assert isinstance(f.from_json({"type": "retake_limit", "label": "r", "max_retakes": 0}), RetakeLimitRule)
    assert isinstance(f.from_json({"type": "PASS_LIMIT", "label": "p", "max_passes": 5}), PassLimitRule)
    assert isinstance(f.from_json({"type": "attendance_floor", "label": "a", "min_percentage": 80}), AttendanceFloorRule)


def test_factory_converts_year_keys_to_int():
    rule = RuleFactory().from_json({
        "type": "pass_limit",
        "label": "p",
        "by_year": {"3": {"max_passes": 0}},
    })
    assert 3 in rule.by_year


def test_factory_rejects_unknown_type():
    with pytest.raises(ValueError):
        RuleFactory().from_json({"type": "gpa_floor"})


def test_repository_matches_shipped_table(grants_json):
    assert grants_json == DEFAULT_GRANTS
    grants = JsonGrantRepository(grants_json, RuleFactory()).list_grants()
    assert [g.id for g in grants] == ["golden_minds", "unicorn"]
    assert [g.report_key for g in grants] == ["goldenMinds", "unicorn"]
    assert grants[0].years == frozenset({2, 3})
    assert all(len(g.rules) == 3 for g in grants)


def test_repository_rejects_grant_without_criteria():
    repo = JsonGrantRepository([{"id": "empty", "years": [1], "rules": []}], RuleFactory())
    with pytest.raises(ValueError):
        repo.list_grants()
