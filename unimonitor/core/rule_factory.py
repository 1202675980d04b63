from typing import Dict, Any

from unimonitor.core.rules import (
    RetakeLimitRule,
    PassLimitRule,
    AttendanceFloorRule,
)


class RuleFactory:
    """
    Build a single criterion rule from a JSON rule config.
    The repository calls: factory.from_json(rule_cfg)
    """

    def from_json(self, rule_cfg: Dict[str, Any]):
        rtype = (rule_cfg.get("type") or "").lower()
        label = rule_cfg.get("label", "")

        if rtype == "retake_limit":
            return RetakeLimitRule(label=label, max_retakes=int(rule_cfg["max_retakes"]))

        if rtype == "pass_limit":
            # JSON object keys are strings; years are ints everywhere else
            by_year = {int(y): cfg for y, cfg in (rule_cfg.get("by_year") or {}).items()}
            return PassLimitRule(
                label=label,
                max_passes=rule_cfg.get("max_passes"),
                by_year=by_year,
            )

        if rtype == "attendance_floor":
            return AttendanceFloorRule(label=label, min_percentage=rule_cfg["min_percentage"])

        raise ValueError(f"Unknown rule type: {rule_cfg!r}")
