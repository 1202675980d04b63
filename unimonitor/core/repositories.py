from typing import List, Protocol, Any
from unimonitor.core.models import GrantProgram
from unimonitor.core.rule_factory import RuleFactory

# Rubric table used when no grants.json is configured. Keep in sync with data/grants.json.
DEFAULT_GRANTS: List[dict] = [
    {
        "id": "golden_minds",
        "name": "Golden Minds Grant",
        "report_key": "goldenMinds",
        "years": [2, 3],
        "rules": [
            {"type": "retake_limit", "label": "No retakes in current academic year", "max_retakes": 0},
            {
                "type": "pass_limit",
                "label": "Pass-grade limit",
                "by_year": {
                    "2": {"max_passes": 3, "label": "Max 3 'Pass' grades"},
                    "3": {"max_passes": 0, "label": "No 'Pass' grades"},
                },
            },
            {"type": "attendance_floor", "label": "High attendance (≥80%)", "min_percentage": 80},
        ],
    },
    {
        "id": "unicorn",
        "name": "Unicorn Grant",
        "report_key": "unicorn",
        "years": [1, 2, 3, 4],
        "rules": [
            {"type": "retake_limit", "label": "Max 2 retakes", "max_retakes": 2},
            {"type": "pass_limit", "label": "High grades", "max_passes": 5},
            {"type": "attendance_floor", "label": "High attendance (≥75%)", "min_percentage": 75},
        ],
    },
]

class GrantRepository(Protocol):
    def list_grants(self) -> List[GrantProgram]:
        ...

class JsonGrantRepository:
    def __init__(self, grants_json: Any, factory: RuleFactory):
        self.grants_json = grants_json
        self.factory = factory

    def list_grants(self) -> List[GrantProgram]:
        grants: List[GrantProgram] = []
        for g in self.grants_json:
            rules = [self.factory.from_json(r) for r in g.get("rules", [])]
            if not rules:
                raise ValueError(f"Grant {g.get('id')!r} has no criteria")
            grants.append(GrantProgram(
                id=g["id"],
                name=g.get("name", g["id"]),
                report_key=g.get("report_key", g["id"]),
                years=frozenset(int(y) for y in g.get("years", [])),
                rules=rules,
            ))
        return grants
