from typing import Dict, Iterable

from unimonitor.core.models import GRANT_TYPES, GrantApplication


def committee_stats(applications: Iterable[GrantApplication], academic_year: str) -> Dict[str, int]:
    """Counts shown on the grant committee dashboard, one ``<grant>_apps`` entry per grant type."""
    pending = 0
    approved = 0
    pending_by_type: Dict[str, int] = {t: 0 for t in GRANT_TYPES}
    for app in applications:
        if app.status == "pending":
            pending += 1
            pending_by_type[app.grant_type] = pending_by_type.get(app.grant_type, 0) + 1
        elif app.status == "approved" and app.academic_year == academic_year:
            approved += 1
    stats = {"pending_reviews": pending}
    for grant_type, count in pending_by_type.items():
        stats[f"{grant_type}_apps"] = count
    stats["approved_this_year"] = approved
    return stats
