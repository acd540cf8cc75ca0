# Filtering and summary statistics over case lists
from typing import Dict, Iterable, List, Optional, Sequence

from pydantic import BaseModel, Field

from case_records_service.app.models import CaseDB, CasePriority, CaseStatus
from case_records_service.app.service.identifiers import now_ms

DAY_MS = 24 * 60 * 60 * 1000
TIME_RANGE_DAYS = {"7days": 7, "30days": 30, "90days": 90}
OVERDUE_WINDOW_DAYS = 30
DEADLINE_SOON_DAYS = 7


class UpcomingDeadline(BaseModel):
    case_id: str
    name: str
    deadline: int
    days_until_deadline: int # Negative when overdue


class CaseSummary(BaseModel):
    total: int = 0
    status_counts: Dict[str, int] = Field(default_factory=dict)
    priority_counts: Dict[str, int] = Field(default_factory=dict)
    high_priority: int = 0
    deadlines_this_week: int = 0
    upcoming_deadlines: List[UpcomingDeadline] = Field(default_factory=list)


def filter_cases(
    cases: Iterable[CaseDB],
    search: str = "",
    statuses: Sequence[CaseStatus] = (),
    priorities: Sequence[CasePriority] = (),
) -> List[CaseDB]:
    """
    Case-insensitive name search combined with status and priority filters.
    An empty filter list means "any".
    """
    needle = search.strip().lower()
    wanted_statuses = {CaseStatus(s) for s in statuses}
    wanted_priorities = {CasePriority(p) for p in priorities}
    return [
        case for case in cases
        if needle in case.name.lower()
        and (not wanted_statuses or case.status in wanted_statuses)
        and (not wanted_priorities or case.priority in wanted_priorities)
    ]


def days_between(start_ms: int, end_ms: int) -> int:
    # Whole days, truncated toward zero
    return int((end_ms - start_ms) / DAY_MS)


def summarize_cases(cases: Iterable[CaseDB], time_range: str = "all", now: Optional[int] = None) -> CaseSummary:
    """
    Counts cases by status and priority and lists open deadlines.

    `time_range` is one of "7days", "30days", "90days" or "all" and limits the
    summary to cases created within that window. Upcoming deadlines cover
    cases that are not closed and at most 30 days overdue, soonest first.
    """
    if time_range != "all" and time_range not in TIME_RANGE_DAYS:
        raise ValueError(f"Unknown time range '{time_range}'")
    now = now_ms() if now is None else now

    selected = list(cases)
    if time_range != "all":
        cutoff = now - TIME_RANGE_DAYS[time_range] * DAY_MS
        selected = [c for c in selected if c.created_at > cutoff]

    summary = CaseSummary(total=len(selected))
    for case in selected:
        summary.status_counts[case.status.value] = summary.status_counts.get(case.status.value, 0) + 1
        summary.priority_counts[case.priority.value] = summary.priority_counts.get(case.priority.value, 0) + 1
    summary.high_priority = summary.priority_counts.get(CasePriority.HIGH.value, 0)

    deadlines = [
        UpcomingDeadline(
            case_id=case.id,
            name=case.name,
            deadline=case.deadline,
            days_until_deadline=days_between(now, case.deadline),
        )
        for case in selected
        if case.deadline is not None and case.status != CaseStatus.CLOSED
    ]
    deadlines = [d for d in deadlines if d.days_until_deadline > -OVERDUE_WINDOW_DAYS]
    deadlines.sort(key=lambda d: d.days_until_deadline)

    summary.upcoming_deadlines = deadlines
    summary.deadlines_this_week = sum(1 for d in deadlines if 0 <= d.days_until_deadline <= DEADLINE_SOON_DAYS)
    return summary
