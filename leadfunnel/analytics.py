from collections import Counter
from datetime import date, datetime, time
from typing import Any, Dict, Iterable, List, Optional

from sqlmodel import select

from leadfunnel.db import Submission, get_session
from leadfunnel.schemas import StatsQuery, SubmissionStatus

BUDGET_BUCKETS = (
    (0, 10000, "<10k"),
    (10000, 25000, "10k-25k"),
    (25000, 50000, "25k-50k"),
    (50000, 100000, "50k-100k"),
    (100000, None, "100k+"),
)

CONVERTED_STATUSES = {SubmissionStatus.PROPOSAL_SENT.value, SubmissionStatus.CLOSED.value}


def _parse_date(value: Optional[str], *, end_of_day: bool = False) -> Optional[datetime]:
    """Parse an ISO date or datetime; a bare date covers the whole day when ``end_of_day``."""
    if not value:
        return None
    try:
        day = date.fromisoformat(value)
    except ValueError:
        pass
    else:
        return datetime.combine(day, time.max if end_of_day else time.min)
    try:
        return datetime.fromisoformat(value)
    except ValueError:
        return None


def _split_csv(value: Optional[str]) -> List[str]:
    if not value:
        return []
    return [item.strip() for item in value.split(",") if item.strip()]


def build_query(
    *,
    start: Optional[str] = None,
    end: Optional[str] = None,
    industries: Optional[str] = None,
    ai_stages: Optional[str] = None,
    team_sizes: Optional[str] = None,
    budget_min: Optional[int] = None,
    budget_max: Optional[int] = None,
    search: Optional[str] = None,
) -> StatsQuery:
    return StatsQuery(
        start=_parse_date(start),
        end=_parse_date(end, end_of_day=True),
        industries=_split_csv(industries),
        ai_stages=_split_csv(ai_stages),
        team_sizes=_split_csv(team_sizes),
        budget_min=budget_min,
        budget_max=budget_max,
        search=search or None,
    )


def _budget(row: Submission) -> int:
    digits = "".join(ch for ch in row.budget or "" if ch.isdigit())
    return int(digits) if digits else 0


def _budget_bucket(amount: int) -> str:
    for low, high, label in BUDGET_BUCKETS:
        if amount >= low and (high is None or amount < high):
            return label
    return BUDGET_BUCKETS[0][2]


def _matches(row: Submission, query: StatsQuery) -> bool:
    if query.industries and not set(query.industries) & set(row.industries or []):
        return False
    if query.ai_stages and row.ai_stage not in query.ai_stages:
        return False
    if query.team_sizes and row.team_size not in query.team_sizes:
        return False
    amount = _budget(row)
    if query.budget_min is not None and amount < query.budget_min:
        return False
    if query.budget_max is not None and amount > query.budget_max:
        return False
    if query.search:
        needle = query.search.lower()
        haystack = " ".join([row.company_name, row.name, row.email, row.website]).lower()
        if needle not in haystack:
            return False
    return True


def _counted(counter: Counter, limit: Optional[int] = None) -> List[Dict[str, Any]]:
    return [{"label": label, "count": count} for label, count in counter.most_common(limit)]


def _flatten(rows: Iterable[Submission], attr: str) -> Counter:
    counter: Counter = Counter()
    for row in rows:
        counter.update(getattr(row, attr) or [])
    return counter


def summarize(rows: List[Submission]) -> Dict[str, Any]:
    """Aggregate pipeline KPIs and chart series over ``rows``."""
    total = len(rows)
    status_breakdown = {status.value: 0 for status in SubmissionStatus}
    for row in rows:
        status_breakdown[row.status] = status_breakdown.get(row.status, 0) + 1

    converted = sum(count for status, count in status_breakdown.items() if status in CONVERTED_STATUSES)
    proposal_delays = [
        (row.proposal_sent_at - row.submitted_at).total_seconds() * 1000
        for row in rows
        if row.proposal_sent_at and row.submitted_at
    ]
    pipeline_value = sum(_budget(row) for row in rows if row.status != SubmissionStatus.CLOSED.value)

    budget_counter: Counter = Counter(_budget_bucket(_budget(row)) for row in rows)
    by_month: Counter = Counter(
        row.submitted_at.strftime("%Y-%m") for row in rows if row.submitted_at
    )

    return {
        "total": total,
        "statusBreakdown": status_breakdown,
        "conversionRate": converted / total if total else 0.0,
        "avgTimeToProposalMs": sum(proposal_delays) / len(proposal_delays) if proposal_delays else None,
        "pipelineValue": pipeline_value,
        "byIndustry": _counted(_flatten(rows, "industries")),
        "byAiStage": _counted(Counter(row.ai_stage for row in rows if row.ai_stage)),
        "budgetRanges": [
            {"label": label, "count": budget_counter.get(label, 0)} for _, _, label in BUDGET_BUCKETS
        ],
        "topChallenges": _counted(_flatten(rows, "challenges"), 10),
        "topSolutions": _counted(_flatten(rows, "solutions"), 10),
        "byMonth": [{"label": month, "count": count} for month, count in sorted(by_month.items())],
    }


async def get_stats(query: Optional[StatsQuery] = None) -> Dict[str, Any]:
    query = query or StatsQuery()
    async with get_session() as session:
        statement = select(Submission)
        if query.start:
            statement = statement.where(Submission.submitted_at >= query.start)
        if query.end:
            statement = statement.where(Submission.submitted_at <= query.end)
        rows = (await session.exec(statement)).all()
    return summarize([row for row in rows if _matches(row, query)])
