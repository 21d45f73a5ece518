"""
Pipeline and admin metrics for the dashboards.
"""
from typing import Dict, List, Sequence

from salessuite.models import ClientRecord, User

DEFAULT_SALES_TARGET = 100000


def _percent(numerator: float, denominator: float) -> str:
    if denominator <= 0:
        return '0.0'
    return f"{numerator / denominator * 100:.1f}"


def compute_pipeline_metrics(clients: Sequence[ClientRecord], sales_target: float = DEFAULT_SALES_TARGET) -> dict:
    """
    Summarize one user's pipeline.

    ``callsScheduled`` counts every client past New Lead that was not lost;
    conversion is won / scheduled.
    """
    calls_scheduled = sum(1 for c in clients if c.status not in ('New Lead', 'Closed - Lost'))
    won = [c for c in clients if c.status == 'Closed - Won']
    total_won_value = sum(c.value for c in won)

    return {
        'leadsAdded': len(clients),
        'callsScheduled': calls_scheduled,
        'closedWon': len(won),
        'conversionRatio': _percent(len(won), calls_scheduled),
        'totalWonValue': total_won_value,
        'salesTarget': sales_target,
        'targetProgress': _percent(total_won_value, sales_target),
    }


def compute_admin_metrics(users: Sequence[User], clients_by_user: Dict[str, List[ClientRecord]]) -> dict:
    active = sum(1 for u in users if clients_by_user.get(u.id))
    return {
        'totalUsers': len(users),
        'activeUsers': active,
        'totalClients': sum(len(clients) for clients in clients_by_user.values()),
    }
