"""Portfolio-level aggregates over a user's deals."""

from __future__ import annotations

import math
from collections.abc import Mapping

from flipanalyzer.models import Deal, DealAnalysis, DealStatus, PortfolioStats


def calculate_portfolio_stats(
    deals: list[Deal],
    analyses: Mapping[str, DealAnalysis],
) -> PortfolioStats:
    """Aggregate deals with their stored analyses, keyed by deal id.

    Dead deals are excluded from the active figures. A deal without an
    analysis, or a NaN figure, contributes zero to every sum and average.
    Closed deals use projected profit until actual sale figures are tracked.
    """
    active = [d for d in deals if d.status != DealStatus.DEAD]
    closed = [d for d in deals if d.status == DealStatus.CLOSED]

    def lookup(deal: Deal) -> DealAnalysis | None:
        return analyses.get(deal.id) if deal.id else None

    def total(selection: list[Deal], field: str) -> float:
        values = (getattr(a, field) for a in map(lookup, selection) if a is not None)
        return sum(0.0 if math.isnan(v) else v for v in values)

    stats = PortfolioStats(
        total_deals=len(deals),
        active_deals=len(active),
        closed_deals=len(closed),
        total_projected_profit=total(active, "projected_profit"),
        total_actual_profit=total(closed, "projected_profit"),
        avg_cash_on_cash=total(active, "cash_on_cash_roi") / len(active) if active else 0.0,
        total_investment=total(active, "total_investment"),
    )
    for analysis in map(lookup, active):
        if analysis is not None:
            stats.grade_counts[analysis.grade.value] += 1
    return stats
