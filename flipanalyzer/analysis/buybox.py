"""Buy-box deal analysis.

Grades a saved deal against one of the investor's buy boxes. The figures
assume hard-money financing of the full purchase plus rehab, a fixed 20%
down payment and a flat monthly allowance for utilities, insurance and
taxes while the property is held.
"""

from __future__ import annotations

import math

from flipanalyzer.formatting import format_currency, format_percent
from flipanalyzer.models import BuyBox, Deal, DealAnalysis, DealGrade

MAX_OFFER_ARV_PCT = 0.70
DOWN_PAYMENT_PCT = 0.20
MONTHLY_HOLDING_COST = 500.0

# (minimum cash-on-cash %, grade), checked top-down
GRADE_THRESHOLDS: tuple[tuple[float, DealGrade], ...] = (
    (25.0, DealGrade.A),
    (15.0, DealGrade.B),
    (10.0, DealGrade.C),
)


def ieee_divide(numerator: float, denominator: float) -> float:
    """Float division that yields inf/NaN instead of raising on zero."""
    if denominator != 0:
        return numerator / denominator
    if numerator == 0 or math.isnan(numerator):
        return math.nan
    return math.copysign(math.inf, numerator) * math.copysign(1.0, denominator)


def grade_for_roi(cash_on_cash_roi: float) -> DealGrade:
    for minimum, grade in GRADE_THRESHOLDS:
        if cash_on_cash_roi >= minimum:
            return grade
    return DealGrade.D


def meets_buy_box(
    buy_box: BuyBox,
    cash_on_cash_roi: float,
    projected_profit: float,
    rehab_estimate: float,
) -> bool:
    return (
        cash_on_cash_roi >= buy_box.min_cash_on_cash
        and projected_profit >= buy_box.target_profit_min
        and rehab_estimate <= buy_box.max_rehab_budget
    )


def analyze_deal(deal: Deal, buy_box: BuyBox) -> DealAnalysis:
    """Compute the analysis record for a deal under a buy box.

    Pure: the same inputs always produce the same record. Degenerate
    inputs (no cash invested, zero holding months) produce infinite or
    NaN ratios rather than errors, so callers must check before display.
    """
    arv = deal.estimated_arv
    purchase_price = deal.list_price
    rehab = deal.rehab_estimate
    months = buy_box.holding_period_months

    max_offer_70 = arv * MAX_OFFER_ARV_PCT - rehab

    # Hard money covers purchase and rehab
    loan_amount = purchase_price + rehab
    points_cost = loan_amount * (buy_box.hard_money_points / 100)
    monthly_interest = loan_amount * (buy_box.hard_money_rate / 12 / 100)
    total_interest = monthly_interest * months
    hard_money_costs = points_cost + total_interest

    other_holding_costs = MONTHLY_HOLDING_COST * months
    total_holding_costs = hard_money_costs + other_holding_costs

    selling_costs = arv * (buy_box.selling_costs_percent / 100)

    total_investment = purchase_price + rehab + total_holding_costs + selling_costs
    projected_profit = arv - total_investment

    cash_invested = purchase_price * DOWN_PAYMENT_PCT + rehab + total_holding_costs
    cash_on_cash_roi = ieee_divide(projected_profit, cash_invested) * 100
    annualized_roi = cash_on_cash_roi * ieee_divide(12, months)

    return DealAnalysis(
        deal_id=deal.id or "",
        max_offer_70_percent=max_offer_70,
        total_investment=total_investment,
        projected_profit=projected_profit,
        cash_on_cash_roi=cash_on_cash_roi,
        annualized_roi=annualized_roi,
        holding_costs=total_holding_costs,
        selling_costs=selling_costs,
        hard_money_costs=hard_money_costs,
        grade=grade_for_roi(cash_on_cash_roi),
        meets_buy_box=meets_buy_box(buy_box, cash_on_cash_roi, projected_profit, rehab),
    )


def summarize(deal: Deal, analysis: DealAnalysis) -> str:
    """Human-readable multi-line summary, as shown by the CLI."""
    parts = [
        f"Buy Box Analysis for {deal.address}",
        f"List: {format_currency(deal.list_price)} | ARV: {format_currency(deal.estimated_arv)}"
        f" | Rehab: {format_currency(deal.rehab_estimate)}",
        f"70% Rule MAO: {format_currency(analysis.max_offer_70_percent)}",
        f"Holding: {format_currency(analysis.holding_costs)}"
        f" (hard money {format_currency(analysis.hard_money_costs)})"
        f" | Selling: {format_currency(analysis.selling_costs)}",
        f"Total Investment: {format_currency(analysis.total_investment)}"
        f" | Profit: {format_currency(analysis.projected_profit)}",
        f"Cash-on-Cash: {format_percent(analysis.cash_on_cash_roi)}"
        f" | Annualized: {format_percent(analysis.annualized_roi)}",
        f"Grade: {analysis.grade.value} | Meets buy box: {'yes' if analysis.meets_buy_box else 'no'}",
    ]
    return "\n".join(parts)
