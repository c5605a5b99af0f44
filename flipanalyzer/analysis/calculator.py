"""Quick calculator for the standalone single-page analyzer.

This is a separate formula set from the buy-box analyzer: financing is a
loan-to-cost percentage with no points, rehab carries a fixed contingency,
and viability is judged per exit strategy against fixed thresholds.
"""

from __future__ import annotations

from statistics import mean

from flipanalyzer.config import CalculatorConfig
from flipanalyzer.formatting import format_currency, format_percent
from flipanalyzer.models import CompInput, QuickCalcInput, QuickCalcResult, RehabTemplate

REHAB_CONTINGENCY = 0.10
MAX_OFFER_ARV_PCT = 0.70
TARGET_PROFIT = 50_000.0
WHOLESALE_MIN_SPREAD = 15_000.0
FLIP_MIN_PROFIT = 50_000.0
FLIP_MIN_ROI = 20.0

REHAB_TEMPLATES: dict[RehabTemplate, float] = {
    RehabTemplate.CUSTOM: 0.0,
    RehabTemplate.COSMETIC: 25_000.0,
    RehabTemplate.STARTER: 65_000.0,
    RehabTemplate.FULL_GUT: 120_000.0,
}


def average_comps(comps: list[CompInput]) -> float:
    """Mean price of the comps that have a price entered, else 0."""
    prices = [c.price for c in comps if c.price is not None]
    return mean(prices) if prices else 0.0


def resolve_arv(
    arv_manual: float,
    estimates: list[float],
    comps: list[CompInput],
) -> float:
    """Pick the ARV the calculator works from.

    Order: a positive manual override, then the mean of the positive
    third-party estimates, then the mean of the entered comps, else 0.
    """
    if arv_manual > 0:
        return arv_manual
    positive = [e for e in estimates if e > 0]
    if positive:
        return mean(positive)
    return average_comps(comps)


class QuickCalculator:
    """Evaluates quick-calculator form input.

    Financing fields left blank fall back to the configured form defaults.
    """

    def __init__(self, config: CalculatorConfig):
        self.cfg = config

    def rehab_for(self, data: QuickCalcInput) -> float:
        if data.rehab is not None:
            return data.rehab
        return REHAB_TEMPLATES[data.rehab_template]

    def calculate(self, data: QuickCalcInput) -> QuickCalcResult:
        ltc = data.ltc if data.ltc is not None else self.cfg.ltc
        rate = data.interest_rate if data.interest_rate is not None else self.cfg.interest_rate
        hold_months = data.hold_months if data.hold_months is not None else self.cfg.hold_months
        commission = data.commission if data.commission is not None else self.cfg.commission

        avg_comps = average_comps(data.comps)
        arv = resolve_arv(data.arv_manual, [data.zillow, data.redfin, data.realtor], data.comps)

        pp = data.purchase_price
        rehab = self.rehab_for(data)
        rehab_with_contingency = rehab * (1 + REHAB_CONTINGENCY)

        mao_70 = max(0.0, arv * MAX_OFFER_ARV_PCT - rehab)

        loan_amount = (pp + rehab) * (ltc / 100)
        monthly_interest = (loan_amount * (rate / 100)) / 12
        total_interest = monthly_interest * hold_months

        selling_commission = arv * commission / 100
        closing = data.buying_costs + selling_commission + data.selling_costs

        profit = arv - pp - rehab_with_contingency - total_interest - closing
        roi = (profit / pp) * 100 if pp > 0 else 0.0

        # Offer that still leaves the target profit, before contingency
        mao_50k = max(0.0, arv - rehab - total_interest - closing - TARGET_PROFIT)

        wholesale_spread = arv - mao_70
        wholesale_viable = wholesale_spread >= WHOLESALE_MIN_SPREAD
        flip_viable = profit >= FLIP_MIN_PROFIT and roi >= FLIP_MIN_ROI

        return QuickCalcResult(
            arv=arv,
            average_comps=avg_comps,
            rehab=rehab,
            rehab_with_contingency=rehab_with_contingency,
            mao_70=mao_70,
            loan_amount=loan_amount,
            monthly_interest=monthly_interest,
            total_interest=total_interest,
            selling_commission=selling_commission,
            profit=profit,
            roi=roi,
            mao_50k=mao_50k,
            max_recommended_offer=min(mao_70, mao_50k),
            wholesale_spread=wholesale_spread,
            wholesale_viable=wholesale_viable,
            flip_viable=flip_viable,
            go=flip_viable or wholesale_viable,
        )

    def summary(self, data: QuickCalcInput, result: QuickCalcResult) -> str:
        def mark(viable: bool | None) -> str:
            if viable is None:
                return "not evaluated"
            return "viable" if viable else "not viable"

        money = format_currency
        parts = [
            f"Quick Analysis for {data.address or 'Manual Entry'}",
            f"ARV: {money(result.arv)} | Purchase: {money(data.purchase_price)}"
            f" | Rehab: {money(result.rehab_with_contingency)} (incl. contingency)",
            f"Interest: {money(result.total_interest)} | Commission: {money(result.selling_commission)}",
            f"Profit: {money(result.profit)} | ROI: {format_percent(result.roi)}",
            f"70% Rule MAO: {money(result.mao_70)} | MAO for $50K profit: {money(result.mao_50k)}",
            f"Max Recommended: {money(result.max_recommended_offer)}",
            f"Wholesale (spread {money(result.wholesale_spread)}): {mark(result.wholesale_viable)}",
            f"Flip: {mark(result.flip_viable)}",
            f"BRRRR: {mark(result.brrrr_viable)}",
            f"Verdict: {'GO' if result.go else 'NO GO'}",
        ]
        return "\n".join(parts)
