"""Deal analysis: buy-box grading, the quick calculator and portfolio stats."""

from flipanalyzer.analysis.buybox import analyze_deal, grade_for_roi, meets_buy_box
from flipanalyzer.analysis.calculator import QuickCalculator, resolve_arv
from flipanalyzer.analysis.portfolio import calculate_portfolio_stats
