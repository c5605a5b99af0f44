"""Data models for FlipAnalyzer."""

from __future__ import annotations

import math
import re
from datetime import datetime, timezone
from enum import Enum
from typing import Annotated, Any, Optional

from pydantic import BaseModel, BeforeValidator, ConfigDict, Field, PlainSerializer
from pydantic.alias_generators import to_camel

_NUMBER_PREFIX = re.compile(r"^[+-]?(\d+\.?\d*|\.\d+)([eE][+-]?\d+)?")


def parse_amount(value: Any) -> float:
    """Coerce form input to a float; anything unparseable becomes 0.

    Accepts numbers, numeric strings with "$", "," or "%" decoration, and
    strings with trailing garbage ("12abc" -> 12).
    """
    if value is None or isinstance(value, bool):
        return 0.0
    if isinstance(value, (int, float)):
        return float(value)
    if not isinstance(value, str):
        return 0.0
    cleaned = value.strip().replace("$", "").replace(",", "").replace("%", "")
    match = _NUMBER_PREFIX.match(cleaned)
    if not match:
        return 0.0
    return float(match.group(0))


def _parse_optional_amount(value: Any) -> Optional[float]:
    if value is None or (isinstance(value, str) and not value.strip()):
        return None
    return parse_amount(value)


def _parse_months(value: Any) -> int:
    number = parse_amount(value)
    return int(number) if math.isfinite(number) else 0


Amount = Annotated[float, BeforeValidator(parse_amount)]
OptionalAmount = Annotated[Optional[float], BeforeValidator(_parse_optional_amount)]
Months = Annotated[int, BeforeValidator(_parse_months)]
OptionalMonths = Annotated[
    Optional[int], BeforeValidator(lambda v: None if v is None else _parse_months(v))
]


def _finite_or_none(value: float) -> Optional[float]:
    return value if math.isfinite(value) else None


# Ratios can be inf or NaN; JSON has no spelling for those
ReportedFloat = Annotated[float, PlainSerializer(_finite_or_none, when_used="json")]


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class PropertyType(str, Enum):
    SINGLE_FAMILY = "single-family"
    TOWNHOUSE = "townhouse"
    CONDO = "condo"
    MULTI_FAMILY = "multi-family"


class DealGrade(str, Enum):
    A = "A"
    B = "B"
    C = "C"
    D = "D"


class DealStatus(str, Enum):
    LEAD = "lead"
    ANALYZED = "analyzed"
    OFFERED = "offered"
    UNDER_CONTRACT = "under-contract"
    CLOSED = "closed"
    DEAD = "dead"

    def can_transition_to(self, target: DealStatus) -> bool:
        """Open deals move freely between pipeline stages, in either direction.

        Any deal can be marked dead. A closed deal can only be marked dead,
        and a dead deal stays dead.
        """
        if target == self or target == DealStatus.DEAD:
            return True
        return self not in (DealStatus.CLOSED, DealStatus.DEAD)


class InvalidStatusTransition(ValueError):
    def __init__(self, current: DealStatus, target: DealStatus):
        super().__init__(f"Cannot move deal from {current.value} to {target.value}")
        self.current = current
        self.target = target


class BuyBox(BaseModel):
    """Reusable investor criteria that deals are graded against."""

    model_config = ConfigDict(frozen=True)

    id: Optional[str] = None
    name: str = "Default"
    zip_codes: list[str] = Field(default_factory=list)
    min_lot_size: Amount = 0.0
    max_lot_size: OptionalAmount = None
    property_types: list[PropertyType] = Field(
        default_factory=lambda: [PropertyType.SINGLE_FAMILY]
    )
    max_purchase_price: Amount = 0.0
    min_arv: OptionalAmount = None
    max_arv: OptionalAmount = None
    min_cash_on_cash: Amount = 0.0  # percentage
    max_rehab_budget: Amount = 0.0
    holding_period_months: Months = 6
    target_profit_min: Amount = 0.0
    hard_money_rate: Amount = 0.0  # percentage per year
    hard_money_points: Amount = 0.0  # percentage of loan
    selling_costs_percent: Amount = 0.0  # percentage of ARV
    is_default: bool = False


class Deal(BaseModel):
    """A candidate property moving through the acquisition pipeline."""

    model_config = ConfigDict(frozen=True)

    id: Optional[str] = None
    address: str
    zip_code: str = ""
    list_price: Amount = 0.0
    estimated_arv: Amount = 0.0
    rehab_estimate: Amount = 0.0
    lot_size: OptionalAmount = None
    square_feet: OptionalAmount = None
    bedrooms: Optional[int] = None
    bathrooms: OptionalAmount = None
    property_type: PropertyType = PropertyType.SINGLE_FAMILY
    days_on_market: Optional[int] = None
    photos: list[str] = Field(default_factory=list)
    notes: Optional[str] = None
    status: DealStatus = DealStatus.LEAD
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)
    closed_at: Optional[datetime] = None

    @property
    def street(self) -> str:
        return self.address.split(",")[0].strip()


class DealUpdate(BaseModel):
    """Partial update for a stored deal; unset fields are left alone."""

    address: Optional[str] = None
    zip_code: Optional[str] = None
    list_price: OptionalAmount = None
    estimated_arv: OptionalAmount = None
    rehab_estimate: OptionalAmount = None
    lot_size: OptionalAmount = None
    square_feet: OptionalAmount = None
    bedrooms: Optional[int] = None
    bathrooms: OptionalAmount = None
    property_type: Optional[PropertyType] = None
    days_on_market: Optional[int] = None
    photos: Optional[list[str]] = None
    notes: Optional[str] = None
    status: Optional[DealStatus] = None


class BuyBoxUpdate(BaseModel):
    name: Optional[str] = None
    zip_codes: Optional[list[str]] = None
    min_lot_size: OptionalAmount = None
    max_lot_size: OptionalAmount = None
    property_types: Optional[list[PropertyType]] = None
    max_purchase_price: OptionalAmount = None
    min_arv: OptionalAmount = None
    max_arv: OptionalAmount = None
    min_cash_on_cash: OptionalAmount = None
    max_rehab_budget: OptionalAmount = None
    holding_period_months: OptionalMonths = None
    target_profit_min: OptionalAmount = None
    hard_money_rate: OptionalAmount = None
    hard_money_points: OptionalAmount = None
    selling_costs_percent: OptionalAmount = None


class DealAnalysis(BaseModel):
    """Derived figures for a (Deal, BuyBox) pair.

    Ratios may be infinite or NaN for degenerate inputs; JSON output
    renders them as null.
    """

    model_config = ConfigDict(frozen=True)

    deal_id: str = ""
    max_offer_70_percent: ReportedFloat
    total_investment: ReportedFloat
    projected_profit: ReportedFloat
    cash_on_cash_roi: ReportedFloat  # percentage
    annualized_roi: ReportedFloat  # percentage
    holding_costs: ReportedFloat
    selling_costs: ReportedFloat
    hard_money_costs: ReportedFloat
    grade: DealGrade
    meets_buy_box: bool


class RehabTemplate(str, Enum):
    CUSTOM = "custom"
    COSMETIC = "cosmetic"
    STARTER = "starter"
    FULL_GUT = "fullGut"


class CompInput(BaseModel):
    """A comparable sale entered by hand in the quick calculator."""

    address: str = ""
    price: OptionalAmount = None  # None means the slot was left blank
    condition: str = "good"


class QuickCalcInput(BaseModel):
    address: str = ""
    purchase_price: Amount = 0.0
    arv_manual: Amount = 0.0
    zillow: Amount = 0.0
    redfin: Amount = 0.0
    realtor: Amount = 0.0
    comps: list[CompInput] = Field(default_factory=list)
    rehab: OptionalAmount = None  # falls back to the template amount
    rehab_template: RehabTemplate = RehabTemplate.CUSTOM
    ltc: OptionalAmount = None
    interest_rate: OptionalAmount = None
    hold_months: OptionalAmount = None
    buying_costs: Amount = 0.0
    commission: OptionalAmount = None
    selling_costs: Amount = 0.0


class QuickCalcResult(BaseModel):
    arv: ReportedFloat
    average_comps: ReportedFloat
    rehab: ReportedFloat
    rehab_with_contingency: ReportedFloat
    mao_70: ReportedFloat
    loan_amount: ReportedFloat
    monthly_interest: ReportedFloat
    total_interest: ReportedFloat
    selling_commission: ReportedFloat
    profit: ReportedFloat
    roi: ReportedFloat  # percentage of purchase price
    mao_50k: ReportedFloat
    max_recommended_offer: ReportedFloat
    wholesale_spread: ReportedFloat
    wholesale_viable: bool
    flip_viable: bool
    brrrr_viable: Optional[bool] = None  # listed, never evaluated
    go: bool  # flip or wholesale works


class PortfolioStats(BaseModel):
    total_deals: int = 0
    active_deals: int = 0
    closed_deals: int = 0
    total_projected_profit: ReportedFloat = 0.0
    total_actual_profit: ReportedFloat = 0.0
    avg_cash_on_cash: ReportedFloat = 0.0
    total_investment: ReportedFloat = 0.0
    grade_counts: dict[str, int] = Field(
        default_factory=lambda: {g.value: 0 for g in DealGrade}
    )


class PropertyDetails(BaseModel):
    """Listing data returned by the property-estimate lookup."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    zpid: str = ""
    address: str
    zipcode: str = ""
    price: Amount = 0.0
    bedrooms: int = 0
    bathrooms: Amount = 0.0
    living_area: Amount = 0.0
    lot_size: OptionalAmount = None
    property_type: str = ""
    photos: list[str] = Field(default_factory=list)
    zestimate: OptionalAmount = None
    days_on_market: Optional[int] = None
    description: str = ""
    year_built: Optional[int] = None


class PropertyLookupResult(BaseModel):
    success: bool
    data: Optional[PropertyDetails] = None
    error: Optional[str] = None


class SalesComp(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    address: str
    sale_price: Amount
    sale_date: str = ""
    sqft: int = 0


class SyncResult(BaseModel):
    success: bool
    error: Optional[str] = None


class BulkSyncResult(BaseModel):
    success: bool
    synced: int = 0
    failed: int = 0
    errors: list[str] = Field(default_factory=list)


class WealthSummary(BaseModel):
    net_worth: float = 0.0
    total_assets: float = 0.0
    real_estate_value: float = 0.0
    flip_deals_count: int = 0


class PreQualification(BaseModel):
    eligible: bool
    max_loan_amount: Optional[float] = None
    reason: Optional[str] = None
    ltv_ratio: Optional[float] = None


class LoanApplicationResult(BaseModel):
    success: bool
    application_id: Optional[str] = None
    error: Optional[str] = None


class WebhookEvent(str, Enum):
    ASSET_UPDATED = "asset_updated"
    ASSET_DELETED = "asset_deleted"


class WebhookPayload(BaseModel):
    event: WebhookEvent
    asset_id: str
    flip_analyzer_deal_id: Optional[str] = None
    user_id: str
