"""Tests for data models."""

import pytest
from pydantic import ValidationError

from flipanalyzer.models import (
    BuyBox,
    BuyBoxUpdate,
    CompInput,
    Deal,
    DealStatus,
    InvalidStatusTransition,
    PropertyDetails,
    PropertyType,
    SalesComp,
    parse_amount,
)


@pytest.mark.parametrize(
    "raw, expected",
    [
        (250_000, 250_000.0),
        ("250000", 250_000.0),
        ("$250,000", 250_000.0),
        ("12%", 12.0),
        ("12abc", 12.0),
        (".5", 0.5),
        ("-$1,200", -1_200.0),
        ("1e3", 1_000.0),
        ("abc", 0.0),
        ("", 0.0),
        (None, 0.0),
        (True, 0.0),
        ([1, 2], 0.0),
    ],
)
def test_parse_amount(raw, expected):
    assert parse_amount(raw) == expected


def test_deal_coerces_form_strings():
    deal = Deal(address="1 Elm St", list_price="$180,000", estimated_arv="garbage", rehab_estimate=None)
    assert deal.list_price == 180_000
    assert deal.estimated_arv == 0
    assert deal.rehab_estimate == 0
    assert deal.status == DealStatus.LEAD
    assert deal.property_type == PropertyType.SINGLE_FAMILY


def test_deal_street():
    assert Deal(address="123 Main St, Austin, TX 78701").street == "123 Main St"
    assert Deal(address="No commas").street == "No commas"


def test_deal_is_frozen():
    deal = Deal(address="1 Elm St")
    with pytest.raises(ValidationError):
        deal.list_price = 1


def test_buy_box_months_truncated():
    assert BuyBox(holding_period_months="6.7").holding_period_months == 6
    assert BuyBox(holding_period_months="").holding_period_months == 0


def test_buy_box_optional_amounts():
    buy_box = BuyBox(min_arv="", max_arv="500,000")
    assert buy_box.min_arv is None
    assert buy_box.max_arv == 500_000


def test_buy_box_update_leaves_blank_fields_unset():
    update = BuyBoxUpdate(min_cash_on_cash="", holding_period_months="9")
    assert update.min_cash_on_cash is None
    assert update.holding_period_months == 9
    assert update.max_rehab_budget is None


def test_comp_blank_vs_garbage():
    assert CompInput(price="").price is None
    assert CompInput(price="n/a").price == 0


class TestStatusTransitions:
    @pytest.mark.parametrize(
        "current, target",
        [
            (DealStatus.LEAD, DealStatus.ANALYZED),
            (DealStatus.LEAD, DealStatus.CLOSED),
            (DealStatus.ANALYZED, DealStatus.OFFERED),
            (DealStatus.OFFERED, DealStatus.UNDER_CONTRACT),
            (DealStatus.UNDER_CONTRACT, DealStatus.CLOSED),
            (DealStatus.OFFERED, DealStatus.DEAD),
            (DealStatus.OFFERED, DealStatus.ANALYZED),
            (DealStatus.UNDER_CONTRACT, DealStatus.LEAD),
            (DealStatus.CLOSED, DealStatus.DEAD),
            (DealStatus.ANALYZED, DealStatus.ANALYZED),
            (DealStatus.CLOSED, DealStatus.CLOSED),
        ],
    )
    def test_allowed(self, current, target):
        assert current.can_transition_to(target)

    @pytest.mark.parametrize(
        "current, target",
        [
            (DealStatus.CLOSED, DealStatus.LEAD),
            (DealStatus.CLOSED, DealStatus.UNDER_CONTRACT),
            (DealStatus.DEAD, DealStatus.LEAD),
            (DealStatus.DEAD, DealStatus.CLOSED),
        ],
    )
    def test_rejected(self, current, target):
        assert not current.can_transition_to(target)

    def test_error_message(self):
        err = InvalidStatusTransition(DealStatus.CLOSED, DealStatus.LEAD)
        assert str(err) == "Cannot move deal from closed to lead"
        assert isinstance(err, ValueError)


def test_property_details_accepts_camel_case():
    details = PropertyDetails(
        address="1 Elm St",
        livingArea=1_450,
        lotSize="6,000",
        yearBuilt=1978,
        daysOnMarket=12,
    )
    assert details.living_area == 1_450
    assert details.lot_size == 6_000
    assert details.model_dump(by_alias=True)["yearBuilt"] == 1978


def test_sales_comp_alias():
    comp = SalesComp(address="2 Oak St", salePrice="310000", saleDate="2025-03-01")
    assert comp.sale_price == 310_000
    assert comp.sale_date == "2025-03-01"
