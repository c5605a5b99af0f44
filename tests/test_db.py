"""Tests for database repository."""

import math

import pytest

from flipanalyzer.analysis.buybox import analyze_deal
from flipanalyzer.models import DealGrade, DealStatus, InvalidStatusTransition

from conftest import make_buy_box, make_deal


def test_create_and_get_deal(repo):
    deal = repo.create_deal(make_deal(), "user-1")
    assert deal.id
    assert deal.status == DealStatus.LEAD

    fetched = repo.get_deal(deal.id, "user-1")
    assert fetched is not None
    assert fetched.address == "123 Main St, Austin, TX 78701"
    assert fetched.list_price == 200_000


def test_create_ignores_input_id(repo):
    deal = repo.create_deal(make_deal(id="mine"), "user-1")
    assert deal.id != "mine"


def test_deals_are_scoped_to_user(repo):
    deal = repo.create_deal(make_deal(), "user-1")
    assert repo.get_deal(deal.id, "user-2") is None
    assert repo.get_deals("user-2") == []
    assert repo.update_deal(deal.id, {"notes": "x"}, "user-2") is None
    assert repo.delete_deal(deal.id, "user-2") is False
    assert repo.get_deal(deal.id, "user-1") is not None


def test_get_deals_newest_first(repo):
    first = repo.create_deal(make_deal(address="1 First St"), "user-1")
    second = repo.create_deal(make_deal(address="2 Second St"), "user-1")
    assert [d.id for d in repo.get_deals("user-1")] == [second.id, first.id]


def test_update_deal_skips_none_values(repo):
    deal = repo.create_deal(make_deal(notes="keep me"), "user-1")
    updated = repo.update_deal(deal.id, {"list_price": 190_000, "notes": None}, "user-1")
    assert updated.list_price == 190_000
    assert updated.notes == "keep me"


def test_update_deal_forward_transition(repo):
    deal = repo.create_deal(make_deal(), "user-1")
    updated = repo.update_deal(deal.id, {"status": DealStatus.OFFERED}, "user-1")
    assert updated.status == DealStatus.OFFERED
    assert updated.closed_at is None


def test_closing_sets_closed_at(repo):
    deal = repo.create_deal(make_deal(), "user-1")
    closed = repo.update_deal(deal.id, {"status": "closed"}, "user-1")
    assert closed.status == DealStatus.CLOSED
    assert closed.closed_at is not None


def test_backward_move_for_open_deal(repo):
    deal = repo.create_deal(make_deal(status=DealStatus.OFFERED), "user-1")
    updated = repo.update_deal(deal.id, {"status": DealStatus.ANALYZED}, "user-1")
    assert updated.status == DealStatus.ANALYZED


def test_closed_deal_can_only_die(repo):
    deal = repo.create_deal(make_deal(status=DealStatus.CLOSED), "user-1")
    with pytest.raises(InvalidStatusTransition):
        repo.update_deal(deal.id, {"status": DealStatus.LEAD}, "user-1")
    assert repo.get_deal(deal.id, "user-1").status == DealStatus.CLOSED

    dead = repo.update_deal(deal.id, {"status": DealStatus.DEAD}, "user-1")
    assert dead.status == DealStatus.DEAD
    assert dead.closed_at is not None


def test_dead_is_terminal(repo):
    deal = repo.create_deal(make_deal(), "user-1")
    repo.update_deal(deal.id, {"status": DealStatus.DEAD}, "user-1")
    with pytest.raises(InvalidStatusTransition):
        repo.update_deal(deal.id, {"status": DealStatus.ANALYZED}, "user-1")


def test_delete_deal(repo):
    deal = repo.create_deal(make_deal(), "user-1")
    assert repo.delete_deal(deal.id, "user-1") is True
    assert repo.get_deal(deal.id, "user-1") is None
    assert repo.delete_deal(deal.id, "user-1") is False


def test_save_analysis_promotes_lead(repo):
    deal = repo.create_deal(make_deal(), "user-1")
    analysis = analyze_deal(deal, make_buy_box())
    saved = repo.save_deal_analysis(deal.id, analysis, "user-1")
    assert saved.status == DealStatus.ANALYZED

    stored = repo.get_analysis(deal.id, "user-1")
    assert stored == analysis
    assert stored.grade == DealGrade.A


def test_save_analysis_keeps_later_status(repo):
    deal = repo.create_deal(make_deal(status=DealStatus.OFFERED), "user-1")
    saved = repo.save_deal_analysis(deal.id, analyze_deal(deal, make_buy_box()), "user-1")
    assert saved.status == DealStatus.OFFERED


def test_non_finite_analysis_round_trips(repo):
    deal = repo.create_deal(make_deal(list_price=0, rehab_estimate=0, estimated_arv=0), "user-1")
    analysis = analyze_deal(deal, make_buy_box(holding_period_months=0))
    repo.save_deal_analysis(deal.id, analysis, "user-1")

    stored = repo.get_analysis(deal.id, "user-1")
    assert math.isnan(stored.cash_on_cash_roi)
    assert stored.grade == DealGrade.D


def test_get_analyses_only_analyzed(repo):
    analyzed = repo.create_deal(make_deal(), "user-1")
    repo.create_deal(make_deal(address="9 Other St"), "user-1")
    repo.save_deal_analysis(analyzed.id, analyze_deal(analyzed, make_buy_box()), "user-1")

    analyses = repo.get_analyses("user-1")
    assert list(analyses) == [analyzed.id]
    assert repo.get_analyses("user-2") == {}


def test_unsynced_closed_deals(repo):
    closed = repo.create_deal(make_deal(status=DealStatus.CLOSED), "user-1")
    repo.create_deal(make_deal(), "user-1")
    assert [d.id for d in repo.get_unsynced_closed_deals("user-1")] == [closed.id]

    repo.mark_synced(closed.id, "user-1")
    assert repo.is_synced(closed.id, "user-1")
    assert repo.get_unsynced_closed_deals("user-1") == []


def test_touch_valuation_sync(repo):
    deal = repo.create_deal(make_deal(), "user-1")
    assert repo.touch_valuation_sync(deal.id, "user-1") is True
    assert repo.touch_valuation_sync(deal.id, "user-2") is False


class TestBuyBoxes:
    def test_create_and_get(self, repo):
        buy_box = repo.create_buy_box(make_buy_box(), "user-1")
        assert buy_box.id
        fetched = repo.get_buy_box(buy_box.id, "user-1")
        assert fetched.zip_codes == ["78701"]
        assert fetched.hard_money_rate == 12
        assert repo.get_buy_box(buy_box.id, "user-2") is None

    def test_default_falls_back_to_newest(self, repo):
        assert repo.get_default_buy_box("user-1") is None
        repo.create_buy_box(make_buy_box(name="Older"), "user-1")
        newer = repo.create_buy_box(make_buy_box(name="Newer"), "user-1")
        assert repo.get_default_buy_box("user-1").id == newer.id

    def test_flagged_default_wins(self, repo):
        flagged = repo.create_buy_box(make_buy_box(name="Main", is_default=True), "user-1")
        repo.create_buy_box(make_buy_box(name="Newer"), "user-1")
        assert repo.get_default_buy_box("user-1").id == flagged.id

    def test_only_one_default(self, repo):
        first = repo.create_buy_box(make_buy_box(name="First", is_default=True), "user-1")
        second = repo.create_buy_box(make_buy_box(name="Second", is_default=True), "user-1")
        assert repo.get_buy_box(first.id, "user-1").is_default is False
        assert repo.get_default_buy_box("user-1").id == second.id

        repo.set_default_buy_box(first.id, "user-1")
        assert repo.get_buy_box(second.id, "user-1").is_default is False
        assert repo.get_default_buy_box("user-1").id == first.id

    def test_default_is_per_user(self, repo):
        mine = repo.create_buy_box(make_buy_box(is_default=True), "user-1")
        repo.create_buy_box(make_buy_box(is_default=True), "user-2")
        assert repo.get_buy_box(mine.id, "user-1").is_default is True

    def test_update_and_delete(self, repo):
        buy_box = repo.create_buy_box(make_buy_box(), "user-1")
        updated = repo.update_buy_box(
            buy_box.id, {"min_cash_on_cash": 30, "name": None}, "user-1"
        )
        assert updated.min_cash_on_cash == 30
        assert updated.name == "Austin flips"

        assert repo.delete_buy_box(buy_box.id, "user-1") is True
        assert repo.get_buy_boxes("user-1") == []
