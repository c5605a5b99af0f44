"""Database repository for storing and retrieving deals and buy boxes.

Every lookup is scoped to a user; a record owned by someone else is
treated exactly like a missing one.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from enum import Enum
from typing import Any

from sqlalchemy.orm import Session

from flipanalyzer.db.tables import BuyBoxRow, DealRow, init_db
from flipanalyzer.models import (
    BuyBox,
    Deal,
    DealAnalysis,
    DealStatus,
    InvalidStatusTransition,
)

logger = logging.getLogger(__name__)

_DEAL_FIELDS = {
    "address",
    "zip_code",
    "list_price",
    "estimated_arv",
    "rehab_estimate",
    "lot_size",
    "square_feet",
    "bedrooms",
    "bathrooms",
    "property_type",
    "days_on_market",
    "photos",
    "notes",
    "status",
}

_BUY_BOX_FIELDS = {
    "name",
    "zip_codes",
    "min_lot_size",
    "max_lot_size",
    "property_types",
    "max_purchase_price",
    "min_arv",
    "max_arv",
    "min_cash_on_cash",
    "max_rehab_budget",
    "holding_period_months",
    "target_profit_min",
    "hard_money_rate",
    "hard_money_points",
    "selling_costs_percent",
}


def _now() -> datetime:
    return datetime.now(timezone.utc)


def _plain(value: Any) -> Any:
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, list):
        return [_plain(v) for v in value]
    return value


def _deal_from_row(row: DealRow) -> Deal:
    return Deal(
        id=row.id,
        address=row.address,
        zip_code=row.zip_code or "",
        list_price=row.list_price,
        estimated_arv=row.estimated_arv,
        rehab_estimate=row.rehab_estimate,
        lot_size=row.lot_size,
        square_feet=row.square_feet,
        bedrooms=row.bedrooms,
        bathrooms=row.bathrooms,
        property_type=row.property_type,
        days_on_market=row.days_on_market,
        photos=row.photos or [],
        notes=row.notes,
        status=row.status,
        created_at=row.created_at,
        updated_at=row.updated_at,
        closed_at=row.closed_at,
    )


def _buy_box_from_row(row: BuyBoxRow) -> BuyBox:
    data = {field: getattr(row, field) for field in _BUY_BOX_FIELDS}
    data["zip_codes"] = row.zip_codes or []
    data["property_types"] = row.property_types or []
    return BuyBox(id=row.id, is_default=bool(row.is_default), **data)


def _analysis_from_json(data: dict | None) -> DealAnalysis | None:
    if not data:
        return None
    return DealAnalysis(**data)


class Repository:
    """Handles all database operations."""

    def __init__(self, db_url: str = "sqlite:///flipanalyzer.db"):
        self._session_factory = init_db(db_url)

    def _session(self) -> Session:
        return self._session_factory()

    @staticmethod
    def _owned_deal(session: Session, deal_id: str, user_id: str) -> DealRow | None:
        return session.query(DealRow).filter_by(id=deal_id, user_id=user_id).first()

    @staticmethod
    def _owned_buy_box(session: Session, buy_box_id: str, user_id: str) -> BuyBoxRow | None:
        return session.query(BuyBoxRow).filter_by(id=buy_box_id, user_id=user_id).first()

    # -- deals -------------------------------------------------------------

    def create_deal(self, deal: Deal, user_id: str) -> Deal:
        """Store a new deal for a user. Any id on the input is ignored."""
        with self._session() as session:
            values = {field: _plain(getattr(deal, field)) for field in _DEAL_FIELDS}
            row = DealRow(user_id=user_id, **values)
            if deal.status == DealStatus.CLOSED:
                row.closed_at = deal.closed_at or _now()
            session.add(row)
            session.commit()
            logger.debug("Created deal %s for user %s", row.id, user_id)
            return _deal_from_row(row)

    def get_deals(self, user_id: str) -> list[Deal]:
        """All of a user's deals, newest first."""
        with self._session() as session:
            rows = (
                session.query(DealRow)
                .filter_by(user_id=user_id)
                .order_by(DealRow.created_at.desc())
                .all()
            )
            return [_deal_from_row(r) for r in rows]

    def get_deal(self, deal_id: str, user_id: str) -> Deal | None:
        with self._session() as session:
            row = self._owned_deal(session, deal_id, user_id)
            return _deal_from_row(row) if row else None

    def update_deal(self, deal_id: str, updates: dict[str, Any], user_id: str) -> Deal | None:
        """Apply a partial update. Keys with a None value are skipped.

        Raises:
            InvalidStatusTransition: if the update revives a dead deal or
                moves a closed deal anywhere but dead.
        """
        with self._session() as session:
            row = self._owned_deal(session, deal_id, user_id)
            if row is None:
                return None

            if updates.get("status") is not None:
                current = DealStatus(row.status)
                target = DealStatus(_plain(updates["status"]))
                if not current.can_transition_to(target):
                    raise InvalidStatusTransition(current, target)
                if target == DealStatus.CLOSED and row.closed_at is None:
                    row.closed_at = _now()

            for key, value in updates.items():
                if key in _DEAL_FIELDS and value is not None:
                    setattr(row, key, _plain(value))
            row.updated_at = _now()
            session.commit()
            return _deal_from_row(row)

    def delete_deal(self, deal_id: str, user_id: str) -> bool:
        with self._session() as session:
            row = self._owned_deal(session, deal_id, user_id)
            if row is None:
                return False
            session.delete(row)
            session.commit()
            return True

    def save_deal_analysis(
        self, deal_id: str, analysis: DealAnalysis, user_id: str
    ) -> Deal | None:
        """Store an analysis on the deal; a lead becomes analyzed."""
        with self._session() as session:
            row = self._owned_deal(session, deal_id, user_id)
            if row is None:
                return None
            row.analysis = {**analysis.model_dump(), "grade": analysis.grade.value}
            if row.status == DealStatus.LEAD.value:
                row.status = DealStatus.ANALYZED.value
            row.updated_at = _now()
            session.commit()
            return _deal_from_row(row)

    def get_analysis(self, deal_id: str, user_id: str) -> DealAnalysis | None:
        with self._session() as session:
            row = self._owned_deal(session, deal_id, user_id)
            return _analysis_from_json(row.analysis) if row else None

    def get_analyses(self, user_id: str) -> dict[str, DealAnalysis]:
        """Stored analyses for all of a user's deals, keyed by deal id."""
        with self._session() as session:
            rows = (
                session.query(DealRow)
                .filter(DealRow.user_id == user_id, DealRow.analysis.isnot(None))
                .all()
            )
            result: dict[str, DealAnalysis] = {}
            for row in rows:
                analysis = _analysis_from_json(row.analysis)
                if analysis is not None:
                    result[row.id] = analysis
            return result

    # -- partner sync bookkeeping -----------------------------------------

    def get_unsynced_closed_deals(self, user_id: str) -> list[Deal]:
        with self._session() as session:
            rows = (
                session.query(DealRow)
                .filter(
                    DealRow.user_id == user_id,
                    DealRow.status == DealStatus.CLOSED.value,
                    DealRow.synced_to_rooted_wealth.isnot(True),
                )
                .order_by(DealRow.created_at.asc())
                .all()
            )
            return [_deal_from_row(r) for r in rows]

    def is_synced(self, deal_id: str, user_id: str) -> bool:
        with self._session() as session:
            row = self._owned_deal(session, deal_id, user_id)
            return bool(row and row.synced_to_rooted_wealth)

    def mark_synced(self, deal_id: str, user_id: str) -> None:
        with self._session() as session:
            row = self._owned_deal(session, deal_id, user_id)
            if row:
                row.synced_to_rooted_wealth = True
                row.synced_at = _now()
                session.commit()

    def touch_valuation_sync(self, deal_id: str, user_id: str) -> bool:
        with self._session() as session:
            row = self._owned_deal(session, deal_id, user_id)
            if row is None:
                return False
            row.last_valuation_sync = _now()
            session.commit()
            return True

    def record_loan_application(self, deal_id: str, user_id: str, application_id: str) -> None:
        with self._session() as session:
            row = self._owned_deal(session, deal_id, user_id)
            if row:
                row.rooted_lending_application_id = application_id
                row.loan_application_date = _now()
                session.commit()

    # -- buy boxes --------------------------------------------------------

    def create_buy_box(self, buy_box: BuyBox, user_id: str) -> BuyBox:
        with self._session() as session:
            if buy_box.is_default:
                self._clear_default(session, user_id)
            values = {field: _plain(getattr(buy_box, field)) for field in _BUY_BOX_FIELDS}
            row = BuyBoxRow(user_id=user_id, is_default=buy_box.is_default, **values)
            session.add(row)
            session.commit()
            return _buy_box_from_row(row)

    def get_buy_boxes(self, user_id: str) -> list[BuyBox]:
        """All of a user's buy boxes, newest first."""
        with self._session() as session:
            rows = (
                session.query(BuyBoxRow)
                .filter_by(user_id=user_id)
                .order_by(BuyBoxRow.created_at.desc())
                .all()
            )
            return [_buy_box_from_row(r) for r in rows]

    def get_buy_box(self, buy_box_id: str, user_id: str) -> BuyBox | None:
        with self._session() as session:
            row = self._owned_buy_box(session, buy_box_id, user_id)
            return _buy_box_from_row(row) if row else None

    def get_default_buy_box(self, user_id: str) -> BuyBox | None:
        """The flagged default, else the newest buy box, else None."""
        with self._session() as session:
            row = session.query(BuyBoxRow).filter_by(user_id=user_id, is_default=True).first()
            if row is None:
                row = (
                    session.query(BuyBoxRow)
                    .filter_by(user_id=user_id)
                    .order_by(BuyBoxRow.created_at.desc())
                    .first()
                )
            return _buy_box_from_row(row) if row else None

    def update_buy_box(
        self, buy_box_id: str, updates: dict[str, Any], user_id: str
    ) -> BuyBox | None:
        with self._session() as session:
            row = self._owned_buy_box(session, buy_box_id, user_id)
            if row is None:
                return None
            for key, value in updates.items():
                if key in _BUY_BOX_FIELDS and value is not None:
                    setattr(row, key, _plain(value))
            row.updated_at = _now()
            session.commit()
            return _buy_box_from_row(row)

    def delete_buy_box(self, buy_box_id: str, user_id: str) -> bool:
        with self._session() as session:
            row = self._owned_buy_box(session, buy_box_id, user_id)
            if row is None:
                return False
            session.delete(row)
            session.commit()
            return True

    def set_default_buy_box(self, buy_box_id: str, user_id: str) -> BuyBox | None:
        """Flag a buy box as the user's default, clearing the previous one."""
        with self._session() as session:
            row = self._owned_buy_box(session, buy_box_id, user_id)
            if row is None:
                return None
            self._clear_default(session, user_id)
            row.is_default = True
            row.updated_at = _now()
            session.commit()
            return _buy_box_from_row(row)

    @staticmethod
    def _clear_default(session: Session, user_id: str) -> None:
        session.query(BuyBoxRow).filter_by(user_id=user_id, is_default=True).update(
            {"is_default": False}
        )
