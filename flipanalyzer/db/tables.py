"""SQLAlchemy table definitions."""

from __future__ import annotations

import uuid
from datetime import datetime, timezone

from sqlalchemy import (
    Column,
    DateTime,
    Float,
    Integer,
    String,
    Text,
    Boolean,
    JSON,
    create_engine,
)
from sqlalchemy.orm import DeclarativeBase, sessionmaker


def _new_id() -> str:
    return str(uuid.uuid4())


def _now() -> datetime:
    return datetime.now(timezone.utc)


class Base(DeclarativeBase):
    pass


class DealRow(Base):
    __tablename__ = "deals"

    id = Column(String(36), primary_key=True, default=_new_id)
    user_id = Column(String(100), nullable=False, index=True)
    address = Column(String(255), nullable=False)
    zip_code = Column(String(10), default="", index=True)
    list_price = Column(Float, default=0.0)
    estimated_arv = Column(Float, default=0.0)
    rehab_estimate = Column(Float, default=0.0)
    lot_size = Column(Float, nullable=True)
    square_feet = Column(Float, nullable=True)
    bedrooms = Column(Integer, nullable=True)
    bathrooms = Column(Float, nullable=True)
    property_type = Column(String(50), default="single-family")
    days_on_market = Column(Integer, nullable=True)
    photos = Column(JSON, default=list)
    notes = Column(Text, nullable=True)
    status = Column(String(20), default="lead", index=True)
    analysis = Column(JSON, nullable=True)
    synced_to_rooted_wealth = Column(Boolean, default=False)
    synced_at = Column(DateTime, nullable=True)
    last_valuation_sync = Column(DateTime, nullable=True)
    rooted_lending_application_id = Column(String(100), nullable=True)
    loan_application_date = Column(DateTime, nullable=True)
    closed_at = Column(DateTime, nullable=True)
    created_at = Column(DateTime, default=_now, index=True)
    updated_at = Column(DateTime, default=_now)


class BuyBoxRow(Base):
    __tablename__ = "buy_boxes"

    id = Column(String(36), primary_key=True, default=_new_id)
    user_id = Column(String(100), nullable=False, index=True)
    name = Column(String(255), nullable=False)
    zip_codes = Column(JSON, default=list)
    min_lot_size = Column(Float, default=0.0)
    max_lot_size = Column(Float, nullable=True)
    property_types = Column(JSON, default=list)
    max_purchase_price = Column(Float, default=0.0)
    min_arv = Column(Float, nullable=True)
    max_arv = Column(Float, nullable=True)
    min_cash_on_cash = Column(Float, default=0.0)
    max_rehab_budget = Column(Float, default=0.0)
    holding_period_months = Column(Integer, default=6)
    target_profit_min = Column(Float, default=0.0)
    hard_money_rate = Column(Float, default=0.0)
    hard_money_points = Column(Float, default=0.0)
    selling_costs_percent = Column(Float, default=0.0)
    is_default = Column(Boolean, default=False, index=True)
    created_at = Column(DateTime, default=_now, index=True)
    updated_at = Column(DateTime, default=_now)


def init_db(db_url: str = "sqlite:///flipanalyzer.db") -> sessionmaker:
    """Initialize the database and return a session factory."""
    connect_args = {"check_same_thread": False} if db_url.startswith("sqlite") else {}
    engine = create_engine(db_url, echo=False, connect_args=connect_args)
    Base.metadata.create_all(engine)
    return sessionmaker(bind=engine)
