"""Configuration management for FlipAnalyzer."""

from __future__ import annotations

import tomllib
from pathlib import Path
from typing import Any

from pydantic import BaseModel
from pydantic_settings import BaseSettings

CONFIG_DIR = Path(__file__).parent.parent / "config"

_INTEGRATION_SETTINGS = {
    "rooted_wealth_url": "Rooted Wealth URL for sync",
    "rooted_wealth_api_key": "API key for Rooted Wealth integration",
    "rooted_lending_url": "Rooted Lending URL for loan applications",
    "property_api_url": "Property data API for address lookups",
    "property_api_key": "API key for property data",
}


class CalculatorConfig(BaseModel):
    # Form defaults for the standalone quick calculator
    ltc: float = 80.0  # loan-to-cost, percent
    interest_rate: float = 12.0  # percent per year
    hold_months: int = 5
    commission: float = 6.0  # percent of ARV
    comp_slots: int = 3


class BuyBoxDefaults(BaseModel):
    """Buy box used by the CLI when no stored buy box is selected."""

    name: str = "Default"
    max_purchase_price: float = 400_000.0
    min_cash_on_cash: float = 15.0
    max_rehab_budget: float = 75_000.0
    holding_period_months: int = 6
    target_profit_min: float = 30_000.0
    hard_money_rate: float = 12.0
    hard_money_points: float = 2.0
    selling_costs_percent: float = 6.0


class IntegrationsConfig(BaseModel):
    timeout_seconds: float = 15.0
    comps_radius_miles: float = 1.0


class DatabaseConfig(BaseModel):
    url: str = "sqlite:///flipanalyzer.db"


class ServerConfig(BaseModel):
    host: str = "0.0.0.0"
    port: int = 8000


class AppConfig(BaseModel):
    calculator: CalculatorConfig = CalculatorConfig()
    buy_box: BuyBoxDefaults = BuyBoxDefaults()
    integrations: IntegrationsConfig = IntegrationsConfig()
    database: DatabaseConfig = DatabaseConfig()
    server: ServerConfig = ServerConfig()


class Secrets(BaseSettings):
    """Partner endpoints and API keys, read from the environment.

    Every integration is optional; an unset URL disables it.
    """

    model_config = {"env_file": ".env", "extra": "ignore"}

    rooted_wealth_url: str = ""
    rooted_wealth_api_key: str = ""
    rooted_lending_url: str = ""
    rooted_lending_api_key: str = ""
    property_api_url: str = ""
    property_api_key: str = ""

    def missing(self) -> list[str]:
        """Describe each optional integration setting that is not configured."""
        warnings: list[str] = []
        for name, description in _INTEGRATION_SETTINGS.items():
            if not getattr(self, name).strip():
                warnings.append(f"{name.upper()} ({description})")
        return warnings

    def safe_dump(self) -> dict[str, Any]:
        """Dump settings with API keys masked."""
        data = self.model_dump()
        for key in data:
            if key.endswith("api_key"):
                data[key] = "***" if data[key] else ""
        return data


def _deep_merge(base: dict, override: dict) -> dict:
    """Recursively merge override into base."""
    result = base.copy()
    for key, value in override.items():
        if key in result and isinstance(result[key], dict) and isinstance(value, dict):
            result[key] = _deep_merge(result[key], value)
        else:
            result[key] = value
    return result


def load_config(config_path: Path | None = None) -> AppConfig:
    """Load configuration from TOML files.

    Loads default.toml first, then merges local.toml or a custom path on top.
    """
    default_path = CONFIG_DIR / "default.toml"
    data: dict[str, Any] = {}

    if default_path.exists():
        with open(default_path, "rb") as f:
            data = tomllib.load(f)

    local_path = config_path or CONFIG_DIR / "local.toml"
    if local_path.exists():
        with open(local_path, "rb") as f:
            overrides = tomllib.load(f)
        data = _deep_merge(data, overrides)

    return AppConfig(**data)


def load_secrets() -> Secrets:
    return Secrets()
