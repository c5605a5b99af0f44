"""Tests for configuration loading."""

from flipanalyzer.config import AppConfig, Secrets, load_config


def test_load_default_config():
    cfg = load_config()
    assert isinstance(cfg, AppConfig)
    assert cfg.calculator.ltc == 80
    assert cfg.calculator.hold_months == 5


def test_config_has_all_sections():
    cfg = load_config()
    assert cfg.buy_box.min_cash_on_cash > 0
    assert cfg.buy_box.holding_period_months > 0
    assert cfg.buy_box.selling_costs_percent > 0
    assert cfg.integrations.timeout_seconds > 0
    assert cfg.database.url
    assert cfg.server.port > 0


def test_config_deep_merge():
    from flipanalyzer.config import _deep_merge

    base = {"a": {"b": 1, "c": 2}, "d": 3}
    override = {"a": {"b": 10}, "e": 5}
    result = _deep_merge(base, override)
    assert result == {"a": {"b": 10, "c": 2}, "d": 3, "e": 5}


def test_custom_config_overrides_defaults(tmp_path):
    custom = tmp_path / "custom.toml"
    custom.write_text("[buy_box]\nhard_money_rate = 10.5\n\n[database]\nurl = \"sqlite:///other.db\"\n")
    cfg = load_config(custom)
    assert cfg.buy_box.hard_money_rate == 10.5
    assert cfg.buy_box.hard_money_points == 2.0
    assert cfg.database.url == "sqlite:///other.db"


def test_missing_config_path_uses_defaults(tmp_path):
    cfg = load_config(tmp_path / "nope.toml")
    assert cfg.calculator.commission == 6.0


class TestSecrets:
    def _secrets(self, **fields) -> Secrets:
        values = {
            "rooted_wealth_url": "",
            "rooted_wealth_api_key": "",
            "rooted_lending_url": "",
            "rooted_lending_api_key": "",
            "property_api_url": "",
            "property_api_key": "",
        }
        values.update(fields)
        return Secrets(_env_file=None, **values)

    def test_missing_lists_unset_integrations(self):
        missing = self._secrets().missing()
        assert len(missing) == 5
        assert any(m.startswith("ROOTED_WEALTH_URL") for m in missing)

    def test_missing_empty_when_configured(self):
        secrets = self._secrets(
            rooted_wealth_url="https://wealth.example.com",
            rooted_wealth_api_key="k1",
            rooted_lending_url="https://lending.example.com",
            property_api_url="https://props.example.com",
            property_api_key="k2",
        )
        assert secrets.missing() == []

    def test_safe_dump_masks_keys(self):
        data = self._secrets(rooted_wealth_url="https://w", rooted_wealth_api_key="secret").safe_dump()
        assert data["rooted_wealth_api_key"] == "***"
        assert data["property_api_key"] == ""
        assert data["rooted_wealth_url"] == "https://w"
