"""Tests for configuration loading and validation."""

from dataclasses import fields, replace

import pytest

from planbeau.config import (
    AppConfig,
    KNOWN_PROVINCES,
    _safe_float,
    _safe_int,
    _validate_config,
    settings,
)


def with_pricing(**changes) -> AppConfig:
    config = AppConfig()
    return replace(config, pricing=replace(config.pricing, **changes))


def with_availability(**changes) -> AppConfig:
    config = AppConfig()
    return replace(config, availability=replace(config.availability, **changes))


class TestConfigValidation:
    def test_default_config_passes_validation(self):
        config = AppConfig()
        _validate_config(config)  # should not raise

    def test_defaults(self):
        assert settings.pricing.platform_fee_percent == 5
        assert settings.pricing.default_province == "Ontario"
        assert settings.availability.slot_interval_minutes == 30

    def test_pricing_settings_are_all_consumed(self):
        assert {f.name for f in fields(settings.pricing)} == {
            "platform_fee_percent",
            "processing_fee_percent",
            "processing_fee_fixed",
            "default_province",
        }

    @pytest.mark.parametrize("percent", [-1, 150])
    def test_invalid_platform_fee(self, percent):
        with pytest.raises(ValueError, match="PLATFORM_FEE_PERCENT"):
            _validate_config(with_pricing(platform_fee_percent=percent))

    def test_negative_processing_fee(self):
        with pytest.raises(ValueError, match="PROCESSING_FEE_PERCENT"):
            _validate_config(with_pricing(processing_fee_percent=-2.9))

    def test_negative_fixed_processing_fee(self):
        with pytest.raises(ValueError, match="PROCESSING_FEE_FIXED"):
            _validate_config(with_pricing(processing_fee_fixed=-0.3))

    def test_unknown_default_province(self):
        with pytest.raises(ValueError, match="DEFAULT_PROVINCE"):
            _validate_config(with_pricing(default_province="Atlantis"))

    def test_every_known_province_is_accepted(self):
        for province in KNOWN_PROVINCES:
            _validate_config(with_pricing(default_province=province))

    @pytest.mark.parametrize("interval", [0, 7, 90])
    def test_slot_interval_must_divide_hour(self, interval):
        with pytest.raises(ValueError, match="SLOT_INTERVAL_MINUTES"):
            _validate_config(with_availability(slot_interval_minutes=interval))

    def test_latest_end_within_day(self):
        with pytest.raises(ValueError, match="LATEST_END_MINUTES"):
            _validate_config(with_availability(latest_end_minutes=24 * 60))

    def test_api_timeout_positive(self):
        config = AppConfig()
        bad = replace(config, api=replace(config.api, timeout_seconds=0))
        with pytest.raises(ValueError, match="API_TIMEOUT"):
            _validate_config(bad)

    def test_recent_search_cap_positive(self):
        config = AppConfig()
        bad = replace(config, storage=replace(config.storage, max_recent_searches=0))
        with pytest.raises(ValueError, match="MAX_RECENT_SEARCHES"):
            _validate_config(bad)


class TestEnvParsing:
    def test_safe_int_parsing(self):
        assert _safe_int("NONEXISTENT_VAR_12345", "42") == 42

    def test_safe_float_parsing(self):
        assert _safe_float("NONEXISTENT_VAR_12345", "3.14") == pytest.approx(3.14)

    def test_safe_int_reads_env(self, monkeypatch):
        monkeypatch.setenv("PLANBEAU_TEST_INT", "15")
        assert _safe_int("PLANBEAU_TEST_INT", "30") == 15

    def test_safe_int_bad_value(self, monkeypatch):
        monkeypatch.setenv("PLANBEAU_TEST_INT", "thirty")
        with pytest.raises(ValueError, match="PLANBEAU_TEST_INT"):
            _safe_int("PLANBEAU_TEST_INT", "30")

    def test_safe_float_bad_value(self, monkeypatch):
        monkeypatch.setenv("PLANBEAU_TEST_FLOAT", "five percent")
        with pytest.raises(ValueError, match="PLANBEAU_TEST_FLOAT"):
            _safe_float("PLANBEAU_TEST_FLOAT", "5")
