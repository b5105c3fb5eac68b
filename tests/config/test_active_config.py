"""
Tests for the public configuration entrypoint.

get_active_config() is the only way engines receive tax tables: it picks
the set for a store and date, validates it, and emits a
COMMERCE_CONFIG_TRACE record tying later tax calculations to the exact
tables used.
"""

import logging
from datetime import date
from pathlib import Path

import pytest
import yaml

from commerce_config import ConfigStatus, get_active_config
from commerce_engines.tax import TaxCalculator
from commerce_kernel.domain.address import Address
from commerce_kernel.domain.tax_types import TaxType
from commerce_kernel.domain.values import Money

TAX_DATE = date(2024, 7, 1)


def _write_set(sets_dir: Path, name: str, store_code: str, *, version=1,
               status="published", rates=None, effective_from="2024-01-01") -> None:
    set_dir = sets_dir / name
    set_dir.mkdir(parents=True)
    root = {
        "config_id": f"{name.upper()}-v{version}",
        "version": version,
        "status": status,
        "scope": {
            "store_code": store_code,
            "country_code": "AU",
            "currency": "AUD",
            "effective_from": effective_from,
        },
        "jurisdictions": [{"id": "au", "kind": "COUNTRY", "code": "AU", "name": "Australia"}],
        "rates": rates if rates is not None else [{
            "id": "au-gst", "jurisdiction_id": "au", "tax_type": "GST",
            "rate_percent": 10, "effective_from": "2024-01-01",
        }],
    }
    (set_dir / "root.yaml").write_text(yaml.safe_dump(root, sort_keys=False))


class TestDefaultSets:

    def test_india_retail_set(self):
        config_set = get_active_config("in-mh-retail", TAX_DATE)

        assert config_set.config_id == "IN-MH-RETAIL-2024-v1"
        assert config_set.status == ConfigStatus.PUBLISHED
        assert config_set.origin_address().state_code == "MH"

    def test_quebec_set(self):
        config_set = get_active_config("ca-qc-store", TAX_DATE)

        assert config_set.config_id == "CA-QC-STORE-2024-v1"
        assert config_set.to_configuration().rate("ca-qc-qst").is_compound

    def test_unknown_store_with_several_sets(self):
        with pytest.raises(FileNotFoundError, match="no-such-store"):
            get_active_config("no-such-store", TAX_DATE)

    def test_checksum_stable_across_calls(self):
        first = get_active_config("in-mh-retail", TAX_DATE)
        second = get_active_config("in-mh-retail", TAX_DATE)

        assert first.checksum == second.checksum


class TestSetSelection:

    def test_missing_directory(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            get_active_config("s", TAX_DATE, config_dir=tmp_path / "missing")

    def test_single_set_used_as_fallback(self, tmp_path):
        _write_set(tmp_path, "only", "other-store")

        assert get_active_config("s", TAX_DATE, config_dir=tmp_path).config_id == "ONLY-v1"

    def test_published_preferred_over_newer_draft(self, tmp_path):
        _write_set(tmp_path, "live", "s", version=1)
        _write_set(tmp_path, "next", "s", version=2, status="draft")

        assert get_active_config("s", TAX_DATE, config_dir=tmp_path).config_id == "LIVE-v1"

    def test_highest_published_version(self, tmp_path):
        _write_set(tmp_path, "old", "s", version=1)
        _write_set(tmp_path, "new", "s", version=2)

        assert get_active_config("s", TAX_DATE, config_dir=tmp_path).version == 2

    def test_exact_store_beats_wildcard(self, tmp_path):
        _write_set(tmp_path, "shared", "*", version=5)
        _write_set(tmp_path, "mine", "s", version=1)

        assert get_active_config("s", TAX_DATE, config_dir=tmp_path).config_id == "MINE-v1"

    def test_scope_dates_respected(self, tmp_path):
        _write_set(tmp_path, "current", "s", version=1)
        _write_set(tmp_path, "future", "s", version=2, effective_from="2025-01-01")

        assert get_active_config("s", TAX_DATE, config_dir=tmp_path).config_id == "CURRENT-v1"

    def test_invalid_set_rejected(self, tmp_path):
        _write_set(tmp_path, "broken", "s", rates=[{
            "id": "au-gst", "jurisdiction_id": "nz", "tax_type": "GST",
            "rate_percent": 10, "effective_from": "2024-01-01",
        }])

        with pytest.raises(ValueError, match="unknown jurisdiction 'nz'"):
            get_active_config("s", TAX_DATE, config_dir=tmp_path)


class TestConfigTrace:

    def test_trace_emitted(self, caplog):
        caplog.set_level(logging.INFO, logger="commerce_kernel")

        config_set = get_active_config("ca-qc-store", TAX_DATE)

        traces = [r for r in caplog.records if r.getMessage() == "COMMERCE_CONFIG_TRACE"]
        assert len(traces) == 1
        trace = traces[0]
        assert trace.trace_type == "COMMERCE_CONFIG_TRACE"
        assert trace.config_set_id == "CA-QC-STORE-2024-v1"
        assert trace.checksum == config_set.checksum
        assert trace.scope_business_state == "QC"
        assert trace.rate_count == len(config_set.rates)

    def test_warnings_logged(self, tmp_path, caplog):
        caplog.set_level(logging.INFO, logger="commerce_kernel")
        _write_set(tmp_path, "warn", "s", rates=[{
            "id": "au-gst", "jurisdiction_id": "au", "tax_type": "GST",
            "rate_percent": 10, "effective_from": "2024-01-01",
            "category_overrides": {"GST_FREE": 0},
        }])
        root = tmp_path / "warn" / "root.yaml"
        data = yaml.safe_load(root.read_text())
        data["categories"] = [{"code": "FOOD", "name": "Food"}]
        root.write_text(yaml.safe_dump(data, sort_keys=False))

        get_active_config("s", TAX_DATE, config_dir=tmp_path)

        warnings = [r for r in caplog.records if r.getMessage() == "config_validation_warning"]
        assert len(warnings) == 1
        assert "unknown category 'GST_FREE'" in warnings[0].warning
        assert warnings[0].levelno == logging.WARNING


class TestConfiguredCalculation:

    def test_quebec_order_end_to_end(self, make_order):
        config_set = get_active_config("ca-qc-store", TAX_DATE)
        order = make_order(
            lines=[("100.00", 1)],
            ship_to=Address(country_code="CA", state_code="QC"),
            currency="CAD",
        )

        breakdown = TaxCalculator().calculate(
            order, config_set.origin_address(), config_set.to_configuration(), TAX_DATE,
        ).raise_for_error()

        # QST 9.975% of (100 + 5 GST)
        assert breakdown.tax_by_type(TaxType.GST) == Money.of("5.00", "CAD")
        assert breakdown.total_tax == Money.of("15.47", "CAD")

    def test_india_intrastate_end_to_end(self, make_order):
        config_set = get_active_config("in-mh-retail", TAX_DATE)
        order = make_order(lines=[("1000.00", 1)], ship_to=Address(country_code="IN", state_code="MH"))

        breakdown = TaxCalculator().calculate(
            order, config_set.origin_address(), config_set.to_configuration(), TAX_DATE,
        ).raise_for_error()

        assert not breakdown.is_interstate
        assert breakdown.tax_types == frozenset({TaxType.CGST, TaxType.SGST})
