"""
Tests for the validation pipeline, report and settings.
"""

import io
import logging
import sys
from decimal import Decimal

import pytest
from loguru import logger
from rich.console import Console

from zugferd_rules import (
    ConformanceTier,
    InvoiceValidator,
    SettingsError,
    ValidationSettings,
    ViolationReport,
    load_settings,
    setup_logging,
    validate_invoice,
)


class TestInvoiceValidator:
    """Tests for running completeness and business rules together."""

    def test_clean_invoice(self, complete_invoice):
        report = validate_invoice(complete_invoice.snapshot(), tier=ConformanceTier.EN16931)

        assert report.completeness_checked
        assert report.is_complete
        assert report.is_clean
        assert report.violations == []
        assert 'BR-CO-17' in report.rules_evaluated
        assert 'BR-CO-16' in report.rules_pending

    def test_no_tier_skips_completeness(self, minimum_invoice):
        report = validate_invoice(minimum_invoice.snapshot())
        assert not report.completeness_checked
        assert report.tier is None
        assert report.is_complete

    def test_incomplete_invoice_still_evaluates_rules(self, minimum_invoice):
        report = InvoiceValidator().validate(minimum_invoice.snapshot(), tier='basic')

        assert report.tier is ConformanceTier.BASIC
        assert not report.is_complete
        assert "No included supply chain trade line items set" in report.missing_fields
        assert report.rule_ids == ['BR-12', 'BR-CO-10', 'BR-CO-13', 'BR-CO-14', 'BR-CO-17']

    def test_violations_do_not_affect_completeness(self, complete_invoice):
        complete_invoice.set_grand_total_amount('120.50')
        report = validate_invoice(complete_invoice.snapshot(), tier=ConformanceTier.EXTENDED)

        assert report.is_complete
        assert report.has_violations
        assert not report.is_clean
        assert len(report.violations_for('BR-CO-15')) == 1

    def test_default_tier_from_settings(self, minimum_invoice):
        settings = ValidationSettings(default_tier='basic wl')
        report = InvoiceValidator(settings).validate(minimum_invoice.snapshot())
        assert report.tier is ConformanceTier.BASIC_WL
        assert not report.is_complete

    def test_explicit_tier_overrides_default(self, minimum_invoice):
        settings = ValidationSettings(default_tier='extended')
        report = InvoiceValidator(settings).validate(minimum_invoice.snapshot(), tier='minimum')
        assert report.tier is ConformanceTier.MINIMUM
        assert report.is_complete

    def test_disabled_rules(self, minimum_invoice):
        settings = ValidationSettings(disabled_rules=['br-12', 'BR-CO-10'])
        report = InvoiceValidator(settings).validate(minimum_invoice.snapshot())
        assert report.rule_ids == ['BR-CO-13', 'BR-CO-14', 'BR-CO-17']
        assert 'BR-12' not in report.rules_evaluated

    def test_unknown_tier(self, complete_invoice):
        with pytest.raises(ValueError):
            validate_invoice(complete_invoice.snapshot(), tier='platinum')


class TestViolationReport:
    """Tests for report serialization and rendering."""

    def test_to_dict(self, minimum_invoice):
        report = validate_invoice(minimum_invoice.snapshot(), tier='basicwl')
        data = report.to_dict()

        assert data['tier'] == 'basicwl'
        assert data['is_complete'] is False
        assert data['is_clean'] is False
        assert "Applicable trade tax not set" in data['missing_fields']
        assert data['violation_count'] == len(data['violations'])
        assert data['violations'][0]['rule_id'] == 'BR-12'

    def test_empty_report(self):
        report = ViolationReport()
        assert report.is_clean
        assert report.missing_fields == []
        assert report.to_dict()['tier'] is None

    def test_render_violations(self, complete_invoice):
        complete_invoice.set_grand_total_amount('120.50')
        report = validate_invoice(complete_invoice.snapshot(), tier='en16931')

        console = Console(record=True, width=200)
        report.render(console)
        output = console.export_text()

        assert "Complete for EN 16931" in output
        assert "Business Rule Violations" in output
        assert "BR-CO-15" in output

    def test_render_clean(self, complete_invoice):
        report = validate_invoice(complete_invoice.snapshot())

        console = Console(record=True, width=200)
        report.render(console)
        output = console.export_text()

        assert "No business rule violations" in output
        assert "8 rules evaluated" in output

    def test_render_missing_fields(self, minimum_invoice):
        report = validate_invoice(minimum_invoice.snapshot(), tier='basic')

        console = Console(record=True, width=200)
        report.render(console)
        output = console.export_text()

        assert "Incomplete for BASIC" in output
        assert "- Applicable trade tax not set" in output


class TestSettings:
    """Tests for settings validation and loading."""

    def test_defaults(self):
        settings = ValidationSettings()
        assert settings.tolerance == Decimal('0.01')
        assert settings.tier is None
        assert settings.disabled_rules == []

    def test_tier_normalized(self):
        settings = ValidationSettings(default_tier='Basic WL')
        assert settings.default_tier == 'basicwl'
        assert settings.tier is ConformanceTier.BASIC_WL

    def test_invalid_tier(self):
        with pytest.raises(ValueError):
            ValidationSettings(default_tier='gold')

    def test_negative_tolerance(self):
        with pytest.raises(ValueError):
            ValidationSettings(tolerance='-0.01')

    def test_load_settings(self, tmp_path):
        path = tmp_path / 'settings.yaml'
        path.write_text(
            'tolerance: "0.05"\n'
            'default_tier: xrechnung\n'
            'disabled_rules:\n'
            '  - br-co-17\n'
        )
        settings = load_settings(path)

        assert settings.tolerance == Decimal('0.05')
        assert settings.tier is ConformanceTier.XRECHNUNG
        assert settings.disabled_rules == ['BR-CO-17']

    def test_relative_catalogue_path(self, tmp_path):
        path = tmp_path / 'settings.yaml'
        path.write_text('catalogue_path: rules/custom.yaml\n')
        settings = load_settings(path)
        assert settings.catalogue_path == tmp_path / 'rules' / 'custom.yaml'

    def test_load_invalid_settings(self, tmp_path):
        path = tmp_path / 'settings.yaml'
        path.write_text('default_tier: gold\n')
        with pytest.raises(SettingsError, match='Invalid settings'):
            load_settings(path)

    def test_load_non_mapping(self, tmp_path):
        path = tmp_path / 'settings.yaml'
        path.write_text('- just\n- a list\n')
        with pytest.raises(SettingsError, match='must contain a mapping'):
            load_settings(path)

    def test_load_missing_file(self, tmp_path):
        with pytest.raises(SettingsError, match='Failed to load settings'):
            load_settings(tmp_path / 'absent.yaml')

    def test_custom_catalogue_through_settings(self, tmp_path, complete_invoice):
        catalogue = tmp_path / 'rules.yaml'
        catalogue.write_text(
            "rules:\n"
            "  - {id: BR-12, text: Line total present., status: implemented}\n"
            "  - {id: BR-13, text: Tax basis present., status: implemented}\n"
            "  - {id: BR-14, text: Grand total present., status: implemented}\n"
            "  - {id: BR-CO-10, text: Lines., status: implemented}\n"
            "  - {id: BR-CO-13, text: Tax basis., status: implemented}\n"
            "  - {id: BR-CO-14, text: VAT total., status: implemented}\n"
            "  - {id: BR-CO-15, text: Grand total., status: implemented}\n"
            "  - {id: BR-CO-17, text: VAT category., status: implemented}\n"
        )
        settings_path = tmp_path / 'settings.yaml'
        settings_path.write_text('catalogue_path: rules.yaml\n')

        complete_invoice.set_grand_total_amount('120.50')
        report = InvoiceValidator(load_settings(settings_path)).validate(
            complete_invoice.snapshot()
        )
        assert report.rules_pending == []
        assert report.violations[0].rule_text == 'Grand total.'


class TestLogging:
    """Tests for routing package logging through loguru."""

    def teardown_method(self):
        logger.remove()
        logger.add(sys.stderr)
        package_logger = logging.getLogger('zugferd_rules')
        for handler in list(package_logger.handlers):
            package_logger.removeHandler(handler)
        package_logger.setLevel(logging.NOTSET)
        package_logger.propagate = True

    def test_standard_library_records_reach_loguru(self, tmp_path):
        console = io.StringIO()
        log_file = tmp_path / 'validation.log'
        setup_logging(log_file=log_file, sink=console)

        InvoiceValidator(ValidationSettings(disabled_rules=['BR-CO-10']))
        logger.remove()

        output = console.getvalue()
        assert "Business rule BR-CO-10 disabled by configuration" in output
        assert "rule definitions" in output

        written = log_file.read_text()
        assert "zugferd_rules.validation.business_rules | Business rule BR-CO-10 disabled" in written

    def test_repeated_setup_keeps_one_handler(self):
        setup_logging(sink=io.StringIO())
        setup_logging(sink=io.StringIO())

        handlers = logging.getLogger('zugferd_rules').handlers
        assert len(handlers) == 1
