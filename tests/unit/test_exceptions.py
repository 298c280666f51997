"""
Unit Tests for Exception Classification
=======================================

Test Coverage
-------------
- Severity and retryability defaults on both exception hierarchies
- Classification of plain exceptions
- Serialization for structured logs
"""

import pytest

from ascent.core.exceptions import (
    ConfigurationError,
    ErrorSeverity,
    RankIntegrityError,
    get_error_severity,
    is_transient_error,
    should_alert,
)
from ascent.modules.shared.exceptions import NotFoundError, ValidationError


@pytest.mark.unit
class TestClassification:
    def test_rank_integrity_is_critical(self):
        exc = RankIntegrityError("Z", source="domain_levels.rank")

        assert get_error_severity(exc) is ErrorSeverity.CRITICAL
        assert should_alert(exc) is True
        assert is_transient_error(exc) is False
        assert "domain_levels.rank" in str(exc)

    def test_validation_error_does_not_alert(self):
        exc = ValidationError("amount", "amount must be a positive integer")

        assert should_alert(exc) is False

    def test_not_found_does_not_alert(self):
        assert should_alert(NotFoundError("Submission", 7)) is False

    def test_plain_exception_defaults_to_error(self):
        exc = RuntimeError("boom")

        assert get_error_severity(exc) is ErrorSeverity.ERROR
        assert should_alert(exc) is True
        assert is_transient_error(exc) is False


@pytest.mark.unit
class TestSerialization:
    def test_configuration_error_to_dict(self):
        # Act
        payload = ConfigurationError("REVIEWER_MIN_AGE", "missing").to_dict()

        # Assert
        assert payload["error_code"] == "CONFIG_ERROR"
        assert payload["severity"] == "critical"
        assert payload["details"]["config_key"] == "REVIEWER_MIN_AGE"
        assert payload["is_retryable"] is False
