"""
Model configuration sanity for the custom bundle format
"""

import pytest

from .conftest import AUTOFILL_SANITY, failure_summary

PLATFORM = "custom"


@pytest.fixture
def walker(make_walker):
    return make_walker("custom")


class TestCustomConfig:
    def test_validate_all(self, walker):
        for report in walker.validate_all(PLATFORM):
            assert report.ok, failure_summary(report)

    def test_autofilled_custom_library(self, walker):
        report = walker.validate_one(AUTOFILL_SANITY, autofill=True)

        outcome = report.outcome("custom_autofill")
        assert outcome.match.matched == "expected_autofill"

    def test_unrecognized_models_still_pass_their_goldens(self, walker):
        report = walker.validate_one(AUTOFILL_SANITY, autofill=True)

        assert report.outcome("unsupported_platform").match.matched == "expected"
        assert report.outcome("no_artifacts").match.matched == "expected"
        assert report.outcome("no_expected").match.candidates_compared == 0

    def test_changed_golden_fails(self, walker, source_root):
        golden = source_root / AUTOFILL_SANITY / "custom_autofill" / "expected_autofill"
        golden.write_text(golden.read_text().replace("platform: custom", "platform: other"))

        report = walker.validate_one(AUTOFILL_SANITY, autofill=True)

        outcome = report.outcome("custom_autofill")
        assert not outcome.passed
        assert not report.ok
        assert outcome.match.exemplar_name in ("expected_autofill", "expected_platform_mismatch")
