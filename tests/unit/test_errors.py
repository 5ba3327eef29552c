"""
Unit tests for error summarizing and once-only reporting.
"""

import logging

from suivi_natation.core.errors import (
    FORBIDDEN_MESSAGE,
    TABLE_MISSING_MESSAGE,
    UNKNOWN_ACTION_MESSAGE,
    ApiError,
    ErrorReporter,
    PartialAssignmentError,
    summarize_api_error,
)


class TestSummarizeApiError:
    """Known codes and statuses get fixed French messages."""

    def test_unknown_action(self):
        summary = summarize_api_error(ApiError("bad action", code="unknown_action"))

        assert summary.message == UNKNOWN_ACTION_MESSAGE

    def test_table_missing(self):
        summary = summarize_api_error(ApiError("no table", code="table_missing", status=404))

        assert summary.message == TABLE_MISSING_MESSAGE
        assert summary.status == 404

    def test_forbidden(self):
        assert summarize_api_error(ApiError("x", status=403)).message == FORBIDDEN_MESSAGE

    def test_other_messages_are_kept(self):
        assert summarize_api_error(ApiError("quota exceeded", status=429)).message == "quota exceeded"

    def test_plain_exception(self):
        summary = summarize_api_error(RuntimeError("boom"))

        assert (summary.message, summary.code, summary.status) == ("boom", None, None)

    def test_empty_message_uses_fallback(self):
        assert summarize_api_error(RuntimeError(""), "Échec").message == "Échec"


class TestErrorReporter:
    """Each distinct failure is logged once per reporter."""

    def test_duplicates_are_logged_once(self, caplog):
        reporter = ErrorReporter()

        with caplog.at_level(logging.ERROR, logger="suivi_natation.core.errors"):
            reporter.report(ApiError("down", status=503))
            reporter.report(ApiError("down", status=503))
            reporter.report(ApiError("other", status=503))

        assert len(caplog.records) == 2

    def test_report_returns_summary(self):
        summary = ErrorReporter().report(ApiError("x", code="table_missing"))

        assert summary.message == TABLE_MISSING_MESSAGE

    def test_reset_logs_again(self, caplog):
        reporter = ErrorReporter()

        with caplog.at_level(logging.ERROR, logger="suivi_natation.core.errors"):
            reporter.report(ApiError("down"))
            reporter.reset()
            reporter.report(ApiError("down"))

        assert len(caplog.records) == 2


class TestPartialAssignmentError:

    def test_message_names_failed_groups(self):
        error = PartialAssignmentError({1: 10}, {2: RuntimeError("x"), 3: RuntimeError("y")})

        assert "1 groupe(s) OK" in str(error)
        assert "2, 3" in str(error)
