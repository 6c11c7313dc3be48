"""Security tests for the query audit trail."""

import json
from unittest.mock import patch

import pytest

from cellar_ai.services.security import QueryAuditLogger


@pytest.fixture
def audit(tmp_path):
    return QueryAuditLogger({"enabled": True, "log_file": str(tmp_path / "query_audit.log")})


class TestQueryAuditLogger:
    """Test suite for QueryAuditLogger."""

    def test_logs_successful_query(self, audit):
        with patch.object(audit.logger, "info") as info:
            audit.log_query('SELECT 1 FROM "Wine"', "user-1", 1, rows_returned=4)

        entry = json.loads(info.call_args.args[0])
        assert entry["event_type"] == "query_execution"
        assert entry["owner_id"] == "user-1"
        assert entry["attempt"] == 1
        assert entry["success"] is True
        assert entry["rows_returned"] == 4
        assert len(entry["query_hash"]) == 16

    def test_logs_failed_query(self, audit):
        with patch.object(audit.logger, "info") as info:
            audit.log_query("SELECT winery", "user-1", 2, error="no such column: winery")

        entry = json.loads(info.call_args.args[0])
        assert entry["success"] is False
        assert entry["error"] == "no such column: winery"
        assert "rows_returned" not in entry

    def test_truncates_long_queries(self, audit):
        with patch.object(audit.logger, "info") as info:
            audit.log_query("x" * 5000, "user-1", 1, rows_returned=0)

        assert len(json.loads(info.call_args.args[0])["query"]) == 1000

    def test_logs_violation_as_warning(self, audit):
        with patch.object(audit.logger, "warning") as warning:
            audit.log_security_violation(
                'DELETE FROM "Wine"', "user-1", "forbidden_keyword", {"violations": [{"type": "forbidden_keyword"}]}
            )

        entry = json.loads(warning.call_args.args[0])
        assert entry["event_type"] == "security_violation"
        assert entry["severity"] == "high"
        assert entry["violation_type"] == "forbidden_keyword"

    def test_audit_logger_does_not_propagate(self, audit):
        assert audit.logger.propagate is False

    def test_disabled_logger_is_silent(self):
        audit = QueryAuditLogger({"enabled": False})

        assert audit.logger is None
        audit.log_query("SELECT 1", "user-1", 1)
        audit.log_security_violation("SELECT 1", "user-1", "x", {})
