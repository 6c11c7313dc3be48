"""Audit logging for LLM-generated queries."""

import hashlib
import json
import logging
from datetime import datetime, timezone
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Any, Optional


class QueryAuditLogger:
    """Logs every generated query run against the cellar for a security audit trail."""

    def __init__(self, config: dict = None):
        """
        Initialize audit logger.

        Args:
            config: Configuration dict with ``enabled`` and ``log_file``
        """
        self.config = config or {}
        self.enabled = self.config.get("enabled", True)
        log_file = self.config.get("log_file", "/app/logs/query_audit.log")

        if not self.enabled:
            self.logger = None
            return

        self.logger = logging.getLogger("query_audit")
        self.logger.setLevel(logging.INFO)
        self.logger.propagate = False  # Don't propagate to root logger

        if self.logger.handlers:
            return

        # Ensure log directory exists - with fallback for CI/test environments
        log_path = Path(log_file)
        try:
            log_path.parent.mkdir(parents=True, exist_ok=True)
        except (PermissionError, OSError):
            fallback_dir = Path("logs")
            fallback_dir.mkdir(parents=True, exist_ok=True)
            log_file = str(fallback_dir / "query_audit.log")

        handler = RotatingFileHandler(
            log_file,
            maxBytes=50 * 1024 * 1024,  # 50MB
            backupCount=5,
        )
        handler.setFormatter(logging.Formatter("%(message)s"))
        self.logger.addHandler(handler)

    @staticmethod
    def _query_hash(query_text: str) -> str:
        return hashlib.sha256(query_text.encode()).hexdigest()[:16]

    def log_query(
        self,
        query_text: str,
        owner_id: str,
        attempt_number: int,
        rows_returned: Optional[int] = None,
        error: Optional[str] = None,
    ) -> None:
        """
        Log one execution attempt.

        Args:
            query_text: SQL that was sent to the database
            owner_id: User the query was scoped to
            attempt_number: Position within the repair loop (1-based)
            rows_returned: Row count on success
            error: Database error message on failure
        """
        if not self.enabled or self.logger is None:
            return

        log_entry: dict[str, Any] = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "event_type": "query_execution",
            "query_hash": self._query_hash(query_text),
            "query": query_text[:1000],
            "owner_id": owner_id,
            "attempt": attempt_number,
            "success": error is None,
        }
        if rows_returned is not None:
            log_entry["rows_returned"] = rows_returned
        if error:
            log_entry["error"] = error[:500]

        self.logger.info(json.dumps(log_entry))

    def log_security_violation(
        self,
        query_text: str,
        owner_id: str,
        violation_type: str,
        details: Any,
        severity: str = "high",
    ) -> None:
        """Log a query rejected by read-only validation."""
        if not self.enabled or self.logger is None:
            return

        log_entry = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "event_type": "security_violation",
            "severity": severity,
            "violation_type": violation_type,
            "details": details,
            "owner_id": owner_id,
            "query_hash": self._query_hash(query_text),
            "query": query_text[:500],
        }

        self.logger.warning(json.dumps(log_entry, default=str))
