from __future__ import annotations

import json
import logging
import sys

from raindrop_sync.core.logging_utils import EnhancedJsonFormatter, generate_correlation_id


def _record(**extra) -> logging.LogRecord:
    record = logging.LogRecord("raindrop_sync.test", logging.INFO, __file__, 10, "folder_reconciled", (), None)
    record.__dict__.update(extra)
    return record


def test_formatter_groups_counters_and_correlation_id():
    formatter = EnhancedJsonFormatter(include_location=False)

    payload = json.loads(
        formatter.format(
            _record(correlation_id="abc123", created_local=2, uploaded=1, folder_id="7")
        )
    )

    assert payload["message"] == "folder_reconciled"
    assert payload["level"] == "INFO"
    assert payload["correlation_id"] == "abc123"
    assert payload["counters"] == {"created_local": 2, "uploaded": 1}
    assert payload["extra"] == {"folder_id": "7"}
    assert "module" not in payload


def test_formatter_serializes_exceptions_and_sets():
    formatter = EnhancedJsonFormatter()
    try:
        raise ValueError("bad input")
    except ValueError:
        record = logging.LogRecord(
            "raindrop_sync.test", logging.ERROR, __file__, 20, "failed", (), sys.exc_info()
        )
    record.ids = {3, 1}

    payload = json.loads(formatter.format(record))

    assert payload["exception"]["type"] == "ValueError"
    assert payload["exception"]["message"] == "bad input"
    assert payload["extra"]["ids"] == "[1, 3]"


def test_correlation_ids_are_short_and_unique():
    ids = {generate_correlation_id() for _ in range(100)}

    assert len(ids) == 100
    assert all(len(cid) == 12 for cid in ids)
