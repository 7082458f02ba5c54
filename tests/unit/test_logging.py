from __future__ import annotations

import json
import logging

from record_store.utils.logging import _json_formatter, configure_logging

EXPECTED_MUTATIONS = 2
EXPECTED_BATCH_SIZE = 1000


def _record() -> logging.LogRecord:
    return logging.LogRecord(
        name="test.logger",
        level=logging.INFO,
        pathname=__file__,
        lineno=1,
        msg="hello",
        args=(),
        exc_info=None,
    )


def test_json_formatter_promotes_standard_extra_fields() -> None:
    record = _record()
    record.mutations = EXPECTED_MUTATIONS
    record.tx_id = "abc123"

    payload = json.loads(_json_formatter(record))

    assert payload["level"] == "INFO"
    assert payload["logger"] == "test.logger"
    assert payload["message"] == "hello"
    assert payload["mutations"] == EXPECTED_MUTATIONS
    assert payload["tx_id"] == "abc123"
    assert "pathname" not in payload


def test_json_formatter_supports_legacy_nested_extra_field() -> None:
    record = _record()
    record.extra = {"batch_size": EXPECTED_BATCH_SIZE}

    payload = json.loads(_json_formatter(record))

    assert payload["batch_size"] == EXPECTED_BATCH_SIZE
    assert "extra" not in payload


def test_json_formatter_stringifies_unserializable_values() -> None:
    record = _record()
    record.backend = object()

    payload = json.loads(_json_formatter(record))

    assert payload["backend"].startswith("<object")


def test_configure_logging_sets_root_level() -> None:
    root = logging.getLogger()
    previous_level, previous_handlers = root.level, list(root.handlers)
    try:
        configure_logging(level="debug", json_logs=True)
        assert root.level == logging.DEBUG
        assert root.handlers[-1].formatter.__class__.__name__ == "JsonFormatter"
    finally:
        root.handlers[:] = previous_handlers
        root.setLevel(previous_level)
