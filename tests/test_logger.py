import json
import logging

from gymflow.logger import JsonFormatter


def _record(**extra):
    record = logging.LogRecord("gymflow.test", logging.INFO, __file__, 1, "scan %s", ("ok",), None)
    for key, value in extra.items():
        setattr(record, key, value)
    return record


def test_json_formatter_includes_context():
    line = JsonFormatter().format(_record(member_id="m-1", reason_code="frozen"))
    payload = json.loads(line)
    assert payload["message"] == "scan ok"
    assert payload["level"] == "info"
    assert payload["logger"] == "gymflow.test"
    assert (payload["member_id"], payload["reason_code"]) == ("m-1", "frozen")
    assert "scanned_value" not in payload
