import json
import logging
import sys

from anonmsg.logging_config import JSONFormatter


def _record(msg: str, exc_info=None, **extra) -> logging.LogRecord:
    record = logging.LogRecord("anonmsg.api.links", logging.INFO, __file__, 10, msg, None, exc_info)
    for key, value in extra.items():
        setattr(record, key, value)
    return record


def test_json_line_includes_structured_extras():
    line = JSONFormatter().format(_record("Link created", link_id="a1b2c3d4", unrelated="x"))
    data = json.loads(line)

    assert data["level"] == "INFO"
    assert data["logger"] == "anonmsg.api.links"
    assert data["message"] == "Link created"
    assert data["link_id"] == "a1b2c3d4"
    assert "unrelated" not in data


def test_json_line_includes_exception():
    try:
        raise ValueError("boom")
    except ValueError:
        record = _record("failed", exc_info=sys.exc_info())

    data = json.loads(JSONFormatter().format(record))
    assert "ValueError: boom" in data["exception"]
