import json
import logging

from app.core.logging import JSONFormatter


def _record(**extra):
    record = logging.LogRecord("app.test", logging.INFO, __file__, 1, "サマリー作成", None, None)
    for key, value in extra.items():
        setattr(record, key, value)
    return record


def test_context_fields_are_top_level():
    line = JSONFormatter(service="scheduler").format(
        _record(user_id="u1", language_code="ja", extra_data={"count": 3})
    )
    entry = json.loads(line)

    assert entry["service"] == "scheduler"
    assert entry["user_id"] == "u1"
    assert entry["language_code"] == "ja"
    assert entry["data"] == {"count": 3}
    assert entry["message"] == "サマリー作成"


def test_plain_record_has_no_context():
    entry = json.loads(JSONFormatter().format(_record()))

    assert "user_id" not in entry
    assert "data" not in entry
    assert entry["level"] == "INFO"
