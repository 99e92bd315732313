import json
import logging

from printshop.core.logging import JsonFormatter


def make_record(**extra):
    logger = logging.getLogger("printshop.test")
    return logger.makeRecord(
        logger.name, logging.INFO, __file__, 1, "Payment of %d on order %s", (500, "o1"), None, extra=extra
    )


def test_json_formatter_merges_context():
    record = make_record(context={"order_id": "o1", "amount_cents": 500})

    data = json.loads(JsonFormatter().format(record))

    assert data["message"] == "Payment of 500 on order o1"
    assert data["level"] == "INFO"
    assert data["logger"] == "printshop.test"
    assert data["order_id"] == "o1"
    assert data["amount_cents"] == 500


def test_json_formatter_without_context():
    data = json.loads(JsonFormatter().format(make_record()))

    assert set(data) == {"timestamp", "level", "logger", "message"}
