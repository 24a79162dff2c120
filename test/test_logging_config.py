import json
import logging
from pathlib import Path

from instabill.logging_config import JsonFormatter, setup_logging


def test_json_formatter_emits_one_object_per_record():
    record = logging.LogRecord("instabill.sales", logging.INFO, __file__, 1, "sale_finalized id=%s", ("abc",), None)

    payload = json.loads(JsonFormatter().format(record))

    assert payload["logger"] == "instabill.sales"
    assert payload["level"] == "INFO"
    assert payload["message"] == "sale_finalized id=abc"


def test_sales_logger_writes_its_own_file(tmp_path: Path):
    loggers = [logging.getLogger(), logging.getLogger("instabill.sales"), logging.getLogger("instabill.scan")]
    saved = [(lg, list(lg.handlers), lg.level) for lg in loggers]
    for lg in loggers:
        lg.handlers = []
    try:
        setup_logging(tmp_path / "logs")
        logging.getLogger("instabill.sales").info("transaction_recorded id=%s", "t1")
    finally:
        for lg, handlers, level in saved:
            for h in lg.handlers:
                h.close()
            lg.handlers = handlers
            lg.setLevel(level)

    lines = (tmp_path / "logs" / "sales.log").read_text(encoding="utf-8").splitlines()
    assert json.loads(lines[-1])["message"] == "transaction_recorded id=t1"
    assert (tmp_path / "logs" / "app.log").exists()
