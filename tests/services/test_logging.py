from __future__ import annotations

import json
import logging

import pytest

from snapi.services.logging import JsonFormatter, mask_secret, setup_logging


@pytest.fixture()
def restore_snapi_logger():
    logger = logging.getLogger("snapi")
    saved = (logger.level, list(logger.handlers), logger.propagate)
    yield logger
    logger.setLevel(saved[0])
    logger.handlers[:] = saved[1]
    logger.propagate = saved[2]


def test_mask_secret():
    assert mask_secret(None) == "(none)"
    assert mask_secret("") == "(none)"
    assert mask_secret("abcdefgh") == "len=8 prefix=abc"


def test_json_formatter_emits_one_object():
    record = logging.LogRecord("snapi.x", logging.INFO, __file__, 1, "hello %s", ("world",), None)
    payload = json.loads(JsonFormatter().format(record))
    assert payload == {"level": "INFO", "logger": "snapi.x", "msg": "hello world"}


def test_setup_logging_configures_level_and_file(tmp_path, restore_snapi_logger):
    logfile = tmp_path / "logs" / "snapi.log"
    logger = setup_logging("debug", logfile=logfile)
    assert logger is restore_snapi_logger
    assert logger.level == logging.DEBUG
    assert len(logger.handlers) == 2

    logging.getLogger("snapi.services.api.client").debug("-> GET %s", "https://api.example/mobile/me")
    for handler in logger.handlers:
        handler.flush()
    line = logfile.read_text(encoding="utf-8").strip().splitlines()[-1]
    assert json.loads(line)["msg"] == "-> GET https://api.example/mobile/me"


def test_setup_logging_is_repeatable(restore_snapi_logger):
    setup_logging("INFO")
    logger = setup_logging("WARNING")
    assert len(logger.handlers) == 1
    assert logger.level == logging.WARNING
