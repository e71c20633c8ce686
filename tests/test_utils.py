import logging

import pytest

from kcheck import config
from kcheck.logging_setup import setup_console_logging
from kcheck.utils import json_utils, time_utils


def test_json_round_trip() -> None:
    payload = {"message": "привет", "count": 2}
    dumped = json_utils.json_dump(payload)
    assert "привет" in dumped
    assert json_utils.load_json_text(dumped, {}) == payload


def test_load_json_text_missing_value_is_quiet(caplog: pytest.LogCaptureFixture) -> None:
    with caplog.at_level(logging.WARNING):
        assert json_utils.load_json_text(None, []) == []
        assert json_utils.load_json_text("", []) == []
    assert caplog.records == []


def test_load_json_text_corrupt_value_is_logged(caplog: pytest.LogCaptureFixture) -> None:
    with caplog.at_level(logging.WARNING):
        assert json_utils.load_json_text("[1, 2", [], "trigger_words") == []
    assert "trigger_words" in caplog.text


def test_load_json_text_rejects_wrong_shape() -> None:
    assert json_utils.load_json_text('{"a": 1}', []) == []
    assert json_utils.load_json_text("[1]", {}) == {}


def test_time_utils_parsing() -> None:
    timestamp = time_utils.utc_now()
    parsed = time_utils.parse_iso_timestamp(timestamp)
    assert parsed is not None

    zulu = "2024-01-01T12:00:00Z"
    parsed_zulu = time_utils.parse_iso_timestamp(zulu)
    assert parsed_zulu is not None
    assert parsed_zulu.tzinfo is not None

    assert time_utils.parse_iso_timestamp("") is None
    assert time_utils.parse_iso_timestamp("yesterday") is None
    assert time_utils.parse_iso_timestamp(123) is None


def test_parse_int_env(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("KC_SAMPLE", "42")
    assert config._parse_int_env("KC_SAMPLE", 1) == 42

    monkeypatch.setenv("KC_SAMPLE", "forty-two")
    assert config._parse_int_env("KC_SAMPLE", 1) == 1

    monkeypatch.delenv("KC_SAMPLE")
    assert config._parse_int_env("KC_SAMPLE", 7) == 7


def test_setup_console_logging_is_idempotent(monkeypatch: pytest.MonkeyPatch) -> None:
    root = logging.getLogger()
    previous_level = root.level
    monkeypatch.setattr(root, "handlers", [])
    try:
        setup_console_logging("DEBUG")
        setup_console_logging("WARNING")
        assert len(root.handlers) == 1
        assert root.level == logging.WARNING
        assert logging.getLogger("sqlalchemy.engine").level == logging.WARNING
    finally:
        root.setLevel(previous_level)
