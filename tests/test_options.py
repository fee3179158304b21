from datetime import datetime, timezone

import json

import pytest

from cratelint.options import (
    Color,
    Format,
    LevelFilter,
    format_log_line,
    parse_level,
)

NOW = datetime(2020, 1, 2, 3, 4, 5, tzinfo=timezone.utc)


@pytest.mark.parametrize("text", ["human", "HUMAN", "Human"])
def test_format_parse_human(text):
    assert Format.parse(text) is Format.HUMAN


def test_format_parse_json():
    assert Format.parse("JsOn") is Format.JSON


def test_format_parse_unknown():
    with pytest.raises(ValueError, match="unknown output format 'xml' specified"):
        Format.parse("xml")


@pytest.mark.parametrize(
    "text, expected",
    [("auto", Color.AUTO), ("ALWAYS", Color.ALWAYS), ("Never", Color.NEVER)],
)
def test_color_parse(text, expected):
    assert Color.parse(text) is expected


def test_color_parse_unknown():
    with pytest.raises(ValueError, match="unknown color option 'sometimes' specified"):
        Color.parse("sometimes")


@pytest.mark.parametrize("is_tty", [True, False])
def test_color_resolve(is_tty):
    assert Color.AUTO.resolve(is_tty) is is_tty
    assert Color.ALWAYS.resolve(is_tty) is True
    assert Color.NEVER.resolve(is_tty) is False


@pytest.mark.parametrize("level", list(LevelFilter))
def test_parse_level_round_trip(level):
    assert parse_level(level.name.lower()) is level
    assert parse_level(level.name) is level


def test_parse_level_ordering():
    levels = [parse_level(s) for s in ["off", "error", "warn", "info", "debug", "trace"]]
    assert levels == sorted(levels)
    assert parse_level("info") > LevelFilter.WARN


def test_parse_level_unknown():
    with pytest.raises(ValueError, match="failed to parse level 'loud'"):
        parse_level("loud")


def test_format_log_line_plain():
    line = format_log_line(LevelFilter.WARN, "hello", Format.HUMAN, False, NOW)
    assert line == "2020-01-02 03:04:05 [WARN] hello"


def test_format_log_line_colored():
    line = format_log_line(LevelFilter.ERROR, "boom", Format.HUMAN, True, NOW)
    assert line == "2020-01-02 03:04:05 [\x1b[31mERROR\x1b[0m] boom\x1b[0m"


def test_format_log_line_json_is_valid_json():
    line = format_log_line(LevelFilter.INFO, "msg", Format.JSON, False, NOW)
    obj = json.loads(line)
    assert obj["type"] == "log"
    assert obj["fields"]["level"] == "INFO"
    assert obj["fields"]["message"] == "msg"
    assert datetime.fromisoformat(obj["fields"]["timestamp"]) == NOW


def test_format_log_line_rejects_off():
    with pytest.raises(ValueError):
        format_log_line(LevelFilter.OFF, "x", Format.HUMAN, False, NOW)