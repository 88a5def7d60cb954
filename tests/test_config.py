"""Tests for daemon settings."""

import json
from pathlib import Path

import pytest

from jobdaemon.local.config import DaemonSettings, coerce_value


@pytest.fixture
def overrides_path(tmp_path):
    return tmp_path / "overrides.json"


def test_defaults(overrides_path):
    settings = DaemonSettings(overrides_path=overrides_path)

    assert settings.MAX_CHILD_PROCESSES == 10
    assert settings.SLEEP_INTERVAL == 5
    assert settings.WAIT_INTERVAL == 1
    assert settings.MEMORY_LIMIT == 268435456
    assert settings.DAEMONIZE is False
    assert settings.MULTI_INSTANCE is False


def test_explicit_overrides_are_coerced(overrides_path):
    settings = DaemonSettings(
        {"max_child_processes": "3", "multi_instance": "yes", "pid_dir": "/tmp/pids"},
        overrides_path=overrides_path,
    )

    assert settings.MAX_CHILD_PROCESSES == 3
    assert settings.MULTI_INSTANCE is True
    assert settings.PID_DIR == Path("/tmp/pids")
    assert settings.get("MISSING", "fallback") == "fallback"


def test_unknown_setting_is_rejected(overrides_path):
    with pytest.raises(ValueError, match="Unknown setting"):
        DaemonSettings({"no_such_option": 1}, overrides_path=overrides_path)


def test_unconvertible_value_is_rejected(overrides_path):
    with pytest.raises(ValueError, match="MAX_CHILD_PROCESSES"):
        DaemonSettings({"MAX_CHILD_PROCESSES": "many"}, overrides_path=overrides_path)


@pytest.mark.parametrize("key, value", [
    ("MAX_CHILD_PROCESSES", 0),
    ("SLEEP_INTERVAL", -1),
    ("WAIT_INTERVAL", 0),
    ("MEMORY_LIMIT", 0),
])
def test_limits_are_validated(overrides_path, key, value):
    with pytest.raises(ValueError):
        DaemonSettings({key: value}, overrides_path=overrides_path)


def test_overrides_file_only_applies_modifiable_settings(overrides_path):
    overrides_path.write_text(json.dumps({
        "MAX_CHILD_PROCESSES": 4,
        "PID_DIR": "/somewhere/else",
        "NOT_A_SETTING": True,
    }))

    settings = DaemonSettings(overrides_path=overrides_path)

    assert settings.MAX_CHILD_PROCESSES == 4
    assert settings.PID_DIR != Path("/somewhere/else")
    assert settings.get("NOT_A_SETTING") is None


def test_explicit_overrides_win_over_file(overrides_path):
    overrides_path.write_text(json.dumps({"SLEEP_INTERVAL": 30}))

    settings = DaemonSettings({"SLEEP_INTERVAL": 2}, overrides_path=overrides_path)

    assert settings.SLEEP_INTERVAL == 2


def test_malformed_overrides_file_is_ignored(overrides_path):
    overrides_path.write_text("{not json")

    settings = DaemonSettings(overrides_path=overrides_path)

    assert settings.MAX_CHILD_PROCESSES == 10


def test_missing_attribute_raises(overrides_path):
    settings = DaemonSettings(overrides_path=overrides_path)

    with pytest.raises(AttributeError):
        settings.NOT_A_SETTING


@pytest.mark.parametrize("original, value, expected", [
    (False, "true", True),
    (True, "0", False),
    (10, "12", 12),
    (Path("/a"), "/b", Path("/b")),
    (None, "kept", "kept"),
])
def test_coerce_value(original, value, expected):
    assert coerce_value(original, value) == expected
