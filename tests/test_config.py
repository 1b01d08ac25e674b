import json
from pathlib import Path

import pytest
import structlog

from timecard.config import Settings, get_settings
from timecard.logging import bind_command, configure_logging, get_logger


@pytest.fixture
def isolated_env(monkeypatch, tmp_path):
    monkeypatch.chdir(tmp_path)
    monkeypatch.setenv("HOME", str(tmp_path))
    for name in ("TIMECARD_DATA_DIR", "TIMECARD_LOG_LEVEL", "TIMECARD_LOG_FORMAT"):
        monkeypatch.delenv(name, raising=False)
    get_settings.cache_clear()
    yield tmp_path
    get_settings.cache_clear()


def test_defaults_without_env(isolated_env):
    settings = get_settings()

    assert settings.data_dir == Path("data")
    assert settings.log_level == "WARNING"
    assert settings.log_format == "json"


def test_environment_overrides_and_home_expansion(isolated_env, monkeypatch):
    monkeypatch.setenv("TIMECARD_DATA_DIR", "~/timecard-data")
    monkeypatch.setenv("TIMECARD_LOG_LEVEL", "debug")
    monkeypatch.setenv("TIMECARD_LOG_FORMAT", "Console")

    settings = get_settings()

    assert settings.data_dir == isolated_env / "timecard-data"
    assert settings.log_level == "DEBUG"
    assert settings.log_format == "console"


def test_working_directory_env_file_wins_over_user_file(isolated_env):
    user_file = isolated_env / ".config" / "timecard" / "timecard.env"
    user_file.parent.mkdir(parents=True)
    user_file.write_text("TIMECARD_DATA_DIR=/srv/user\nTIMECARD_LOG_LEVEL=info\n")
    (isolated_env / "timecard.env").write_text("TIMECARD_DATA_DIR=/srv/local\n")

    settings = get_settings()

    assert settings.data_dir == Path("/srv/local")
    assert settings.log_level == "INFO"


def test_events_are_json_tagged_with_store_and_command(capsys, tmp_path):
    configure_logging(Settings(log_level="info"), tmp_path)
    bind_command("check-in")
    try:
        get_logger("timecard.test").info("session_checked_in", user_id="u1")
        get_logger("timecard.test").debug("filtered_out")
    finally:
        structlog.contextvars.clear_contextvars()

    lines = capsys.readouterr().err.strip().splitlines()
    assert len(lines) == 1
    event = json.loads(lines[0])
    assert event["event"] == "session_checked_in"
    assert event["level"] == "info"
    assert event["command"] == "check-in"
    assert event["data_dir"] == str(tmp_path)
