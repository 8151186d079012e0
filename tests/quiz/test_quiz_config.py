from __future__ import annotations

from pathlib import Path

import pytest

from timed_quiz.core.config_templates import get_template
from timed_quiz.quiz import config as quiz_config
from timed_quiz.quiz.config import ConfigOverrides, QuizConfigError, load_config


def _write_config(home: Path, text: str) -> Path:
    path = home / "config" / quiz_config.CONFIG_FILENAME
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(text, encoding="utf-8")
    return path


def test_defaults_without_config_file(tmp_path):
    home = tmp_path / "home"

    result = load_config(env={}, workspace_path=home)

    config = result.config
    assert result.config_path is None
    assert config.bank_path == result.layout.default_bank
    assert config.reload_on_restart is True
    assert config.settings.time_per_question == 10.0
    assert config.settings.quota == 2
    assert config.settings.feedback_dwell == 1.5
    assert config.settings.restart_delay == 3.0
    assert config.settings.points_per_correct == 10
    assert config.seed is None
    assert config.tick_interval == 0.1
    assert config.log_level == "INFO"


def test_workspace_from_environment(tmp_path):
    home = tmp_path / "env-home"

    result = load_config(env={"TIMED_QUIZ_HOME": str(home)})

    assert result.layout.home == home.resolve()
    assert result.config.bank_path == home.resolve() / "banks" / "questions.csv"


def test_packaged_template_loads_cleanly(tmp_path):
    home = tmp_path / "home"
    path = _write_config(home, get_template("quiz").read_text())

    result = load_config(env={}, workspace_path=home)

    assert result.config_path == path
    assert result.config.bank_path == (
        home.resolve() / "banks" / "questions.csv"
    )
    assert result.config.seed is None


def test_file_values_override_defaults(tmp_path):
    home = tmp_path / "home"
    _write_config(
        home,
        """
[bank]
path = "decks/science.csv"
reload_on_restart = false

[session]
time_per_question = 5
quota = 3
feedback_dwell = 0.5
restart_delay = 2.0
points_per_correct = 25
seed = 7

[display]
tick_interval = 0.25

[logging]
level = "debug"
""",
    )

    config = load_config(env={}, workspace_path=home).config

    assert config.bank_path == home.resolve() / "decks" / "science.csv"
    assert config.reload_on_restart is False
    assert config.settings.time_per_question == 5.0
    assert config.settings.quota == 3
    assert config.settings.feedback_dwell == 0.5
    assert config.settings.restart_delay == 2.0
    assert config.settings.points_per_correct == 25
    assert config.seed == 7
    assert config.tick_interval == 0.25
    assert config.log_level == "DEBUG"


def test_environment_overrides_file(tmp_path):
    home = tmp_path / "home"
    _write_config(home, "[session]\nquota = 3\nseed = 7\n")
    bank = tmp_path / "elsewhere.csv"
    env = {
        "TIMED_QUIZ_QUOTA": "1",
        "TIMED_QUIZ_SEED": "11",
        "TIMED_QUIZ_TIME_PER_QUESTION": "4.5",
        "TIMED_QUIZ_BANK": str(bank),
        "TIMED_QUIZ_LOG_LEVEL": "warning",
    }

    config = load_config(env=env, workspace_path=home).config

    assert config.settings.quota == 1
    assert config.seed == 11
    assert config.settings.time_per_question == 4.5
    assert config.bank_path == bank.resolve()
    assert config.log_level == "WARNING"


def test_cli_overrides_win(tmp_path):
    home = tmp_path / "home"
    _write_config(home, "[session]\nquota = 3\n")
    overrides = ConfigOverrides(
        bank_path=Path("relative.csv"),
        seed=3,
        quota=4,
        time_per_question=2.0,
        log_level="error",
    )

    config = load_config(
        env={"TIMED_QUIZ_QUOTA": "1"},
        overrides=overrides,
        workspace_path=home,
    ).config

    assert config.settings.quota == 4
    assert config.seed == 3
    assert config.settings.time_per_question == 2.0
    assert config.bank_path == home.resolve() / "relative.csv"
    assert config.log_level == "ERROR"


def test_explicit_config_path(tmp_path):
    config_file = tmp_path / "custom.toml"
    config_file.write_text("[session]\npoints_per_correct = 1\n")

    result = load_config(
        config_path=config_file, env={}, workspace_path=tmp_path / "home"
    )

    assert result.config_path == config_file
    assert result.config.settings.points_per_correct == 1


def test_config_path_from_environment(tmp_path):
    config_file = tmp_path / "env.toml"
    config_file.write_text("[session]\nrestart_delay = 9\n")

    result = load_config(
        env={"TIMED_QUIZ_CONFIG": str(config_file)},
        workspace_path=tmp_path / "home",
    )

    assert result.config.settings.restart_delay == 9.0


@pytest.mark.parametrize("use_env", [False, True])
def test_missing_requested_config_is_an_error(tmp_path, use_env):
    missing = tmp_path / "missing.toml"
    kwargs = {"workspace_path": tmp_path / "home"}
    if use_env:
        kwargs["env"] = {"TIMED_QUIZ_CONFIG": str(missing)}
    else:
        kwargs["env"] = {}
        kwargs["config_path"] = missing

    with pytest.raises(QuizConfigError, match="not found"):
        load_config(**kwargs)


@pytest.mark.parametrize(
    "body, fragment",
    [
        ("[session]\nunknown = 1\n", "Unknown configuration key"),
        ("[extra]\nvalue = 1\n", "Unknown configuration key"),
        ("session = 3\n", "Expected table"),
        ("[session]\nquota = 1.5\n", "session.quota"),
        ("[session]\ntime_per_question = true\n", "time_per_question"),
        ("[session]\ntime_per_question = 0\n", "time_per_question"),
        ("[session]\nfeedback_dwell = -1\n", "feedback_dwell"),
        ("[bank]\nreload_on_restart = 1\n", "reload_on_restart"),
        ("[bank]\npath = 5\n", "bank.path"),
        ("[display]\ntick_interval = 0\n", "tick_interval"),
        ("[logging]\nlevel = \"\"\n", "logging.level"),
        ("[session\n", "Failed to parse"),
    ],
)
def test_invalid_config_values(tmp_path, body, fragment):
    home = tmp_path / "home"
    _write_config(home, body)

    with pytest.raises(QuizConfigError, match=fragment):
        load_config(env={}, workspace_path=home)


@pytest.mark.parametrize(
    "key, value",
    [
        ("TIMED_QUIZ_QUOTA", "two"),
        ("TIMED_QUIZ_SEED", "1.5"),
        ("TIMED_QUIZ_TIME_PER_QUESTION", "fast"),
    ],
)
def test_invalid_environment_values(tmp_path, key, value):
    with pytest.raises(QuizConfigError, match=key):
        load_config(env={key: value}, workspace_path=tmp_path / "home")


def test_blank_environment_values_are_ignored(tmp_path):
    config = load_config(
        env={"TIMED_QUIZ_QUOTA": "  ", "TIMED_QUIZ_BANK": ""},
        workspace_path=tmp_path / "home",
    ).config

    assert config.settings.quota == 2
    assert config.bank_path.name == "questions.csv"


def test_workspace_file_conflict_is_reported(tmp_path):
    blocker = tmp_path / "home"
    blocker.write_text("not a dir")

    with pytest.raises(QuizConfigError, match="not a directory"):
        load_config(env={}, workspace_path=blocker)


@pytest.mark.parametrize("source", ["override", "env", "file"])
def test_unknown_log_level_is_rejected(tmp_path, source):
    home = tmp_path / "home"
    kwargs = {"env": {}, "workspace_path": home}
    if source == "override":
        kwargs["overrides"] = ConfigOverrides(log_level="bogus")
    elif source == "env":
        kwargs["env"] = {"TIMED_QUIZ_LOG_LEVEL": "verbose"}
    else:
        _write_config(home, '[logging]\nlevel = "trace"\n')

    with pytest.raises(QuizConfigError, match="logging.level must be one of"):
        load_config(**kwargs)
