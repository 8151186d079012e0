"""Configuration loader for quiz sessions."""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Mapping, MutableMapping, Optional

from timed_quiz.core import config as core_config
from timed_quiz.core import workspace as workspace_mod

from .machine import SessionSettings

CONFIG_FILENAME = "quiz.toml"
CONFIG_ENV = "TIMED_QUIZ_CONFIG"
ENV_PREFIX = "TIMED_QUIZ_"

_DEFAULT_LOG_LEVEL = "INFO"
_DEFAULT_TICK_INTERVAL = 0.1
_LOG_LEVELS = frozenset({"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"})


class QuizConfigError(RuntimeError):
    """Raised when configuration parsing or validation fails."""


@dataclass(frozen=True)
class QuizConfig:
    """Fully resolved configuration for a quiz run."""

    bank_path: Path
    reload_on_restart: bool
    settings: SessionSettings
    seed: Optional[int]
    tick_interval: float
    log_level: str


@dataclass(frozen=True)
class ConfigOverrides:
    """CLI-sourced overrides applied on top of file/env options."""

    bank_path: Optional[Path] = None
    seed: Optional[int] = None
    quota: Optional[int] = None
    time_per_question: Optional[float] = None
    log_level: Optional[str] = None


@dataclass(frozen=True)
class LoadResult:
    """Loaded configuration plus the workspace it was resolved against."""

    config: QuizConfig
    layout: workspace_mod.WorkspaceLayout
    config_path: Optional[Path]


def load_config(
    *,
    config_path: Optional[Path] = None,
    overrides: Optional[ConfigOverrides] = None,
    env: Optional[Mapping[str, str]] = None,
    workspace_path: Optional[Path] = None,
) -> LoadResult:
    """Load configuration applying precedence CLI > env > TOML > defaults."""

    overrides = overrides or ConfigOverrides()
    env_map = os.environ if env is None else env

    try:
        layout = workspace_mod.ensure_workspace(
            env=env_map, path=workspace_path
        )
    except workspace_mod.WorkspaceError as exc:
        raise QuizConfigError(str(exc)) from exc

    requested_path = _resolve_config_path(
        config_path=config_path,
        env_map=env_map,
        default_path=layout.path_for("config") / CONFIG_FILENAME,
    )

    table = _default_table()
    loaded_path: Optional[Path] = None
    if requested_path.exists():
        loaded_path = requested_path
        try:
            core_config.merge_defaults(
                table, core_config.load_toml(requested_path)
            )
        except core_config.TomlConfigError as exc:
            raise QuizConfigError(str(exc)) from exc
    elif config_path is not None or _env_string(env_map, "CONFIG"):
        raise QuizConfigError(f"Config file not found: {requested_path}")

    bank, session = table["bank"], table["session"]
    try:
        bank_path = _resolve_bank_path(
            _pick_first(
                overrides.bank_path,
                _env_path(env_map, "BANK"),
                _coerce_optional_path(bank["path"]),
            ),
            layout=layout,
        )
        settings = SessionSettings(
            time_per_question=core_config.require_number(
                _pick_first(
                    overrides.time_per_question,
                    _env_number(env_map, "TIME_PER_QUESTION"),
                    session["time_per_question"],
                ),
                "session.time_per_question",
            ),
            quota=core_config.require_int(
                _pick_first(
                    overrides.quota,
                    _env_int(env_map, "QUOTA"),
                    session["quota"],
                ),
                "session.quota",
            ),
            feedback_dwell=core_config.require_number(
                session["feedback_dwell"], "session.feedback_dwell"
            ),
            restart_delay=core_config.require_number(
                session["restart_delay"], "session.restart_delay"
            ),
            points_per_correct=core_config.require_int(
                session["points_per_correct"], "session.points_per_correct"
            ),
        )
        seed = core_config.require_int(
            _pick_first(
                overrides.seed, _env_int(env_map, "SEED"), session["seed"]
            ),
            "session.seed",
        )
        tick_interval = core_config.require_number(
            table["display"]["tick_interval"], "display.tick_interval"
        )
        reload_on_restart = core_config.require_bool(
            bank["reload_on_restart"], "bank.reload_on_restart"
        )
    except (core_config.TomlConfigError, ValueError) as exc:
        raise QuizConfigError(str(exc)) from exc

    if tick_interval <= 0:
        raise QuizConfigError("display.tick_interval must be > 0.")

    config = QuizConfig(
        bank_path=bank_path,
        reload_on_restart=reload_on_restart,
        settings=settings,
        seed=seed or None,
        tick_interval=tick_interval,
        log_level=_resolve_log_level(
            _pick_first(
                overrides.log_level,
                _env_string(env_map, "LOG_LEVEL"),
                table["logging"]["level"],
            )
        ),
    )
    return LoadResult(config=config, layout=layout, config_path=loaded_path)


def _default_table() -> MutableMapping[str, MutableMapping[str, object]]:
    defaults = SessionSettings()
    return {
        "bank": {"path": None, "reload_on_restart": True},
        "session": {
            "time_per_question": defaults.time_per_question,
            "quota": defaults.quota,
            "feedback_dwell": defaults.feedback_dwell,
            "restart_delay": defaults.restart_delay,
            "points_per_correct": defaults.points_per_correct,
            "seed": 0,
        },
        "display": {"tick_interval": _DEFAULT_TICK_INTERVAL},
        "logging": {"level": _DEFAULT_LOG_LEVEL},
    }


def _resolve_config_path(
    *,
    config_path: Optional[Path],
    env_map: Mapping[str, str],
    default_path: Path,
) -> Path:
    if config_path is not None:
        return config_path.expanduser()
    env_candidate = _env_string(env_map, "CONFIG")
    if env_candidate:
        return Path(env_candidate).expanduser()
    return default_path


def _coerce_optional_path(value: object) -> Optional[Path]:
    if value is None:
        return None
    if isinstance(value, Path):
        return value
    if isinstance(value, str):
        raw = value.strip()
        return Path(raw) if raw else None
    raise QuizConfigError("bank.path must be a string when provided.")


def _resolve_bank_path(
    candidate: object, *, layout: workspace_mod.WorkspaceLayout
) -> Path:
    if candidate is None:
        return layout.default_bank
    path = Path(str(candidate)).expanduser()
    if not path.is_absolute():
        return (layout.home / path).resolve()
    return path.resolve()


def _resolve_log_level(candidate: object) -> str:
    if not isinstance(candidate, str) or not candidate.strip():
        raise QuizConfigError("logging.level must be a non-empty string.")
    level = candidate.strip().upper()
    if level not in _LOG_LEVELS:
        raise QuizConfigError(
            "logging.level must be one of "
            "DEBUG, INFO, WARNING, ERROR, CRITICAL."
        )
    return level


def _env_string(env_map: Mapping[str, str], key: str) -> Optional[str]:
    raw = env_map.get(f"{ENV_PREFIX}{key}")
    if raw is None:
        return None
    value = raw.strip()
    return value or None


def _env_path(env_map: Mapping[str, str], key: str) -> Optional[Path]:
    raw = _env_string(env_map, key)
    return Path(raw).expanduser() if raw is not None else None


def _env_int(env_map: Mapping[str, str], key: str) -> Optional[int]:
    raw = _env_string(env_map, key)
    if raw is None:
        return None
    try:
        return int(raw)
    except ValueError as exc:
        raise QuizConfigError(
            f"{ENV_PREFIX}{key} must be an integer, got '{raw}'."
        ) from exc


def _env_number(env_map: Mapping[str, str], key: str) -> Optional[float]:
    raw = _env_string(env_map, key)
    if raw is None:
        return None
    try:
        return float(raw)
    except ValueError as exc:
        raise QuizConfigError(
            f"{ENV_PREFIX}{key} must be a number, got '{raw}'."
        ) from exc


def _pick_first(*candidates: object) -> object:
    for candidate in candidates:
        if candidate is not None:
            return candidate
    return None
