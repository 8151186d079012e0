from __future__ import annotations

import json
import logging
import tempfile
from pathlib import Path

import pytest

from timed_quiz.core import logging as core_logging


@pytest.fixture
def close_logger():
    names: list[str] = []
    yield names.append
    for name in names:
        logger = logging.getLogger(name)
        for handler in list(logger.handlers):
            handler.close()
            logger.removeHandler(handler)
        logger.propagate = True
        logger.setLevel(logging.NOTSET)


def test_configure_logger_writes_json(tmp_path, close_logger):
    close_logger("timed_quiz.test")
    log_dir = tmp_path / "logs"
    logger, log_path = core_logging.configure_logger(
        "timed_quiz.test",
        log_dir=log_dir,
        level="INFO",
        verbose=False,
        filename="test.log",
    )

    logger.info("Evaluated answer", extra={"selection": 2, "correct": True})
    logger.debug("hidden at INFO")

    class _Helper:
        def __repr__(self):  # noqa: D401
            return "helper"

    try:
        raise ValueError("boom")
    except ValueError:
        logger.exception(
            "with error",
            extra={
                "bank_path": Path(log_dir),
                "detail": {"items": (1, 2), "mapping": {"k": "v"}},
                "obj": _Helper(),
            },
        )
    for handler in logger.handlers:
        handler.flush()

    assert log_path == log_dir / "test.log"
    contents = log_path.read_text(encoding="utf-8").strip().splitlines()
    assert len(contents) == 2
    first = json.loads(contents[0])
    assert first["message"] == "Evaluated answer"
    assert first["level"] == "INFO"
    assert first["logger"] == "timed_quiz.test"
    assert first["extra"] == {"selection": 2, "correct": True}

    payload = json.loads(contents[-1])
    assert "ValueError: boom" in payload["exception"]
    assert payload["extra"]["obj"] == "helper"
    assert payload["extra"]["bank_path"] == str(log_dir)
    assert payload["extra"]["detail"]["items"] == [1, 2]


def test_default_log_filename_uses_last_name_segment(tmp_path, close_logger):
    close_logger("timed_quiz_demo.quiz")
    _, log_path = core_logging.configure_logger(
        "timed_quiz_demo.quiz", log_dir=tmp_path
    )

    assert log_path.name == "quiz.log"


def test_configure_logger_does_not_duplicate_handlers(tmp_path, close_logger):
    close_logger("timed_quiz.repeat")
    for _ in range(3):
        logger, _ = core_logging.configure_logger(
            "timed_quiz.repeat", log_dir=tmp_path, filename="repeat.log"
        )

    assert len(logger.handlers) == 1
    assert logger.propagate is False


def test_console_handler_toggle(tmp_path, close_logger):
    logger_name = "timed_quiz.test_toggle"
    close_logger(logger_name)

    def console_handlers(logger):
        return [
            handler
            for handler in logger.handlers
            if getattr(handler, "_timed_quiz_console", False)
        ]

    logger, _ = core_logging.configure_logger(
        logger_name, log_dir=tmp_path, verbose=True, filename="toggle.log"
    )
    assert len(console_handlers(logger)) == 1

    core_logging.configure_logger(
        logger_name, log_dir=tmp_path, verbose=True, filename="toggle.log"
    )
    assert len(console_handlers(logger)) == 1

    core_logging.configure_logger(
        logger_name, log_dir=tmp_path, verbose=False, filename="toggle.log"
    )
    assert not console_handlers(logger)


def test_verbose_lowers_file_level_to_debug(tmp_path, close_logger):
    close_logger("timed_quiz.verbose")
    logger, log_path = core_logging.configure_logger(
        "timed_quiz.verbose",
        log_dir=tmp_path,
        level="WARNING",
        verbose=True,
        filename="verbose.log",
    )

    logger.debug("detail")
    for handler in logger.handlers:
        handler.flush()

    assert "detail" in log_path.read_text(encoding="utf-8")


def test_configure_logger_fallback_directory(tmp_path, monkeypatch, close_logger):
    close_logger("timed_quiz.test_blocked")
    target = tmp_path / "blocked"
    fallback_dir = tmp_path / "fallback"
    monkeypatch.setattr(core_logging, "_fallback_log_dir", lambda: fallback_dir)

    original_mkdir = Path.mkdir

    def fake_mkdir(self, *args, **kwargs):  # noqa: D401, ANN001
        if self == target:
            raise PermissionError("denied")
        return original_mkdir(self, *args, **kwargs)

    monkeypatch.setattr(Path, "mkdir", fake_mkdir)

    _, log_path = core_logging.configure_logger(
        "timed_quiz.test_blocked",
        log_dir=target,
        filename="blocked.log",
    )

    assert log_path.parent == fallback_dir
    assert log_path.exists()


def test_configure_logger_rotating_handler_fallback(
    tmp_path, monkeypatch, close_logger
):
    close_logger("timed_quiz.test_rotating_fallback")
    calls = {"count": 0}
    fallback_dir = tmp_path / "rotate-fallback"
    original_handler = core_logging.RotatingFileHandler

    def fake_handler(path, *args, **kwargs):  # noqa: D401, ANN001
        calls["count"] += 1
        if calls["count"] == 1:
            raise PermissionError("denied")
        return original_handler(path, *args, **kwargs)

    monkeypatch.setattr(core_logging, "RotatingFileHandler", fake_handler)
    monkeypatch.setattr(core_logging, "_fallback_log_dir", lambda: fallback_dir)

    _, log_path = core_logging.configure_logger(
        "timed_quiz.test_rotating_fallback",
        log_dir=tmp_path / "primary",
        filename="rotate.log",
    )

    assert log_path.parent == fallback_dir
    assert calls["count"] == 2


def test_fallback_log_dir_uses_tempdir(tmp_path, monkeypatch):
    monkeypatch.setattr(tempfile, "gettempdir", lambda: str(tmp_path))

    path = core_logging._fallback_log_dir()

    assert path == tmp_path / "timed-quiz-logs"


def test_coerce_level_defaults():
    assert core_logging._coerce_level("bogus") == logging.INFO
    assert core_logging._coerce_level("debug") == logging.DEBUG
