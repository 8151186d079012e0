from .errors import MalformedRecordError, QuizError
from .records import (
    OPTION_COUNT,
    ParseResult,
    QuestionRecord,
    RejectedLine,
    parse_bank,
    parse_record,
    split_fields,
)
from .builder import DEFAULT_QUOTA, build_session_queue, group_by_subtopic
from .machine import (
    OptionStyle,
    Phase,
    QuizSession,
    SessionListener,
    SessionSettings,
    SessionState,
    option_styles,
)
from .runner import MonotonicClock, QuizRunner, file_text_source
from .config import (
    ConfigOverrides,
    LoadResult,
    QuizConfig,
    QuizConfigError,
    load_config,
)

__all__ = [
    "QuizError",
    "MalformedRecordError",
    "OPTION_COUNT",
    "ParseResult",
    "QuestionRecord",
    "RejectedLine",
    "parse_bank",
    "parse_record",
    "split_fields",
    "DEFAULT_QUOTA",
    "build_session_queue",
    "group_by_subtopic",
    "OptionStyle",
    "Phase",
    "QuizSession",
    "SessionListener",
    "SessionSettings",
    "SessionState",
    "option_styles",
    "MonotonicClock",
    "QuizRunner",
    "file_text_source",
    "ConfigOverrides",
    "LoadResult",
    "QuizConfig",
    "QuizConfigError",
    "load_config",
]
