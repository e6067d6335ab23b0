import json
from logging import Formatter, LogRecord, StreamHandler, getLogger
from threading import RLock

_called = False
_lock = RLock()
_default_formatter = Formatter(
    '%(asctime)s [%(name)s] %(levelname)s    %(message)s',
    '%Y-%m-%d %H:%M:%S',
    )
_known_levels = {'DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL'}


class JSONFormatter(Formatter):
    """
    Log formatter which outputs every record as a single JSON object.
    """
    __slots__ = ()

    def format(self, record: LogRecord, /) -> str:
        message = record.getMessage().rstrip()

        if record.exc_info:
            exc_text = record.exc_text or self.formatException(record.exc_info)
            message = f'{message}\n{exc_text.rstrip()}'

        if record.stack_info:
            stack_text = self.formatStack(record.stack_info)
            message = f'{message}\n{stack_text.rstrip()}'

        msg = dict(
            time=self.formatTime(record, '%Y-%m-%dT%H:%M:%S'),
            level=record.levelname,
            logger=record.name,
            message=message,
            )
        return json.dumps(msg)


def normalize_level(level: str, /) -> str:
    """
    Converts a case-insensitive level name into the name known by :mod:`logging`.
    ``warn`` is accepted as ``WARNING``; unknown names fall back to ``ERROR``.
    """
    level = level.strip().upper()
    if level == 'WARN': return 'WARNING'
    if level in _known_levels: return level
    return 'ERROR'


def init_logging(
        *,
        level: str = 'INFO',
        formatter: Formatter = _default_formatter,
        ) -> None:
    """
    Initializes Python logging with the specified level and formatter.
    If called more than once, this function is no-op.

    :param level: The level of logging. Defaults to ``INFO``.
    :param formatter: The formatter for log records.
    """
    with _lock:
        global _called
        if _called: return

        logger = getLogger()
        logger.setLevel(normalize_level(level))

        handler = StreamHandler()
        handler.setFormatter(formatter)
        logger.addHandler(handler)

        _called = True


__all__ = 'JSONFormatter', 'normalize_level', 'init_logging'
