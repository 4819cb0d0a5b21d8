"""Logging setup: a console stream plus an optional JSON-lines file."""

import json
import logging
import sys
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, Optional

# Structured fields copied from log records when present
EXTRA_FIELDS = ('resource_id', 'resource_type', 'operation')

# Chatty third-party loggers held at WARNING
QUIET_LOGGERS = ('boto3', 'botocore', 'urllib3')


class JSONFormatter(logging.Formatter):
    """One JSON object per record, for machine consumption."""

    def format(self, record: logging.LogRecord) -> str:
        entry: Dict[str, Any] = {
            'timestamp': datetime.fromtimestamp(record.created, timezone.utc).isoformat(),
            'level': record.levelname,
            'logger': record.name,
            'message': record.getMessage(),
        }
        entry.update({name: getattr(record, name) for name in EXTRA_FIELDS if hasattr(record, name)})

        if record.exc_info:
            entry['exception'] = self.formatException(record.exc_info)

        return json.dumps(entry)


class ConsoleFormatter(logging.Formatter):
    """Single-line ``HH:MM:SS LEVEL message`` output, optionally colored.

    A record tagged with a resource id gets a ``[id]`` prefix unless the
    message already names the resource.
    """

    LEVEL_COLORS = {
        'DEBUG': '\033[36m',
        'INFO': '\033[32m',
        'WARNING': '\033[33m',
        'ERROR': '\033[31m',
        'CRITICAL': '\033[35m',
    }
    RESET = '\033[0m'

    def __init__(self, use_color: bool = True):
        super().__init__()
        self.use_color = use_color

    def format(self, record: logging.LogRecord) -> str:
        levelname = f"{record.levelname:8}"
        if self.use_color and record.levelname in self.LEVEL_COLORS:
            levelname = f"{self.LEVEL_COLORS[record.levelname]}{levelname}{self.RESET}"

        message = record.getMessage()
        resource_id = getattr(record, 'resource_id', None)
        if resource_id and resource_id not in message:
            message = f"[{resource_id}] {message}"

        clock = datetime.fromtimestamp(record.created).strftime('%H:%M:%S')
        line = f"{clock} {levelname} {message}"

        if record.exc_info:
            line = f"{line}\n{self.formatException(record.exc_info)}"
        return line


def setup_logging(log_level: str = 'info', log_dir: Optional[str] = None) -> None:
    """Configure the root logger for a run.

    Args:
        log_level: Console level name (debug, info, warning, error)
        log_dir: Directory for a dated ``.jsonl`` file that receives every
            record down to DEBUG; nothing is written to disk when None
    """
    level = getattr(logging, log_level.upper())

    root = logging.getLogger()
    for handler in list(root.handlers):
        root.removeHandler(handler)
        handler.close()
    root.setLevel(logging.DEBUG if log_dir else level)

    console = logging.StreamHandler(sys.stdout)
    console.setLevel(level)
    console.setFormatter(ConsoleFormatter(use_color=sys.stdout.isatty()))
    root.addHandler(console)

    if log_dir:
        directory = Path(log_dir)
        directory.mkdir(parents=True, exist_ok=True)
        stamp = datetime.now(timezone.utc).strftime('%Y%m%d')
        file_handler = logging.FileHandler(directory / f"cloud-bootstrap-{stamp}.jsonl")
        file_handler.setLevel(logging.DEBUG)
        file_handler.setFormatter(JSONFormatter())
        root.addHandler(file_handler)

    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)


def get_logger(name: str) -> logging.Logger:
    return logging.getLogger(name)


def resource_extra(resource_type: str, resource_id: str, operation: Optional[str] = None) -> Dict[str, Any]:
    """Build the ``extra`` mapping that tags a log record with a resource.

    Args:
        resource_type: AWS resource type (e.g. 'AWS::S3::Bucket')
        resource_id: Name or identifier of the resource
        operation: Operation being performed

    Returns:
        Mapping suitable for the ``extra`` argument of logger calls
    """
    extra = {'resource_type': resource_type, 'resource_id': resource_id}
    if operation:
        extra['operation'] = operation
    return extra
