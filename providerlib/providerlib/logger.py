import json
import logging
import os
import sys
from logging import (
    basicConfig,
    getLogger,
    DEBUG,
    INFO,
    WARNING,
    ERROR,
    CRITICAL,
    StreamHandler,
    Formatter,
    LogRecord,
)
from typing import Any, ClassVar, Dict, Mapping, Optional

from attrs import define, field

from providerlib.args import ArgumentParser

TRACE = DEBUG - 5
ROOT_LOGGER = "provider"

getLogger().setLevel(ERROR)
getLogger(ROOT_LOGGER).setLevel(INFO)


def add_args(arg_parser: ArgumentParser) -> None:
    group = arg_parser.add_mutually_exclusive_group()
    group.add_argument("--verbose", "-v", help="Verbose logging", dest="verbose", action="store_true", default=False)
    group.add_argument("--trace", help="Trace logging", dest="trace", action="store_true", default=False)
    group.add_argument("--quiet", help="Only log errors", dest="quiet", action="store_true", default=False)


@define
class LoggingConfig:
    kind: ClassVar[str] = "logging"
    verbose: bool = field(default=False, metadata={"description": "Verbose logging"})
    quiet: bool = field(default=False, metadata={"description": "Only log errors"})
    json_format: bool = field(default=False, metadata={"description": "Write log lines as json objects"})


class JsonFormatter(Formatter):
    """
    Simple json log formatter: every record becomes one json object per line.
    """

    def __init__(
        self,
        fmt_dict: Mapping[str, str],
        time_format: str = "%Y-%m-%dT%H:%M:%S",
        static_values: Optional[Dict[str, str]] = None,
    ) -> None:
        super().__init__()
        self.fmt_dict = fmt_dict
        self.time_format = time_format
        self.static_values = static_values or {}
        self.__use_time = "asctime" in self.fmt_dict.values()

    def usesTime(self) -> bool:  # noqa: N802
        return self.__use_time

    def formatMessage(self, record: LogRecord) -> Dict[str, Any]:  # type: ignore # noqa: N802
        return {fmt_key: record.__dict__[fmt_val] for fmt_key, fmt_val in self.fmt_dict.items()}

    def format(self, record: LogRecord) -> str:
        record.message = record.getMessage()
        if self.__use_time:
            record.asctime = self.formatTime(record, self.time_format)

        message_dict = self.formatMessage(record)
        message_dict.update(self.static_values)

        if record.exc_info and not record.exc_text:
            record.exc_text = self.formatException(record.exc_info)
        if record.exc_text:
            message_dict["exception"] = record.exc_text
        if record.stack_info:
            message_dict["stack_info"] = self.formatStack(record.stack_info)
        return json.dumps(message_dict, default=str)


def setup_logger(
    proc: str,
    *,
    force: bool = True,
    verbose: bool = False,
    quiet: bool = False,
    level: Optional[str] = None,
    json_format: bool = False,
) -> None:
    # override log output via env var
    plain_text = os.environ.get("PROVIDER_LOG_TEXT", "false").lower() == "true"
    if json_format and not plain_text:
        handler = StreamHandler()
        handler.setFormatter(
            JsonFormatter(
                {
                    "timestamp": "asctime",
                    "level": "levelname",
                    "message": "message",
                    "logger": "name",
                    "thread": "threadName",
                },
                static_values={"process": proc},
            )
        )
        basicConfig(handlers=[handler], force=force)
    else:
        log_format = f"%(asctime)s|{proc}|%(levelname)5s|%(threadName)10s  %(message)s"
        log_format = os.environ.get("PROVIDER_LOG_FORMAT", log_format)
        basicConfig(format=log_format, datefmt="%y-%m-%d %H:%M:%S", force=force)

    argv = sys.argv[1:]
    if level:
        getLogger(ROOT_LOGGER).setLevel(level)
    elif "--trace" in argv or os.environ.get("PROVIDER_TRACE", "false").lower() == "true":
        getLogger(ROOT_LOGGER).setLevel(TRACE)
    elif verbose or "-v" in argv or "--verbose" in argv or os.environ.get("PROVIDER_VERBOSE", "").lower() == "true":
        getLogger(ROOT_LOGGER).setLevel(DEBUG)
    elif quiet or "--quiet" in argv or os.environ.get("PROVIDER_QUIET", "false").lower() == "true":
        getLogger().setLevel(WARNING)
        getLogger(ROOT_LOGGER).setLevel(CRITICAL)


logging.addLevelName(TRACE, "TRACE")
log = getLogger(ROOT_LOGGER)
