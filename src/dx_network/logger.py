#
# Copyright (C) 2018- DEEPX Ltd.
# All rights reserved.
#
# This software is the property of DEEPX and is provided exclusively to customers
# who are supplied with DEEPX NPU (Neural Processing Unit).
# Unauthorized sharing or usage is strictly prohibited by law.
#

import os
import logging
from enum import IntEnum
from typing import Optional, Union

LOG_LEVEL_ENV = "DXNN_LOG_LEVEL"
LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


class LogLevel(IntEnum):
    NONE = 0
    ERROR = 1
    INFO = 2
    DEBUG = 3

    def to_logging(self) -> int:
        return {
            LogLevel.NONE: logging.CRITICAL + 10,
            LogLevel.ERROR: logging.ERROR,
            LogLevel.INFO: logging.INFO,
            LogLevel.DEBUG: logging.DEBUG,
        }[self]

    @classmethod
    def from_string(cls, name: str) -> "LogLevel":
        try:
            return cls[name.strip().upper()]
        except KeyError:
            raise ValueError(f"Unknown log level: {name}") from None


def resolve_level(level: Optional[Union[LogLevel, str]] = None) -> LogLevel:
    """
    Picks the effective log level.

    An explicit ``level`` wins; otherwise ``DXNN_LOG_LEVEL`` is consulted and
    INFO is used when neither is set.
    """
    if level is None:
        level = os.environ.get(LOG_LEVEL_ENV, LogLevel.INFO.name)
    if isinstance(level, str):
        return LogLevel.from_string(level)
    return LogLevel(level)


def setup_logging(level: Optional[Union[LogLevel, str]] = None) -> LogLevel:
    resolved = resolve_level(level)
    logging.basicConfig(
        format=LOG_FORMAT,
        level=resolved.to_logging(),
    )
    # basicConfig leaves an already configured root logger alone
    logging.getLogger().setLevel(resolved.to_logging())
    return resolved
