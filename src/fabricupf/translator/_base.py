# Copyright (C) 2026 Linuxfabrik <info@linuxfabrik.ch>
#
# This program is free software; you can redistribute it and/or modify
# it under the terms of the GNU General Public License as published by
# the Free Software Foundation; either version 2 of the License, or
# (at your option) any later version.
#
# On Debian systems, the complete text of the GNU General Public License
# version 2 can be found in /usr/share/common-licenses/GPL-2.
#
# SPDX-License-Identifier: GPL-2.0-or-later

"""Diagnostics: leveled, structured event tracking for translator components.

Every component reports through a :class:`Diagnostics` sink.  Each event is
forwarded to the standard :mod:`logging` machinery and also kept as a
:class:`Diagnostic` record so callers (and tests) can inspect what happened
without parsing log text.
"""

from __future__ import annotations

import collections
import dataclasses
import logging
from enum import IntEnum

logger = logging.getLogger(__name__)


class TranslatorStatus(IntEnum):
    """Worst outcome seen by a diagnostics sink."""

    SUCCESS = 0
    WARNING = 1
    ERROR = 2


@dataclasses.dataclass(frozen=True, slots=True)
class Diagnostic:
    level: int
    event: str
    message: str

    @property
    def level_name(self) -> str:
        return logging.getLevelName(self.level)

    def __str__(self) -> str:
        return f'{self.level_name} {self.event}: {self.message}'


class Diagnostics:
    """Collects diagnostic events and tracks the overall status.

    Only the newest *max_events* records are kept; older ones are still
    logged but drop out of :attr:`events` and :meth:`count`.  The status is
    sticky until :meth:`clear`, which a long-lived owner calls between
    units of work.
    """

    DEFAULT_MAX_EVENTS = 1000

    def __init__(self, log: logging.Logger | None = None, max_events: int = DEFAULT_MAX_EVENTS) -> None:
        self._log: logging.Logger = log or logger
        self._events: collections.deque[Diagnostic] = collections.deque(maxlen=max_events)
        self._status: TranslatorStatus = TranslatorStatus.SUCCESS

    @property
    def status(self) -> TranslatorStatus:
        return self._status

    @property
    def events(self) -> list[Diagnostic]:
        return list(self._events)

    def emit(self, level: int, event: str, msg: str, *args) -> Diagnostic:
        """Record an event and forward it to the logger.

        *msg* and *args* follow the lazy ``%`` formatting of :mod:`logging`.
        """
        text = msg % args if args else msg
        record = Diagnostic(level=level, event=event, message=text)
        self._events.append(record)
        self._log.log(level, '%s', text)
        if level >= logging.ERROR:
            self._status = TranslatorStatus.ERROR
        elif level >= logging.WARNING and self._status == TranslatorStatus.SUCCESS:
            self._status = TranslatorStatus.WARNING
        return record

    def debug(self, event: str, msg: str, *args) -> Diagnostic:
        return self.emit(logging.DEBUG, event, msg, *args)

    def info(self, event: str, msg: str, *args) -> Diagnostic:
        return self.emit(logging.INFO, event, msg, *args)

    def warning(self, event: str, msg: str, *args) -> Diagnostic:
        return self.emit(logging.WARNING, event, msg, *args)

    def error(self, event: str, msg: str, *args) -> Diagnostic:
        return self.emit(logging.ERROR, event, msg, *args)

    def count(self, event: str, level: int | None = None) -> int:
        """Return how many events named *event* (optionally at *level*) were seen."""
        return sum(
            1
            for d in self._events
            if d.event == event and (level is None or d.level == level)
        )

    def get_errors(self) -> list[str]:
        return [d.message for d in self._events if d.level >= logging.ERROR]

    def get_warnings(self) -> list[str]:
        return [
            d.message
            for d in self._events
            if logging.WARNING <= d.level < logging.ERROR
        ]

    def clear(self) -> None:
        self._events.clear()
        self._status = TranslatorStatus.SUCCESS
