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

"""Exception types shared by the translator, the stores and the facade."""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from fabricupf.core.objects import EntryMatch


class UpfError(Exception):
    """Base class for all fabricupf errors."""


class TranslationError(UpfError):
    """A rule or table entry lacks what is needed to translate it.

    *kind* names the rule kind ('PDR', 'FAR', 'Interface'), *reason* the
    offending field or condition.
    """

    def __init__(self, kind: str, reason: str) -> None:
        super().__init__(f'Unable to translate {kind}: {reason}')
        self.kind = kind
        self.reason = reason


class EntryNotFoundError(UpfError):
    """No installed entry matches a deletion selector."""

    def __init__(self, match: EntryMatch) -> None:
        super().__init__(f'No installed entry matches {match}')
        self.match = match


class StoreError(UpfError):
    """The entry store or device could not carry out a request."""
