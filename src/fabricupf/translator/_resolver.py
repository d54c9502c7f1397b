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

"""Finds and removes installed entries by their identifying match.

Resolution scans the owner's installed entries and picks the first one
whose table and selector equal the requested match.  Nothing is touched
when no entry is equal.
"""

from __future__ import annotations

from collections.abc import Sequence
from typing import TYPE_CHECKING

from fabricupf.core._errors import EntryNotFoundError

if TYPE_CHECKING:
    from fabricupf.core import EntryStore
    from fabricupf.core.objects import EntryMatch, TableEntry
    from fabricupf.translator._base import Diagnostics


class EntryResolver:
    def __init__(self, store: EntryStore, diagnostics: Diagnostics) -> None:
        self.store = store
        self.diagnostics = diagnostics

    def find(self, match: EntryMatch, owner_id: str) -> TableEntry:
        """Return the installed entry equal to *match*.

        Raises EntryNotFoundError when there is none.
        """
        for entry in self.store.entries(owner_id):
            if entry.table_id == match.table_id and entry.selector == match.selector:
                return entry
        raise EntryNotFoundError(match)

    def remove(self, match: EntryMatch, owner_id: str, fail_silent: bool = False) -> bool:
        """Remove the installed entry equal to *match*.

        A miss is reported at error level unless *fail_silent* is set, in
        which case it is only logged at debug level.
        """
        try:
            entry = self.find(match, owner_id)
        except EntryNotFoundError as e:
            if fail_silent:
                self.diagnostics.debug('not_found', '%s', e)
            else:
                self.diagnostics.error('not_found', 'Did not remove entry: %s', e)
            return False
        if not self.store.remove(entry):
            # Gone between the scan and the removal
            if not fail_silent:
                self.diagnostics.error('not_found', 'Entry vanished before removal: %s', entry)
            return False
        self.diagnostics.info('removed', 'Removed %s', entry)
        return True

    def remove_first(self, candidates: Sequence[EntryMatch], owner_id: str) -> bool:
        """Try *candidates* in order and remove the first one installed.

        If none of them resolves, a single error records the total failure.
        """
        for match in candidates:
            if self.remove(match, owner_id, fail_silent=True):
                return True
        self.diagnostics.error(
            'not_found',
            'Could not remove any of %s',
            ', '.join(str(m) for m in candidates),
        )
        return False
