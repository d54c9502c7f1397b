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

"""Low-level table entry representation.

A TableEntry is what actually gets installed on the forwarding pipeline:
a table, a match selector, an action with integer parameters, a priority
and the owning application.  Selectors are normalized (sorted by field id)
so two selectors built in a different order still compare equal.
"""

from __future__ import annotations

import dataclasses
import enum
from collections.abc import Iterable, Mapping


class MatchKind(enum.StrEnum):
    """Match type of a single selector field."""

    EXACT = 'exact'
    LPM = 'lpm'


@dataclasses.dataclass(frozen=True, slots=True)
class FieldMatch:
    """One field of a match selector."""

    field_id: str
    value: int
    kind: MatchKind = MatchKind.EXACT
    prefix_len: int | None = None

    @classmethod
    def exact(cls, field_id: str, value: int) -> FieldMatch:
        return cls(field_id=field_id, value=int(value))

    @classmethod
    def lpm(cls, field_id: str, value: int, prefix_len: int) -> FieldMatch:
        return cls(
            field_id=field_id,
            value=int(value),
            kind=MatchKind.LPM,
            prefix_len=int(prefix_len),
        )

    def __str__(self) -> str:
        if self.kind == MatchKind.LPM:
            return f'{self.field_id}={self.value:#x}/{self.prefix_len}'
        return f'{self.field_id}={self.value:#x}'


def make_selector(matches: Iterable[FieldMatch]) -> tuple[FieldMatch, ...]:
    """Return a normalized selector tuple, sorted by field id.

    Raises ValueError when a field appears more than once.
    """
    selector = tuple(sorted(matches, key=lambda m: m.field_id))
    seen: set[str] = set()
    for m in selector:
        if m.field_id in seen:
            raise ValueError(f'Duplicate match field: {m.field_id}')
        seen.add(m.field_id)
    return selector


@dataclasses.dataclass(frozen=True, slots=True)
class TableAction:
    """Action id plus its integer parameters, stored as sorted pairs."""

    action_id: str
    params: tuple[tuple[str, int], ...] = ()

    @classmethod
    def of(cls, action_id: str, params: Mapping[str, int] | None = None) -> TableAction:
        items = tuple(sorted((k, int(v)) for k, v in (params or {}).items()))
        return cls(action_id=action_id, params=items)

    def param(self, name: str) -> int | None:
        for key, value in self.params:
            if key == name:
                return value
        return None

    def as_dict(self) -> dict[str, int]:
        return dict(self.params)

    def __str__(self) -> str:
        args = ', '.join(f'{k}={v}' for k, v in self.params)
        return f'{self.action_id}({args})'


@dataclasses.dataclass(frozen=True, slots=True)
class EntryMatch:
    """Identifying part of a table entry: the table plus its selector.

    Used to look up installed entries when a delete request does not carry
    the action parameters.
    """

    table_id: str
    selector: tuple[FieldMatch, ...]

    def field(self, field_id: str) -> FieldMatch | None:
        for m in self.selector:
            if m.field_id == field_id:
                return m
        return None

    def __str__(self) -> str:
        fields = ', '.join(str(m) for m in self.selector)
        return f'{self.table_id}[{fields}]'


@dataclasses.dataclass(frozen=True, slots=True)
class TableEntry:
    """A table entry as installed on (or read back from) a device."""

    device_id: str
    owner_id: str
    table_id: str
    selector: tuple[FieldMatch, ...]
    action: TableAction
    priority: int
    # Assigned by the entry store, not part of the entry's identity.
    entry_id: int | None = dataclasses.field(default=None, compare=False)

    @property
    def match(self) -> EntryMatch:
        return EntryMatch(table_id=self.table_id, selector=self.selector)

    def field(self, field_id: str) -> FieldMatch | None:
        return self.match.field(field_id)

    def __str__(self) -> str:
        fields = ', '.join(str(m) for m in self.selector)
        return (
            f'TableEntry{{{self.table_id}[{fields}] -> {self.action}, '
            f'priority={self.priority}, owner={self.owner_id}}}'
        )
