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

"""Value types for UPF rules and table entries, plus the store ORM models."""

from ._entries import (
    Base,
    CounterRecord,
    DeviceRecord,
    InstalledEntry,
    enable_sqlite_fks,
)
from ._rules import (
    GTPU_PORT,
    ForwardingActionRule,
    GtpTunnel,
    InterfaceType,
    PacketDetectionRule,
    PdrDirection,
    UpfInterface,
)
from ._stats import CounterCell, CounterType, PdrStats, UpfFlow
from ._table import (
    EntryMatch,
    FieldMatch,
    MatchKind,
    TableAction,
    TableEntry,
    make_selector,
)

__all__ = [
    'GTPU_PORT',
    'Base',
    'CounterCell',
    'CounterRecord',
    'CounterType',
    'DeviceRecord',
    'EntryMatch',
    'FieldMatch',
    'ForwardingActionRule',
    'GtpTunnel',
    'InstalledEntry',
    'InterfaceType',
    'MatchKind',
    'PacketDetectionRule',
    'PdrDirection',
    'PdrStats',
    'TableAction',
    'TableEntry',
    'UpfFlow',
    'UpfInterface',
    'enable_sqlite_fks',
    'make_selector',
]
