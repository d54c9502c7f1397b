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

"""Rebuilds logical flows from the flat list of installed entries.

Two passes over one snapshot of the owner's entries:

1. PDR entries are decoded and each opens a flow builder keyed by the
   PDR's global FAR ID, with the PDR's counters read right away.  FAR
   entries are decoded and set aside.  Everything else is ignored.
2. Each FAR is attached to the builder with its global FAR ID.  A FAR
   without one is an orphan and is dropped.

Builders without any FAR still become flows.
"""

from __future__ import annotations

import dataclasses
from collections.abc import Iterable
from typing import TYPE_CHECKING

from fabricupf.core._errors import TranslationError
from fabricupf.core.objects import (
    ForwardingActionRule,
    PacketDetectionRule,
    PdrStats,
    TableEntry,
    UpfFlow,
)

if TYPE_CHECKING:
    from fabricupf.translator._base import Diagnostics
    from fabricupf.translator._codec import RuleCodecs
    from fabricupf.translator._counters import CounterAggregator


@dataclasses.dataclass
class _FlowBuilder:
    pdr: PacketDetectionRule
    stats: PdrStats
    fars: list[ForwardingActionRule] = dataclasses.field(default_factory=list)

    def build(self) -> UpfFlow:
        return UpfFlow(pdr=self.pdr, stats=self.stats, fars=tuple(self.fars))


class FlowReconstructor:
    def __init__(
        self,
        codecs: RuleCodecs,
        counters: CounterAggregator,
        diagnostics: Diagnostics,
    ) -> None:
        self.codecs = codecs
        self.counters = counters
        self.diagnostics = diagnostics

    def reconstruct(self, entries: Iterable[TableEntry], owner_id: str) -> list[UpfFlow]:
        """Return one flow per PDR found in *entries* owned by *owner_id*."""
        builders: dict[int, _FlowBuilder] = {}
        fars: list[ForwardingActionRule] = []

        for entry in entries:
            if entry.owner_id != owner_id:
                continue
            if self.codecs.is_pdr(entry):
                try:
                    pdr = self.codecs.pdr.decode(entry)
                except TranslationError as e:
                    self.diagnostics.warning(
                        'translation_failed',
                        'Found what appears to be a PDR but it cannot be translated: %s (%s)',
                        entry,
                        e,
                    )
                    continue
                if pdr.global_far_id in builders:
                    # The later PDR wins the join slot
                    self.diagnostics.warning(
                        'duplicate_far_reference',
                        'PDR %s replaces %s as the flow for global FAR ID %d',
                        pdr,
                        builders[pdr.global_far_id].pdr,
                        pdr.global_far_id,
                    )
                stats = self.counters.read_counter(entry.device_id, pdr.counter_id)
                builders[pdr.global_far_id] = _FlowBuilder(pdr=pdr, stats=stats)
            elif self.codecs.is_far(entry):
                try:
                    fars.append(self.codecs.far.decode(entry))
                except TranslationError as e:
                    self.diagnostics.warning(
                        'translation_failed',
                        'Found what appears to be a FAR but it cannot be translated: %s (%s)',
                        entry,
                        e,
                    )

        for far in fars:
            builder = builders.get(far.global_far_id)
            if builder is None:
                self.diagnostics.warning(
                    'orphan_far',
                    'Found a FAR with no corresponding PDR: %s',
                    far,
                )
                continue
            builder.fars.append(far)

        return [builder.build() for builder in builders.values()]
