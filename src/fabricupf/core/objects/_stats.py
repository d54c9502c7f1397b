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

"""Counter cells, per-PDR statistics and reconstructed flows."""

from __future__ import annotations

import dataclasses
import enum

from ._rules import ForwardingActionRule, PacketDetectionRule


class CounterType(enum.StrEnum):
    DIRECT = 'direct'
    INDIRECT = 'indirect'


@dataclasses.dataclass(frozen=True, slots=True)
class CounterCell:
    """One counter cell as returned by a device read."""

    counter_id: str
    index: int
    packets: int = 0
    bytes: int = 0
    counter_type: CounterType = CounterType.INDIRECT


@dataclasses.dataclass(frozen=True, slots=True)
class PdrStats:
    """Ingress and egress packet/byte counts for one counter index.

    A record with all counts at zero may also mean the counters could not
    be read at all.
    """

    cell_id: int
    ingress_pkts: int = 0
    ingress_bytes: int = 0
    egress_pkts: int = 0
    egress_bytes: int = 0

    def __str__(self) -> str:
        return (
            f'Stats{{CtrIdx={self.cell_id}, '
            f'Ingress(pkts={self.ingress_pkts}, bytes={self.ingress_bytes}), '
            f'Egress(pkts={self.egress_pkts}, bytes={self.egress_bytes})}}'
        )


@dataclasses.dataclass(frozen=True, slots=True)
class UpfFlow:
    """A PDR joined with the FARs that share its global FAR ID."""

    pdr: PacketDetectionRule
    stats: PdrStats
    fars: tuple[ForwardingActionRule, ...] = ()

    @property
    def global_far_id(self) -> int:
        return self.pdr.global_far_id

    def __str__(self) -> str:
        if self.fars:
            fars = ', '.join(str(far) for far in self.fars)
        else:
            fars = 'NO FARs'
        return f'Flow{{{self.pdr} => [{fars}], {self.stats}}}'
