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

"""Combines ingress and egress counter cells into per-PDR statistics.

Statistics are best-effort telemetry: when the device or its pipeline
cannot be resolved the aggregator returns a zero-valued record for the
requested index instead of failing.
"""

from __future__ import annotations

from collections.abc import Iterable
from typing import TYPE_CHECKING

from fabricupf.core.objects import CounterCell, CounterType, PdrStats
from fabricupf.translator._constants import SouthConstants

if TYPE_CHECKING:
    from fabricupf.core import DeviceController
    from fabricupf.translator._base import Diagnostics


class CounterAggregator:
    """Reads and aggregates the ingress/egress counter pair of one index."""

    def __init__(self, devices: DeviceController | None, diagnostics: Diagnostics) -> None:
        self.devices = devices
        self.diagnostics = diagnostics

    @staticmethod
    def handles(index: int) -> list[tuple[str, int]]:
        """The (counter id, index) pairs read for one PDR counter index."""
        return [
            (SouthConstants.INGRESS_COUNTER_ID, index),
            (SouthConstants.EGRESS_COUNTER_ID, index),
        ]

    def aggregate(self, index: int, cells: Iterable[CounterCell]) -> PdrStats:
        """Route *cells* into the ingress and egress slots of a PdrStats.

        Cells of the wrong counter type, for another index or from an
        unknown counter are discarded with a ``counter_skipped`` warning.
        """
        ingress = (0, 0)
        egress = (0, 0)
        for cell in cells:
            if cell.counter_type != CounterType.INDIRECT:
                self.diagnostics.warning(
                    'counter_skipped',
                    'Invalid counter data type %s, skipping',
                    cell.counter_type,
                )
                continue
            if cell.index != index:
                self.diagnostics.warning(
                    'counter_skipped',
                    'Unrecognized counter index %d for cell %s, skipping',
                    cell.index,
                    cell,
                )
                continue
            match cell.counter_id:
                case SouthConstants.INGRESS_COUNTER_ID:
                    ingress = (cell.packets, cell.bytes)
                case SouthConstants.EGRESS_COUNTER_ID:
                    egress = (cell.packets, cell.bytes)
                case _:
                    self.diagnostics.warning(
                        'counter_skipped',
                        'Unrecognized counter ID %s, skipping',
                        cell.counter_id,
                    )
        return PdrStats(
            cell_id=index,
            ingress_pkts=ingress[0],
            ingress_bytes=ingress[1],
            egress_pkts=egress[0],
            egress_bytes=egress[1],
        )

    def read_counter(self, device_id: str, index: int) -> PdrStats:
        """Read the counters of *index* on *device_id*.

        Never raises for an unknown device; the result then carries the
        index with all counts at zero.
        """
        client = self.devices.get_client(device_id) if self.devices is not None else None
        if client is None:
            self.diagnostics.warning(
                'device_unresolved',
                'Unable to find client for %s, aborting operation',
                device_id,
            )
            return PdrStats(cell_id=index)
        pipeline = self.devices.get_pipeline(device_id)
        if pipeline is None:
            self.diagnostics.warning(
                'device_unresolved',
                'Unable to load pipeline config for %s, aborting operation',
                device_id,
            )
            return PdrStats(cell_id=index)
        cells = client.read_counters(pipeline, self.handles(index))
        return self.aggregate(index, cells)
