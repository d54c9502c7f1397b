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

"""Entry store and device counter collaborators.

The abstract classes describe what the translator needs from the device
layer.  :class:`DatabaseEntryStore` and :class:`DatabaseDeviceController`
implement them on top of :class:`DatabaseManager`, which makes the whole
stack usable without a switch (the command line tool and the tests use
them).
"""

from __future__ import annotations

import abc
import dataclasses
import logging
from collections.abc import Iterable
from typing import TYPE_CHECKING

import sqlalchemy
import sqlalchemy.exc

from . import objects
from ._errors import StoreError

if TYPE_CHECKING:
    from ._database import DatabaseManager

logger = logging.getLogger(__name__)


class EntryStore(abc.ABC):
    """Persists installed table entries, grouped by owning application."""

    @abc.abstractmethod
    def apply(self, entry: objects.TableEntry) -> objects.TableEntry:
        """Install *entry* and return it with its store-assigned id."""

    @abc.abstractmethod
    def remove(self, entry: objects.TableEntry) -> bool:
        """Remove *entry*.  Returns False if it was not installed."""

    @abc.abstractmethod
    def entries(self, owner_id: str) -> list[objects.TableEntry]:
        """Return a snapshot of all entries installed by *owner_id*."""

    def remove_owned(self, owner_id: str) -> int:
        """Remove every entry of *owner_id* and return how many were removed."""
        removed = 0
        for entry in self.entries(owner_id):
            if self.remove(entry):
                removed += 1
        return removed


@dataclasses.dataclass(frozen=True)
class PipelineConfig:
    """The pipeline program deployed on a device."""

    name: str
    p4_device_id: int = 1


class CounterClient(abc.ABC):
    """Reads counter cells from one device."""

    @abc.abstractmethod
    def read_counters(
        self,
        pipeline: PipelineConfig,
        handles: Iterable[tuple[str, int]],
    ) -> list[objects.CounterCell]:
        """Read the cells named by (counter id, index) *handles*.

        Cells that cannot be read are left out of the result.
        """


class DeviceController(abc.ABC):
    """Resolves device ids to counter clients and pipeline configurations."""

    @abc.abstractmethod
    def get_client(self, device_id: str) -> CounterClient | None:
        pass

    @abc.abstractmethod
    def get_pipeline(self, device_id: str) -> PipelineConfig | None:
        pass


class DatabaseEntryStore(EntryStore):
    """Entry store backed by the ``table_entries`` table."""

    def __init__(self, db: DatabaseManager) -> None:
        self.db = db

    def apply(self, entry):
        selector = objects.InstalledEntry.selector_to_json(entry.selector)
        try:
            with self.db.session() as session:
                existing = None
                for row in session.scalars(
                    sqlalchemy.select(objects.InstalledEntry).where(
                        objects.InstalledEntry.owner_id == entry.owner_id,
                        objects.InstalledEntry.device_id == entry.device_id,
                        objects.InstalledEntry.table_id == entry.table_id,
                    ),
                ):
                    if row.selector == selector:
                        existing = row
                        break
                if existing is None:
                    row = objects.InstalledEntry.from_entry(entry)
                    session.add(row)
                else:
                    logger.debug('Overwriting entry %d in %s', existing.id, entry.table_id)
                    row = existing
                    row.action_id = entry.action.action_id
                    row.params = entry.action.as_dict()
                    row.priority = entry.priority
                session.flush()
                return row.to_entry()
        except sqlalchemy.exc.SQLAlchemyError as e:
            raise StoreError(f'Unable to apply {entry}: {e}') from e

    def remove(self, entry):
        try:
            with self.db.session() as session:
                if entry.entry_id is not None:
                    row = session.get(objects.InstalledEntry, entry.entry_id)
                    if row is None or row.owner_id != entry.owner_id:
                        return False
                    session.delete(row)
                    return True
                selector = objects.InstalledEntry.selector_to_json(entry.selector)
                for row in session.scalars(
                    sqlalchemy.select(objects.InstalledEntry).where(
                        objects.InstalledEntry.owner_id == entry.owner_id,
                        objects.InstalledEntry.table_id == entry.table_id,
                    ),
                ):
                    if row.selector == selector:
                        session.delete(row)
                        return True
                return False
        except sqlalchemy.exc.SQLAlchemyError as e:
            raise StoreError(f'Unable to remove {entry}: {e}') from e

    def entries(self, owner_id):
        try:
            with self.db.session() as session:
                rows = session.scalars(
                    sqlalchemy.select(objects.InstalledEntry)
                    .where(objects.InstalledEntry.owner_id == owner_id)
                    .order_by(objects.InstalledEntry.id),
                ).all()
                return [row.to_entry() for row in rows]
        except sqlalchemy.exc.SQLAlchemyError as e:
            raise StoreError(f'Unable to list entries of {owner_id}: {e}') from e

    def remove_owned(self, owner_id):
        try:
            with self.db.session() as session:
                result = session.execute(
                    sqlalchemy.delete(objects.InstalledEntry).where(
                        objects.InstalledEntry.owner_id == owner_id,
                    ),
                )
                return result.rowcount
        except sqlalchemy.exc.SQLAlchemyError as e:
            raise StoreError(f'Unable to remove entries of {owner_id}: {e}') from e


class DatabaseCounterClient(CounterClient):
    """Reads indirect counter cells of one device from ``counter_cells``."""

    def __init__(self, db: DatabaseManager, device_id: str) -> None:
        self.db = db
        self.device_id = device_id

    def read_counters(self, pipeline, handles):
        cells = []
        with self.db.session() as session:
            for counter_id, index in handles:
                row = session.scalars(
                    sqlalchemy.select(objects.CounterRecord).where(
                        objects.CounterRecord.device_id == self.device_id,
                        objects.CounterRecord.counter_id == counter_id,
                        objects.CounterRecord.cell_index == index,
                    ),
                ).one_or_none()
                if row is None:
                    # Never written, the device reports zero
                    cells.append(objects.CounterCell(counter_id=counter_id, index=index))
                    continue
                cells.append(
                    objects.CounterCell(
                        counter_id=row.counter_id,
                        index=row.cell_index,
                        packets=row.packet_count,
                        bytes=row.byte_count,
                    ),
                )
        return cells


class DatabaseDeviceController(DeviceController):
    """Device registry backed by the ``devices`` and ``counter_cells`` tables."""

    def __init__(self, db: DatabaseManager) -> None:
        self.db = db

    def register_device(self, device_id, pipeline='fabric-spgw', p4_device_id=1):
        """Add or update a device.  An empty *pipeline* means "not known"."""
        with self.db.session() as session:
            device = session.get(objects.DeviceRecord, device_id)
            if device is None:
                device = objects.DeviceRecord(device_id=device_id)
                session.add(device)
            device.pipeline = pipeline
            device.p4_device_id = p4_device_id
        logger.debug('Registered device %s (pipeline %r)', device_id, pipeline)

    def set_counter(self, device_id, counter_id, index, packets, byte_count):
        """Set the packet and byte values of one counter cell."""
        with self.db.session() as session:
            if session.get(objects.DeviceRecord, device_id) is None:
                raise StoreError(f'Unknown device {device_id}')
            row = session.scalars(
                sqlalchemy.select(objects.CounterRecord).where(
                    objects.CounterRecord.device_id == device_id,
                    objects.CounterRecord.counter_id == counter_id,
                    objects.CounterRecord.cell_index == index,
                ),
            ).one_or_none()
            if row is None:
                row = objects.CounterRecord(
                    device_id=device_id,
                    counter_id=counter_id,
                    cell_index=index,
                )
                session.add(row)
            row.packet_count = packets
            row.byte_count = byte_count

    def get_client(self, device_id):
        with self.db.session() as session:
            if session.get(objects.DeviceRecord, device_id) is None:
                return None
        return DatabaseCounterClient(self.db, device_id)

    def get_pipeline(self, device_id):
        with self.db.session() as session:
            device = session.get(objects.DeviceRecord, device_id)
            if device is None or not device.pipeline:
                return None
            return PipelineConfig(name=device.pipeline, p4_device_id=device.p4_device_id)
