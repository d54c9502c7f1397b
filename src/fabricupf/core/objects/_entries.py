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

"""ORM models for the reference entry store and emulated device state."""

from __future__ import (
    annotations,  # This is needed since SQLAlchemy does not support forward references yet
)

import sqlalchemy
import sqlalchemy.event
import sqlalchemy.orm

from ._table import FieldMatch, MatchKind, TableAction, TableEntry, make_selector


class Base(sqlalchemy.orm.DeclarativeBase):
    pass


def enable_sqlite_fks(engine: sqlalchemy.engine.Engine) -> None:
    """Turn on foreign key enforcement for every new SQLite connection."""

    @sqlalchemy.event.listens_for(engine, 'connect')
    def _set_sqlite_pragma(dbapi_connection, connection_record):
        cursor = dbapi_connection.cursor()
        cursor.execute('PRAGMA foreign_keys=ON')
        cursor.close()


class DeviceRecord(Base):
    """A known device and the pipeline configuration deployed on it.

    An empty ``pipeline`` means the device is reachable but has no known
    pipeline configuration.
    """

    __tablename__ = 'devices'

    device_id: sqlalchemy.orm.Mapped[str] = sqlalchemy.orm.mapped_column(
        sqlalchemy.String,
        primary_key=True,
    )
    pipeline: sqlalchemy.orm.Mapped[str] = sqlalchemy.orm.mapped_column(
        sqlalchemy.String,
        default='',
    )
    p4_device_id: sqlalchemy.orm.Mapped[int] = sqlalchemy.orm.mapped_column(
        sqlalchemy.Integer,
        default=1,
    )

    counters: sqlalchemy.orm.Mapped[list[CounterRecord]] = sqlalchemy.orm.relationship(
        'CounterRecord',
        back_populates='device',
        cascade='all, delete-orphan',
    )


class CounterRecord(Base):
    """Packet/byte values of one indirect counter cell on a device."""

    __tablename__ = 'counter_cells'

    id: sqlalchemy.orm.Mapped[int] = sqlalchemy.orm.mapped_column(
        sqlalchemy.Integer,
        primary_key=True,
        autoincrement=True,
    )
    device_id: sqlalchemy.orm.Mapped[str] = sqlalchemy.orm.mapped_column(
        sqlalchemy.String,
        sqlalchemy.ForeignKey('devices.device_id'),
        nullable=False,
    )
    counter_id: sqlalchemy.orm.Mapped[str] = sqlalchemy.orm.mapped_column(
        sqlalchemy.String,
    )
    cell_index: sqlalchemy.orm.Mapped[int] = sqlalchemy.orm.mapped_column(
        sqlalchemy.Integer,
    )
    packet_count: sqlalchemy.orm.Mapped[int] = sqlalchemy.orm.mapped_column(
        sqlalchemy.Integer,
        default=0,
    )
    byte_count: sqlalchemy.orm.Mapped[int] = sqlalchemy.orm.mapped_column(
        sqlalchemy.Integer,
        default=0,
    )

    device: sqlalchemy.orm.Mapped[DeviceRecord] = sqlalchemy.orm.relationship(
        'DeviceRecord',
        back_populates='counters',
    )

    __table_args__ = (
        sqlalchemy.UniqueConstraint(
            'device_id', 'counter_id', 'cell_index', name='uq_counter_cells_cell'
        ),
    )


class InstalledEntry(Base):
    """A table entry installed on a device on behalf of an application."""

    __tablename__ = 'table_entries'

    id: sqlalchemy.orm.Mapped[int] = sqlalchemy.orm.mapped_column(
        sqlalchemy.Integer,
        primary_key=True,
        autoincrement=True,
    )
    device_id: sqlalchemy.orm.Mapped[str] = sqlalchemy.orm.mapped_column(
        sqlalchemy.String,
    )
    owner_id: sqlalchemy.orm.Mapped[str] = sqlalchemy.orm.mapped_column(
        sqlalchemy.String,
    )
    table_id: sqlalchemy.orm.Mapped[str] = sqlalchemy.orm.mapped_column(
        sqlalchemy.String,
    )
    selector: sqlalchemy.orm.Mapped[list] = sqlalchemy.orm.mapped_column(
        sqlalchemy.JSON,
        default=list,
    )
    action_id: sqlalchemy.orm.Mapped[str] = sqlalchemy.orm.mapped_column(
        sqlalchemy.String,
    )
    params: sqlalchemy.orm.Mapped[dict] = sqlalchemy.orm.mapped_column(
        sqlalchemy.JSON,
        default=dict,
    )
    priority: sqlalchemy.orm.Mapped[int] = sqlalchemy.orm.mapped_column(
        sqlalchemy.Integer,
        default=0,
    )

    __table_args__ = (
        sqlalchemy.Index('ix_table_entries_owner_id', 'owner_id'),
        sqlalchemy.Index('ix_table_entries_table_id', 'table_id'),
    )

    @staticmethod
    def selector_to_json(selector: tuple[FieldMatch, ...]) -> list[dict]:
        return [
            {
                'field': m.field_id,
                'kind': str(m.kind),
                'value': m.value,
                'prefix_len': m.prefix_len,
            }
            for m in selector
        ]

    @classmethod
    def from_entry(cls, entry: TableEntry) -> InstalledEntry:
        return cls(
            device_id=entry.device_id,
            owner_id=entry.owner_id,
            table_id=entry.table_id,
            selector=cls.selector_to_json(entry.selector),
            action_id=entry.action.action_id,
            params=entry.action.as_dict(),
            priority=entry.priority,
        )

    def to_entry(self) -> TableEntry:
        selector = make_selector(
            FieldMatch(
                field_id=m['field'],
                value=m['value'],
                kind=MatchKind(m['kind']),
                prefix_len=m.get('prefix_len'),
            )
            for m in self.selector or []
        )
        return TableEntry(
            device_id=self.device_id,
            owner_id=self.owner_id,
            table_id=self.table_id,
            selector=selector,
            action=TableAction.of(self.action_id, self.params),
            priority=self.priority,
            entry_id=self.id,
        )
