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

import contextlib
import logging

import sqlalchemy
import sqlalchemy.orm
import sqlalchemy.pool

from . import objects

logger = logging.getLogger(__name__)


class DatabaseManager:
    def __init__(self, connection_string='sqlite:///:memory:'):
        logger.debug('Opening database %s', connection_string)
        engine_args = {}
        if connection_string in ('sqlite://', 'sqlite:///:memory:'):
            # One shared connection, otherwise every session sees its own empty database
            engine_args['poolclass'] = sqlalchemy.pool.StaticPool
            engine_args['connect_args'] = {'check_same_thread': False}
        self.engine = sqlalchemy.create_engine(connection_string, echo=False, **engine_args)
        self._session_factory = sqlalchemy.orm.sessionmaker(
            self.engine,
            expire_on_commit=False,
        )
        objects.enable_sqlite_fks(self.engine)
        self._reset_db(recreate_schema=True, drop=False)

    @contextlib.contextmanager
    def session(self):
        """Create a new database session. The transaction is committed when the contextmanager exits and rolled back on error."""
        session = self._session_factory()
        try:
            yield session
            session.commit()
        except Exception:
            session.rollback()
            raise
        finally:
            session.close()

    def create_session(self):
        """Create a new database session for manual use. Remember to commit."""
        return self._session_factory()

    def reset(self):
        """Drop all tables and recreate an empty schema."""
        self._reset_db(recreate_schema=True, drop=True)

    def _reset_db(self, recreate_schema, drop):
        logger.debug('Resetting database')
        if drop:
            objects.Base.metadata.drop_all(self.engine)
        if recreate_schema:
            logger.debug('Creating database schema')
            objects.Base.metadata.create_all(self.engine)
