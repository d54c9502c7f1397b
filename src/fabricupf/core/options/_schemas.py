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

"""Typed option schema with shared defaults.

:class:`UpfDefaults` is the single source of truth for which options
exist, their types and their default values.  The constants mirror the
ones used by the fabric UPF pipeline.
"""

from dataclasses import dataclass

DEFAULT_APP_ID = 'org.omecproject.up4'
DEFAULT_DEVICE_ID = 'device:leaf1'
DEFAULT_P4_DEVICE_ID = 1
DEFAULT_PRIORITY = 128
DEFAULT_DATABASE = 'sqlite:///:memory:'


@dataclass(frozen=True)
class UpfDefaults:
    """Runtime options of the UPF programmable layer.

    ``database`` is an SQLAlchemy connection string for the entry store.
    """

    app_id: str = DEFAULT_APP_ID
    device_id: str = DEFAULT_DEVICE_ID
    p4_device_id: int = DEFAULT_P4_DEVICE_ID
    default_priority: int = DEFAULT_PRIORITY
    database: str = DEFAULT_DATABASE


UPF_DEFAULTS = UpfDefaults()
