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

"""Canonical option key definitions using StrEnum.

The keys are shared between the YAML configuration file, the command line
tool and the programmable facade, so a typo fails at import time instead
of being silently ignored.

Example:
    from fabricupf.core.options import UpfOption

    priority = options[UpfOption.DEFAULT_PRIORITY]
"""

from enum import StrEnum


class UpfOption(StrEnum):
    """Top-level keys of a fabricupf configuration file."""

    # Identity of the application owning all installed entries
    APP_ID = 'app_id'

    # Target device
    DEVICE_ID = 'device_id'
    P4_DEVICE_ID = 'p4_device_id'

    # Table entries
    DEFAULT_PRIORITY = 'default_priority'

    # Entry store
    DATABASE = 'database'
