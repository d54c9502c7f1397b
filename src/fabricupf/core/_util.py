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

"""Shared code for the YAML reader and writer.

Document section names, the interface type spellings accepted in rule
documents, and the ParseResult dataclass.
"""

import dataclasses

from . import objects
from .options import UPF_DEFAULTS, UpfDefaults


@dataclasses.dataclass
class ParseResult:
    """Holds the rules read from one document plus its options overlay."""

    pdrs: list[objects.PacketDetectionRule] = dataclasses.field(default_factory=list)
    fars: list[objects.ForwardingActionRule] = dataclasses.field(default_factory=list)
    interfaces: list[objects.UpfInterface] = dataclasses.field(default_factory=list)
    options: UpfDefaults = UPF_DEFAULTS
    skipped: int = 0

    def __len__(self):
        return len(self.pdrs) + len(self.fars) + len(self.interfaces)


SECTION_PDRS = 'pdrs'
SECTION_FARS = 'fars'
SECTION_INTERFACES = 'interfaces'
SECTION_FLOWS = 'flows'
SECTION_OPTIONS = 'options'

# Accepted spellings of the interface role in documents
INTERFACE_TYPES = {
    's1u': objects.InterfaceType.S1U,
    'access': objects.InterfaceType.S1U,
    'ue_pool': objects.InterfaceType.UE_POOL,
    'ue-pool': objects.InterfaceType.UE_POOL,
    'core': objects.InterfaceType.UE_POOL,
}
