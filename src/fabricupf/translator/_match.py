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

"""Identifying match criteria for deletion lookups.

A delete request usually carries only the fields that identify a rule,
not its full action data, so these matches leave the action out and
contain exactly the selector fields the codecs put in.
"""

from __future__ import annotations

import ipaddress

from fabricupf.core._errors import TranslationError
from fabricupf.core.objects import (
    EntryMatch,
    FieldMatch,
    ForwardingActionRule,
    PacketDetectionRule,
    PdrDirection,
    UpfInterface,
    make_selector,
)
from fabricupf.translator._constants import S1U_PREFIX_LEN, SouthConstants


class EntryMatchBuilder:
    """Builds :class:`EntryMatch` objects for PDRs, FARs and interfaces."""

    def pdr_match(self, pdr: PacketDetectionRule) -> EntryMatch:
        """Match for a PDR.  Flexible PDRs raise TranslationError."""
        match pdr.direction:
            case PdrDirection.UPLINK:
                return self._build(
                    SouthConstants.PDR_UPLINK_TBL,
                    FieldMatch.exact(SouthConstants.UE_ADDR_KEY, int(pdr.ue_address)),
                    FieldMatch.exact(SouthConstants.TEID_KEY, pdr.teid),
                    FieldMatch.exact(SouthConstants.TUNNEL_DST_KEY, int(pdr.tunnel_dst)),
                )
            case PdrDirection.DOWNLINK:
                return self._build(
                    SouthConstants.PDR_DOWNLINK_TBL,
                    FieldMatch.exact(SouthConstants.UE_ADDR_KEY, int(pdr.ue_address)),
                )
        raise TranslationError('PDR', 'removal of flexible PDRs is not supported')

    def far_match(self, far: ForwardingActionRule) -> EntryMatch:
        return self._build(
            SouthConstants.FAR_TBL,
            FieldMatch.exact(SouthConstants.FAR_ID_KEY, far.global_far_id),
        )

    def s1u_match(self, address) -> EntryMatch:
        """Host-exact match with the tunnel-valid flag set."""
        address = ipaddress.IPv4Address(address)
        return self._build(
            SouthConstants.INTERFACE_LOOKUP,
            FieldMatch.lpm(SouthConstants.IPV4_DST_ADDR, int(address), S1U_PREFIX_LEN),
            FieldMatch.exact(SouthConstants.GTPU_IS_VALID, 1),
        )

    def ue_pool_match(self, prefix) -> EntryMatch:
        """Full-prefix match with the tunnel-valid flag cleared."""
        prefix = ipaddress.IPv4Network(prefix)
        return self._build(
            SouthConstants.INTERFACE_LOOKUP,
            FieldMatch.lpm(
                SouthConstants.IPV4_DST_ADDR,
                int(prefix.network_address),
                prefix.prefixlen,
            ),
            FieldMatch.exact(SouthConstants.GTPU_IS_VALID, 0),
        )

    def interface_match(self, iface: UpfInterface) -> EntryMatch:
        if iface.is_s1u():
            return self.s1u_match(iface.address)
        return self.ue_pool_match(iface.prefix)

    def unknown_interface_candidates(self, prefix) -> list[EntryMatch]:
        """Candidate matches for an interface whose role is not known.

        The S1U-style host match comes first, the UE-pool match second.
        """
        prefix = ipaddress.IPv4Network(prefix, strict=False)
        return [
            self.s1u_match(prefix.network_address),
            self.ue_pool_match(prefix),
        ]

    @staticmethod
    def _build(table_id: str, *matches: FieldMatch) -> EntryMatch:
        return EntryMatch(table_id=table_id, selector=make_selector(matches))
