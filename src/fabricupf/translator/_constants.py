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

"""Table, field, action and counter identifiers of the fabric SPGW pipeline.

These names are a fixed contract with the P4 program running on the
device; changing one breaks every installed entry.
"""

from enum import IntEnum


class SouthConstants:
    """Identifiers used by the fabric pipeline's spgw control blocks."""

    # Tables
    PDR_UPLINK_TBL = 'FabricIngress.spgw_ingress.uplink_pdr_lookup'
    PDR_DOWNLINK_TBL = 'FabricIngress.spgw_ingress.downlink_pdr_lookup'
    FAR_TBL = 'FabricIngress.spgw_ingress.far_lookup'
    INTERFACE_LOOKUP = 'FabricIngress.spgw_ingress.interface_lookup'

    # Match keys
    UE_ADDR_KEY = 'ue_addr'
    TEID_KEY = 'teid'
    TUNNEL_DST_KEY = 'tunnel_ipv4_dst'
    FAR_ID_KEY = 'far_id'
    IPV4_DST_ADDR = 'ipv4_dst_addr'
    GTPU_IS_VALID = 'gtpu_is_valid'

    # Actions
    LOAD_PDR = 'FabricIngress.spgw_ingress.load_pdr'
    LOAD_FAR_NORMAL = 'FabricIngress.spgw_ingress.load_normal_far'
    LOAD_FAR_TUNNEL = 'FabricIngress.spgw_ingress.load_tunnel_far'
    LOAD_IFACE = 'FabricIngress.spgw_ingress.load_iface'

    # Action parameters
    CTR_ID = 'ctr_id'
    FAR_ID_PARAM = 'far_id'
    NEEDS_GTPU_DECAP = 'needs_gtpu_decap'
    DROP = 'drop'
    NOTIFY_CP = 'notify_cp'
    TUNNEL_SRC_PARAM = 'tunnel_src_addr'
    TUNNEL_DST_PARAM = 'tunnel_dst_addr'
    TEID_PARAM = 'teid'
    TUNNEL_SRC_PORT_PARAM = 'tunnel_src_port'
    SRC_IFACE_PARAM = 'src_iface'

    # Counters, always indirect and read in ingress/egress pairs
    INGRESS_COUNTER_ID = 'FabricIngress.spgw_ingress.pdr_counter'
    EGRESS_COUNTER_ID = 'FabricEgress.spgw_egress.pdr_counter'

    PDR_TABLES = frozenset({PDR_UPLINK_TBL, PDR_DOWNLINK_TBL})


class SourceInterface(IntEnum):
    """Values of the ``src_iface`` parameter of ``load_iface``."""

    UNKNOWN = 0
    ACCESS = 1
    CORE = 2


S1U_PREFIX_LEN = 32
