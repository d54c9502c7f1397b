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

"""Logical UPF rules: PDRs, FARs and interfaces.

These are transient value objects built by the caller and handed to the
translator right away.  They carry no device or ownership information.
"""

from __future__ import annotations

import dataclasses
import enum
import ipaddress

GTPU_PORT = 2152


class PdrDirection(enum.StrEnum):
    """Direction of a PDR, derived from which match fields are present."""

    UPLINK = 'uplink'
    DOWNLINK = 'downlink'
    FLEXIBLE = 'flexible'


class InterfaceType(enum.StrEnum):
    """Role of a UPF interface."""

    S1U = 's1u'
    UE_POOL = 'ue_pool'


def _ip4(value) -> ipaddress.IPv4Address | None:
    if value is None or isinstance(value, ipaddress.IPv4Address):
        return value
    return ipaddress.IPv4Address(value)


@dataclasses.dataclass(frozen=True, slots=True)
class PacketDetectionRule:
    """Packet Detection Rule.

    Uplink PDRs match on the UE address, the tunnel endpoint ID and the
    tunnel destination address; downlink PDRs match on the UE address only.
    Any other combination is a "flexible" PDR, which the fabric pipeline
    cannot express.
    """

    global_far_id: int
    counter_id: int
    ue_address: ipaddress.IPv4Address | None = None
    teid: int | None = None
    tunnel_dst: ipaddress.IPv4Address | None = None

    def __post_init__(self) -> None:
        # Accept plain strings / ints for the addresses.
        object.__setattr__(self, 'ue_address', _ip4(self.ue_address))
        object.__setattr__(self, 'tunnel_dst', _ip4(self.tunnel_dst))

    @property
    def direction(self) -> PdrDirection:
        if self.ue_address is None:
            return PdrDirection.FLEXIBLE
        if self.teid is not None and self.tunnel_dst is not None:
            return PdrDirection.UPLINK
        if self.teid is None and self.tunnel_dst is None:
            return PdrDirection.DOWNLINK
        return PdrDirection.FLEXIBLE

    def is_uplink(self) -> bool:
        return self.direction == PdrDirection.UPLINK

    def is_downlink(self) -> bool:
        return self.direction == PdrDirection.DOWNLINK

    def __str__(self) -> str:
        match self.direction:
            case PdrDirection.UPLINK:
                keys = (
                    f'UE={self.ue_address}, TEID={self.teid:#x}, '
                    f'TunnelDst={self.tunnel_dst}'
                )
            case PdrDirection.DOWNLINK:
                keys = f'UE={self.ue_address}'
            case _:
                keys = (
                    f'UE={self.ue_address}, TEID={self.teid}, '
                    f'TunnelDst={self.tunnel_dst}'
                )
        return (
            f'PDR{{{self.direction} Match({keys}) -> '
            f'Load(FAR={self.global_far_id}, CtrIdx={self.counter_id})}}'
        )


@dataclasses.dataclass(frozen=True, slots=True)
class GtpTunnel:
    """GTP-U tunnel used by an encapsulating FAR."""

    src: ipaddress.IPv4Address
    dst: ipaddress.IPv4Address
    teid: int
    src_port: int = GTPU_PORT

    def __post_init__(self) -> None:
        object.__setattr__(self, 'src', _ip4(self.src))
        object.__setattr__(self, 'dst', _ip4(self.dst))

    def __str__(self) -> str:
        return f'GTP({self.src}:{self.src_port} -> {self.dst}, TEID={self.teid:#x})'


@dataclasses.dataclass(frozen=True, slots=True)
class ForwardingActionRule:
    """Forwarding Action Rule, keyed by its global FAR ID."""

    global_far_id: int
    drop: bool = False
    notify_cp: bool = False
    tunnel: GtpTunnel | None = None

    def encapsulates(self) -> bool:
        return self.tunnel is not None

    def __str__(self) -> str:
        actions = []
        if self.drop:
            actions.append('Drop')
        if self.notify_cp:
            actions.append('NotifyCP')
        if self.tunnel is not None:
            actions.append(f'Encap{self.tunnel}')
        if not actions:
            actions.append('Forward')
        return f'FAR{{Match(GlobalFarId={self.global_far_id}) -> {", ".join(actions)}}}'


@dataclasses.dataclass(frozen=True, slots=True)
class UpfInterface:
    """An interface of the UPF: an S1U tunnel endpoint or a UE address pool.

    Build instances through :meth:`s1u` and :meth:`ue_pool`; the table
    representation does not store the role, only the prefix length and the
    tunnel-valid flag.
    """

    prefix: ipaddress.IPv4Network
    type: InterfaceType

    @classmethod
    def s1u(cls, address) -> UpfInterface:
        address = _ip4(address)
        return cls(prefix=ipaddress.IPv4Network((address, 32)), type=InterfaceType.S1U)

    @classmethod
    def ue_pool(cls, prefix) -> UpfInterface:
        return cls(prefix=ipaddress.IPv4Network(prefix), type=InterfaceType.UE_POOL)

    def is_s1u(self) -> bool:
        return self.type == InterfaceType.S1U

    def is_ue_pool(self) -> bool:
        return self.type == InterfaceType.UE_POOL

    @property
    def address(self) -> ipaddress.IPv4Address:
        return self.prefix.network_address

    def __str__(self) -> str:
        if self.is_s1u():
            return f'Interface{{S1U {self.address}}}'
        return f'Interface{{UE-Pool {self.prefix}}}'
