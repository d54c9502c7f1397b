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

"""Bidirectional translation between UPF rules and fabric table entries.

One codec per rule kind:

- :class:`PdrCodec` picks the uplink or downlink PDR table from the PDR's
  match fields.
- :class:`FarCodec` keys the FAR table on the global FAR ID only.
- :class:`InterfaceCodec` encodes S1U endpoints as a /32 LPM with the
  tunnel-valid flag set and UE pools as the full prefix with the flag
  cleared; decoding infers the role from the same two fields.

Codecs are stateless.  Decoding either returns a complete rule that
re-encodes to an equal entry or raises :class:`TranslationError`.
"""

from __future__ import annotations

import abc
import ipaddress
from typing import ClassVar

from fabricupf.core._errors import TranslationError
from fabricupf.core.objects import (
    FieldMatch,
    ForwardingActionRule,
    GtpTunnel,
    InterfaceType,
    MatchKind,
    PacketDetectionRule,
    PdrDirection,
    TableAction,
    TableEntry,
    UpfInterface,
    make_selector,
)
from fabricupf.translator._constants import (
    S1U_PREFIX_LEN,
    SouthConstants,
    SourceInterface,
)

_MAX_U32 = 0xFFFFFFFF
_MAX_PORT = 0xFFFF


class RuleCodec(abc.ABC):
    """Base class: table membership test plus encode/decode hooks."""

    kind: ClassVar[str] = ''
    tables: ClassVar[frozenset[str]] = frozenset()

    def matches(self, entry: TableEntry) -> bool:
        """True if *entry* lives in one of this codec's tables."""
        return entry.table_id in self.tables

    @abc.abstractmethod
    def encode(self, rule, device_id: str, owner_id: str, priority: int) -> TableEntry:
        """Translate *rule* into a table entry, or raise TranslationError."""

    @abc.abstractmethod
    def decode(self, entry: TableEntry):
        """Translate *entry* back into a rule, or raise TranslationError."""

    def reset(self) -> None:
        """Drop any cached translation state.  Codecs here keep none."""

    # -- Helpers --

    def _fail(self, reason: str) -> TranslationError:
        return TranslationError(self.kind, reason)

    def _check_table(self, entry: TableEntry) -> None:
        if not self.matches(entry):
            raise self._fail(f'table {entry.table_id} is not a {self.kind} table')

    def _check_fields(self, entry: TableEntry, expected: set[str]) -> None:
        extra = {m.field_id for m in entry.selector} - expected
        if extra:
            raise self._fail(f'unexpected match field(s) {", ".join(sorted(extra))}')

    def _field(self, entry: TableEntry, field_id: str, kind: MatchKind = MatchKind.EXACT) -> FieldMatch:
        m = entry.field(field_id)
        if m is None:
            raise self._fail(f'missing match field {field_id}')
        if m.kind != kind:
            raise self._fail(f'match field {field_id} is {m.kind}, expected {kind}')
        return m

    def _param(self, entry: TableEntry, name: str) -> int:
        value = entry.action.param(name)
        if value is None:
            raise self._fail(f'missing action parameter {name}')
        return value

    def _u32(self, name: str, value) -> int:
        if not isinstance(value, int) or isinstance(value, bool) or not 0 <= value <= _MAX_U32:
            raise self._fail(f'{name} must be an unsigned 32-bit integer, got {value!r}')
        return value

    def _port(self, name: str, value) -> int:
        if not isinstance(value, int) or isinstance(value, bool) or not 0 <= value <= _MAX_PORT:
            raise self._fail(f'{name} must be a port number, got {value!r}')
        return value

    def _flag(self, name: str, value) -> bool:
        if value not in (0, 1) or isinstance(value, float):
            raise self._fail(f'{name} must be 0 or 1, got {value!r}')
        return bool(value)

    def _ip4(self, name: str, value) -> ipaddress.IPv4Address:
        return ipaddress.IPv4Address(self._u32(name, value))

    def _entry(
        self,
        table_id: str,
        matches: list[FieldMatch],
        action: TableAction,
        device_id: str,
        owner_id: str,
        priority: int,
    ) -> TableEntry:
        return TableEntry(
            device_id=device_id,
            owner_id=owner_id,
            table_id=table_id,
            selector=make_selector(matches),
            action=action,
            priority=priority,
        )


class PdrCodec(RuleCodec):
    kind = 'PDR'
    tables = SouthConstants.PDR_TABLES

    _UPLINK_FIELDS: ClassVar[set[str]] = {
        SouthConstants.UE_ADDR_KEY,
        SouthConstants.TEID_KEY,
        SouthConstants.TUNNEL_DST_KEY,
    }
    _DOWNLINK_FIELDS: ClassVar[set[str]] = {SouthConstants.UE_ADDR_KEY}

    def encode(
        self,
        pdr: PacketDetectionRule,
        device_id: str,
        owner_id: str,
        priority: int,
    ) -> TableEntry:
        far_id = self._u32('global FAR ID', pdr.global_far_id)
        ctr_id = self._u32('counter index', pdr.counter_id)
        match pdr.direction:
            case PdrDirection.UPLINK:
                table_id = SouthConstants.PDR_UPLINK_TBL
                matches = [
                    FieldMatch.exact(SouthConstants.UE_ADDR_KEY, int(pdr.ue_address)),
                    FieldMatch.exact(SouthConstants.TEID_KEY, self._u32('TEID', pdr.teid)),
                    FieldMatch.exact(SouthConstants.TUNNEL_DST_KEY, int(pdr.tunnel_dst)),
                ]
                decap = 1
            case PdrDirection.DOWNLINK:
                table_id = SouthConstants.PDR_DOWNLINK_TBL
                matches = [
                    FieldMatch.exact(SouthConstants.UE_ADDR_KEY, int(pdr.ue_address)),
                ]
                decap = 0
            case _:
                raise self._fail(
                    'match fields fit neither an uplink nor a downlink PDR '
                    f'(UE={pdr.ue_address}, TEID={pdr.teid}, TunnelDst={pdr.tunnel_dst})'
                )
        action = TableAction.of(
            SouthConstants.LOAD_PDR,
            {
                SouthConstants.CTR_ID: ctr_id,
                SouthConstants.FAR_ID_PARAM: far_id,
                SouthConstants.NEEDS_GTPU_DECAP: decap,
            },
        )
        return self._entry(table_id, matches, action, device_id, owner_id, priority)

    def decode(self, entry: TableEntry) -> PacketDetectionRule:
        self._check_table(entry)
        if entry.action.action_id != SouthConstants.LOAD_PDR:
            raise self._fail(f'unexpected action {entry.action.action_id}')
        ue_addr = self._ip4(
            SouthConstants.UE_ADDR_KEY,
            self._field(entry, SouthConstants.UE_ADDR_KEY).value,
        )
        ctr_id = self._u32(SouthConstants.CTR_ID, self._param(entry, SouthConstants.CTR_ID))
        far_id = self._u32(SouthConstants.FAR_ID_PARAM, self._param(entry, SouthConstants.FAR_ID_PARAM))
        decap = self._flag(
            SouthConstants.NEEDS_GTPU_DECAP,
            self._param(entry, SouthConstants.NEEDS_GTPU_DECAP),
        )
        uplink = entry.table_id == SouthConstants.PDR_UPLINK_TBL
        # Uplink traffic arrives tunneled, downlink traffic does not
        if decap != uplink:
            raise self._fail(
                f'{SouthConstants.NEEDS_GTPU_DECAP}={int(decap)} does not fit table {entry.table_id}'
            )
        if uplink:
            self._check_fields(entry, self._UPLINK_FIELDS)
            teid = self._u32(SouthConstants.TEID_KEY, self._field(entry, SouthConstants.TEID_KEY).value)
            tunnel_dst = self._ip4(
                SouthConstants.TUNNEL_DST_KEY,
                self._field(entry, SouthConstants.TUNNEL_DST_KEY).value,
            )
            return PacketDetectionRule(
                global_far_id=far_id,
                counter_id=ctr_id,
                ue_address=ue_addr,
                teid=teid,
                tunnel_dst=tunnel_dst,
            )
        self._check_fields(entry, self._DOWNLINK_FIELDS)
        return PacketDetectionRule(
            global_far_id=far_id,
            counter_id=ctr_id,
            ue_address=ue_addr,
        )


class FarCodec(RuleCodec):
    kind = 'FAR'
    tables = frozenset({SouthConstants.FAR_TBL})

    def encode(
        self,
        far: ForwardingActionRule,
        device_id: str,
        owner_id: str,
        priority: int,
    ) -> TableEntry:
        far_id = self._u32('global FAR ID', far.global_far_id)
        params = {
            SouthConstants.DROP: int(bool(far.drop)),
            SouthConstants.NOTIFY_CP: int(bool(far.notify_cp)),
        }
        if far.tunnel is None:
            action_id = SouthConstants.LOAD_FAR_NORMAL
        else:
            action_id = SouthConstants.LOAD_FAR_TUNNEL
            params[SouthConstants.TUNNEL_SRC_PARAM] = int(far.tunnel.src)
            params[SouthConstants.TUNNEL_DST_PARAM] = int(far.tunnel.dst)
            params[SouthConstants.TEID_PARAM] = self._u32('tunnel TEID', far.tunnel.teid)
            params[SouthConstants.TUNNEL_SRC_PORT_PARAM] = self._port('tunnel source port', far.tunnel.src_port)
        return self._entry(
            SouthConstants.FAR_TBL,
            [FieldMatch.exact(SouthConstants.FAR_ID_KEY, far_id)],
            TableAction.of(action_id, params),
            device_id,
            owner_id,
            priority,
        )

    def decode(self, entry: TableEntry) -> ForwardingActionRule:
        self._check_table(entry)
        self._check_fields(entry, {SouthConstants.FAR_ID_KEY})
        far_id = self._u32(SouthConstants.FAR_ID_KEY, self._field(entry, SouthConstants.FAR_ID_KEY).value)
        drop = self._flag(SouthConstants.DROP, self._param(entry, SouthConstants.DROP))
        notify_cp = self._flag(SouthConstants.NOTIFY_CP, self._param(entry, SouthConstants.NOTIFY_CP))
        match entry.action.action_id:
            case SouthConstants.LOAD_FAR_NORMAL:
                tunnel = None
            case SouthConstants.LOAD_FAR_TUNNEL:
                params = {
                    name: self._param(entry, name)
                    for name in (
                        SouthConstants.TUNNEL_SRC_PARAM,
                        SouthConstants.TUNNEL_DST_PARAM,
                        SouthConstants.TEID_PARAM,
                        SouthConstants.TUNNEL_SRC_PORT_PARAM,
                    )
                }
                tunnel = GtpTunnel(
                    src=self._ip4(SouthConstants.TUNNEL_SRC_PARAM, params[SouthConstants.TUNNEL_SRC_PARAM]),
                    dst=self._ip4(SouthConstants.TUNNEL_DST_PARAM, params[SouthConstants.TUNNEL_DST_PARAM]),
                    teid=self._u32(SouthConstants.TEID_PARAM, params[SouthConstants.TEID_PARAM]),
                    src_port=self._port(
                        SouthConstants.TUNNEL_SRC_PORT_PARAM,
                        params[SouthConstants.TUNNEL_SRC_PORT_PARAM],
                    ),
                )
            case other:
                raise self._fail(f'unexpected action {other}')
        return ForwardingActionRule(
            global_far_id=far_id,
            drop=drop,
            notify_cp=notify_cp,
            tunnel=tunnel,
        )


class InterfaceCodec(RuleCodec):
    kind = 'Interface'
    tables = frozenset({SouthConstants.INTERFACE_LOOKUP})

    def encode(
        self,
        iface: UpfInterface,
        device_id: str,
        owner_id: str,
        priority: int,
    ) -> TableEntry:
        prefix = iface.prefix
        if iface.type == InterfaceType.S1U:
            if prefix.prefixlen != S1U_PREFIX_LEN:
                raise self._fail(f'S1U interface must be a single address, got {prefix}')
            gtpu_valid = 1
            src_iface = SourceInterface.ACCESS
        elif iface.type == InterfaceType.UE_POOL:
            gtpu_valid = 0
            src_iface = SourceInterface.CORE
        else:
            raise self._fail(f'unknown interface type {iface.type!r}')
        matches = [
            FieldMatch.lpm(SouthConstants.IPV4_DST_ADDR, int(prefix.network_address), prefix.prefixlen),
            FieldMatch.exact(SouthConstants.GTPU_IS_VALID, gtpu_valid),
        ]
        action = TableAction.of(
            SouthConstants.LOAD_IFACE,
            {SouthConstants.SRC_IFACE_PARAM: int(src_iface)},
        )
        return self._entry(
            SouthConstants.INTERFACE_LOOKUP,
            matches,
            action,
            device_id,
            owner_id,
            priority,
        )

    def decode(self, entry: TableEntry) -> UpfInterface:
        self._check_table(entry)
        self._check_fields(entry, {SouthConstants.IPV4_DST_ADDR, SouthConstants.GTPU_IS_VALID})
        if entry.action.action_id != SouthConstants.LOAD_IFACE:
            raise self._fail(f'unexpected action {entry.action.action_id}')
        dst = self._field(entry, SouthConstants.IPV4_DST_ADDR, MatchKind.LPM)
        gtpu_valid = self._field(entry, SouthConstants.GTPU_IS_VALID).value
        src_iface = self._param(entry, SouthConstants.SRC_IFACE_PARAM)
        try:
            prefix = ipaddress.IPv4Network((dst.value, dst.prefix_len))
        except (TypeError, ValueError) as e:
            raise self._fail(f'invalid prefix in {SouthConstants.IPV4_DST_ADDR}: {e}') from e

        match gtpu_valid:
            case 1:
                if prefix.prefixlen != S1U_PREFIX_LEN:
                    raise self._fail(f'tunnel-valid entry with non-host prefix {prefix}')
                expected, iface = SourceInterface.ACCESS, UpfInterface.s1u(prefix.network_address)
            case 0:
                expected, iface = SourceInterface.CORE, UpfInterface.ue_pool(prefix)
            case other:
                raise self._fail(f'{SouthConstants.GTPU_IS_VALID} must be 0 or 1, got {other}')
        if src_iface != expected:
            raise self._fail(
                f'{SouthConstants.SRC_IFACE_PARAM}={src_iface} does not fit a '
                f'{iface.type} interface'
            )
        return iface


class RuleCodecs:
    """The three codecs together, with classification predicates."""

    def __init__(self) -> None:
        self.pdr = PdrCodec()
        self.far = FarCodec()
        self.interface = InterfaceCodec()

    def is_pdr(self, entry: TableEntry) -> bool:
        return self.pdr.matches(entry)

    def is_far(self, entry: TableEntry) -> bool:
        return self.far.matches(entry)

    def is_interface(self, entry: TableEntry) -> bool:
        return self.interface.matches(entry)

    def codec_for(self, rule) -> RuleCodec:
        """Return the codec handling a rule object."""
        if isinstance(rule, PacketDetectionRule):
            return self.pdr
        if isinstance(rule, ForwardingActionRule):
            return self.far
        if isinstance(rule, UpfInterface):
            return self.interface
        raise TypeError(f'No codec for {type(rule).__name__}')

    def encode(self, rule, device_id: str, owner_id: str, priority: int) -> TableEntry:
        return self.codec_for(rule).encode(rule, device_id, owner_id, priority)

    def reset(self) -> None:
        for codec in (self.pdr, self.far, self.interface):
            codec.reset()
