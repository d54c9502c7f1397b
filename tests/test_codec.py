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

"""Unit tests for the PDR, FAR and interface codecs."""

import dataclasses
import ipaddress

import pytest

from fabricupf.core import TranslationError
from fabricupf.core.objects import (
    FieldMatch,
    ForwardingActionRule,
    GtpTunnel,
    InterfaceType,
    PacketDetectionRule,
    TableAction,
    UpfInterface,
    make_selector,
)
from fabricupf.translator import RuleCodec, RuleCodecs, SouthConstants, SourceInterface

APP_ID = 'org.omecproject.up4'
DEVICE_ID = 'device:leaf1'
PRIORITY = 128


def _uplink_pdr(**kwargs):
    values = {
        'global_far_id': 7,
        'counter_id': 3,
        'ue_address': '10.0.0.1',
        'teid': 5,
        'tunnel_dst': '192.0.2.1',
    }
    values.update(kwargs)
    return PacketDetectionRule(**values)


def _downlink_pdr(**kwargs):
    values = {'global_far_id': 8, 'counter_id': 4, 'ue_address': '10.0.0.1'}
    values.update(kwargs)
    return PacketDetectionRule(**values)


def _tunnel_far(**kwargs):
    values = {
        'global_far_id': 8,
        'tunnel': GtpTunnel(src='192.0.2.1', dst='198.51.100.7', teid=42),
    }
    values.update(kwargs)
    return ForwardingActionRule(**values)


def _encode(rule):
    return RuleCodecs().encode(rule, DEVICE_ID, APP_ID, PRIORITY)


def _replace_field(entry, field_id, value):
    selector = make_selector(
        FieldMatch.exact(field_id, value) if m.field_id == field_id else m
        for m in entry.selector
    )
    return dataclasses.replace(entry, selector=selector)


def _replace_param(entry, name, value):
    params = entry.action.as_dict()
    params[name] = value
    return dataclasses.replace(entry, action=TableAction.of(entry.action.action_id, params))


class TestPdrCodec:
    def test_uplink_round_trip(self):
        pdr = _uplink_pdr()
        entry = _encode(pdr)
        assert entry.table_id == SouthConstants.PDR_UPLINK_TBL
        assert RuleCodecs().pdr.decode(entry) == pdr

    def test_uplink_entry_contents(self):
        entry = _encode(_uplink_pdr())
        assert entry.field(SouthConstants.UE_ADDR_KEY).value == int(ipaddress.IPv4Address('10.0.0.1'))
        assert entry.field(SouthConstants.TEID_KEY).value == 5
        assert entry.field(SouthConstants.TUNNEL_DST_KEY).value == int(ipaddress.IPv4Address('192.0.2.1'))
        assert entry.action.action_id == SouthConstants.LOAD_PDR
        assert entry.action.param(SouthConstants.FAR_ID_PARAM) == 7
        assert entry.action.param(SouthConstants.CTR_ID) == 3
        assert entry.action.param(SouthConstants.NEEDS_GTPU_DECAP) == 1
        assert entry.owner_id == APP_ID
        assert entry.device_id == DEVICE_ID
        assert entry.priority == PRIORITY

    def test_downlink_round_trip(self):
        pdr = _downlink_pdr()
        entry = _encode(pdr)
        assert entry.table_id == SouthConstants.PDR_DOWNLINK_TBL
        assert [m.field_id for m in entry.selector] == [SouthConstants.UE_ADDR_KEY]
        assert entry.action.param(SouthConstants.NEEDS_GTPU_DECAP) == 0
        assert RuleCodecs().pdr.decode(entry) == pdr

    @pytest.mark.parametrize(
        'kwargs',
        [
            {'ue_address': None},
            {'tunnel_dst': None},
            {'teid': None},
        ],
        ids=['no-ue-address', 'teid-without-tunnel-dst', 'tunnel-dst-without-teid'],
    )
    def test_flexible_pdr_is_rejected(self, kwargs):
        with pytest.raises(TranslationError) as exc_info:
            _encode(_uplink_pdr(**kwargs))
        assert exc_info.value.kind == 'PDR'

    def test_teid_out_of_range(self):
        with pytest.raises(TranslationError, match='TEID'):
            _encode(_uplink_pdr(teid=0x1_0000_0000))

    def test_negative_far_id(self):
        with pytest.raises(TranslationError, match='global FAR ID'):
            _encode(_downlink_pdr(global_far_id=-1))

    def test_decode_missing_param(self):
        entry = _encode(_downlink_pdr())
        broken = dataclasses.replace(
            entry,
            action=TableAction.of(SouthConstants.LOAD_PDR, {SouthConstants.FAR_ID_PARAM: 8}),
        )
        with pytest.raises(TranslationError, match=SouthConstants.CTR_ID):
            RuleCodecs().pdr.decode(broken)

    def test_decode_wrong_action(self):
        entry = _encode(_downlink_pdr())
        broken = dataclasses.replace(entry, action=TableAction.of('NoAction'))
        with pytest.raises(TranslationError, match='unexpected action'):
            RuleCodecs().pdr.decode(broken)

    def test_decode_uplink_without_teid(self):
        entry = _encode(_uplink_pdr())
        selector = make_selector(m for m in entry.selector if m.field_id != SouthConstants.TEID_KEY)
        with pytest.raises(TranslationError, match=SouthConstants.TEID_KEY):
            RuleCodecs().pdr.decode(dataclasses.replace(entry, selector=selector))

    def test_decode_downlink_with_extra_field(self):
        entry = _encode(_downlink_pdr())
        selector = make_selector([*entry.selector, FieldMatch.exact(SouthConstants.TEID_KEY, 5)])
        with pytest.raises(TranslationError, match='unexpected match field'):
            RuleCodecs().pdr.decode(dataclasses.replace(entry, selector=selector))

    def test_decode_far_entry(self):
        entry = _encode(ForwardingActionRule(global_far_id=1))
        with pytest.raises(TranslationError, match='not a PDR table'):
            RuleCodecs().pdr.decode(entry)

    @pytest.mark.parametrize(
        'field_id',
        [SouthConstants.UE_ADDR_KEY, SouthConstants.TUNNEL_DST_KEY],
        ids=['ue-address', 'tunnel-dst'],
    )
    def test_decode_address_out_of_range(self, field_id):
        entry = _replace_field(_encode(_uplink_pdr()), field_id, 2**40)
        with pytest.raises(TranslationError, match=field_id) as exc_info:
            RuleCodecs().pdr.decode(entry)
        assert exc_info.value.kind == 'PDR'

    def test_decode_teid_out_of_range(self):
        entry = _replace_field(_encode(_uplink_pdr()), SouthConstants.TEID_KEY, 2**40)
        with pytest.raises(TranslationError, match=SouthConstants.TEID_KEY):
            RuleCodecs().pdr.decode(entry)

    @pytest.mark.parametrize(
        ('name', 'value'),
        [
            (SouthConstants.CTR_ID, 2**32),
            (SouthConstants.FAR_ID_PARAM, -1),
        ],
        ids=['counter-index', 'far-id'],
    )
    def test_decode_param_out_of_range(self, name, value):
        entry = _replace_param(_encode(_downlink_pdr()), name, value)
        with pytest.raises(TranslationError, match=name):
            RuleCodecs().pdr.decode(entry)

    @pytest.mark.parametrize(
        ('pdr', 'decap'),
        [(_uplink_pdr(), 0), (_downlink_pdr(), 1)],
        ids=['uplink-without-decap', 'downlink-with-decap'],
    )
    def test_decode_decap_must_fit_table(self, pdr, decap):
        entry = _replace_param(_encode(pdr), SouthConstants.NEEDS_GTPU_DECAP, decap)
        with pytest.raises(TranslationError, match='does not fit table'):
            RuleCodecs().pdr.decode(entry)

    def test_decode_missing_decap(self):
        entry = _encode(_downlink_pdr())
        params = entry.action.as_dict()
        del params[SouthConstants.NEEDS_GTPU_DECAP]
        broken = dataclasses.replace(entry, action=TableAction.of(SouthConstants.LOAD_PDR, params))
        with pytest.raises(TranslationError, match=SouthConstants.NEEDS_GTPU_DECAP):
            RuleCodecs().pdr.decode(broken)


class TestFarCodec:
    def test_normal_round_trip(self):
        far = ForwardingActionRule(global_far_id=7, notify_cp=True)
        entry = _encode(far)
        assert entry.action.action_id == SouthConstants.LOAD_FAR_NORMAL
        assert entry.action.as_dict() == {SouthConstants.DROP: 0, SouthConstants.NOTIFY_CP: 1}
        assert RuleCodecs().far.decode(entry) == far

    def test_tunnel_round_trip(self):
        far = _tunnel_far()
        entry = _encode(far)
        assert entry.action.action_id == SouthConstants.LOAD_FAR_TUNNEL
        assert entry.action.param(SouthConstants.TEID_PARAM) == 42
        assert entry.action.param(SouthConstants.TUNNEL_SRC_PORT_PARAM) == 2152
        assert RuleCodecs().far.decode(entry) == far

    def test_match_is_far_id_only(self):
        entry = _encode(_tunnel_far(drop=True))
        assert entry.selector == (FieldMatch.exact(SouthConstants.FAR_ID_KEY, 8),)

    def test_decode_unknown_action(self):
        entry = _encode(ForwardingActionRule(global_far_id=7))
        broken = dataclasses.replace(
            entry,
            action=TableAction.of('FabricIngress.spgw_ingress.load_dbuf_far', {'drop': 0, 'notify_cp': 0}),
        )
        with pytest.raises(TranslationError) as exc_info:
            RuleCodecs().far.decode(broken)
        assert exc_info.value.kind == 'FAR'
        assert 'load_dbuf_far' in exc_info.value.reason

    def test_decode_tunnel_without_teid(self):
        entry = _encode(_tunnel_far())
        params = entry.action.as_dict()
        del params[SouthConstants.TEID_PARAM]
        broken = dataclasses.replace(entry, action=TableAction.of(SouthConstants.LOAD_FAR_TUNNEL, params))
        with pytest.raises(TranslationError, match=SouthConstants.TEID_PARAM):
            RuleCodecs().far.decode(broken)

    @pytest.mark.parametrize(
        ('name', 'value'),
        [
            (SouthConstants.TUNNEL_SRC_PARAM, 2**40),
            (SouthConstants.TUNNEL_DST_PARAM, -1),
            (SouthConstants.TEID_PARAM, 2**32),
            (SouthConstants.TUNNEL_SRC_PORT_PARAM, 70000),
            (SouthConstants.DROP, 2),
        ],
        ids=['tunnel-src', 'tunnel-dst', 'teid', 'src-port', 'drop-flag'],
    )
    def test_decode_param_out_of_range(self, name, value):
        entry = _replace_param(_encode(_tunnel_far()), name, value)
        with pytest.raises(TranslationError, match=name) as exc_info:
            RuleCodecs().far.decode(entry)
        assert exc_info.value.kind == 'FAR'

    def test_decode_far_id_out_of_range(self):
        entry = _replace_field(_encode(ForwardingActionRule(global_far_id=7)), SouthConstants.FAR_ID_KEY, 2**32)
        with pytest.raises(TranslationError, match=SouthConstants.FAR_ID_KEY):
            RuleCodecs().far.decode(entry)

    def test_encode_bad_source_port(self):
        far = _tunnel_far(tunnel=GtpTunnel(src='192.0.2.1', dst='198.51.100.7', teid=42, src_port=-1))
        with pytest.raises(TranslationError, match='tunnel source port'):
            _encode(far)


class TestInterfaceCodec:
    def test_s1u_round_trip(self):
        iface = UpfInterface.s1u('192.0.2.1')
        entry = _encode(iface)
        dst = entry.field(SouthConstants.IPV4_DST_ADDR)
        assert dst.prefix_len == 32
        assert entry.field(SouthConstants.GTPU_IS_VALID).value == 1
        assert entry.action.param(SouthConstants.SRC_IFACE_PARAM) == SourceInterface.ACCESS
        assert RuleCodecs().interface.decode(entry) == iface

    def test_ue_pool_round_trip(self):
        iface = UpfInterface.ue_pool('10.0.0.0/16')
        entry = _encode(iface)
        dst = entry.field(SouthConstants.IPV4_DST_ADDR)
        assert dst.prefix_len == 16
        assert dst.value == int(ipaddress.IPv4Address('10.0.0.0'))
        assert entry.field(SouthConstants.GTPU_IS_VALID).value == 0
        assert entry.action.param(SouthConstants.SRC_IFACE_PARAM) == SourceInterface.CORE
        assert RuleCodecs().interface.decode(entry) == iface

    def test_host_ue_pool_stays_ue_pool(self):
        iface = UpfInterface.ue_pool('10.0.0.1/32')
        decoded = RuleCodecs().interface.decode(_encode(iface))
        assert decoded.type == InterfaceType.UE_POOL

    def test_s1u_with_network_prefix_is_rejected(self):
        iface = UpfInterface(prefix=ipaddress.IPv4Network('192.0.2.0/24'), type=InterfaceType.S1U)
        with pytest.raises(TranslationError, match='single address'):
            _encode(iface)

    def test_decode_tunnel_valid_with_network_prefix(self):
        entry = _encode(UpfInterface.s1u('192.0.2.0'))
        selector = make_selector(
            [
                FieldMatch.lpm(SouthConstants.IPV4_DST_ADDR, int(ipaddress.IPv4Address('192.0.2.0')), 24),
                FieldMatch.exact(SouthConstants.GTPU_IS_VALID, 1),
            ]
        )
        with pytest.raises(TranslationError, match='non-host prefix'):
            RuleCodecs().interface.decode(dataclasses.replace(entry, selector=selector))

    def test_decode_bad_tunnel_valid_value(self):
        entry = _encode(UpfInterface.ue_pool('10.0.0.0/16'))
        selector = make_selector(
            [
                entry.field(SouthConstants.IPV4_DST_ADDR),
                FieldMatch.exact(SouthConstants.GTPU_IS_VALID, 2),
            ]
        )
        with pytest.raises(TranslationError, match='must be 0 or 1'):
            RuleCodecs().interface.decode(dataclasses.replace(entry, selector=selector))

    def test_decode_inconsistent_source_interface(self):
        entry = _encode(UpfInterface.ue_pool('10.0.0.0/16'))
        broken = dataclasses.replace(
            entry,
            action=TableAction.of(
                SouthConstants.LOAD_IFACE,
                {SouthConstants.SRC_IFACE_PARAM: int(SourceInterface.ACCESS)},
            ),
        )
        with pytest.raises(TranslationError, match=SouthConstants.SRC_IFACE_PARAM):
            RuleCodecs().interface.decode(broken)

    def test_decode_exact_destination(self):
        entry = _encode(UpfInterface.s1u('192.0.2.1'))
        selector = make_selector(
            [
                FieldMatch.exact(SouthConstants.IPV4_DST_ADDR, int(ipaddress.IPv4Address('192.0.2.1'))),
                FieldMatch.exact(SouthConstants.GTPU_IS_VALID, 1),
            ]
        )
        with pytest.raises(TranslationError, match='expected lpm'):
            RuleCodecs().interface.decode(dataclasses.replace(entry, selector=selector))


class TestClassification:
    @pytest.mark.parametrize(
        ('rule', 'kind'),
        [
            (_uplink_pdr(), 'pdr'),
            (_downlink_pdr(), 'pdr'),
            (ForwardingActionRule(global_far_id=1), 'far'),
            (_tunnel_far(), 'far'),
            (UpfInterface.s1u('192.0.2.1'), 'interface'),
            (UpfInterface.ue_pool('10.0.0.0/16'), 'interface'),
        ],
        ids=['uplink-pdr', 'downlink-pdr', 'normal-far', 'tunnel-far', 's1u', 'ue-pool'],
    )
    def test_entry_has_exactly_one_kind(self, rule, kind):
        codecs = RuleCodecs()
        entry = codecs.encode(rule, DEVICE_ID, APP_ID, PRIORITY)
        kinds = {
            'pdr': codecs.is_pdr(entry),
            'far': codecs.is_far(entry),
            'interface': codecs.is_interface(entry),
        }
        assert [k for k, v in kinds.items() if v] == [kind]

    def test_codec_for_unknown_type(self):
        with pytest.raises(TypeError):
            RuleCodecs().codec_for(object())

    def test_base_codec_is_abstract(self):
        with pytest.raises(TypeError):
            RuleCodec()


def test_concrete_uplink_scenario():
    """Uplink PDR UE 10.0.0.1, TEID 5, tunnel dst 192.0.2.1, FAR 7, counter 3."""
    pdr = PacketDetectionRule(
        global_far_id=7,
        counter_id=3,
        ue_address=ipaddress.IPv4Address('10.0.0.1'),
        teid=5,
        tunnel_dst=ipaddress.IPv4Address('192.0.2.1'),
    )
    assert pdr.is_uplink()
    codecs = RuleCodecs()
    decoded = codecs.pdr.decode(codecs.encode(pdr, DEVICE_ID, APP_ID, PRIORITY))
    assert decoded == pdr
    assert decoded.teid == 5
    assert decoded.global_far_id == 7
    assert decoded.counter_id == 3
