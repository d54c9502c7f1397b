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

"""Unit tests for flow reconstruction."""

import dataclasses
import logging

from fabricupf.core.objects import (
    ForwardingActionRule,
    GtpTunnel,
    PacketDetectionRule,
    PdrStats,
    TableAction,
    UpfInterface,
)
from fabricupf.translator import (
    CounterAggregator,
    FlowReconstructor,
    RuleCodecs,
    SouthConstants,
)

APP_ID = 'org.omecproject.up4'
DEVICE_ID = 'device:leaf1'


def _reconstructor(devices, diagnostics):
    codecs = RuleCodecs()
    return FlowReconstructor(codecs, CounterAggregator(devices, diagnostics), diagnostics)


def _entries(*rules, owner_id=APP_ID):
    codecs = RuleCodecs()
    return [codecs.encode(rule, DEVICE_ID, owner_id, 128) for rule in rules]


def _pdr(far_id, counter_id):
    return PacketDetectionRule(far_id, counter_id, ue_address=f'10.0.0.{counter_id}')


def _far(far_id):
    return ForwardingActionRule(
        far_id,
        tunnel=GtpTunnel(src='192.0.2.1', dst='198.51.100.7', teid=far_id),
    )


class TestJoin:
    def test_n_pdrs_with_n_fars(self, devices, diagnostics):
        pdrs = [_pdr(far_id, far_id + 100) for far_id in (1, 2, 3)]
        fars = [_far(far_id) for far_id in (3, 1, 2)]
        devices.set_counter(DEVICE_ID, SouthConstants.INGRESS_COUNTER_ID, 102, 5, 500)

        flows = _reconstructor(devices, diagnostics).reconstruct(_entries(*fars, *pdrs), APP_ID)

        assert len(flows) == 3
        by_far = {flow.global_far_id: flow for flow in flows}
        for pdr in pdrs:
            flow = by_far[pdr.global_far_id]
            assert flow.pdr == pdr
            assert flow.fars == (_far(pdr.global_far_id),)
            assert flow.stats.cell_id == pdr.counter_id
        assert by_far[2].stats == PdrStats(cell_id=102, ingress_pkts=5, ingress_bytes=500)
        assert diagnostics.get_warnings() == []

    def test_pdr_without_far(self, devices, diagnostics):
        flows = _reconstructor(devices, diagnostics).reconstruct(_entries(_pdr(1, 1)), APP_ID)
        assert len(flows) == 1
        assert flows[0].fars == ()
        assert 'NO FARs' in str(flows[0])

    def test_several_fars_share_one_id(self, devices, diagnostics):
        far_a = ForwardingActionRule(4)
        far_b = ForwardingActionRule(4, notify_cp=True)
        codecs = RuleCodecs()
        entries = [
            codecs.encode(_pdr(4, 4), DEVICE_ID, APP_ID, 128),
            codecs.encode(far_a, DEVICE_ID, APP_ID, 128),
            codecs.encode(far_b, 'device:leaf2', APP_ID, 128),
        ]
        flows = _reconstructor(devices, diagnostics).reconstruct(entries, APP_ID)
        assert flows[0].fars == (far_a, far_b)

    def test_interfaces_are_ignored(self, devices, diagnostics):
        entries = _entries(UpfInterface.s1u('192.0.2.1'), UpfInterface.ue_pool('10.0.0.0/16'))
        assert _reconstructor(devices, diagnostics).reconstruct(entries, APP_ID) == []
        assert diagnostics.events == []

    def test_other_owners_are_ignored(self, devices, diagnostics):
        entries = _entries(_pdr(1, 1), _far(1), owner_id='org.onosproject.other')
        assert _reconstructor(devices, diagnostics).reconstruct(entries, APP_ID) == []


class TestDiagnostics:
    def test_orphan_far_is_dropped(self, devices, diagnostics):
        entries = _entries(_pdr(1, 1), _far(1), _far(99))
        flows = _reconstructor(devices, diagnostics).reconstruct(entries, APP_ID)
        assert len(flows) == 1
        assert all(far.global_far_id != 99 for flow in flows for far in flow.fars)
        assert diagnostics.count('orphan_far', logging.WARNING) == 1

    def test_duplicate_far_reference_keeps_later_pdr(self, devices, diagnostics):
        first = _pdr(5, 1)
        second = _pdr(5, 2)
        flows = _reconstructor(devices, diagnostics).reconstruct(_entries(first, second, _far(5)), APP_ID)
        assert len(flows) == 1
        assert flows[0].pdr == second
        assert flows[0].fars == (_far(5),)
        assert diagnostics.count('duplicate_far_reference') == 1

    def test_undecodable_entries_are_skipped(self, devices, diagnostics):
        good_pdr, bad_pdr, bad_far = _entries(_pdr(1, 1), _pdr(2, 2), _far(1))
        bad_pdr = dataclasses.replace(bad_pdr, action=TableAction.of(SouthConstants.LOAD_PDR))
        bad_far = dataclasses.replace(bad_far, action=TableAction.of('NoAction'))
        flows = _reconstructor(devices, diagnostics).reconstruct([good_pdr, bad_pdr, bad_far], APP_ID)
        assert [flow.pdr for flow in flows] == [_pdr(1, 1)]
        assert flows[0].fars == ()
        assert diagnostics.count('translation_failed') == 2

    def test_out_of_range_address_does_not_abort_scan(self, devices, diagnostics):
        bad_pdr, good_pdr = _entries(_pdr(1, 1), _pdr(2, 2))
        selector = tuple(
            dataclasses.replace(m, value=2**40) if m.field_id == SouthConstants.UE_ADDR_KEY else m
            for m in bad_pdr.selector
        )
        bad_pdr = dataclasses.replace(bad_pdr, selector=selector)
        flows = _reconstructor(devices, diagnostics).reconstruct([bad_pdr, good_pdr], APP_ID)
        assert [flow.pdr for flow in flows] == [_pdr(2, 2)]
        assert diagnostics.count('translation_failed', logging.WARNING) == 1

    def test_unresolved_device_still_yields_flows(self, diagnostics):
        flows = _reconstructor(None, diagnostics).reconstruct(_entries(_pdr(1, 7), _far(1)), APP_ID)
        assert flows[0].stats == PdrStats(cell_id=7)
        assert diagnostics.count('device_unresolved') == 1
