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

"""YAML writer for dumping installed rules (and flows) to a rule document."""

import logging
import pathlib

import yaml

from . import objects
from ._util import (
    SECTION_FARS,
    SECTION_FLOWS,
    SECTION_INTERFACES,
    SECTION_PDRS,
)

logger = logging.getLogger(__name__)


class _QuotedValueDumper(yaml.SafeDumper):
    def increase_indent(self, flow=False, indentless=False):
        return super().increase_indent(flow, False)


def _quoted_str(dumper, data):
    return dumper.represent_scalar('tag:yaml.org,2002:str', data, style="'")


_QuotedValueDumper.add_representer(str, _quoted_str)

_orig_represent_mapping = yaml.SafeDumper.represent_mapping


def _represent_mapping(self, tag, mapping, flow_style=None):
    node = _orig_represent_mapping(self, tag, mapping, flow_style)
    for key_node, _ in node.value:
        if key_node.tag == 'tag:yaml.org,2002:str':
            key_node.style = None
    return node


_QuotedValueDumper.represent_mapping = _represent_mapping


def _pdr_dict(pdr):
    d = {
        'far_id': pdr.global_far_id,
        'counter_id': pdr.counter_id,
    }
    if pdr.ue_address is not None:
        d['ue_address'] = str(pdr.ue_address)
    if pdr.teid is not None:
        d['teid'] = pdr.teid
    if pdr.tunnel_dst is not None:
        d['tunnel_dst'] = str(pdr.tunnel_dst)
    return d


def _far_dict(far):
    d = {'far_id': far.global_far_id}
    # Omit defaults, like the reader assumes them
    if far.drop:
        d['drop'] = True
    if far.notify_cp:
        d['notify_cp'] = True
    if far.tunnel is not None:
        tunnel = {
            'src': str(far.tunnel.src),
            'dst': str(far.tunnel.dst),
            'teid': far.tunnel.teid,
        }
        if far.tunnel.src_port != objects.GTPU_PORT:
            tunnel['src_port'] = far.tunnel.src_port
        d['tunnel'] = tunnel
    return d


def _interface_dict(iface):
    if iface.is_s1u():
        return {'type': str(iface.type), 'address': str(iface.address)}
    return {'type': str(iface.type), 'prefix': str(iface.prefix)}


def _stats_dict(stats):
    return {
        'counter_id': stats.cell_id,
        'ingress_packets': stats.ingress_pkts,
        'ingress_bytes': stats.ingress_bytes,
        'egress_packets': stats.egress_pkts,
        'egress_bytes': stats.egress_bytes,
    }


def _flow_dict(flow):
    return {
        'pdr': _pdr_dict(flow.pdr),
        'fars': [_far_dict(far) for far in flow.fars],
        'stats': _stats_dict(flow.stats),
    }


class YamlWriter:
    """Serializes rules into the document format read by YamlReader."""

    def to_dict(self, pdrs, fars, interfaces, flows=None):
        data = {
            SECTION_PDRS: [_pdr_dict(pdr) for pdr in pdrs],
            SECTION_FARS: [_far_dict(far) for far in fars],
            SECTION_INTERFACES: [_interface_dict(iface) for iface in interfaces],
        }
        if flows is not None:
            data[SECTION_FLOWS] = [
                _flow_dict(flow)
                for flow in sorted(flows, key=lambda f: (f.global_far_id, f.pdr.counter_id))
            ]
        return data

    def write(self, output_path, pdrs, fars, interfaces, flows=None):
        output_path = pathlib.Path(output_path)
        data = self.to_dict(pdrs, fars, interfaces, flows)

        # Write to a temporary file first so a failed dump keeps the old document
        tmp_path = output_path.with_suffix(output_path.suffix + '.tmp')
        with pathlib.Path.open(tmp_path, 'w', encoding='utf-8') as f:
            yaml.dump(
                data,
                f,
                Dumper=_QuotedValueDumper,
                default_flow_style=False,
                sort_keys=False,
                allow_unicode=True,
            )
        tmp_path.replace(output_path)
        logger.info(
            'Wrote %d PDR(s), %d FAR(s) and %d interface(s) to %s',
            len(data[SECTION_PDRS]),
            len(data[SECTION_FARS]),
            len(data[SECTION_INTERFACES]),
            output_path,
        )
        return output_path
