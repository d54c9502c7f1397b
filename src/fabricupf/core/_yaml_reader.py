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

"""YAML reader for loading PDRs, FARs and interfaces from a rule document.

A document looks like this::

    options:
      app_id: 'org.omecproject.up4'
    pdrs:
      - far_id: 7
        counter_id: 3
        ue_address: '10.0.0.1'
        teid: 5
        tunnel_dst: '192.0.2.1'
    fars:
      - far_id: 7
        tunnel:
          src: '192.0.2.1'
          dst: '198.51.100.7'
          teid: 9
    interfaces:
      - type: 's1u'
        address: '192.0.2.1'
      - type: 'ue_pool'
        prefix: '10.0.0.0/16'

Items that cannot be turned into rules are logged and skipped.
"""

import ipaddress
import logging
import pathlib

import yaml

from . import objects
from ._util import (
    INTERFACE_TYPES,
    SECTION_FARS,
    SECTION_INTERFACES,
    SECTION_OPTIONS,
    SECTION_PDRS,
    ParseResult,
)
from .options import UPF_DEFAULTS, options_from_dict

logger = logging.getLogger(__name__)


def _coerce_bool(value):
    """Accept quoted ``"true"``/``"false"`` as well as real booleans."""
    if isinstance(value, str):
        low = value.lower()
        if low in ('true', 'yes', '1'):
            return True
        if low in ('false', 'no', '0', ''):
            return False
        raise ValueError(f'not a boolean: {value!r}')
    return bool(value)


def _coerce_int(value, name):
    if value is None:
        return None
    if isinstance(value, bool):
        raise ValueError(f'{name} must be an integer, got {value!r}')
    if isinstance(value, str):
        # Hex TEIDs are common in captures
        return int(value, 0)
    if not isinstance(value, int):
        raise ValueError(f'{name} must be an integer, got {value!r}')
    return value


class YamlReader:
    """Parses a single YAML rule document into a ParseResult."""

    def __init__(self, base_options=UPF_DEFAULTS):
        self.base_options = base_options

    def parse(self, input_path):
        input_path = pathlib.Path(input_path)
        logger.debug('Reading rules from %s', input_path)

        with pathlib.Path.open(input_path, encoding='utf-8') as f:
            data = yaml.safe_load(f)
        return self.parse_data(data, source=str(input_path))

    def parse_data(self, data, source='<data>'):
        """Build a ParseResult from an already loaded document."""
        if data is None:
            data = {}
        if not isinstance(data, dict):
            raise ValueError(f'{source}: top level must be a mapping, got {type(data).__name__}')

        result = ParseResult(
            options=options_from_dict(data.get(SECTION_OPTIONS), self.base_options),
        )
        for section, parse_item, target in (
            (SECTION_PDRS, self._parse_pdr, result.pdrs),
            (SECTION_FARS, self._parse_far, result.fars),
            (SECTION_INTERFACES, self._parse_interface, result.interfaces),
        ):
            items = data.get(section) or []
            if not isinstance(items, list):
                raise ValueError(f'{source}: section {section!r} must be a list')
            for pos, item in enumerate(items):
                try:
                    if not isinstance(item, dict):
                        raise ValueError(f'expected a mapping, got {type(item).__name__}')
                    target.append(parse_item(item))
                except (KeyError, TypeError, ValueError) as e:
                    logger.warning('%s: skipping %s[%d]: %s', source, section, pos, e)
                    result.skipped += 1

        logger.debug(
            '%s: %d PDR(s), %d FAR(s), %d interface(s), %d skipped',
            source,
            len(result.pdrs),
            len(result.fars),
            len(result.interfaces),
            result.skipped,
        )
        return result

    @staticmethod
    def _parse_pdr(item):
        return objects.PacketDetectionRule(
            global_far_id=_coerce_int(item['far_id'], 'far_id'),
            counter_id=_coerce_int(item['counter_id'], 'counter_id'),
            ue_address=item.get('ue_address'),
            teid=_coerce_int(item.get('teid'), 'teid'),
            tunnel_dst=item.get('tunnel_dst'),
        )

    @staticmethod
    def _parse_far(item):
        tunnel = None
        tunnel_data = item.get('tunnel')
        if tunnel_data is not None:
            if not isinstance(tunnel_data, dict):
                raise ValueError('tunnel must be a mapping')
            tunnel = objects.GtpTunnel(
                src=tunnel_data['src'],
                dst=tunnel_data['dst'],
                teid=_coerce_int(tunnel_data['teid'], 'teid'),
                src_port=_coerce_int(tunnel_data.get('src_port', objects.GTPU_PORT), 'src_port'),
            )
        return objects.ForwardingActionRule(
            global_far_id=_coerce_int(item['far_id'], 'far_id'),
            drop=_coerce_bool(item.get('drop', False)),
            notify_cp=_coerce_bool(item.get('notify_cp', False)),
            tunnel=tunnel,
        )

    @staticmethod
    def _parse_interface(item):
        type_name = str(item['type']).lower()
        iface_type = INTERFACE_TYPES.get(type_name)
        if iface_type is None:
            raise ValueError(f'unknown interface type {item["type"]!r}')
        if iface_type == objects.InterfaceType.S1U:
            address = item.get('address', item.get('prefix'))
            if address is None:
                raise KeyError('address')
            network = ipaddress.IPv4Network(address)
            if network.prefixlen != 32:
                raise ValueError(f'S1U interface must be a single address, got {network}')
            return objects.UpfInterface.s1u(network.network_address)
        return objects.UpfInterface.ue_pool(item['prefix'])
