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

"""FabricUpfProgrammable: UPF rule programming on top of an entry store.

Sequences the codecs, the match builder, the resolver and the flow
reconstructor against the store and device collaborators.  Failures are
reported through the diagnostics sink (and the logger) and turned into a
``False`` return value; translation and lookup problems never raise.
"""

from __future__ import annotations

import dataclasses
from collections.abc import Iterable
from typing import TYPE_CHECKING

from fabricupf.core._errors import StoreError, TranslationError
from fabricupf.core.objects import (
    ForwardingActionRule,
    PacketDetectionRule,
    PdrStats,
    UpfFlow,
    UpfInterface,
)
from fabricupf.core.options import UPF_DEFAULTS
from fabricupf.translator import (
    CounterAggregator,
    Diagnostics,
    EntryMatchBuilder,
    EntryResolver,
    FlowReconstructor,
    RuleCodecs,
)

if TYPE_CHECKING:
    from fabricupf.core import DeviceController, EntryStore
    from fabricupf.core.objects import EntryMatch, TableEntry
    from fabricupf.core.options import UpfDefaults


@dataclasses.dataclass
class InstallSummary:
    """Outcome of a batch install or removal."""

    succeeded: int = 0
    failed: int = 0

    @property
    def total(self) -> int:
        return self.succeeded + self.failed

    def __str__(self) -> str:
        return f'{self.succeeded} of {self.total} succeeded, {self.failed} failed'


class FabricUpfProgrammable:
    """Programs PDRs, FARs and interfaces as fabric pipeline table entries.

    All entries are installed on :attr:`device_id` and tagged with
    :attr:`app_id`; every scan and bulk removal is scoped to that owner.
    """

    def __init__(
        self,
        store: EntryStore,
        devices: DeviceController | None = None,
        options: UpfDefaults = UPF_DEFAULTS,
        diagnostics: Diagnostics | None = None,
    ) -> None:
        self.store = store
        self.devices = devices
        self.options = options
        self.diagnostics = diagnostics or Diagnostics()
        self.codecs = RuleCodecs()
        self.match_builder = EntryMatchBuilder()
        self.counters = CounterAggregator(devices, self.diagnostics)
        self.flows = FlowReconstructor(self.codecs, self.counters, self.diagnostics)
        self.resolver = EntryResolver(store, self.diagnostics)
        self._app_id: str = options.app_id
        self._device_id: str = options.device_id

    def init(self, app_id: str | None = None, device_id: str | None = None) -> bool:
        """Bind the programmable to an owning application and a device."""
        if app_id is not None:
            self._app_id = app_id
        if device_id is not None:
            self._device_id = device_id
        self.diagnostics.info(
            'initialized',
            'UpfProgrammable initialized for appId %s and deviceId %s',
            self._app_id,
            self._device_id,
        )
        return True

    @property
    def app_id(self) -> str:
        return self._app_id

    @property
    def device_id(self) -> str:
        return self._device_id

    @property
    def priority(self) -> int:
        return self.options.default_priority

    # -- Bulk operations --

    def _scan(self, owner: str) -> list[TableEntry]:
        try:
            return self.store.entries(owner)
        except StoreError as e:
            self.diagnostics.error('remove_failed', 'Unable to list the entries of %s: %s', owner, e)
            return []

    def _remove_each(self, entries: Iterable[TableEntry]) -> int:
        """Remove *entries* one by one; a failing entry does not stop the rest."""
        removed = 0
        for entry in entries:
            try:
                if self.store.remove(entry):
                    removed += 1
            except StoreError as e:
                self.diagnostics.error('remove_failed', 'Unable to remove %s: %s', entry, e)
        return removed

    def clean_up(self, app_id: str | None = None) -> int:
        """Remove every entry of *app_id* (default: our own) and reset the codecs.

        When the bulk removal fails the entries are removed one by one.
        """
        owner = app_id or self._app_id
        self.diagnostics.info('cleared', 'Clearing all UPF-related table entries of %s', owner)
        try:
            removed = self.store.remove_owned(owner)
        except StoreError as e:
            self.diagnostics.error('remove_failed', 'Unable to clear the entries of %s: %s', owner, e)
            removed = self._remove_each(self._scan(owner))
        self.codecs.reset()
        return removed

    def clear_interfaces(self) -> int:
        self.diagnostics.info('cleared', 'Clearing all UPF interfaces')
        return self._remove_each(e for e in self._scan(self._app_id) if self.codecs.is_interface(e))

    def clear_flows(self) -> tuple[int, int]:
        """Remove every PDR and FAR entry.  Returns the (PDR, FAR) counts."""
        entries = self._scan(self._app_id)
        pdrs_cleared = self._remove_each(e for e in entries if self.codecs.is_pdr(e))
        fars_cleared = self._remove_each(e for e in entries if self.codecs.is_far(e))
        self.diagnostics.info(
            'cleared',
            'Cleared %d PDRs and %d FARs',
            pdrs_cleared,
            fars_cleared,
        )
        return pdrs_cleared, fars_cleared

    # -- Counters --

    def read_counter(self, cell_id: int) -> PdrStats:
        return self.counters.read_counter(self._device_id, cell_id)

    # -- Installation --

    def _install(self, rule) -> bool:
        try:
            entry = self.codecs.encode(rule, self._device_id, self._app_id, self.priority)
        except TranslationError as e:
            self.diagnostics.warning('install_failed', 'Unable to install %s: %s', rule, e)
            return False
        try:
            installed = self.store.apply(entry)
        except StoreError as e:
            self.diagnostics.error('install_failed', 'Unable to install %s: %s', rule, e)
            return False
        self.diagnostics.info('installed', 'Installing %s', rule)
        self.diagnostics.debug(
            'installed',
            '%s installed as entry %s',
            self.codecs.codec_for(rule).kind,
            installed.entry_id,
        )
        return True

    def add_pdr(self, pdr: PacketDetectionRule) -> bool:
        return self._install(pdr)

    def add_far(self, far: ForwardingActionRule) -> bool:
        return self._install(far)

    def add_interface(self, iface: UpfInterface) -> bool:
        return self._install(iface)

    def add_s1u_interface(self, address) -> bool:
        return self.add_interface(UpfInterface.s1u(address))

    def add_ue_pool(self, prefix) -> bool:
        return self.add_interface(UpfInterface.ue_pool(prefix))

    def install(
        self,
        pdrs: Iterable[PacketDetectionRule] = (),
        fars: Iterable[ForwardingActionRule] = (),
        interfaces: Iterable[UpfInterface] = (),
    ) -> InstallSummary:
        """Install a batch of rules, interfaces first and PDRs last.

        A rule that fails does not stop the rest of the batch.
        """
        summary = InstallSummary()
        for rule in (*interfaces, *fars, *pdrs):
            if self._install(rule):
                summary.succeeded += 1
            else:
                summary.failed += 1
        return summary

    # -- Reading --

    def _decode_all(self, codec):
        rules = []
        for entry in self.store.entries(self._app_id):
            if not codec.matches(entry):
                continue
            try:
                rules.append(codec.decode(entry))
            except TranslationError as e:
                self.diagnostics.warning(
                    'translation_failed',
                    'Found what appears to be a %s but it cannot be translated: %s (%s)',
                    codec.kind,
                    entry,
                    e,
                )
        return rules

    def get_installed_pdrs(self) -> list[PacketDetectionRule]:
        return self._decode_all(self.codecs.pdr)

    def get_installed_fars(self) -> list[ForwardingActionRule]:
        return self._decode_all(self.codecs.far)

    def get_installed_interfaces(self) -> list[UpfInterface]:
        return self._decode_all(self.codecs.interface)

    def get_flows(self) -> list[UpfFlow]:
        return self.flows.reconstruct(self.store.entries(self._app_id), self._app_id)

    # -- Removal --

    def _remove(self, match: EntryMatch) -> bool:
        try:
            return self.resolver.remove(match, self._app_id)
        except StoreError as e:
            self.diagnostics.error('remove_failed', 'Unable to remove %s: %s', match, e)
            return False

    def remove_pdr(self, pdr: PacketDetectionRule) -> bool:
        try:
            match = self.match_builder.pdr_match(pdr)
        except TranslationError:
            self.diagnostics.error(
                'unsupported_pdr',
                'Removal of flexible PDRs not yet supported: %s',
                pdr,
            )
            return False
        self.diagnostics.info('removing', 'Removing %s', pdr)
        return self._remove(match)

    def remove_far(self, far: ForwardingActionRule) -> bool:
        self.diagnostics.info('removing', 'Removing %s', far)
        return self._remove(self.match_builder.far_match(far))

    def remove_s1u_interface(self, address) -> bool:
        self.diagnostics.info('removing', 'Removing S1U interface %s', address)
        return self._remove(self.match_builder.s1u_match(address))

    def remove_ue_pool(self, prefix) -> bool:
        self.diagnostics.info('removing', 'Removing UE pool %s', prefix)
        return self._remove(self.match_builder.ue_pool_match(prefix))

    def remove_interface(self, iface: UpfInterface) -> bool:
        self.diagnostics.info('removing', 'Removing %s', iface)
        return self._remove(self.match_builder.interface_match(iface))

    def remove_unknown_interface(self, prefix) -> bool:
        """Remove an interface whose role is not known.

        The S1U entry for the prefix address is tried first, then the UE
        pool entry for the whole prefix.
        """
        candidates = self.match_builder.unknown_interface_candidates(prefix)
        try:
            return self.resolver.remove_first(candidates, self._app_id)
        except StoreError as e:
            self.diagnostics.error('remove_failed', 'Unable to remove interface %s: %s', prefix, e)
            return False

    def remove(
        self,
        pdrs: Iterable[PacketDetectionRule] = (),
        fars: Iterable[ForwardingActionRule] = (),
        interfaces: Iterable[UpfInterface] = (),
    ) -> InstallSummary:
        """Remove a batch of rules, PDRs first and interfaces last."""
        summary = InstallSummary()
        for pdr in pdrs:
            self._count(summary, self.remove_pdr(pdr))
        for far in fars:
            self._count(summary, self.remove_far(far))
        for iface in interfaces:
            self._count(summary, self.remove_interface(iface))
        return summary

    @staticmethod
    def _count(summary: InstallSummary, ok: bool) -> None:
        if ok:
            summary.succeeded += 1
        else:
            summary.failed += 1
