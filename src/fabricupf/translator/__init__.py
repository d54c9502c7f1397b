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

"""Rule translation, flow reconstruction and entry resolution."""

from ._base import Diagnostic, Diagnostics, TranslatorStatus
from ._codec import FarCodec, InterfaceCodec, PdrCodec, RuleCodec, RuleCodecs
from ._constants import S1U_PREFIX_LEN, SouthConstants, SourceInterface
from ._counters import CounterAggregator
from ._flows import FlowReconstructor
from ._match import EntryMatchBuilder
from ._resolver import EntryResolver

__all__ = [
    'S1U_PREFIX_LEN',
    'CounterAggregator',
    'Diagnostic',
    'Diagnostics',
    'EntryMatchBuilder',
    'EntryResolver',
    'FarCodec',
    'FlowReconstructor',
    'InterfaceCodec',
    'PdrCodec',
    'RuleCodec',
    'RuleCodecs',
    'SouthConstants',
    'SourceInterface',
    'TranslatorStatus',
]
