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

"""Text reports of installed rules, flows and counters.

Reports are Jinja2 templates shipped in ``resources/templates/cli/``.  A
template of the same name in ``~/fabricupf/templates/cli/`` takes
precedence, so single reports can be customized per installation.
"""

from __future__ import annotations

import importlib.resources
from pathlib import Path

import jinja2

from fabricupf.core.objects import PdrStats

REPORT_KIND = 'cli'


def _counter(stats: PdrStats) -> str:
    return (
        f'ingress {stats.ingress_pkts} pkts / {stats.ingress_bytes} bytes, '
        f'egress {stats.egress_pkts} pkts / {stats.egress_bytes} bytes'
    )


def _plural(count: int, noun: str) -> str:
    return f'{count} {noun}' if count == 1 else f'{count} {noun}s'


class ReportRenderer:
    """Renders the report templates of one kind.

    The environment is built once; templates are loaded on first use.
    """

    def __init__(self, kind: str = REPORT_KIND, user_dir: Path | None = None) -> None:
        if user_dir is None:
            user_dir = Path.home() / 'fabricupf' / 'templates'
        search_paths = [str(user_dir / kind)] if (user_dir / kind).is_dir() else []
        pkg_dir = Path(str(importlib.resources.files('fabricupf') / 'resources' / 'templates' / kind))
        search_paths.append(str(pkg_dir))

        self.env = jinja2.Environment(
            loader=jinja2.FileSystemLoader(search_paths),
            undefined=jinja2.StrictUndefined,
            trim_blocks=True,
            lstrip_blocks=True,
            keep_trailing_newline=True,
        )
        self.env.filters['counter'] = _counter
        self.env.filters['plural'] = _plural

    def render(self, template_name: str, **context) -> str:
        return self.env.get_template(template_name).render(context)

    def rules(self, title: str, rules, app_id: str, device_id: str) -> str:
        """Listing of installed PDRs, FARs or interfaces."""
        return self.render('rules.txt.j2', title=title, rules=list(rules), app_id=app_id, device_id=device_id)

    def flows(self, flows, app_id: str, device_id: str) -> str:
        return self.render('flows.txt.j2', flows=list(flows), app_id=app_id, device_id=device_id)

    def counter(self, stats: PdrStats, device_id: str) -> str:
        return self.render('counter.txt.j2', stats=stats, device_id=device_id)
