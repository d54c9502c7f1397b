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

# Sphinx configuration for the FabricUPF documentation.

import datetime

import fabricupf

project = 'FabricUPF'
copyright = f'2026 - {datetime.datetime.now().year} Linuxfabrik GmbH, Zurich, Switzerland'
author = 'Linuxfabrik GmbH, Zurich, Switzerland'
release = fabricupf.__version__

extensions = [
    'myst_parser',
    'sphinx.ext.autodoc',
]

source_suffix = {
    '.rst': 'restructuredtext',
    '.md': 'markdown',
}

autodoc_member_order = 'bysource'
exclude_patterns = ['_build', 'Thumbs.db', '.DS_Store']

html_theme = 'sphinx_rtd_theme'
html_theme_options = {
    'collapse_navigation': False,
    'navigation_depth': 2,
}
