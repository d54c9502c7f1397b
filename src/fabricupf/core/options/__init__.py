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

"""Typed option keys, defaults and the configuration file loader.

Usage::

    from fabricupf.core.options import load_options

    options = load_options('/etc/fabricupf/fupf.yml')
    options.default_priority  # 128 unless overridden
"""

import dataclasses
import logging
import pathlib

import yaml

from fabricupf.core.options._keys import UpfOption
from fabricupf.core.options._schemas import (
    DEFAULT_APP_ID,
    DEFAULT_DATABASE,
    DEFAULT_DEVICE_ID,
    DEFAULT_P4_DEVICE_ID,
    DEFAULT_PRIORITY,
    UPF_DEFAULTS,
    UpfDefaults,
)

logger = logging.getLogger(__name__)

_INT_OPTIONS = frozenset({UpfOption.P4_DEVICE_ID, UpfOption.DEFAULT_PRIORITY})


def options_from_dict(data, base=UPF_DEFAULTS):
    """Overlay a mapping of option values onto *base*.

    Unknown keys are logged and ignored.  Integer options given as strings
    are converted; a value that cannot be converted raises ValueError.
    """
    if data is None:
        return base
    if not isinstance(data, dict):
        raise ValueError(f'Options must be a mapping, got {type(data).__name__}')
    changes = {}
    for key, value in data.items():
        try:
            option = UpfOption(key)
        except ValueError:
            logger.warning('Ignoring unknown option %s', key)
            continue
        if value is None:
            continue
        if option in _INT_OPTIONS:
            try:
                value = int(value)
            except (TypeError, ValueError) as e:
                raise ValueError(f'Option {key} must be an integer, got {value!r}') from e
        else:
            value = str(value)
        changes[option.value] = value
    return dataclasses.replace(base, **changes)


def load_options(path, base=UPF_DEFAULTS):
    """Load options from a YAML file and overlay them onto *base*."""
    path = pathlib.Path(path)
    logger.debug('Loading options from %s', path)
    with path.open(encoding='utf-8') as f:
        data = yaml.safe_load(f)
    return options_from_dict(data, base)


__all__ = [
    'DEFAULT_APP_ID',
    'DEFAULT_DATABASE',
    'DEFAULT_DEVICE_ID',
    'DEFAULT_P4_DEVICE_ID',
    'DEFAULT_PRIORITY',
    'UPF_DEFAULTS',
    'UpfDefaults',
    'UpfOption',
    'load_options',
    'options_from_dict',
]
