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

"""Shared pytest fixtures: in-memory store, device registry and programmable."""

from pathlib import Path

import pytest

import fabricupf.core
from fabricupf.core.options import UPF_DEFAULTS
from fabricupf.driver import FabricUpfProgrammable
from fabricupf.translator import Diagnostics

FIXTURES_DIR = Path(__file__).parent / 'fixtures'

APP_ID = 'org.omecproject.up4'
DEVICE_ID = 'device:leaf1'


@pytest.fixture()
def db():
    """A fresh in-memory database per test."""
    return fabricupf.core.DatabaseManager()


@pytest.fixture()
def store(db):
    return fabricupf.core.DatabaseEntryStore(db)


@pytest.fixture()
def devices(db):
    """Device registry with DEVICE_ID registered and a pipeline deployed."""
    controller = fabricupf.core.DatabaseDeviceController(db)
    controller.register_device(DEVICE_ID, pipeline='fabric-spgw')
    return controller


@pytest.fixture()
def diagnostics():
    return Diagnostics()


@pytest.fixture()
def upf(store, devices, diagnostics):
    """A programmable bound to APP_ID and DEVICE_ID."""
    programmable = FabricUpfProgrammable(store, devices, UPF_DEFAULTS, diagnostics)
    programmable.init(APP_ID, DEVICE_ID)
    return programmable


@pytest.fixture()
def rules_file():
    return FIXTURES_DIR / 'rules.yml'
