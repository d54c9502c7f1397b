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

"""CLI entry point for installing and inspecting UPF rules."""

import argparse
import logging
import sys

import sqlalchemy.exc
import yaml

import fabricupf
import fabricupf.core
from fabricupf.core.options import UPF_DEFAULTS, UpfOption, load_options, options_from_dict
from fabricupf.driver import FabricUpfProgrammable, ReportRenderer
from fabricupf.translator import TranslatorStatus

__author__ = 'Linuxfabrik GmbH, Zurich/Switzerland'

DESCRIPTION = """FabricUPF rule tool. Installs PDRs, FARs and UPF interfaces from YAML
rule documents as fabric pipeline table entries, and lists, exports and removes
what is installed."""

_LOG_LEVELS = (logging.WARNING, logging.INFO, logging.DEBUG)


def parse_args(argv=None):
    parser = argparse.ArgumentParser(
        prog='fupf',
        description=DESCRIPTION,
    )

    parser.add_argument(
        '-c',
        '--config',
        default='',
        dest='CONFIG',
        help='YAML file with option overrides',
    )

    parser.add_argument(
        '-D',
        '--database',
        default=None,
        dest='DATABASE',
        help=f'SQLAlchemy URL of the entry store. Default: {UPF_DEFAULTS.database}',
    )

    parser.add_argument(
        '-a',
        '--app-id',
        default=None,
        dest='APP_ID',
        help=f'owning application of the entries. Default: {UPF_DEFAULTS.app_id}',
    )

    parser.add_argument(
        '-d',
        '--device-id',
        default=None,
        dest='DEVICE_ID',
        help=f'device the entries are installed on. Default: {UPF_DEFAULTS.device_id}',
    )

    parser.add_argument(
        '-v',
        '--verbose',
        action='count',
        default=0,
        dest='VERBOSE',
        help='verbose output (repeat for higher verbosity)',
    )

    parser.add_argument(
        '-V',
        '--version',
        action='version',
        version=f'%(prog)s: v{fabricupf.__version__} by {__author__}',
    )

    commands = parser.add_subparsers(dest='COMMAND', required=True, metavar='COMMAND')

    cmd = commands.add_parser('install', help='install the rules of a YAML document')
    cmd.add_argument('FILE', help='path to the rule document')

    cmd = commands.add_parser('remove', help='remove the rules of a YAML document')
    cmd.add_argument('FILE', help='path to the rule document')

    cmd = commands.add_parser(
        'remove-interface',
        help='remove an interface without knowing whether it is an S1U or a UE pool',
    )
    cmd.add_argument('PREFIX', help='address or prefix of the interface')

    commands.add_parser('read-pdrs', help='list installed PDRs')
    commands.add_parser('read-fars', help='list installed FARs')
    commands.add_parser('read-interfaces', help='list installed interfaces')
    commands.add_parser('read-flows', help='list flows (PDR + FARs + counters)')

    cmd = commands.add_parser('read-counter', help='read the counters of one PDR counter index')
    cmd.add_argument('INDEX', type=int, help='counter index')

    cmd = commands.add_parser('export', help='write the installed rules and flows to a YAML document')
    cmd.add_argument('FILE', help='output path')

    commands.add_parser('clear-flows', help='remove all PDRs and FARs')
    commands.add_parser('clear-interfaces', help='remove all interfaces')
    commands.add_parser('cleanup', help='remove every entry of the application')

    cmd = commands.add_parser(
        'register-device',
        help='register the device and its pipeline so counters can be read',
    )
    cmd.add_argument(
        '--pipeline',
        default='fabric-spgw',
        dest='PIPELINE',
        help='pipeline configuration name, empty for none. Default: %(default)s',
    )

    return parser.parse_args(argv)


def _setup_logging(verbose):
    logging.basicConfig(
        format='%(levelname)s: %(message)s',
        level=_LOG_LEVELS[min(verbose, len(_LOG_LEVELS) - 1)],
        stream=sys.stderr,
    )


def _command_line_overrides(args):
    return {
        UpfOption.DATABASE: args.DATABASE,
        UpfOption.APP_ID: args.APP_ID,
        UpfOption.DEVICE_ID: args.DEVICE_ID,
    }


def _read_document(args, options):
    """Parse the rule document; its options sit between the config file and the flags."""
    result = fabricupf.core.YamlReader(base_options=options).parse(args.FILE)
    result.options = options_from_dict(_command_line_overrides(args), result.options)
    return result


def _cmd_install(upf, args):
    result = _read_document(args, upf.options)
    upf.options = result.options
    upf.init(result.options.app_id, result.options.device_id)
    summary = upf.install(result.pdrs, result.fars, result.interfaces)
    print(f'Installed: {summary}')
    return 1 if summary.failed or result.skipped else 0


def _cmd_remove(upf, args):
    result = _read_document(args, upf.options)
    upf.options = result.options
    upf.init(result.options.app_id, result.options.device_id)
    summary = upf.remove(result.pdrs, result.fars, result.interfaces)
    print(f'Removed: {summary}')
    return 1 if summary.failed or result.skipped else 0


def _cmd_remove_interface(upf, args):
    return 0 if upf.remove_unknown_interface(args.PREFIX) else 1


def _listing(title, rules):
    def run(upf, args):
        print(ReportRenderer().rules(title, rules(upf), upf.app_id, upf.device_id), end='')
        return 0

    return run


def _cmd_read_flows(upf, args):
    print(ReportRenderer().flows(upf.get_flows(), upf.app_id, upf.device_id), end='')
    return 0


def _cmd_read_counter(upf, args):
    print(ReportRenderer().counter(upf.read_counter(args.INDEX), upf.device_id), end='')
    return 0


def _cmd_export(upf, args):
    fabricupf.core.YamlWriter().write(
        args.FILE,
        upf.get_installed_pdrs(),
        upf.get_installed_fars(),
        upf.get_installed_interfaces(),
        flows=upf.get_flows(),
    )
    print(f'Exported to {args.FILE}')
    return 0


def _cmd_clear_flows(upf, args):
    pdrs, fars = upf.clear_flows()
    print(f'Cleared {pdrs} PDR(s) and {fars} FAR(s)')
    return 0


def _cmd_clear_interfaces(upf, args):
    print(f'Cleared {upf.clear_interfaces()} interface(s)')
    return 0


def _cmd_cleanup(upf, args):
    print(f'Removed {upf.clean_up()} entries')
    return 0


def _cmd_register_device(upf, args):
    upf.devices.register_device(
        upf.device_id,
        pipeline=args.PIPELINE,
        p4_device_id=upf.options.p4_device_id,
    )
    print(f'Registered {upf.device_id} (pipeline {args.PIPELINE!r})')
    return 0


COMMANDS = {
    'install': _cmd_install,
    'remove': _cmd_remove,
    'remove-interface': _cmd_remove_interface,
    'read-pdrs': _listing('PDR', lambda upf: upf.get_installed_pdrs()),
    'read-fars': _listing('FAR', lambda upf: upf.get_installed_fars()),
    'read-interfaces': _listing('interface', lambda upf: upf.get_installed_interfaces()),
    'read-flows': _cmd_read_flows,
    'read-counter': _cmd_read_counter,
    'export': _cmd_export,
    'clear-flows': _cmd_clear_flows,
    'clear-interfaces': _cmd_clear_interfaces,
    'cleanup': _cmd_cleanup,
    'register-device': _cmd_register_device,
}


def main(argv=None):
    args = parse_args(argv)
    _setup_logging(args.VERBOSE)

    options = UPF_DEFAULTS
    try:
        if args.CONFIG:
            options = load_options(args.CONFIG, options)
        options = options_from_dict(_command_line_overrides(args), options)
    except (OSError, ValueError, yaml.YAMLError) as e:
        print(f'Error: failed to load options: {e}', file=sys.stderr)
        return 1

    try:
        db = fabricupf.core.DatabaseManager(options.database)
    except sqlalchemy.exc.SQLAlchemyError as e:
        print(f'Error: failed to open database {options.database}: {e}', file=sys.stderr)
        return 1

    upf = FabricUpfProgrammable(
        fabricupf.core.DatabaseEntryStore(db),
        fabricupf.core.DatabaseDeviceController(db),
        options,
    )
    upf.init()

    try:
        result = COMMANDS[args.COMMAND](upf, args)
    except (OSError, ValueError, yaml.YAMLError, fabricupf.core.UpfError) as e:
        print(f'Error: {e}', file=sys.stderr)
        return 1

    # Errors were already logged when they were recorded
    if upf.diagnostics.status == TranslatorStatus.ERROR:
        return 1
    return result


if __name__ == '__main__':
    sys.exit(main())
