"""

Command line utility to profile directories of JSON movement documents.

"""

import argparse
import json
import logging
import os
import sys

from movementprofiler import _version
from movementprofiler.common import write_text
from movementprofiler.directoryanalyzer import BATCH_SIZE, DEFAULT_FILE_PATTERN, analyze_directory
from movementprofiler.lookupcollector import LookupValueCollector
from movementprofiler.reportsynth import render_report, write_report
from movementprofiler.schematracker import load_snapshot, save_snapshot

logger = logging.getLogger(__name__)

ARG_TYPES = {'str': str, 'int': int, 'float': float}


def load_commands():
    """Load the commands from the commands.json file."""
    commands_path = os.path.join(os.path.dirname(__file__), 'commands.json')
    with open(commands_path, 'r', encoding='utf-8') as f:
        return json.load(f)


def create_subparsers(subparsers, commands):
    """Create subparsers for the commands."""
    for command in commands:
        cmd_parser = subparsers.add_parser(command['command'], help=command['description'])
        for arg in command['args']:
            kwargs = {'help': arg['help']}
            if 'nargs' in arg:
                kwargs['nargs'] = arg['nargs']
            if 'choices' in arg:
                kwargs['choices'] = arg['choices']
            if 'default' in arg:
                kwargs['default'] = arg['default']
            if arg['type'] == 'bool':
                kwargs['action'] = 'store_true'
            else:
                kwargs['type'] = ARG_TYPES[arg['type']]
            carg = cmd_parser.add_argument(arg['name'], **kwargs)
            if arg['name'].startswith('-'):
                carg.required = arg.get('required', True)


def dynamic_import(module, func):
    """Dynamically import a module and function."""
    mod = __import__(module, fromlist=[func])
    return getattr(mod, func)


def analyze_to_report(directory_path: str, report_file: str,
                      filename_pattern: str = DEFAULT_FILE_PATTERN,
                      snapshot_file: str | None = None,
                      lookups_file: str | None = None,
                      batch_size: int = BATCH_SIZE,
                      max_workers: int | None = None) -> None:
    """Analyzes a directory and writes the report, plus the optional snapshot and lookup files."""
    collector = LookupValueCollector() if lookups_file else None
    snapshot = analyze_directory(directory_path, filename_pattern or DEFAULT_FILE_PATTERN,
                                 batch_size=batch_size or BATCH_SIZE, max_workers=max_workers,
                                 lookup_collector=collector)
    write_report(snapshot, report_file)
    if snapshot_file:
        save_snapshot(snapshot, snapshot_file)
    if collector is not None:
        write_text(lookups_file, json.dumps(collector.snapshot(), indent=2))
        for category, count in collector.summary().items():
            logger.info("  - %d %s", count, category.replace('_', ' '))


def snapshot_to_report(snapshot_file: str, report_file: str) -> None:
    """Renders the report for a snapshot saved by ``analyze``."""
    write_text(report_file, render_report(load_snapshot(snapshot_file)))


def main():
    """Main function for the command line utility."""
    commands = load_commands()
    parser = argparse.ArgumentParser(description='Profile directories of JSON movement documents.')
    parser.add_argument('--version', action='store_true', help='Print the version of movementprofiler.')

    subparsers = parser.add_subparsers(dest='command')
    create_subparsers(subparsers, commands)

    args = parser.parse_args()

    if 'version' in args and args.version:
        print(f'movementprofiler {_version.version}')
        return

    if args.command is None:
        parser.print_help()
        return

    logging.basicConfig(level=logging.INFO, format='%(levelname)s: %(message)s')

    try:
        command = next((cmd for cmd in commands if cmd['command'] == args.command), None)
        if not command:
            print(f"Error: Command {args.command} not found.")
            sys.exit(1)

        module_name, func_name = command['function']['name'].rsplit('.', 1)
        func = dynamic_import(module_name, func_name)
        func_args = {}
        for arg, val in command['function']['args'].items():
            if val.startswith('args.'):
                if hasattr(args, val[5:]):
                    func_args[arg] = getattr(args, val[5:])
            else:
                func_args[arg] = val

        print(f'Executing {command["description"]}')
        func(**func_args)
        if 'out' in args and args.out:
            print(f'Report saved to {args.out}')

    except Exception as e:
        print("Error: ", str(e))
        sys.exit(1)


if __name__ == "__main__":
    main()
