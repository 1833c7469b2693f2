#!/usr/bin/env python

'''
@ purpose:

Command line front end for rebuilding a .logarchive from a dead-box file
tree. Parses arguments, sets up logging, works out the macOS version if
it was not given, runs the Collector and reports what happened.

Basic invocation: cmla -i /mnt/image -v 10.15.7 -o case01.logarchive

'''

import argparse
import logging
import os
import sys
from datetime import datetime

import pytz

from . import __version__
from .collector import Collector
from .errors import UnsupportedVersion
from .layouts import AUTO_LAYOUT, DEFAULT_LAYOUT, available_layouts
from .utils.functions import parse_timestamp, strip_trailing_slash
from .utils.output import BUNDLE_SUFFIX
from .utils.versions import read_product_version, supported_versions


# Establish argparser.
def parseArguments(argv=None):
    parser = argparse.ArgumentParser(description="CMLA: rebuild a macOS unified logging .logarchive from an extracted file tree.", add_help=False)

    general = parser.add_argument_group('general arguments')
    general.add_argument("-h", "--help", action="help", help="show this help message and exit")
    general.add_argument('-i', '--inputdir', default='', help='root of the extracted source tree (the data volume for 10.15+ systems)', required=False)
    general.add_argument('-is', '--inputsysdir', default='', help='system volume root of a 10.15+ image, only used to find SystemVersion.plist', required=False)
    general.add_argument('-v', '--macos', default='', help='source macOS version (e.g. 10.13, 10.15.7, 12.0); read from SystemVersion.plist if omitted', required=False)
    general.add_argument('-o', '--output', default='recovered' + BUNDLE_SUFFIX, help='destination bundle, {0} is appended if missing'.format(BUNDLE_SUFFIX), required=False)
    general.add_argument('-t', '--time_created', default='', help='TimeCreated to record in Info.plist (e.g. acquisition time), defaults to now; naive times are UTC', required=False)
    general.add_argument('-nx', '--no_xattrs', help='if flag is provided, will NOT copy extended attributes', default=False, action='store_true', required=False)
    general.add_argument('-nl', '--no_logfile', help='if flag is provided, will NOT generate logfile on disk', default=False, action='store_true', required=False)
    general.add_argument('-fmt', '--log_format', help='toggle between text and json logfile, defaults to text', default='text', action='store', required=False, choices=['text', 'json'])

    layout_args = parser.add_argument_group('source layout')
    layout_args.add_argument('-L', '--layout', default=DEFAULT_LAYOUT, choices=sorted(available_layouts()) + [AUTO_LAYOUT], help='where the log stores sit under the input directory, defaults to {0}'.format(DEFAULT_LAYOUT), required=False)
    layout_args.add_argument('-l', '--list_layouts', help='if flag is provided, will list available layouts and exit.', default=False, action='store_true', required=False)

    console_log_args = parser.add_argument_group('console logging verbosity')
    console_logging_args = console_log_args.add_mutually_exclusive_group(required=False)
    console_logging_args.add_argument('-q', '--quiet', help='if flag is provided, will NOT output to console at all', default=False, action='store_true', required=False)
    console_logging_args.add_argument('-d', '--debug', help='enable debug logging to console', default=False, action='store_true', required=False)

    return parser.parse_args(argv)


def list_layouts():
    lines = ["Layouts available for use:"]
    for name, layout in sorted(available_layouts().items()):
        default = ' (default)' if name == DEFAULT_LAYOUT else ''
        lines.append('\t {0}{1}: {2}'.format(name, default, layout.description()))
        for member, suffix, is_wildcard in layout.members():
            lines.append('\t\t {0:<18} {1}{2}'.format(member, suffix, ' (wildcard)' if is_wildcard else ''))
    lines.append('\t {0}: {1} if private/var exists under the input directory, else {2}'.format(AUTO_LAYOUT, 'private', DEFAULT_LAYOUT))
    return '\n'.join(lines)


class CLIRunner(object):

    def __init__(self, args):
        self.args = args
        self.args.inputdir = strip_trailing_slash(self.args.inputdir)
        self.args.inputsysdir = strip_trailing_slash(self.args.inputsysdir)
        self.log = self._setup_logging()

    def _logfile_path(self):
        # Keep the runtime log beside the bundle, never inside it.
        bundle = self.args.output.rstrip(os.sep)
        if bundle.endswith(BUNDLE_SUFFIX):
            bundle = bundle[:-len(BUNDLE_SUFFIX)]
        extension = 'json' if self.args.log_format == 'json' else 'log'
        return '{0}.runtime.{1}'.format(bundle, extension)

    def _setup_logging(self):
        # Establish logger.
        self.args.log_file = os.devnull
        logfile_error = None
        if not self.args.no_logfile:
            log_file = self._logfile_path()
            log_dir = os.path.dirname(os.path.abspath(log_file))
            try:
                if os.path.isdir(log_dir) is False:
                    os.makedirs(log_dir)
                open(log_file, 'a').close()
                self.args.log_file = log_file
            except OSError as e:
                logfile_error = e

        if self.args.log_format == "json":
            logging.basicConfig(
                level=logging.DEBUG,
                format='{"logtime": "%(asctime)s", "program": "%(name)s", "pid": "%(process)s", "loglevel": "%(levelname)s", "message": "%(message)s"}',
                datefmt='%Y-%m-%dT%H:%M:%S%z',
                filename=self.args.log_file
            )
        else:
            logging.basicConfig(
                level=logging.DEBUG,
                format='%(asctime)s - %(name)s[%(process)s] - %(levelname)s - %(message)s',
                datefmt='%Y-%m-%dT%H:%M:%S%z',
                filename=self.args.log_file
            )

        log = logging.getLogger('cmla')

        # Create handler for CONSOLE printing.
        ch = logging.StreamHandler(sys.stderr)

        # Handle console logging verbosity.
        if self.args.quiet:
            loglevel = logging.CRITICAL
        elif self.args.debug:
            loglevel = logging.DEBUG
        else:
            loglevel = logging.INFO

        ch.setLevel(loglevel)

        formatter = logging.Formatter('%(name)-15s: %(levelname)-8s %(message)s')
        ch.setFormatter(formatter)

        logging.getLogger('').addHandler(ch)

        if logfile_error is not None:
            log.error("Could not create runtime log {0}: {1}. Continuing without a logfile.".format(self._logfile_path(), logfile_error))

        return log

    def _get_os_version(self):
        if self.args.macos:
            return self.args.macos

        os_version = read_product_version(self.args.inputdir, self.args.inputsysdir)
        if os_version is None:
            self.log.error("Could not get OSVersion from SystemVersion.plist, provide it with --macos.")
        else:
            self.log.info("Read macOS version {0} from the source tree.".format(os_version))
        return os_version

    def _get_time_created(self):
        if not self.args.time_created:
            return None
        return parse_timestamp(self.args.time_created)

    def execute(self):
        start_time = datetime.now(pytz.UTC)
        self.log.info("Started cmla (v. {0}) at {1}.".format(__version__, start_time))
        self.log.debug("Invocation: {0}".format(' '.join(sys.argv)))

        if not os.path.isdir(self.args.inputdir):
            self.log.error("Input directory {0} does not exist or is not a directory.".format(self.args.inputdir))
            return 1

        os_version = self._get_os_version()
        if os_version is None:
            return 1

        try:
            time_created = self._get_time_created()
        except ValueError as e:
            self.log.error(str(e))
            return 1

        collector = Collector(
            self.args.inputdir, self.args.output, os_version,
            layout=self.args.layout, time_created=time_created,
            preserve_xattrs=not self.args.no_xattrs
        )
        result = collector.run()

        end_time = datetime.now(pytz.UTC)
        self.log.info("Finished program at {0}.".format(end_time))
        self.log.info("Total runtime: {0}.".format(end_time - start_time))

        return self.report(result)

    def report(self, result):
        if not result.completed:
            self.log.error("Collection failed during {0}: {1}".format(result.stage, result.error))
            if isinstance(result.error, UnsupportedVersion):
                known = ', '.join('{0} -> {1}'.format(p, v) for p, v in supported_versions())
                self.log.error("Supported versions: {0}".format(known))
            return 1

        if result.warnings:
            self.log.warning("{0} warning(s) while copying, see above for what could not be collected.".format(len(result.warnings)))
            missing = sorted(set(w.member for w in result.warnings if w.member))
            self.log.warning("Members with warnings: {0}".format(', '.join(missing)))

        self.log.info("Log archive created at: {0} (macOS {1} -> OSArchiveVersion={2})".format(
            result.bundle, result.os_version, result.archive_version))
        return 0


def main(argv=None):
    # Set environmental variable TZ to UTC.
    os.environ['TZ'] = 'UTC'

    args = parseArguments(argv)

    # Add functionality for --list argument to enumerate available layouts.
    if args.list_layouts:
        print(list_layouts())
        return 0

    if not args.inputdir:
        print("You must provide the source tree with -i/--inputdir. Exiting.")
        return 1

    runner = CLIRunner(args)
    return runner.execute()


if __name__ == "__main__":
    sys.exit(main())
