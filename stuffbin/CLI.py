#!/usr/bin/env python
# -*- coding: utf-8 -*-
# SPDX-License-Identifier: Apache-2.0
#
# stuffbin - Embed static files into executables
# Copyright (C) 2025-2026 stuffbin contributors
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#     http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.

import argparse
import json
import os
import logging
import logging.config
import platform

from stuffbin.Kernel import PUBLIC_VERSION, getLogger, configureGlobalLogLevel, StuffbinEvent
from stuffbin.Archive import listArchive
from stuffbin.Server import createServer
from stuffbin.Settings import DEFAULT_ROOT, SettingsGetter
from stuffbin.Stuffer import stuff, strip
from stuffbin.Unstuffer import getFileID, getStuff, loadFileSystem
from stuffbin.Utils import flushPrint, formatSize, getEnv

logger = getLogger(__name__)

ACTION_ID = 'id'
ACTION_STUFF = 'stuff'
ACTION_UNSTUFF = 'unstuff'
ACTION_STRIP = 'strip'
ACTION_SERVE = 'serve'

ACTIONS = (ACTION_ID, ACTION_STUFF, ACTION_UNSTUFF, ACTION_STRIP, ACTION_SERVE)

HELP_TEXT = """
Compress and embed static files into binaries.
Usage: stuffbin -a stuff -in yourbinary.bin -out stuffed.bin /path/asset1 /path/asset2:/asset2 ...

The file paths to embed can be suffixed by a colon and a target (alias) path,
for instance /original/local/path:/virtual/path. When compressed and stuffed,
the original path is replaced with the alias, which in turn is used to access
the file from within the application."""


def loadEnvFile(envFilePath='.env'):
    """
    Load KEY=VALUE lines from a .env file into os.environ.
    Variables already defined in the environment take precedence.
    """
    if not os.path.exists(envFilePath):
        return 0

    loadedCount = 0

    with open(envFilePath, 'r', encoding='utf-8') as f:
        for lineNum, line in enumerate(f, 1):
            line = line.strip()

            # Skip empty lines and comments
            if not line or line.startswith('#'):
                continue

            if '=' not in line:
                logger.warning(f'.env line {lineNum}: Invalid format (missing =): {line}')
                continue

            key, _, value = line.partition('=')
            key = key.strip()
            value = value.strip()

            if not key:
                logger.warning(f'.env line {lineNum}: Empty key')
                continue

            # Remove quotes if present (both single and double)
            if len(value) >= 2 and value[0] == value[-1] and value[0] in ('"', "'"):
                value = value[1:-1]

            if key not in os.environ:
                os.environ[key] = value
                loadedCount += 1
            else:
                logger.debug(f'.env: Skipped {key} (already set in environment)')

    logger.debug(f'Loaded {loadedCount} environment variables from {envFilePath}')
    return loadedCount


def configureLogging(logLevel):
    """Configure logging from a level name or a JSON logging configuration file

    Priority order:
    1. logLevel parameter (from --log-level CLI argument)
    2. STUFFBIN_LOGGING_LEVEL environment variable
    3. None (no configuration change)
    """
    if logLevel is None:
        logLevel = getEnv('STUFFBIN_LOGGING_LEVEL', None)

    if logLevel is None:
        return None

    if os.path.isfile(logLevel):
        try:
            with open(logLevel, 'r') as configFile:
                configDict = json.load(configFile)

            logging.config.dictConfig(configDict)
            logger.info(f"Logging configured from file: {logLevel}")
            return logLevel

        except (json.JSONDecodeError, ValueError, KeyError) as e:
            flushPrint(f"Failed to load logging config from {logLevel}: {e}")
            flushPrint("Falling back to default logging level configuration")

    levelMapping = {'DEBUG': logging.DEBUG, 'INFO': logging.INFO, 'WARNING': logging.WARNING, 'ERROR': logging.ERROR}

    if logLevel.upper() in levelMapping:
        configureGlobalLogLevel(levelMapping[logLevel.upper()])
        logger.info(f"Logging level set to {logLevel}")
    else:
        logger.warning(f"Invalid logging level '{logLevel}', using WARNING as default")
        configureGlobalLogLevel(logging.WARNING)

    logging.getLogger('sentry_sdk').setLevel(logging.INFO)

    return logLevel


def showVersion():
    flushPrint(f"stuffbin v{PUBLIC_VERSION}")
    uname = platform.uname()
    flushPrint(f"Architecture: {uname.system} {uname.release} {uname.machine}")


def configureCLIParser():
    parser = argparse.ArgumentParser(
        prog='stuffbin',
        description=HELP_TEXT,
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )

    parser.add_argument('-a', dest='action', choices=ACTIONS, help=f"action ({', '.join(ACTIONS)})")
    parser.add_argument('-in', dest='input', help='path to the input binary')
    parser.add_argument('-out', dest='output', help='path to the output binary (stuff, strip) or ZIP file (unstuff)')
    parser.add_argument('-root', dest='root', default=DEFAULT_ROOT, help='(optional) root path to bind all files to')
    parser.add_argument('-port', dest='port', type=int, default=None, help='(serve) port to listen on')
    parser.add_argument(
        '--log-level', dest='logLevel', default=None, help='logging level name or path to a JSON logging config'
    )
    parser.add_argument('--version', action='store_true', help='show version information and exit')
    parser.add_argument('files', nargs='*', metavar='file-or-dir[:alias]', help='files and directories to embed')

    return parser


class CLIHandler:
    """Runs one action per invocation. Errors propagate to the caller."""

    def __init__(self, settingsGetter: SettingsGetter):
        self.settingsGetter = settingsGetter
        self.codec = settingsGetter.getFooterCodec()

    def _printIdentifier(self, path, identifier):
        flushPrint(
            f"{path}: {identifier.name} ({formatSize(identifier.originalSize)} binary, "
            f"{formatSize(identifier.archiveSize)} stuff)\n"
        )

    def handleId(self, args):
        """Show the identifier and stuffed files of a binary."""
        identifier = getFileID(args.input, self.codec)
        self._printIdentifier(args.input, identifier)

        entries = listArchive(getStuff(args.input, self.codec))
        totalSize = sum(size for _, size in entries)

        flushPrint(f"{len(entries)} files totalling {formatSize(totalSize)}")
        for name, size in sorted(entries):
            flushPrint(f"{formatSize(size):>12}    {name}")

    def handleStuff(self, args):

        def onFilePacked(sourcePath, targetPath, size, **kwargs):
            flushPrint(f"{formatSize(size):>12}    {sourcePath} -> {targetPath}")

        StuffbinEvent.archiveFileCreate.subscribe(onFilePacked)
        try:
            originalSize, archiveSize = stuff(args.input, args.output, args.root, *args.files, codec=self.codec)
        finally:
            StuffbinEvent.archiveFileCreate.unsubscribe(onFilePacked)

        flushPrint(
            f"stuffing complete. binary size is {formatSize(originalSize)} "
            f"and stuffed zip size is {formatSize(archiveSize)}."
        )

    def handleUnstuff(self, args):
        """Extract the raw ZIP archive from a stuffed binary."""
        identifier = getFileID(args.input, self.codec)
        self._printIdentifier(args.input, identifier)

        data = getStuff(args.input, self.codec)
        with open(args.output, 'wb') as f:
            f.write(data)

        flushPrint(f"wrote to {args.output}")

    def handleStrip(self, args):
        identifier = strip(args.input, args.output, self.codec)
        self._printIdentifier(args.input, identifier)

        flushPrint(f"wrote stripped binary '{args.output}'")

    def handleServe(self, args):
        """Serve the stuffed files (or the given local files, if not stuffed) over HTTP."""
        fileSystem = loadFileSystem(args.input, args.root, *args.files, codec=self.codec)

        server = createServer(fileSystem, port=args.port)
        flushPrint(f"serving {len(fileSystem)} files at {server.url}")
        try:
            server.start()
        finally:
            server.server_close()


def runCLI(argv=None):
    """
    Parse argv and run the requested action.

    Returns:
        int: Exit code for successful runs; failures raise
    """
    loadEnvFile()

    parser = configureCLIParser()
    args = parser.parse_args(argv)

    configureLogging(args.logLevel)

    if args.version:
        showVersion()
        return 0

    if args.action is None:
        parser.print_help()
        return 0

    if not args.input:
        parser.error('provide an input path')

    if args.action in (ACTION_STUFF, ACTION_UNSTUFF, ACTION_STRIP) and not args.output:
        parser.error('provide an output path')

    if args.action == ACTION_STUFF and not args.files:
        parser.error('provide one or more files to embed')

    handler = CLIHandler(SettingsGetter.getInstance())
    actionMap = {
        ACTION_ID: handler.handleId,
        ACTION_STUFF: handler.handleStuff,
        ACTION_UNSTUFF: handler.handleUnstuff,
        ACTION_STRIP: handler.handleStrip,
        ACTION_SERVE: handler.handleServe,
    }
    actionMap[args.action](args)

    return 0
