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
"""
Path resolution for file specifications.

A specification is either 'source' or 'source:alias'. Sources may be files or
directories; every resolved file is mapped to a virtual path: an absolute,
forward-slash, dot-cleaned path that is independent of the host's separators.
"""

import ntpath
import os
import posixpath
import stat as _stat

from dataclasses import dataclass
from typing import Iterator, Optional, Tuple

from stuffbin.Kernel import getLogger, StuffbinEvent
from stuffbin.Settings import DEFAULT_ROOT, InvalidSpecError

logger = getLogger(__name__)

ALIAS_SEPARATOR = ':'


@dataclass(frozen=True)
class WalkResult:
    """A source file and the virtual path it resolves to"""
    sourcePath: str
    targetPath: str
    stat: os.stat_result


def toSlash(path) -> str:
    """Convert host separators to '/' and drop any drive or volume prefix."""
    path = os.fspath(path).replace('\\', '/')

    drive, rest = ntpath.splitdrive(path)
    # UNC prefixes only mean something on Windows, '//x' is a valid POSIX path.
    if drive and (os.name == 'nt' or drive.endswith(':')):
        path = rest

    return path


def cleanPath(rootPath: str, path: str) -> str:
    """
    Normalize a path into a virtual path mounted under rootPath.

    The path is anchored at '/' before cleaning, so '..' segments can never
    climb above the root. For instance, with rootPath '/', both 'mock/foo' and
    '/mock/foo' become '/mock/foo'.
    """
    rootPath = toSlash(rootPath or DEFAULT_ROOT)
    path = posixpath.normpath('/' + toSlash(path))

    joined = posixpath.normpath(posixpath.join('/' + rootPath, path.lstrip('/')))
    # normpath() keeps a leading '//', collapse it.
    return '/' + joined.lstrip('/')


def parseSpec(spec: str) -> Tuple[str, Optional[str]]:
    """
    Split a file specification into its source path and optional alias.

    Returns:
        (sourcePath, alias) where alias is a cleaned virtual path or None

    Raises:
        InvalidSpecError: If the specification has more than one alias separator
    """
    chunks = os.fspath(spec).split(ALIAS_SEPARATOR)
    if len(chunks) > 2:
        raise InvalidSpecError(f"invalid alias format '{spec}'")

    sourcePath = os.path.normpath(chunks[0])
    alias = cleanPath(DEFAULT_ROOT, chunks[1]) if len(chunks) == 2 else None
    return sourcePath, alias


def _raiseError(e):
    raise e


def _walkDirectory(sourcePath, alias, rootPath) -> Iterator[WalkResult]:
    for dirPath, dirNames, fileNames in os.walk(sourcePath, onerror=_raiseError):
        dirNames.sort()

        for name in sorted(fileNames):
            path = os.path.join(dirPath, name)
            st = os.stat(path)
            if _stat.S_ISDIR(st.st_mode): # Symlinked directories are not followed.
                continue

            if alias is not None:
                # Replace the whole source directory prefix with the alias.
                relPath = toSlash(os.path.relpath(path, sourcePath))
                targetPath = cleanPath(rootPath, posixpath.join(alias, relPath))
            else:
                targetPath = cleanPath(rootPath, path)

            yield WalkResult(path, targetPath, st)


def walkPaths(rootPath: str, *specs: str) -> Iterator[WalkResult]:
    """
    Resolve file specifications into (source, virtual path, stat) results.

    Directory sources yield every descendant file (directories themselves are
    skipped) in a stable, sorted order. A directory alias replaces the source
    directory prefix and is mounted under rootPath; a file alias is used as the
    virtual path as-is.

    Args:
        rootPath: Virtual directory all non-aliased files are mounted under
        *specs: 'source' or 'source:alias' specifications

    Yields:
        WalkResult for every resolved file

    Raises:
        InvalidSpecError: On a malformed specification
        OSError: If a source cannot be stat'ed or walked; the walk is aborted
    """
    for spec in specs:
        sourcePath, alias = parseSpec(spec)

        st = os.stat(sourcePath)

        if _stat.S_ISDIR(st.st_mode):
            results = _walkDirectory(sourcePath, alias, rootPath)
        else:
            if alias == DEFAULT_ROOT:
                raise InvalidSpecError(f"alias of file '{sourcePath}' must name a file, got '{spec}'")

            targetPath = alias if alias is not None else cleanPath(rootPath, sourcePath)
            results = [WalkResult(sourcePath, targetPath, st)]

        for result in results:
            logger.debug(f"Resolved {result.sourcePath} -> {result.targetPath}")
            StuffbinEvent.pathResolve.trigger(sourcePath=result.sourcePath, targetPath=result.targetPath)
            yield result
