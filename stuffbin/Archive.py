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
ZIP packing and unpacking of resolved files.

The name stored for each entry is its virtual path, not its source path; this
is what implements aliasing when the archive is unpacked again.
"""

import io
import os
import shutil
import stat as _stat
import time
import zipfile
import zlib

from typing import List, Tuple

from stuffbin.Kernel import getLogger, StuffbinEvent
from stuffbin.Paths import walkPaths
from stuffbin.Settings import COPY_CHUNK_SIZE, ArchiveError
from stuffbin.FileSystems import DEFAULT_FILE_MODE, File, MemoryFileSystem

logger = getLogger(__name__)

# Earliest timestamp a ZIP entry can carry.
ZIP_EPOCH = (1980, 1, 1, 0, 0, 0)


def _zipDateTime(mtime):
    return max(ZIP_EPOCH, time.localtime(mtime)[:6])


def zipFile(zipWriter: zipfile.ZipFile, sourcePath: str, targetPath: str) -> int:
    """
    Stream one local file into the archive under targetPath.

    Returns:
        int: Number of bytes read from the source
    """
    with open(sourcePath, 'rb') as source:
        st = os.fstat(source.fileno())

        info = zipfile.ZipInfo(targetPath, date_time=_zipDateTime(st.st_mtime))
        info.external_attr = (_stat.S_IMODE(st.st_mode) | _stat.S_IFREG) << 16
        info.compress_type = zipfile.ZIP_DEFLATED
        # Lets zipfile decide whether the entry needs ZIP64 extensions.
        info.file_size = st.st_size

        with zipWriter.open(info, 'w') as dest:
            shutil.copyfileobj(source, dest, COPY_CHUNK_SIZE)

    return st.st_size


def zipFiles(rootPath: str, *specs: str) -> bytes:
    """
    Compress every file resolved from specs into a ZIP archive.

    Args:
        rootPath: Virtual directory non-aliased files are mounted under
        *specs: 'source' or 'source:alias' file specifications

    Returns:
        bytes: The complete archive
    """
    buffer = io.BytesIO()

    with zipfile.ZipFile(buffer, 'w', zipfile.ZIP_DEFLATED) as zipWriter:
        for result in walkPaths(rootPath, *specs):
            size = zipFile(zipWriter, result.sourcePath, result.targetPath)

            logger.debug(f"Packed {result.sourcePath} as {result.targetPath} ({size} bytes)")
            StuffbinEvent.archiveFileCreate.trigger(
                sourcePath=result.sourcePath, targetPath=result.targetPath, size=size
            )

    return buffer.getvalue()


def _openArchive(data: bytes) -> zipfile.ZipFile:
    try:
        return zipfile.ZipFile(io.BytesIO(data))
    except (zipfile.BadZipFile, zipfile.LargeZipFile, ValueError) as e:
        raise ArchiveError(f'invalid archive: {e}') from e


def unzip(data: bytes) -> MemoryFileSystem:
    """
    Decode a ZIP archive into a MemoryFileSystem keyed by the stored entry names.

    Raises:
        ArchiveError: If data is not a well-formed archive
        AlreadyExistsError: If two entries clean to the same virtual path
    """
    files = MemoryFileSystem()

    with _openArchive(data) as zipReader:
        for info in zipReader.infolist():
            if info.is_dir():
                continue

            try:
                content = zipReader.read(info)
            except (zipfile.BadZipFile, EOFError, zlib.error, NotImplementedError) as e:
                raise ArchiveError(f'error reading {info.filename}: {e}') from e

            mode = _stat.S_IMODE(info.external_attr >> 16) or DEFAULT_FILE_MODE
            mtime = time.mktime(info.date_time + (0, 0, -1))
            files.add(File(info.filename, content, mtime=mtime, mode=mode))

    logger.debug(f"Unpacked {len(files)} files ({files.size()} bytes)")
    return files


def listArchive(data: bytes) -> List[Tuple[str, int]]:
    """List (entry name, uncompressed size) pairs without decompressing."""
    with _openArchive(data) as zipReader:
        return [(info.filename, info.file_size) for info in zipReader.infolist() if not info.is_dir()]
