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
Appending embedded files to binaries, and removing them again.

Output binaries are written in place without temporary files, so a failure
part way through leaves a partially written output behind.
"""

import os
import shutil

from typing import Optional, Tuple

from stuffbin.Kernel import getLogger, StuffbinEvent
from stuffbin.Archive import zipFiles
from stuffbin.Footer import FooterCodec, Identifier
from stuffbin.Settings import COPY_CHUNK_SIZE, ArchiveError, NoIdentifierError
from stuffbin.Unstuffer import getCodec, getFileID

logger = getLogger(__name__)


def getOriginalSize(path: str, codec: FooterCodec) -> int:
    """Size of the binary without any stuffed archive and identifier."""
    try:
        return getFileID(path, codec).originalSize
    except NoIdentifierError:
        return os.path.getsize(path)


def _copyRange(source, dest, length):
    remaining = length
    while remaining > 0:
        chunk = source.read(min(COPY_CHUNK_SIZE, remaining))
        if not chunk:
            raise ArchiveError(f'unexpected end of file, {remaining} bytes missing')
        dest.write(chunk)
        remaining -= len(chunk)


def writeBinary(inPath: str, outPath: str, binarySize: int, *parts: bytes) -> None:
    """
    Write the first binarySize bytes of inPath followed by parts to outPath.
    When outPath is inPath, the file is truncated to binarySize and extended.
    """
    fileSize = os.path.getsize(inPath)
    if binarySize > fileSize:
        raise ArchiveError(f'{inPath}: recorded binary size {binarySize} exceeds file size {fileSize}')

    if os.path.exists(outPath) and os.path.samefile(inPath, outPath):
        with open(outPath, 'r+b') as dest:
            dest.truncate(binarySize)
            dest.seek(binarySize)
            for part in parts:
                dest.write(part)
        return

    with open(inPath, 'rb') as source, open(outPath, 'wb') as dest:
        _copyRange(source, dest, binarySize)
        for part in parts:
            dest.write(part)

    # Keep the executable bit of the input binary.
    shutil.copymode(inPath, outPath)


def stuff(inPath: str, outPath: str, rootPath: str, *specs: str, codec: Optional[FooterCodec] = None) -> Tuple[int, int]:
    """
    Compress the files named by specs and append them to a copy of a binary.

    An already stuffed input has its previous archive and identifier replaced,
    so the binary part never grows across restuffs.

    Args:
        inPath: Binary to stuff
        outPath: Output binary (may be inPath to stuff in place)
        rootPath: Virtual directory non-aliased files are mounted under
        *specs: 'source' or 'source:alias' file specifications
        codec: Footer codec, defaults to the configured one

    Returns:
        (originalSize, archiveSize)
    """
    codec = getCodec(codec)

    archive = zipFiles(rootPath, *specs)
    originalSize = getOriginalSize(inPath, codec)

    writeBinary(inPath, outPath, originalSize, archive, codec.encode(originalSize, len(archive)))

    logger.info(f"Stuffed {outPath}: {originalSize} bytes binary, {len(archive)} bytes archive")
    StuffbinEvent.binaryStuff.trigger(
        inPath=inPath, outPath=outPath, originalSize=originalSize, archiveSize=len(archive)
    )

    return originalSize, len(archive)


def strip(inPath: str, outPath: str, codec: Optional[FooterCodec] = None) -> Identifier:
    """
    Write a copy of a stuffed binary without its archive and identifier.

    Returns:
        Identifier: The identifier that was removed

    Raises:
        NoIdentifierError: If inPath is not stuffed
    """
    identifier = getFileID(inPath, codec)

    writeBinary(inPath, outPath, identifier.originalSize)

    logger.info(f"Stripped {outPath} to {identifier.originalSize} bytes")
    StuffbinEvent.binaryStrip.trigger(inPath=inPath, outPath=outPath, identifier=identifier)

    return identifier
