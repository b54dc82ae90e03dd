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
Recovering embedded files from stuffed binaries.
"""

from typing import Optional

from stuffbin.Kernel import getLogger
from stuffbin.Archive import unzip
from stuffbin.FileSystems import FileSystem, LocalFileSystem, MemoryFileSystem
from stuffbin.Footer import FooterCodec, Identifier
from stuffbin.Settings import DEFAULT_ROOT, ArchiveError, NoIdentifierError, SettingsGetter

logger = getLogger(__name__)


def getCodec(codec: Optional[FooterCodec] = None) -> FooterCodec:
    """Return codec, or the codec configured in SettingsGetter."""
    if codec is not None:
        return codec
    return SettingsGetter.getInstance().getFooterCodec()


def getFileID(path: str, codec: Optional[FooterCodec] = None) -> Identifier:
    """
    Read the identifier appended to a binary.

    Raises:
        NoIdentifierError: If the binary is not stuffed
        OSError: If the binary cannot be read
    """
    return getCodec(codec).decodeFile(path)


def getStuff(path: str, codec: Optional[FooterCodec] = None) -> bytes:
    """
    Read the raw archive bytes embedded in a stuffed binary, without unpacking.

    Raises:
        NoIdentifierError: If the binary is not stuffed
        ArchiveError: If the binary is shorter than its identifier claims
    """
    identifier = getFileID(path, codec)

    with open(path, 'rb') as f:
        f.seek(identifier.originalSize)
        data = f.read(identifier.archiveSize)

    if len(data) != identifier.archiveSize:
        raise ArchiveError(
            f'{path}: expected {identifier.archiveSize} archive bytes at offset '
            f'{identifier.originalSize}, got {len(data)}'
        )

    return data


def unstuff(path: str, codec: Optional[FooterCodec] = None) -> MemoryFileSystem:
    """
    Unpack the files embedded in a stuffed binary into a MemoryFileSystem.

    Raises:
        NoIdentifierError: If the binary is not stuffed (e.g. running in development mode)
        ArchiveError: If the embedded archive is damaged
    """
    fileSystem = unzip(getStuff(path, codec))

    logger.debug(f"Unstuffed {len(fileSystem)} files from {path}")
    return fileSystem


def loadFileSystem(
    binaryPath: str, rootPath: str = DEFAULT_ROOT, *specs: str, codec: Optional[FooterCodec] = None
) -> FileSystem:
    """
    Load the files stuffed into binaryPath, or, when the binary carries no
    identifier (unstuffed build, development mode), read specs from local disk.
    """
    try:
        return unstuff(binaryPath, codec)
    except NoIdentifierError:
        logger.info(f"{binaryPath} is not stuffed, falling back to local files {specs}")

    return LocalFileSystem(rootPath, *specs)
