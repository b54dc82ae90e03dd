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
Trailing identifier (footer) codec.

A stuffed binary ends with a fixed 24-byte footer:

    bytes  0-7   recognition tag (b'stuffbin' by default)
    bytes  8-15  big-endian uint64, size of the original binary
    bytes 16-23  big-endian uint64, size of the appended archive

so that a binary can tell whether anything is appended to it, and where.
"""

import io
import os
import struct

from dataclasses import dataclass
from typing import BinaryIO

from stuffbin.Kernel import getLogger
from stuffbin.Settings import FOOTER_SIZE, IDENTIFIER_TAG, NoIdentifierError

logger = getLogger(__name__)

TAG_SIZE = 8
UINT64_MAX = 2**64 - 1


@dataclass(frozen=True)
class Identifier:
    """Decoded footer of a stuffed binary"""
    tag: bytes
    originalSize: int
    archiveSize: int

    @property
    def name(self) -> str:
        return self.tag.decode('ascii', errors='replace')

    @property
    def totalSize(self) -> int:
        """Size of the stuffed file this identifier describes."""
        return self.originalSize + self.archiveSize + FOOTER_SIZE


class FooterCodec:
    """Encodes and decodes footers carrying a fixed recognition tag."""

    FORMAT = '>8sQQ'

    def __init__(self, tag: bytes = IDENTIFIER_TAG):
        if not isinstance(tag, bytes) or len(tag) != TAG_SIZE:
            raise ValueError(f'Identifier tag must be exactly {TAG_SIZE} bytes, got {tag!r}')

        self.tag = tag

    def encode(self, originalSize: int, archiveSize: int) -> bytes:
        for value in (originalSize, archiveSize):
            if not 0 <= value <= UINT64_MAX:
                raise ValueError(f'Size {value} does not fit in an unsigned 64-bit field')

        return struct.pack(self.FORMAT, self.tag, originalSize, archiveSize)

    def decodeBytes(self, trailer: bytes) -> Identifier:
        """
        Parse the last FOOTER_SIZE bytes of a file.

        Raises:
            NoIdentifierError: If the trailer is too short or the tag does not match
        """
        if len(trailer) < FOOTER_SIZE:
            raise NoIdentifierError()

        trailer = trailer[-FOOTER_SIZE:]
        if trailer[:TAG_SIZE] != self.tag:
            raise NoIdentifierError()

        tag, originalSize, archiveSize = struct.unpack(self.FORMAT, trailer)
        return Identifier(tag=tag, originalSize=originalSize, archiveSize=archiveSize)

    def decode(self, fileObj: BinaryIO) -> Identifier:
        """
        Read the footer from the end of a seekable binary file object.

        Raises:
            NoIdentifierError: If the file carries no identifier
            OSError: On any other read failure
        """
        fileSize = fileObj.seek(0, io.SEEK_END)
        if fileSize < FOOTER_SIZE:
            raise NoIdentifierError()

        fileObj.seek(fileSize - FOOTER_SIZE, io.SEEK_SET)
        return self.decodeBytes(fileObj.read(FOOTER_SIZE))

    def decodeFile(self, path: str) -> Identifier:
        with open(path, 'rb') as f:
            try:
                return self.decode(f)
            except NoIdentifierError as e:
                e.path = os.fspath(path)
                raise
