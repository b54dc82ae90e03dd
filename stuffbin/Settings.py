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

import os

from stuffbin.Kernel import PUBLIC_VERSION, Singleton, getLogger

# Recognition tag written at the start of the trailing identifier.
IDENTIFIER_TAG = b'stuffbin'

# Width of the trailing identifier: 8-byte tag + 2 x uint64.
FOOTER_SIZE = 24

DEFAULT_ROOT = '/'

DEFAULT_HTTP_HOST = os.getenv('STUFFBIN_HTTP_HOST', '127.0.0.1')
DEFAULT_HTTP_PORT = int(os.getenv('STUFFBIN_HTTP_PORT', 8000))

# Chunk size used when copying binaries and source files (1 MiB)
COPY_CHUNK_SIZE = int(os.getenv('STUFFBIN_COPY_CHUNK_SIZE', 1024 * 1024))

logger = getLogger(__name__)

# =============================================================================
# Exception Classes
# =============================================================================


class StuffbinError(Exception):
    """Base exception for stuffbin errors"""
    pass


class NoIdentifierError(StuffbinError):
    """
    Raised when a file carries no identifier: it is shorter than the footer or its
    trailing tag does not match. Callers use it to fall back to local files.
    """

    def __init__(self, message='no ID found in the file', path=None):
        super().__init__(message)
        self.path = path

    def __str__(self):
        message = super().__str__()
        return f'{self.path}: {message}' if self.path else message


class NotFoundError(StuffbinError):
    """Raised when a virtual path does not exist in a filesystem"""

    def __init__(self, path):
        super().__init__(f'file does not exist: {path}')
        self.path = path


class AlreadyExistsError(StuffbinError):
    """Raised when adding a virtual path that is already present"""

    def __init__(self, path):
        super().__init__(f'file already exists: {path}')
        self.path = path


class NotSupportedError(StuffbinError):
    """Raised by operations a virtual file implements but does not support"""

    def __init__(self, message='this method is not supported'):
        super().__init__(message)


class InvalidSpecError(StuffbinError, ValueError):
    """Raised for file specifications with a malformed alias"""
    pass


class InvalidPatternError(StuffbinError, ValueError):
    """Raised for malformed glob patterns"""
    pass


class ArchiveError(StuffbinError):
    """Raised when the embedded archive cannot be read or decoded"""
    pass


# Singleton
class SettingsGetter(Singleton):
    """Run-wide settings, initialized once by the CLI or by the embedding program."""

    def initialize(
        self,
        tag: bytes = IDENTIFIER_TAG,
        rootPath: str = DEFAULT_ROOT,
        httpHost: str = DEFAULT_HTTP_HOST,
        httpPort: int = DEFAULT_HTTP_PORT,
    ):
        self._tag = tag
        self._rootPath = rootPath
        self._httpHost = httpHost
        self._httpPort = httpPort

        logger.debug(f"Settings initialized: tag={tag!r}, root={rootPath}, http={httpHost}:{httpPort}")

    @property
    def version(self):
        return PUBLIC_VERSION

    @property
    def tag(self) -> bytes:
        return self._tag

    @property
    def rootPath(self) -> str:
        return self._rootPath

    @property
    def httpHost(self) -> str:
        return self._httpHost

    @property
    def httpPort(self) -> int:
        return self._httpPort

    def getFooterCodec(self):
        """Build a FooterCodec that recognizes this run's tag."""
        from stuffbin.Footer import FooterCodec

        return FooterCodec(self._tag)
