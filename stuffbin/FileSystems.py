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
Virtual filesystem abstraction.

Provides one interface over two sources of files:
- MemoryFileSystem: files held in memory, built from an embedded archive or
  assembled programmatically
- LocalFileSystem: files read from local disk through file specifications,
  used as the development-mode stand-in for an unstuffed binary

Every key is a virtual path (see Paths.cleanPath). Callers never receive a
reference into a filesystem's own entries: get() and open() return new File
objects holding an immutable copy of the content and their own read cursor.
"""

import io
import posixpath
import re
import stat as _stat
import threading

from dataclasses import dataclass
from typing import Dict, Iterable, List, Optional, Protocol

from stuffbin.Kernel import getLogger
from stuffbin.Paths import cleanPath, walkPaths
from stuffbin.Settings import (
    DEFAULT_ROOT, AlreadyExistsError, InvalidPatternError, NotFoundError, NotSupportedError
)

logger = getLogger(__name__)

DEFAULT_FILE_MODE = 0o644


@dataclass(frozen=True)
class Stat:
    """File metadata"""
    name: str
    size: int
    mtime: Optional[float]
    mode: int
    isDir: bool = False


class File:
    """
    A readable in-memory file.

    Supports read/seek/tell/stat/close so it can be streamed like a regular
    binary file object. close() only rewinds the cursor, the handle stays usable.
    Directory listing is not supported.
    """

    def __init__(self, path: str, data: bytes = b'', mtime: Optional[float] = None, mode: int = DEFAULT_FILE_MODE):
        self._path = path
        # bytes() copies bytearray/memoryview input, so later changes to the
        # caller's buffer never reach this file.
        self._data = bytes(data)
        self._mtime = mtime
        self._mode = mode
        self._reader = io.BytesIO(self._data)

    def __repr__(self):
        return f'<File {self._path} ({len(self._data)} bytes)>'

    def __enter__(self):
        return self

    def __exit__(self, excType, excValue, traceback):
        self.close()

    @property
    def path(self) -> str:
        return self._path

    @property
    def size(self) -> int:
        return len(self._data)

    def copy(self, path: Optional[str] = None) -> 'File':
        """Return an independent File with the same content, optionally renamed."""
        return File(self._path if path is None else path, self._data, mtime=self._mtime, mode=self._mode)

    def stat(self) -> Stat:
        return Stat(
            name=posixpath.basename(self._path),
            size=len(self._data),
            mtime=self._mtime,
            mode=self._mode,
            isDir=False,
        )

    def readBytes(self) -> bytes:
        """Return the whole content regardless of the read cursor."""
        return self._data

    def read(self, size: int = -1) -> bytes:
        return self._reader.read(size)

    def readable(self) -> bool:
        return True

    def seekable(self) -> bool:
        return True

    def seek(self, offset: int, whence: int = io.SEEK_SET) -> int:
        return self._reader.seek(offset, whence)

    def tell(self) -> int:
        return self._reader.tell()

    def close(self):
        self._reader.seek(0)

    def readdir(self, count: int = 0):
        raise NotSupportedError()


class FileSystem(Protocol):
    """FileSystem protocol that all implementations must follow"""

    def add(self, file: File) -> None:
        ...

    def put(self, file: File) -> None:
        ... # Insert or replace

    def get(self, path: str) -> File:
        ...

    def read(self, path: str) -> bytes:
        ...

    def open(self, path: str) -> File:
        ...

    def delete(self, path: str) -> None:
        ...

    def list(self) -> List[str]:
        ...

    def glob(self, pattern: str) -> List[str]:
        ...

    def merge(self, source: 'FileSystem') -> None:
        ...

    def size(self) -> int:
        ...

    def __len__(self) -> int:
        ...

    def __contains__(self, path: str) -> bool:
        ...


def _badPattern(pattern):
    return InvalidPatternError(f'syntax error in pattern: {pattern!r}')


def _classChar(pattern, i):
    """Read one (possibly escaped) character of a character class."""
    if i >= len(pattern) or pattern[i] in '-]':
        raise _badPattern(pattern)

    if pattern[i] == '\\':
        i += 1
        if i >= len(pattern):
            raise _badPattern(pattern)

    return pattern[i], i + 1


def _translateClass(pattern, i):
    negated = i < len(pattern) and pattern[i] in '^!'
    if negated:
        i += 1

    items = []
    while True:
        if i >= len(pattern):
            raise _badPattern(pattern)

        if pattern[i] == ']' and items:
            i += 1
            break

        lo, i = _classChar(pattern, i)
        if i < len(pattern) and pattern[i] == '-':
            hi, i = _classChar(pattern, i + 1)
            if lo > hi:
                raise _badPattern(pattern)
            items.append(f'{re.escape(lo)}-{re.escape(hi)}')
        else:
            items.append(re.escape(lo))

    body = ''.join(items)
    return (f'[^/{body}]' if negated else f'[{body}]'), i


def compilePattern(pattern: str) -> re.Pattern:
    """
    Compile a shell wildcard pattern with path semantics.

    '*' matches any run of characters except '/', '?' one character except '/',
    '[...]' a character class ('^' or '!' negates, 'a-z' ranges) and '\\'
    escapes the next character.

    Raises:
        InvalidPatternError: If the pattern is malformed
    """
    out = []
    i = 0
    while i < len(pattern):
        c = pattern[i]
        i += 1

        if c == '*':
            out.append('[^/]*')
        elif c == '?':
            out.append('[^/]')
        elif c == '\\':
            if i >= len(pattern):
                raise _badPattern(pattern)
            out.append(re.escape(pattern[i]))
            i += 1
        elif c == '[':
            translated, i = _translateClass(pattern, i)
            out.append(translated)
        else:
            out.append(re.escape(c))

    try:
        return re.compile(''.join(out), re.DOTALL)
    except re.error as e:
        raise InvalidPatternError(f'syntax error in pattern: {pattern!r}: {e}') from e


def globPaths(pattern: str, paths: Iterable[str]) -> List[str]:
    regex = compilePattern(pattern)
    return [path for path in paths if regex.fullmatch(path)]


def mergeFS(dest: FileSystem, source: FileSystem) -> None:
    """
    Merge every file of source into dest. Files from source replace files with
    the same path in dest; paths unique to either side are kept.
    """
    for path in source.list():
        dest.put(source.get(path))


class MemoryFileSystem:
    """In-memory FileSystem implementation. Mutations are serialized by a lock."""

    def __init__(self):
        self._files: Dict[str, File] = {}
        self._size = 0
        self._lock = threading.Lock()

    def __repr__(self):
        return f'<MemoryFileSystem {len(self)} files, {self.size()} bytes>'

    def add(self, file: File) -> None:
        """
        Add a file. Its path is cleaned, so 'mock/foo' and '/mock/foo' are both
        stored as '/mock/foo'.

        Raises:
            AlreadyExistsError: If the cleaned path is already present
        """
        path = cleanPath(DEFAULT_ROOT, file.path)

        with self._lock:
            if path in self._files:
                raise AlreadyExistsError(path)

            self._files[path] = file.copy(path)
            self._size += file.size

    def put(self, file: File) -> None:
        """Add a file, replacing any file already stored under its path."""
        path = cleanPath(DEFAULT_ROOT, file.path)

        with self._lock:
            old = self._files.get(path)
            if old is not None:
                self._size -= old.size

            self._files[path] = file.copy(path)
            self._size += file.size

    def get(self, path: str) -> File:
        """
        Get a copy of a file by its path.

        Raises:
            NotFoundError: If the path does not exist
        """
        path = cleanPath(DEFAULT_ROOT, path)

        with self._lock:
            file = self._files.get(path)

        if file is None:
            raise NotFoundError(path)
        return file.copy()

    def read(self, path: str) -> bytes:
        return self.get(path).readBytes()

    def open(self, path: str) -> File:
        return self.get(path)

    def delete(self, path: str) -> None:
        path = cleanPath(DEFAULT_ROOT, path)

        with self._lock:
            file = self._files.pop(path, None)
            if file is None:
                raise NotFoundError(path)

            self._size -= file.size

    def list(self) -> List[str]:
        with self._lock:
            return sorted(self._files)

    def glob(self, pattern: str) -> List[str]:
        return globPaths(pattern, self.list())

    def merge(self, source: FileSystem) -> None:
        mergeFS(self, source)

    def size(self) -> int:
        """Total size of all files in bytes"""
        return self._size

    def __len__(self) -> int:
        return len(self._files)

    def __contains__(self, path: str) -> bool:
        return cleanPath(DEFAULT_ROOT, path) in self._files


def readLocalFiles(rootPath: str, *specs: str) -> MemoryFileSystem:
    """Read every file resolved from specs into a new MemoryFileSystem."""
    files = MemoryFileSystem()

    for result in walkPaths(rootPath, *specs):
        with open(result.sourcePath, 'rb') as f:
            data = f.read()

        files.add(File(result.targetPath, data, mtime=result.stat.st_mtime, mode=_stat.S_IMODE(result.stat.st_mode)))

    logger.debug(f"Read {len(files)} local files ({files.size()} bytes) under {rootPath}")
    return files


class LocalFileSystem:
    """
    Local filesystem backend.

    Maps local files and directories into virtual paths with the same
    'source[:alias]' specifications used for stuffing, and reads all of them
    into memory up front. reload() picks up changes made on disk.
    """

    def __init__(self, rootPath: str = DEFAULT_ROOT, *specs: str):
        """
        Args:
            rootPath: Virtual directory non-aliased files are mounted under
            *specs: 'source' or 'source:alias' file specifications

        Raises:
            InvalidSpecError, OSError, AlreadyExistsError
        """
        self.rootPath = rootPath
        self.specs = specs
        self._files = readLocalFiles(rootPath, *specs)

        logger.debug(f"LocalFileSystem initialized: root={rootPath}, specs={specs}")

    def __repr__(self):
        return f'<LocalFileSystem {len(self)} files, {self.size()} bytes>'

    def reload(self) -> None:
        """Re-read every file from disk. The current files stay in place if reading fails."""
        self._files = readLocalFiles(self.rootPath, *self.specs)

    def add(self, file: File) -> None:
        self._files.add(file)

    def put(self, file: File) -> None:
        self._files.put(file)

    def get(self, path: str) -> File:
        return self._files.get(path)

    def read(self, path: str) -> bytes:
        return self._files.read(path)

    def open(self, path: str) -> File:
        return self._files.open(path)

    def delete(self, path: str) -> None:
        self._files.delete(path)

    def list(self) -> List[str]:
        return self._files.list()

    def glob(self, pattern: str) -> List[str]:
        return self._files.glob(pattern)

    def merge(self, source: FileSystem) -> None:
        mergeFS(self, source)

    def size(self) -> int:
        return self._files.size()

    def __len__(self) -> int:
        return len(self._files)

    def __contains__(self, path: str) -> bool:
        return path in self._files
