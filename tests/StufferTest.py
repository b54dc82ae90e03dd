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
import unittest

from stuffbin.Footer import FooterCodec, Identifier
from stuffbin.Kernel import StuffbinEvent
from stuffbin.Settings import FOOTER_SIZE, ArchiveError, NoIdentifierError
from stuffbin.Stuffer import getOriginalSize, strip, stuff, writeBinary
from stuffbin.FileSystems import LocalFileSystem
from stuffbin.Unstuffer import getFileID, getStuff, loadFileSystem, unstuff

from tests.TestBase import MOCK_BIN, MOCK_EXE_SIZE, MOCK_FILES, StuffbinTestBase, readFile

STUFFED = 'mock.exe.stuffed'


class StufferTest(StuffbinTestBase):

    def testStuff(self):
        """Stuff a 512-byte binary and read everything back."""
        print("[Test] Stuffing mock binary with two files")

        originalSize, archiveSize = stuff(MOCK_BIN, STUFFED, '/', 'mock/bar.txt', 'mock/foo.txt')

        self.assertEqual(originalSize, MOCK_EXE_SIZE)
        self.assertGreater(archiveSize, 0)
        self.assertEqual(os.path.getsize(STUFFED), MOCK_EXE_SIZE + archiveSize + FOOTER_SIZE)

        self.assertEqual(getFileID(STUFFED), Identifier(b'stuffbin', MOCK_EXE_SIZE, archiveSize))
        self.assertEqual(readFile(STUFFED)[:MOCK_EXE_SIZE], self.mockBinData)

        fileSystem = unstuff(STUFFED)
        self.assertEqual(fileSystem.list(), ['/mock/bar.txt', '/mock/foo.txt'])
        self.assertEqual(fileSystem.read('/mock/bar.txt'), MOCK_FILES['mock/bar.txt'])

        self.assertEqual(len(getStuff(STUFFED)), archiveSize)

    def testRoundTrip(self):
        """Every resolved file comes back byte-identical under its virtual path."""
        stuff(MOCK_BIN, STUFFED, '/', 'mock/:/assets', 'mock/foo.txt:/foo.txt')

        fileSystem = unstuff(STUFFED)
        self.assertEqual(len(fileSystem), len(MOCK_FILES) + 2)
        self.assertEqual(fileSystem.read('/foo.txt'), MOCK_FILES['mock/foo.txt'])
        self.assertEqual(fileSystem.read('/assets/mock.exe'), self.mockBinData)

        for path, data in MOCK_FILES.items():
            with self.subTest(path=path):
                self.assertEqual(fileSystem.read('/assets' + path[len('mock'):]), data)

    def testCustomRoot(self):
        stuff(MOCK_BIN, STUFFED, '/root/', 'mock/bar.txt', 'mock/subdir:/sub')

        self.assertEqual(unstuff(STUFFED).list(), ['/root/mock/bar.txt', '/root/sub/baz.txt'])

    def testRestuffReplacesArchive(self):
        """Restuffing never grows the binary part."""
        stuff(MOCK_BIN, STUFFED, '/', 'mock/bar.txt', 'mock/foo.txt')

        originalSize, archiveSize = stuff(STUFFED, 'restuffed', '/', 'mock/subdir')

        self.assertEqual(originalSize, MOCK_EXE_SIZE)
        self.assertEqual(os.path.getsize('restuffed'), MOCK_EXE_SIZE + archiveSize + FOOTER_SIZE)
        self.assertEqual(readFile('restuffed')[:MOCK_EXE_SIZE], self.mockBinData)
        self.assertEqual(unstuff('restuffed').list(), ['/mock/subdir/baz.txt'])

    def testRestuffIsIdempotent(self):
        stuff(MOCK_BIN, STUFFED, '/', 'mock/bar.txt')
        stuff(STUFFED, 'restuffed', '/', 'mock/bar.txt')

        self.assertEqual(readFile(STUFFED), readFile('restuffed'))

    def testStuffInPlace(self):
        stuff(MOCK_BIN, MOCK_BIN, '/', 'mock/bar.txt', 'mock/foo.txt')
        self.assertEqual(unstuff(MOCK_BIN).list(), ['/mock/bar.txt', '/mock/foo.txt'])

        originalSize, archiveSize = stuff(MOCK_BIN, MOCK_BIN, '/', 'mock/subdir')

        self.assertEqual(originalSize, MOCK_EXE_SIZE)
        self.assertEqual(os.path.getsize(MOCK_BIN), MOCK_EXE_SIZE + archiveSize + FOOTER_SIZE)
        self.assertEqual(unstuff(MOCK_BIN).list(), ['/mock/subdir/baz.txt'])

    @unittest.skipIf(os.name == 'nt', 'POSIX file modes only')
    def testKeepsExecutableBit(self):
        stuff(MOCK_BIN, STUFFED, '/', 'mock/bar.txt')

        self.assertTrue(os.stat(STUFFED).st_mode & 0o100)

    def testCustomTag(self):
        codec = FooterCodec(b'mytag123')
        stuff(MOCK_BIN, STUFFED, '/', 'mock/bar.txt', codec=codec)

        self.assertEqual(getFileID(STUFFED, codec).name, 'mytag123')
        with self.assertRaises(NoIdentifierError):
            getFileID(STUFFED)

    def testMissingSourceLeavesNoOutput(self):
        """The archive is built before the output binary is opened."""
        with self.assertRaises(FileNotFoundError):
            stuff(MOCK_BIN, STUFFED, '/', 'mock/bar.txt', 'mock/missing.txt')

        self.assertFalse(os.path.exists(STUFFED))

    def testStuffEvent(self):
        events = []

        def onStuff(outPath, originalSize, archiveSize, **kwargs):
            events.append((outPath, originalSize, archiveSize))

        StuffbinEvent.binaryStuff.subscribe(onStuff)
        try:
            _, archiveSize = stuff(MOCK_BIN, STUFFED, '/', 'mock/bar.txt')
        finally:
            StuffbinEvent.binaryStuff.unsubscribe(onStuff)

        self.assertEqual(events, [(STUFFED, MOCK_EXE_SIZE, archiveSize)])

    def testStrip(self):
        stuff(MOCK_BIN, STUFFED, '/', 'mock/bar.txt', 'mock/foo.txt')

        identifier = strip(STUFFED, 'stripped')

        self.assertEqual(identifier.originalSize, MOCK_EXE_SIZE)
        self.assertEqual(readFile('stripped'), self.mockBinData)
        with self.assertRaises(NoIdentifierError):
            getFileID('stripped')

    def testStripInPlace(self):
        stuff(MOCK_BIN, STUFFED, '/', 'mock/bar.txt')
        strip(STUFFED, STUFFED)

        self.assertEqual(readFile(STUFFED), self.mockBinData)

    def testStripUnstuffed(self):
        with self.assertRaises(NoIdentifierError):
            strip(MOCK_BIN, 'stripped')

        self.assertFalse(os.path.exists('stripped'))

    def testGetOriginalSize(self):
        codec = FooterCodec()
        self.assertEqual(getOriginalSize(MOCK_BIN, codec), MOCK_EXE_SIZE)

        stuff(MOCK_BIN, STUFFED, '/', 'mock/bar.txt')
        self.assertEqual(getOriginalSize(STUFFED, codec), MOCK_EXE_SIZE)

    def testWriteBinaryValidatesSize(self):
        with self.assertRaises(ArchiveError):
            writeBinary(MOCK_BIN, 'out', MOCK_EXE_SIZE + 1)


class UnstufferTest(StuffbinTestBase):

    def testUnstuffPlainBinary(self):
        with self.assertRaises(NoIdentifierError):
            unstuff(MOCK_BIN)

    def testTruncatedArchive(self):
        """An identifier claiming more archive bytes than present is an error."""
        codec = FooterCodec()
        with open('broken', 'wb') as f:
            f.write(b'\x00' * 10)
            f.write(codec.encode(10, 1000))

        with self.assertRaises(ArchiveError):
            getStuff('broken')

    def testCorruptArchive(self):
        codec = FooterCodec()
        with open('broken', 'wb') as f:
            f.write(b'\x00' * 10)
            f.write(b'garbage!')
            f.write(codec.encode(10, 8))

        with self.assertRaises(ArchiveError):
            unstuff('broken')

    def testLoadFileSystemStuffed(self):
        stuff(MOCK_BIN, STUFFED, '/', 'mock/bar.txt')

        fileSystem = loadFileSystem(STUFFED, '/', 'mock/foo.txt')
        self.assertEqual(fileSystem.list(), ['/mock/bar.txt'])

    def testLoadFileSystemFallback(self):
        """An unstuffed binary falls back to reading the local files."""
        print("[Test] Falling back to local files for an unstuffed binary")

        fileSystem = loadFileSystem(MOCK_BIN, '/', 'mock/foo.txt', 'mock/subdir:/sub')

        self.assertIsInstance(fileSystem, LocalFileSystem)
        self.assertEqual(fileSystem.list(), ['/mock/foo.txt', '/sub/baz.txt'])


if __name__ == '__main__':
    unittest.main()
