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

import contextlib
import io
import os
import signal
import unittest
import zipfile

from unittest.mock import patch

import Core

from stuffbin.CLI import loadEnvFile, runCLI
from stuffbin.Kernel import PUBLIC_VERSION

from tests.TestBase import MOCK_BIN, StuffbinTestBase, readFile


class CLITest(StuffbinTestBase):

    def setUp(self):
        super().setUp()
        self._sigintHandler = signal.getsignal(signal.SIGINT)

    def tearDown(self):
        signal.signal(signal.SIGINT, self._sigintHandler)
        super().tearDown()

    def _run(self, *argv, entry=runCLI):
        """Run the CLI and return (exit code, stdout text)."""
        stdout = io.StringIO()
        with contextlib.redirect_stdout(stdout), contextlib.redirect_stderr(io.StringIO()):
            code = entry(list(argv))
        return code, stdout.getvalue()

    def _stuff(self):
        return self._run('-a', 'stuff', '-in', MOCK_BIN, '-out', 'out.bin', 'mock/bar.txt', 'mock/foo.txt:/foo.txt')

    def testStuffAndId(self):
        print("[Test] Stuffing and identifying through the CLI")

        code, output = self._stuff()
        self.assertEqual(code, 0)
        self.assertIn('stuffing complete', output)
        self.assertIn('-> /foo.txt', output)
        self.assertIn('-> /mock/bar.txt', output)

        code, output = self._run('-a', 'id', '-in', 'out.bin')
        self.assertEqual(code, 0)
        self.assertIn('out.bin: stuffbin', output)
        self.assertIn('2 files totalling', output)
        self.assertIn('/foo.txt', output)
        self.assertIn('/mock/bar.txt', output)

    def testUnstuff(self):
        self._stuff()

        code, output = self._run('-a', 'unstuff', '-in', 'out.bin', '-out', 'out.zip')
        self.assertEqual(code, 0)
        self.assertIn('wrote to out.zip', output)

        with zipfile.ZipFile('out.zip') as zipReader:
            self.assertEqual(sorted(zipReader.namelist()), ['/foo.txt', '/mock/bar.txt'])

    def testStrip(self):
        self._stuff()

        code, output = self._run('-a', 'strip', '-in', 'out.bin', '-out', 'stripped.bin')
        self.assertEqual(code, 0)
        self.assertIn("wrote stripped binary 'stripped.bin'", output)
        self.assertEqual(readFile('stripped.bin'), self.mockBinData)

    def testCustomRoot(self):
        code, _ = self._run('-a', 'stuff', '-in', MOCK_BIN, '-out', 'out.bin', '-root', '/root/', 'mock/bar.txt')
        self.assertEqual(code, 0)

        _, output = self._run('-a', 'id', '-in', 'out.bin')
        self.assertIn('/root/mock/bar.txt', output)

    def testUsageErrors(self):
        cases = [
            ('-a', 'id'),
            ('-a', 'stuff', '-in', MOCK_BIN, 'mock/bar.txt'),
            ('-a', 'stuff', '-in', MOCK_BIN, '-out', 'out.bin'),
            ('-a', 'strip', '-in', MOCK_BIN),
            ('-a', 'unknown', '-in', MOCK_BIN),
        ]

        for argv in cases:
            with self.subTest(argv=argv):
                with self.assertRaises(SystemExit) as cm:
                    self._run(*argv)
                self.assertEqual(cm.exception.code, 2)

        self.assertFalse(os.path.exists('out.bin'))

    def testHelpAndVersion(self):
        code, output = self._run()
        self.assertEqual(code, 0)
        self.assertIn('usage: stuffbin', output)

        code, output = self._run('--version')
        self.assertEqual(code, 0)
        self.assertIn(f'stuffbin v{PUBLIC_VERSION}', output)

    def testMainExitCodes(self):
        """Failures are reported on stdout with exit code 1."""
        with patch.dict(os.environ, {'RAISE_EXCEPTION': 'False'}):
            code, output = self._run('-a', 'id', '-in', MOCK_BIN, entry=Core.main)
            self.assertEqual(code, 1)
            self.assertIn('no ID found in the file', output)
            self.assertIn('The binary has no stuffed files.', output)

            code, output = self._run('-a', 'id', '-in', 'missing.bin', entry=Core.main)
            self.assertEqual(code, 1)
            self.assertIn('Error:', output)

            code, _ = self._run('-a', 'stuff', '-in', MOCK_BIN, '-out', 'out.bin', 'mock/bar.txt', entry=Core.main)
            self.assertEqual(code, 0)

    def testLoadEnvFile(self):
        with open('.env', 'w', encoding='utf-8') as f:
            f.write('# comment\n')
            f.write('STUFFBIN_TEST_KEY="quoted value"\n')
            f.write('STUFFBIN_TEST_PRESET=from-file\n')
            f.write('not a pair\n')

        with patch.dict(os.environ, {'STUFFBIN_TEST_PRESET': 'from-env'}):
            self.assertEqual(loadEnvFile('.env'), 1)
            self.assertEqual(os.environ['STUFFBIN_TEST_KEY'], 'quoted value')
            self.assertEqual(os.environ['STUFFBIN_TEST_PRESET'], 'from-env')

        self.assertEqual(loadEnvFile('missing.env'), 0)


if __name__ == '__main__':
    unittest.main()
