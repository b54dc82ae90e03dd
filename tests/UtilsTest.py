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

import logging
import os
import unittest

from unittest.mock import patch

from stuffbin.Utils import formatSize, getEnv, sendException

logger = logging.getLogger(__name__)


class UtilsTest(unittest.TestCase):

    def testFormatSize(self):
        cases = [
            (512, '512 Bytes'),
            (1600, '2K'),
            (338 * 1000, '338K'),
            (5 * 1000 * 1000, '5M'),
            (int(1.5 * 1000 ** 3), '1.5G'),
        ]

        for size, expected in cases:
            with self.subTest(size=size):
                self.assertEqual(formatSize(size), expected)

    def testFormatSizeBytes(self):
        """Sizes below one kilobyte keep their Byte unit."""
        cases = [
            (1, '1 Byte'),
            (2, '2 Bytes'),
            (999, '999 Bytes'),
        ]

        for size, expected in cases:
            with self.subTest(size=size):
                self.assertEqual(formatSize(size), expected)

        self.assertEqual(formatSize(2, plural=False), '2 Byte')

    def testGetEnv(self):
        with patch.dict(os.environ, {'STUFFBIN_TEST_INT': '42', 'STUFFBIN_TEST_BAD': 'abc', 'STUFFBIN_TEST_BOOL': 'True'}):
            self.assertEqual(getEnv('STUFFBIN_TEST_INT', 0), 42)
            self.assertEqual(getEnv('STUFFBIN_TEST_BAD', 7), 7)
            self.assertIs(getEnv('STUFFBIN_TEST_BOOL', False), True)
            self.assertEqual(getEnv('STUFFBIN_TEST_INT', None), '42')
            self.assertEqual(getEnv('STUFFBIN_TEST_MISSING', 'x'), 'x')

    def testSendExceptionRaises(self):
        """RAISE_EXCEPTION=True re-raises so failures surface in development."""
        error = RuntimeError('boom')

        with patch.dict(os.environ, {'RAISE_EXCEPTION': 'True'}):
            with self.assertRaises(RuntimeError):
                sendException(logger, error)

        with patch.dict(os.environ, {'RAISE_EXCEPTION': 'False'}):
            sendException(logger, error)


if __name__ == '__main__':
    unittest.main()
