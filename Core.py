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
import signal
import sys

from stuffbin.Kernel import getLogger
from stuffbin.CLI import runCLI
from stuffbin.Settings import NoIdentifierError
from stuffbin.Utils import flushPrint, sendException

logger = getLogger(__name__)


def setupGracefulShutdown():
    """Exit at once on a second Ctrl+C while the first one is being handled"""
    context = {'shutdownInProgress': False}

    def signalHandler(signum, frame):
        if context['shutdownInProgress']:
            os._exit(0)
        else:
            context['shutdownInProgress'] = True
            raise KeyboardInterrupt()

    signal.signal(signal.SIGINT, signalHandler)


def main(argv=None):
    """Entry point of the stuffbin command. Returns the process exit code."""
    setupGracefulShutdown()

    try:
        return runCLI(argv) or 0
    except KeyboardInterrupt:
        flushPrint('\nExiting on user request (Ctrl+C)...')
        return 0
    except NoIdentifierError as e:
        sendException(logger, e, action='The binary has no stuffed files.')
        return 1
    except Exception as e:
        sendException(logger, e)
        return 1


if __name__ == '__main__':
    sys.exit(main())
