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
Serving a virtual filesystem over HTTP.
"""

import io
import re

from email.utils import formatdate
from http import HTTPStatus
from http.server import SimpleHTTPRequestHandler, ThreadingHTTPServer
from urllib.parse import unquote, urlparse

from stuffbin.Kernel import getLogger
from stuffbin.Settings import NotFoundError, SettingsGetter

INDEX_FILE = 'index.html'

logger = getLogger(__name__)


class FileSystemHandler(SimpleHTTPRequestHandler):
    """
    Serves GET and HEAD requests from the server's FileSystem. Directory
    listings are not available; a path ending in '/' serves its index.html.
    """

    protocol_version = 'HTTP/1.1'

    def log_message(self, format, *args):
        logger.debug(f"{self.address_string()} - {format % args}")

    def _normalizeRequestPath(self):
        """Map the request URL to a virtual path, or None if it is outside the prefix."""
        path = unquote(urlparse(self.path).path)

        prefix = self.server.prefix
        if not path.startswith(prefix):
            return None

        return '/' + path[len(prefix):]

    def _parseByteRange(self, byteRange):
        """Parse a single 'bytes=start-[end]' range. Anything else means the whole file."""
        reg = re.fullmatch(r'bytes=(\d+)-(\d+)?', byteRange.strip())
        if not reg:
            return None

        start, end = [x and int(x) for x in reg.groups()]
        if end is not None and start > end:
            return None
        return start, end

    def _sendRangeNotSatisfiable(self, size):
        self.send_response(HTTPStatus.REQUESTED_RANGE_NOT_SATISFIABLE)
        self.send_header('Content-Range', f'bytes */{size}')
        self.send_header('Content-Length', '0')
        self.end_headers()

    def send_head(self):
        path = self._normalizeRequestPath()
        if path is None:
            self.send_error(HTTPStatus.NOT_FOUND, 'File not found')
            return None

        if path.endswith('/'):
            path += INDEX_FILE

        try:
            f = self.server.fileSystem.open(path)
        except NotFoundError:
            self.send_error(HTTPStatus.NOT_FOUND, 'File not found')
            return None

        st = f.stat()
        byteRange = self._parseByteRange(self.headers.get('Range', ''))

        if byteRange:
            start, end = byteRange
            if start >= st.size:
                self._sendRangeNotSatisfiable(st.size)
                return None

            end = st.size - 1 if end is None else min(end, st.size - 1)
            f.seek(start)
            body = io.BytesIO(f.read(end - start + 1))

            self.send_response(HTTPStatus.PARTIAL_CONTENT)
            self.send_header('Content-Range', f'bytes {start}-{end}/{st.size}')
            self.send_header('Content-Length', str(end - start + 1))
        else:
            body = f

            self.send_response(HTTPStatus.OK)
            self.send_header('Content-Length', str(st.size))

        self.send_header('Content-type', self.guess_type(path))
        self.send_header('Accept-Ranges', 'bytes')
        if st.mtime is not None:
            self.send_header('Last-Modified', formatdate(st.mtime, usegmt=True))
        self.end_headers()

        return body


class Server(ThreadingHTTPServer):

    allow_reuse_address = True
    daemon_threads = True

    def __init__(self, fileSystem, serverAddress, prefix='/', requestHandlerClass=None):
        """
        Args:
            fileSystem: FileSystem to serve
            serverAddress: (host, port) to bind, port 0 picks a free port
            prefix: URL prefix stripped before looking paths up, e.g. '/static/'
            requestHandlerClass: Handler class, defaults to FileSystemHandler
        """
        self.fileSystem = fileSystem
        self.prefix = '/' + prefix.strip('/') + '/' if prefix.strip('/') else '/'

        if requestHandlerClass is None:
            requestHandlerClass = FileSystemHandler

        super().__init__(serverAddress, requestHandlerClass)

    @property
    def url(self):
        host, port = self.server_address[:2]
        return f'http://{host}:{port}{self.prefix}'

    def start(self):
        logger.info(f"Serving {len(self.fileSystem)} files at {self.url}")
        self.serve_forever()


def createServer(fileSystem, port=None, host=None, prefix='/', handlerClass=None):
    # Factory function, unspecified host/port come from SettingsGetter
    settingsGetter = SettingsGetter.getInstance()

    serverAddress = (
        settingsGetter.httpHost if host is None else host,
        settingsGetter.httpPort if port is None else port,
    )
    return Server(fileSystem, serverAddress, prefix, handlerClass)
