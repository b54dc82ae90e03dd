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
Loading template text from a virtual filesystem.
"""

import posixpath

from string import Template
from typing import Dict

from stuffbin.Kernel import getLogger
from stuffbin.Settings import NotFoundError

logger = getLogger(__name__)


class TemplateSet:
    """Templates keyed by file base name; the first parsed file is the default."""

    def __init__(self, name: str):
        self.name = name
        self.templates: Dict[str, Template] = {}

    def __contains__(self, name):
        return name in self.templates

    def __getitem__(self, name) -> Template:
        return self.templates[name]

    def add(self, name: str, text: str):
        self.templates[name] = Template(text)

    def render(self, templateName=None, /, **values) -> str:
        # Positional-only, so a template variable may itself be called templateName.
        return self.templates[templateName or self.name].substitute(**values)


def parseTemplates(fileSystem, *paths: str, encoding: str = 'utf-8') -> TemplateSet:
    """
    Read the given paths from fileSystem as templates.

    Raises:
        ValueError: If no path is given
        NotFoundError: If a path does not exist
    """
    if not paths:
        raise ValueError('no files named in call to parseTemplates')

    templateSet = TemplateSet(posixpath.basename(paths[0]))
    for path in paths:
        templateSet.add(posixpath.basename(path), fileSystem.read(path).decode(encoding))

    logger.debug(f"Parsed {len(paths)} templates: {paths}")
    return templateSet


def parseTemplatesGlob(fileSystem, pattern: str, encoding: str = 'utf-8') -> TemplateSet:
    paths = fileSystem.glob(pattern)
    if not paths:
        raise NotFoundError(pattern)

    return parseTemplates(fileSystem, *paths, encoding=encoding)
