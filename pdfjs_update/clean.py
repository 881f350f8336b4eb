# -*- mode: python; coding: utf-8 -*-
# Copyright 2023 the arxiv-utils Project.
# Licensed under the MIT License.

"""
Remove the pdf.js build artefacts and the extension archive.
"""

import shutil

from .build import run_build_tool
from .dist import discard
from .utils import *


def clean(ws):
    print('Removing pdf.js build artefacts...')

    if shutil.which(ws.gulp_program) is None:
        print(f'Clean failed: could not find {ws.gulp_program}.')
        return 41

    if run_build_tool(ws, ws.cfg['build']['clean_target']) != 0:
        return 41

    archive = ws.archive_path()
    print(f'\nRemoving zip build {archive}...')
    discard(archive)

    return 0
