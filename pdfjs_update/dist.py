# -*- mode: python; coding: utf-8 -*-
# Copyright 2023 the arxiv-utils Project.
# Licensed under the MIT License.

"""
Flatten the pdf.js build and zip it, together with our own files, into the
browser extension archive.
"""

import fnmatch
import glob
import os
import zipfile

from .utils import *


class ZipMaker(object):
    def __init__(self, zip, exclude=()):
        self.zip = zip
        self.exclude = list(exclude)
        self.names = set(zip.namelist())
        self.added_count = 0
        self.ignored_count = 0


    def consider_file(self, rel_path):
        """
        Whether a file of the pdf.js build belongs in the extension. Patterns
        follow `zip --exclude`: `*` also matches across directories.
        """
        for pattern in self.exclude:
            if fnmatch.fnmatchcase(rel_path, pattern):
                return False

        return True


    def add_file(self, full_path, arcname):
        if arcname in self.names:
            warn(f'`{arcname}` is already in the archive, not adding `{full_path}`')
            return False

        self.zip.write(full_path, arcname)
        self.names.add(arcname)
        self.added_count += 1
        return True


    def _walk_onerr(self, oserror):
        raise oserror


    def add_tree(self, top):
        # Entries are relative to `top`, so that the build lands at the root
        # of the archive.
        for dirpath, dirnames, filenames in os.walk(top, onerror=self._walk_onerr):
            dirnames.sort()

            for fn in sorted(filenames):
                full = os.path.join(dirpath, fn)
                rel = os.path.relpath(full, top).replace(os.sep, '/')

                if self.consider_file(rel):
                    self.add_file(full, rel)
                else:
                    self.ignored_count += 1


def expand_extension_files(ws):
    """
    Resolve the `dist.files` patterns against the root directory. Returns a
    list of (full path, archive name), or None if a pattern matched nothing.
    """
    items = []

    for pattern in ws.cfg['dist']['files']:
        found = sorted(p for p in glob.glob(ws.path(pattern)) if os.path.isfile(p))

        if not found:
            warn(f'extension file `{pattern}` not found')
            return None

        for full in found:
            items.append((full, os.path.relpath(full, ws.root).replace(os.sep, '/')))

    return items


def discard(path):
    try:
        os.unlink(path)
    except FileNotFoundError:
        pass


def dist(ws):
    archive = ws.archive_path()

    if os.path.exists(archive):
        print(f'{archive} exists. Removing...')
        try:
            os.unlink(archive)
        except OSError as e:
            warn(f'could not remove `{archive}`: {e}')

    print('Zipping pdf.js built files...')
    src = ws.build_output_path()

    if not os.path.isdir(src):
        print(f'No pdf.js build found at `{src}`; run the `build` step first.')
        return 31

    try:
        with zipfile.ZipFile(archive, 'w', zipfile.ZIP_DEFLATED) as zip:
            maker = ZipMaker(zip, ws.cfg['dist']['exclude'])
            maker.add_tree(src)
    except OSError as e:
        print(f'Zipping failed: {e}')
        discard(archive)
        return 31

    print(f'Added {maker.added_count} files, skipped {maker.ignored_count}.')

    if maker.added_count == 0:
        print(f'Nothing to zip in `{src}`; did the pdf.js build fail?')
        discard(archive)
        return 31

    print('Adding our extension files...')
    items = expand_extension_files(ws)
    if items is None:
        return 32

    try:
        with zipfile.ZipFile(archive, 'a', zipfile.ZIP_DEFLATED) as zip:
            maker = ZipMaker(zip)
            for full, arcname in items:
                maker.add_file(full, arcname)
    except (OSError, zipfile.BadZipFile) as e:
        print(f'Adding extension files failed: {e}')
        return 32

    print(f'Done. Extension is: {archive}')
    return 0
