# -*- mode: python; coding: utf-8 -*-
# Copyright 2023 the arxiv-utils Project.
# Licensed under the MIT License.

"""
Maintenance of pdf.js updates, together with a rebuild of the extension.

The customized pdf.js is built from a patch set applied on top of vanilla
pdf.js. If new changes are required, base them on the latest release
(`git describe --tags --abbrev=0` inside the clone), commit them, and
regenerate the patches:

    $ cd pdf.js/
    $ git commit
    $ git format-patch <release> -o ../pdfjs-patch/

Then rebuild the extension with `pdfjs-update all`.
"""

import argparse
import os
import sys

from .build import build
from .clean import clean
from .dist import dist
from .sync import update_code
from .utils import *


SELECTORS = ('all', 'code', 'build', 'dist', 'clean')

USAGE = '''\
%(prog)s [--root DIR] (all | code | build [--force-master] | dist | clean)

    code:   update the code from the pdf.js repository,
            switching to the latest release
    build:  apply the arxiv-utils patches on top of the pdf.js code and
            build it; refuses to build if the code is on the `master`
            branch, unless you pass the `--force-master` switch
    dist:   flatten the pdf.js build and zip it into the extension
    clean:  remove the pdf.js build and the extension zip
    all:    code + build + dist (the default)
'''


def make_arg_parser(prog=None):
    p = argparse.ArgumentParser(
        prog = prog,
        usage = USAGE,
        description = __doc__,
        formatter_class = argparse.RawDescriptionHelpFormatter,
    )
    p.add_argument(
        'selector',
        nargs = '?',
        default = 'all',
        help = 'Which part of the update to run',
    )
    p.add_argument(
        '--force-master',
        action = 'store_true',
        help = 'Allow `build` from the default upstream branch',
    )
    p.add_argument(
        '--root',
        default = '.',
        help = 'The extension directory (default: current directory)',
    )
    return p


def run(ws, selector, force_master, prog):
    if selector == 'code':
        return update_code(ws)
    if selector == 'build':
        return build(ws, force_master=force_master, prog=prog)
    if selector == 'dist':
        return dist(ws)
    if selector == 'clean':
        return clean(ws)

    for step in (
        lambda: update_code(ws),
        lambda: build(ws, prog=prog),
        lambda: dist(ws),
    ):
        err_code = step()
        if err_code != 0:
            return err_code

    return 0


def run_locked(settings, prog):
    try:
        ws = Workspace.open_default(settings.root)
    except ConfigError as e:
        print(f'Bad configuration: {e}')
        return 3

    lock = WorkspaceLock(ws.lock_path())

    try:
        acquired = lock.acquire()
    except OSError as e:
        print(f'Cannot create lock file `{lock.path}`: {e}')
        print('Check that the extension directory exists and is writable.')
        return 6

    if not acquired:
        print(f'Another {prog} seems to be running (lock file `{lock.path}`).')
        print('If that is not the case, remove the lock file and try again.')
        return 5

    try:
        return run(ws, settings.selector, settings.force_master, prog)
    finally:
        lock.release()


def entrypoint(argv):
    prog = os.path.basename(argv[0])
    parser = make_arg_parser(prog)
    settings = parser.parse_args(argv[1:])

    if settings.selector not in SELECTORS:
        print(f'Unknown option: {settings.selector} .')
        parser.print_usage()
        err_code = 1
    elif settings.force_master and settings.selector != 'build':
        print(f'Option --force-master only applies to `build`, not `{settings.selector}`.')
        parser.print_usage()
        err_code = 1
    else:
        err_code = run_locked(settings, prog)

    if err_code != 0:
        print(f'{prog} failed. Error code: {err_code}')
    else:
        print('Success!')

    return err_code


def main():
    sys.exit(entrypoint(sys.argv))
