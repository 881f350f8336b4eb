# -*- mode: python; coding: utf-8 -*-
# Copyright 2023 the arxiv-utils Project.
# Licensed under the MIT License.

"""
Build pdf.js with the arxiv-utils customizations.

We apply our customizations on top of the upstream work instead of having
them permanently committed. This way we avoid state management or merging
problems when pulling from upstream, and `build` can run any number of times.

The patches are applied with `git am`, which creates temporary commits not
tracked by any name; after the build we move the branch back to where it was
and reverse-apply the patches to the working tree. A hard reset would be
simpler, but it would destroy any uncommitted changes in the clone.
"""

import shutil
import subprocess

from .utils import *


PDFJS_SETUP_URL = 'https://github.com/mozilla/pdf.js/#getting-the-code'


def run_build_tool(ws, target):
    try:
        return subprocess.call(
            [ws.gulp_program, target],
            shell = False,
            cwd = ws.upstream_path(),
        )
    except OSError as e:
        warn(f'could not run `{ws.gulp_program} {target}`: {e}')
        return 127


def apply_patches(git, patches):
    print('\nCustomizing the release...')

    if patches is None:
        print('\nPatch set is incomplete, nothing was applied.')
        return False

    # we may need `--3way` some day
    if git.call('am', *patches) == 0:
        return True

    print('\nApplying patch failed. Reverting...')
    if git.call('am', '--abort') != 0:
        warn('`git am --abort` failed as well')
    print('Reverted. Check why patch failed and try again.')
    return False


def revert_patches(git, commit, patches):
    print('\nReverting customization...')

    # Mixed reset: history goes back, the working tree keeps the patched
    # files, and the reverse apply below takes care of those.
    if git.call('reset', '--quiet', commit) != 0:
        return False

    return git.call('apply', '-R', *reversed(patches)) == 0


def build(ws, force_master=False, prog='pdfjs-update'):
    if shutil.which(ws.gulp_program) is None:
        print(f'Build failed: could not find {ws.gulp_program}.')
        print(f'Please check pdf.js installation instructions: {PDFJS_SETUP_URL}')
        return 20

    git = ws.git()
    branch = ws.cfg['upstream']['branch']

    if git.output('branch', '--show-current') == branch and not force_master:
        print(f'Build failed: trying to build from `{branch}` branch. We generally build only from releases.')
        print(f'    Please run `{prog} code` first or `{prog} build --force-master` to build from {branch}')
        return 21

    # Saving the state to undo it later
    commit = git.output('rev-parse', 'HEAD')
    if commit is None:
        print('Build failed: could not determine the current pdf.js commit.')
        return 22

    patches = patch_files(ws)
    if not apply_patches(git, patches):
        return 22

    print('\nCustomization done. Building with customization...')
    target = ws.cfg['build']['target']
    status = run_build_tool(ws, target)
    if status != 0:
        # no early return: the customization must be undone regardless
        warn(f'`{ws.gulp_program} {target}` failed with status {status}')
    else:
        print('\nBuild done.')

    if not revert_patches(git, commit, patches):
        print('\nCould not revert our customizations.')
        print('Leaving pdf.js in dirty state. Please check manually.')
        return 23

    print('Customization reverted.')
    return 0
