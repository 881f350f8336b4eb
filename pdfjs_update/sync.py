# -*- mode: python; coding: utf-8 -*-
# Copyright 2023 the arxiv-utils Project.
# Licensed under the MIT License.

"""
Update the pdf.js clone from upstream and switch to the latest release.
"""

from .utils import *


def latest_release(git, pattern=''):
    """
    The last tag in version order, e.g. `v3.10.1` sorts after `v3.9.179`.
    Returns None if there are no (matching) tags or git failed.
    """
    args = ['tag', '--list', '--sort=version:refname']
    if pattern:
        args.append(pattern)

    out = git.output(*args)
    if not out:
        return None

    return out.splitlines()[-1].strip()


def update_code(ws):
    git = ws.git()
    branch = ws.cfg['upstream']['branch']

    print('Updating pdf.js library...')
    if git.call('checkout', branch) != 0:
        return 11
    if git.call('pull') != 0:
        return 12

    # `pull` should already bring the tags reachable from the branch, but
    # there's little to lose in getting all of them.
    print('\nRetrieving new releases of pdf.js...')
    if git.call('fetch', '--tags') != 0:
        return 13

    print('Finding latest release...')
    tag = latest_release(git, ws.cfg['upstream']['tag_pattern'])
    if tag is None:
        print('Could not find any release tag.')
        return 14
    print(f'Found release: {tag}')

    print(f'\nMoving to the release... {tag}')
    if git.call('checkout', '--detach', tag) != 0:
        return 14

    return 0
