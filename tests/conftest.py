# -*- mode: python; coding: utf-8 -*-
# Copyright 2023 the arxiv-utils Project.
# Licensed under the MIT License.

"""
Fixtures building throwaway pdf.js-like repositories. The tests run real git
commands; a shell script stands in for gulp and logs what it was asked to do.
"""

import os
import shutil
import stat
import subprocess

import pytest

from pdfjs_update.utils import Workspace


needs_git = pytest.mark.skipif(shutil.which('git') is None, reason='git is not installed')

FAKE_GULP = '''\
#!/bin/sh
{ echo "target=$1"; cat web/viewer.html 2>/dev/null; } >> "$FAKE_GULP_LOG"
exit ${FAKE_GULP_STATUS:-0}
'''


def git(cwd, *args):
    subprocess.check_call(['git'] + list(args), shell=False, cwd=cwd)


def git_output(cwd, *args):
    return subprocess.check_output(
        ['git'] + list(args),
        shell = False,
        cwd = cwd,
        universal_newlines = True,
    ).strip()


def write(path, text):
    os.makedirs(os.path.dirname(path), exist_ok=True)
    with open(path, 'wt') as f:
        f.write(text)


def read(path):
    with open(path, 'rt') as f:
        return f.read()


def commit(repo, files, message, tag=None):
    for name, text in files.items():
        write(os.path.join(repo, name), text)

    git(repo, 'add', '-A')
    git(repo, 'commit', '--quiet', '-m', message)

    if tag is not None:
        git(repo, 'tag', tag)

    return git_output(repo, 'rev-parse', 'HEAD')


@pytest.fixture(autouse=True)
def git_env(monkeypatch, tmp_path):
    monkeypatch.setenv('HOME', str(tmp_path))
    monkeypatch.setenv('GIT_CONFIG_NOSYSTEM', '1')
    monkeypatch.setenv('GIT_CONFIG_GLOBAL', os.devnull)
    monkeypatch.setenv('GIT_AUTHOR_NAME', 'Test Author')
    monkeypatch.setenv('GIT_AUTHOR_EMAIL', 'author@example.com')
    monkeypatch.setenv('GIT_COMMITTER_NAME', 'Test Author')
    monkeypatch.setenv('GIT_COMMITTER_EMAIL', 'author@example.com')
    monkeypatch.delenv('PDFJS_UPDATE_GULP', raising=False)
    monkeypatch.delenv('PDFJS_UPDATE_GIT', raising=False)


@pytest.fixture
def upstream(tmp_path):
    """
    An "upstream pdf.js" with releases tagged out of order: the most recent
    tag is not the highest version.
    """
    repo = str(tmp_path / 'upstream')
    os.makedirs(repo)
    git(repo, 'init', '--quiet')
    git(repo, 'symbolic-ref', 'HEAD', 'refs/heads/master')

    commit(repo, {
        'viewer.js': 'viewer v1\n',
        'web/viewer.html': '<html>viewer</html>\n',
        'web/app.js': 'app\n',
    }, 'first', tag='v1.9.0')
    commit(repo, {'viewer.js': 'viewer v2\n'}, 'second', tag='v1.10.0')
    commit(repo, {'CHANGELOG': 'backport\n'}, 'backport', tag='v1.2.0')
    commit(repo, {'viewer.js': 'viewer v3\n'}, 'work in progress')
    return repo


@pytest.fixture
def fake_gulp(tmp_path, monkeypatch):
    path = tmp_path / 'bin' / 'gulp'
    log = tmp_path / 'gulp.log'
    write(str(path), FAKE_GULP)
    os.chmod(str(path), os.stat(str(path)).st_mode | stat.S_IXUSR | stat.S_IXGRP | stat.S_IXOTH)
    monkeypatch.setenv('PDFJS_UPDATE_GULP', str(path))
    monkeypatch.setenv('FAKE_GULP_LOG', str(log))
    return log


@pytest.fixture
def root(tmp_path, upstream):
    """
    The extension directory, with a clone of upstream and a three-patch
    customization made against upstream `master`. The patches only touch
    files which are the same in every release.
    """
    root = str(tmp_path / 'extension')
    os.makedirs(root)
    git(root, 'clone', '--quiet', upstream, 'pdf.js')

    work = str(tmp_path / 'patchwork')
    git(str(tmp_path), 'clone', '--quiet', upstream, work)
    commit(work, {'arxiv.js': 'arxiv\n'}, 'Add arxiv helpers')
    commit(work, {'web/viewer.html': '<html>patched</html>\n'}, 'Customize viewer')
    commit(work, {'web/app.js': 'app patched\n'}, 'Customize app')
    git(work, 'format-patch', '--quiet', 'HEAD~3', '-o', os.path.join(root, 'pdfjs-patch'))

    return root


@pytest.fixture
def ws(root, fake_gulp):
    return Workspace.open_default(root)
