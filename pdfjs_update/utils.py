# -*- mode: python; coding: utf-8 -*-
# Copyright 2023 the arxiv-utils Project.
# Licensed under the MIT License.

"""
Utilities for the pdf.js update infrastructure.

Fixed characteristics of the environment:

- The extension sources live in the root directory (the current directory
  unless told otherwise), next to an optional `pdfjs-update.toml`.
- The upstream pdf.js clone is in `<root>/pdf.js/`.
- The patch set is in `<root>/pdfjs-patch/`, as `0001-*.patch`, `0002-*.patch`
  and so on, as produced by `git format-patch`.
- The build tool (gulp) and git are found on $PATH, unless overridden with
  $PDFJS_UPDATE_GULP and $PDFJS_UPDATE_GIT.

"""

__all__ = '''
CONFIG_NAME
ConfigError
LOCK_NAME
Git
Workspace
WorkspaceLock
patch_files
warn
'''.split()

import copy
import glob
import os
import subprocess
import sys

import toml


CONFIG_NAME = 'pdfjs-update.toml'
LOCK_NAME = '.pdfjs-update.lock'

DEFAULT_CONFIG = {
    'upstream': {
        'path': 'pdf.js',
        'branch': 'master',
        'tag_pattern': '',
    },
    'patches': {
        'path': 'pdfjs-patch',
        'count': 3,
    },
    'build': {
        'program': 'gulp',
        'target': 'minified',
        'clean_target': 'clean',
        'output': os.path.join('build', 'minified'),
    },
    'dist': {
        'archive': 'arxiv-utils.zip',
        # `exclude` is matched against paths relative to the build output;
        # .git is there in case we ever decide to track the builds.
        'exclude': [
            '*.js.map',
            '*.mjs.map',
            '*web/debugger.*',
            '*.pdf',
            '*.git*',
        ],
        'files': [
            'background.js',
            'content.js',
            'pdfviewer.js',
            'options.js',
            'options.html',
            'icon*.png',
            'manifest.json',
        ],
    },
}


def warn(text):
    print('warning:', text, file=sys.stderr)


class ConfigError(Exception):
    "A broken `pdfjs-update.toml`."


def _merge_config(base, overrides, where=''):
    for key, value in overrides.items():
        if key not in base:
            warn(f'ignoring unknown setting `{where}{key}` in {CONFIG_NAME}')
            continue

        default = base[key]

        if isinstance(default, dict):
            if not isinstance(value, dict):
                raise ConfigError(f'`{where}{key}` in {CONFIG_NAME} must be a table')
            _merge_config(default, value, f'{where}{key}.')
        elif isinstance(default, list):
            if not isinstance(value, list) or not all(isinstance(v, str) for v in value):
                raise ConfigError(f'`{where}{key}` in {CONFIG_NAME} must be a list of strings')
            base[key] = value
        elif type(value) is not type(default):
            raise ConfigError(f'`{where}{key}` in {CONFIG_NAME} must be a {type(default).__name__}')
        else:
            base[key] = value


class Workspace(object):
    root = None
    cfg = None
    gulp_program = None
    git_program = None

    def __init__(self, root, cfg):
        self.root = root
        self.cfg = cfg
        self.gulp_program = os.environ.get('PDFJS_UPDATE_GULP', cfg['build']['program'])
        self.git_program = os.environ.get('PDFJS_UPDATE_GIT', 'git')


    @classmethod
    def open_default(cls, root='.'):
        cfg = copy.deepcopy(DEFAULT_CONFIG)
        cfg_path = os.path.join(root, CONFIG_NAME)

        if os.path.exists(cfg_path):
            try:
                with open(cfg_path, 'rt') as f:
                    overrides = toml.load(f)
            except (OSError, toml.TomlDecodeError) as e:
                raise ConfigError(f'cannot load `{cfg_path}`: {e}') from e

            _merge_config(cfg, overrides)

        if cfg['patches']['count'] < 1:
            raise ConfigError(f'`patches.count` in {CONFIG_NAME} must be positive')

        return cls(root, cfg)


    def path(self, *segments):
        return os.path.join(self.root, *segments)


    def upstream_path(self):
        return self.path(self.cfg['upstream']['path'])


    def patch_dir(self):
        return self.path(self.cfg['patches']['path'])


    def build_output_path(self):
        return os.path.join(self.upstream_path(), self.cfg['build']['output'])


    def archive_path(self):
        return self.path(self.cfg['dist']['archive'])


    def lock_path(self):
        return self.path(LOCK_NAME)


    def git(self):
        return Git(self.git_program, self.upstream_path())


class Git(object):
    """
    Run git commands inside the upstream clone. Output goes straight to the
    terminal except for `output()`, which captures stdout.
    """

    def __init__(self, program, cwd):
        self.program = program
        self.cwd = cwd


    def call(self, *args):
        try:
            return subprocess.call(
                [self.program] + list(args),
                shell = False,
                cwd = self.cwd,
            )
        except OSError as e:
            warn(f'could not run `{self.program} {args[0]}`: {e}')
            return 127


    def output(self, *args):
        try:
            result = subprocess.run(
                [self.program] + list(args),
                shell = False,
                cwd = self.cwd,
                stdout = subprocess.PIPE,
                universal_newlines = True,
            )
        except OSError as e:
            warn(f'could not run `{self.program} {args[0]}`: {e}')
            return None

        if result.returncode != 0:
            return None

        return result.stdout.strip()


def patch_files(ws):
    """
    Find the patch set, in application order. There must be exactly one
    `NNNN-*.patch` file for each number up to `patches.count`; returns None
    (after complaining) if that does not hold.
    """
    patch_dir = ws.patch_dir()
    paths = []

    for n in range(1, ws.cfg['patches']['count'] + 1):
        found = sorted(glob.glob(os.path.join(patch_dir, f'{n:04d}-*.patch')))

        if len(found) != 1:
            warn(f'expected exactly one `{n:04d}-*.patch` in `{patch_dir}`, found {len(found)}')
            return None

        paths.append(os.path.abspath(found[0]))

    return paths


class WorkspaceLock(object):
    """
    A lock file guarding against two runs racing on the same clone. The file
    holds the PID of the owner, to help with cleaning up after a crash.
    """

    def __init__(self, path):
        self.path = path
        self.held = False


    def acquire(self):
        try:
            fd = os.open(self.path, os.O_CREAT | os.O_EXCL | os.O_WRONLY, 0o644)
        except FileExistsError:
            return False

        with os.fdopen(fd, 'wt') as f:
            print(os.getpid(), file=f)

        self.held = True
        return True


    def release(self):
        if not self.held:
            return

        try:
            os.unlink(self.path)
        except FileNotFoundError:
            warn(f'lock file `{self.path}` disappeared while we held it')

        self.held = False


    def __enter__(self):
        return self.acquire()


    def __exit__(self, *exc):
        self.release()
        return False
