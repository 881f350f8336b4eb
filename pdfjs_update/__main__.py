# -*- mode: python; coding: utf-8 -*-
# Copyright 2023 the arxiv-utils Project.
# Licensed under the MIT License.

import sys

from .cli import entrypoint


if __name__ == '__main__':
    sys.exit(entrypoint(['pdfjs-update'] + sys.argv[1:]))
