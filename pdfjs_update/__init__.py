# -*- mode: python; coding: utf-8 -*-
# Copyright 2023 the arxiv-utils Project.
# Licensed under the MIT License.

"""
Tools for keeping the arxiv-utils customized pdf.js up to date.
"""
