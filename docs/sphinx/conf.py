# Copyright 2026 InfraSynth Contributors
# SPDX-License-Identifier: Apache-2.0

"""Sphinx configuration for InfraSynth documentation."""

project = "InfraSynth"
author = "InfraSynth Contributors"
release = "0.1.0"

extensions: list[str] = ["sphinx.ext.autodoc", "sphinx.ext.napoleon"]

html_theme = "alabaster"
