# Copyright 2026 InfraSynth Contributors
# SPDX-License-Identifier: Apache-2.0

"""Bundled resource kinds. Importing a submodule registers its kinds."""
