# Copyright 2026 InfraSynth Contributors
# SPDX-License-Identifier: Apache-2.0

"""InfraSynth: declarative cloud infrastructure synthesis."""

__version__ = "0.1.0"
