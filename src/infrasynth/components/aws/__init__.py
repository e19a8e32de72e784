# Copyright 2026 InfraSynth Contributors
# SPDX-License-Identifier: Apache-2.0

"""AWS components built from the bundled resource kinds."""
