# Copyright 2026 InfraSynth Contributors
# SPDX-License-Identifier: Apache-2.0

"""AWS resource kinds."""
