# Copyright 2026 InfraSynth Contributors
# SPDX-License-Identifier: Apache-2.0

"""Naming helpers for provider-side resource names and tags."""

from __future__ import annotations

import re
from collections.abc import Mapping

# ###############
# Public Interface
# ###############


def resource_name(*parts: str, limit: int = 32) -> str:
    """Join *parts* into a provider-safe name.

    The result is lowercase, uses ``-`` as its only separator, starts with a
    letter, and is at most *limit* characters long.

    >>> resource_name("shop_web", "alb")
    'shop-web-alb'
    """
    joined = "-".join(parts).lower()
    cleaned = re.sub(r"[^a-z0-9-]+", "-", joined)
    cleaned = re.sub(r"-{2,}", "-", cleaned).strip("-")
    if not cleaned or not cleaned[0].isalpha():
        cleaned = f"r-{cleaned}"
    return cleaned[:limit].rstrip("-")


def name_tags(tags: Mapping[str, str], name: str) -> dict[str, str]:
    """Return *tags* with a ``Name`` tag set to *name*."""
    return {**tags, "Name": name}
