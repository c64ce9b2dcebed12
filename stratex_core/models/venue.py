from __future__ import annotations

from enum import Enum


class Venue(str, Enum):
    """The closed set of venues a strategy leg can target."""

    CEX = "cex"
    DEX = "dex"
