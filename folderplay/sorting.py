"""Playlist orderings."""

from __future__ import annotations

import random
import re
from enum import Enum
from typing import List, Optional, Sequence, Tuple, Union

from .media_catalog import MediaEntry

_DIGITS = re.compile(r"(\d+)")


class SortMode(str, Enum):
    NAME = "name"
    PATH = "path"
    SIZE_ASCENDING = "size_ascending"
    SIZE_DESCENDING = "size_descending"
    RANDOM = "random"

    @property
    def runs_in_background(self) -> bool:
        return self in (SortMode.SIZE_ASCENDING, SortMode.SIZE_DESCENDING)


def natural_key(value: str) -> Tuple[Union[int, str], ...]:
    """Case-insensitive key where digit runs compare numerically ("file2" < "file10")."""
    parts = _DIGITS.split(value.casefold())
    return tuple(int(part) if index % 2 else part for index, part in enumerate(parts))


def sort_entries(
    mode: SortMode,
    entries: Sequence[MediaEntry],
    rng: Optional[random.Random] = None,
) -> List[MediaEntry]:
    """Return a reordered copy of ``entries``."""
    ordered = list(entries)
    if mode is SortMode.NAME:
        ordered.sort(key=lambda entry: natural_key(entry.name))
    elif mode is SortMode.PATH:
        ordered.sort(key=lambda entry: natural_key(str(entry.path)))
    elif mode is SortMode.SIZE_ASCENDING:
        ordered.sort(key=lambda entry: entry.size_bytes)
    elif mode is SortMode.SIZE_DESCENDING:
        ordered.sort(key=lambda entry: entry.size_bytes, reverse=True)
    elif mode is SortMode.RANDOM:
        (rng or random).shuffle(ordered)
    return ordered
