"""Ordered list of discovered videos with a current position."""

from __future__ import annotations

import random
from pathlib import Path
from typing import Dict, Iterable, List, Optional, Sequence

from .media_catalog import MediaEntry


class Playlist:
    """Entries plus a current index.

    ``current_index`` is always 0 on an empty playlist and every navigation
    call is then a no-op. Navigation methods return True when the caller
    should start playback of the new current entry.
    """

    def __init__(self, entries: Optional[Iterable[MediaEntry]] = None) -> None:
        self._entries: List[MediaEntry] = []
        self._index = 0
        if entries is not None:
            self.replace(entries)

    def __len__(self) -> int:
        return len(self._entries)

    @property
    def is_empty(self) -> bool:
        return not self._entries

    @property
    def entries(self) -> List[MediaEntry]:
        return list(self._entries)

    @property
    def current_index(self) -> int:
        return self._index

    @property
    def current(self) -> Optional[MediaEntry]:
        if not self._entries:
            return None
        return self._entries[self._index]

    def index_of(self, path: Path) -> Optional[int]:
        for index, entry in enumerate(self._entries):
            if entry.path == path:
                return index
        return None

    # State transitions --------------------------------------------------

    def replace(self, entries: Iterable[MediaEntry]) -> None:
        """Adopt a new list wholesale, collapsing duplicate paths."""
        unique: Dict[Path, MediaEntry] = {}
        for entry in entries:
            unique.setdefault(entry.path, entry)
        self._entries = list(unique.values())
        self._index = 0

    def clear(self) -> None:
        self._entries = []
        self._index = 0

    def select(self, index: int) -> bool:
        if not 0 <= index < len(self._entries):
            return False
        self._index = index
        return True

    # Navigation ---------------------------------------------------------

    def next(self) -> bool:
        if not self._entries:
            return False
        self._index = (self._index + 1) % len(self._entries)
        return True

    def previous(self) -> bool:
        if not self._entries:
            return False
        self._index = (self._index - 1) % len(self._entries)
        return True

    def random(self, rng: Optional[random.Random] = None) -> bool:
        if len(self._entries) <= 1:
            return False
        source = rng or random
        candidate = self._index
        while candidate == self._index:
            candidate = source.randrange(len(self._entries))
        self._index = candidate
        return True

    # Mutation -----------------------------------------------------------

    def remove_current(self) -> Optional[MediaEntry]:
        """Drop the current entry; the following entry slides into its slot."""
        if not self._entries:
            return None
        removed = self._entries.pop(self._index)
        if not self._entries:
            self._index = 0
        elif self._index >= len(self._entries):
            self._index = len(self._entries) - 1
        return removed

    def remove_at(self, index: int) -> Optional[MediaEntry]:
        """Drop an arbitrary entry, keeping the current entry's identity when possible."""
        if not 0 <= index < len(self._entries):
            return None
        if index == self._index:
            return self.remove_current()
        removed = self._entries.pop(index)
        if index < self._index:
            self._index -= 1
        return removed

    def reorder(self, ordered: Sequence[MediaEntry]) -> None:
        """Apply a new ordering and move the index to wherever the current entry landed.

        Entries missing from ``ordered`` keep their relative order at the end;
        entries in ``ordered`` that are no longer in the playlist are ignored.
        """
        if not self._entries:
            return
        current_path = self._entries[self._index].path
        present = {entry.path: entry for entry in self._entries}
        arranged: List[MediaEntry] = []
        for entry in ordered:
            kept = present.pop(entry.path, None)
            if kept is not None:
                arranged.append(kept)
        arranged.extend(entry for entry in self._entries if entry.path in present)
        self._entries = arranged
        new_index = self.index_of(current_path)
        if new_index is not None:
            self._index = new_index
