"""Verse splitting and page slicing over lyrics text."""

from __future__ import annotations

from typing import List, Optional, Sequence, TypeVar

T = TypeVar("T")


def split_verses(lyrics: Optional[str]) -> List[str]:
    """Split lyrics on newline boundaries; no lyrics means no verses."""
    if not lyrics:
        return []
    return [line.rstrip("\r") for line in lyrics.split("\n")]


def page_slice(items: Sequence[T], page: int, page_size: int) -> List[T]:
    """Return items ``[(page-1)*page_size, page*page_size)``, clamped to the end."""
    start = (page - 1) * page_size
    if start >= len(items):
        return []
    return list(items[start:start + page_size])


__all__ = ["split_verses", "page_slice"]
