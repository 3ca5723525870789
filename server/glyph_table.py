"""Glyph width classes used by the obfuscated-text effect.

The game font has a handful of one-pixel glyphs; everything else is treated
as a regular five-pixel glyph. Swapping a glyph only within its own class
keeps scrambled text the same rendered width as the source.
"""

from __future__ import annotations

from types import MappingProxyType

NARROW = "narrow"
NORMAL = "normal"

_NARROW_CHARS = "|i!:;."
_NORMAL_CHARS = (
    "+/\\=023456789ABCDEFGHJKLMNOPQRSTUVWXYZabcdeghjmnopqrsuvwxyz"
    "¢£¥±µÀÁÂÃÄÅÇÑÒÓÔÕÖ×ØÙÚÛÜÝë"
)

POOLS: MappingProxyType[str, tuple[str, ...]] = MappingProxyType({
    NARROW: tuple(_NARROW_CHARS),
    NORMAL: tuple(_NORMAL_CHARS),
})

_NARROW_SET = frozenset(_NARROW_CHARS)


def width_class(char: str) -> str | None:
    """Return the width class of *char*, or None for a space."""
    if char == " ":
        return None
    if char in _NARROW_SET:
        return NARROW
    return NORMAL


def pool_for(char: str) -> tuple[str, ...]:
    cls = width_class(char)
    if cls is None:
        return (" ",)
    return POOLS[cls]
