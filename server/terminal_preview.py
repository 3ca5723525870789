"""Render display units as ANSI SGR text and animate them in a terminal."""

from __future__ import annotations

import asyncio
import sys
from typing import TextIO

from format_parser import StyleState
from obfuscate import DEFAULT_FRAME_INTERVAL, ObfuscationAnimator
from renderer import DisplayUnit, MountedText

# Nearest 16-color SGR foreground for each palette color
_COLOR_SGR = {
    "black": 30, "dark_blue": 34, "dark_green": 32, "dark_aqua": 36,
    "dark_red": 31, "dark_purple": 35, "gold": 33, "gray": 37,
    "dark_gray": 90, "blue": 94, "green": 92, "aqua": 96,
    "red": 91, "light_purple": 95, "yellow": 93, "white": 97,
}

_RESET = "\x1b[0m"
_CLEAR_BLOCK = "\x1b[{n}F\x1b[J"


def sgr_params(style: StyleState) -> list[int]:
    params: list[int] = []
    if style.color:
        params.append(_COLOR_SGR[style.color])
    if style.bold:
        params.append(1)
    if style.italic:
        params.append(3)
    if style.underline:
        params.append(4)
    if style.strikethrough:
        params.append(9)
    return params


def to_ansi(lines: list[list[DisplayUnit]]) -> str:
    out: list[str] = []
    for line in lines:
        parts: list[str] = []
        for unit in line:
            params = sgr_params(unit.run.style)
            if params:
                parts.append(f"\x1b[{';'.join(map(str, params))}m{unit.display}{_RESET}")
            else:
                parts.append(unit.display)
        out.append("".join(parts))
    return "\n".join(out)


async def preview(
    raw: str,
    duration: float = 5.0,
    *,
    max_lines: int | None = None,
    interval: float = DEFAULT_FRAME_INTERVAL,
    base_style: str = "",
    stream: TextIO | None = None,
) -> MountedText:
    """Draw *raw* and keep repainting obfuscated runs for *duration* seconds."""
    stream = stream or sys.stdout
    drawn = 0

    def redraw(text: MountedText) -> None:
        nonlocal drawn
        if drawn:
            stream.write(_CLEAR_BLOCK.format(n=drawn))
        stream.write(to_ansi(text.lines) + "\n")
        stream.flush()
        drawn = len(text.lines)

    animator = ObfuscationAnimator(interval=interval)
    mounted = MountedText(raw, redraw, max_lines=max_lines, animator=animator, base_style=base_style)
    mounted.mount()
    redraw(mounted)
    try:
        await asyncio.sleep(duration)
    finally:
        mounted.unmount()
    return mounted
