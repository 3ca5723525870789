"""Section-sign formatting code parser.

Converts raw MOTD-style text (with ``§`` codes) into structured runs:
  [StyledRun("Hello", StyleState(color="red")), StyledRun(" World", StyleState())]

and each run serializes to a compact dict such as
  {"t": "Hello", "c": "red", "b": true}
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from enum import Enum
from typing import Any

MARKER = "§"


class FormatCode(Enum):
    BLACK = "0"
    DARK_BLUE = "1"
    DARK_GREEN = "2"
    DARK_AQUA = "3"
    DARK_RED = "4"
    DARK_PURPLE = "5"
    GOLD = "6"
    GRAY = "7"
    DARK_GRAY = "8"
    BLUE = "9"
    GREEN = "a"
    AQUA = "b"
    RED = "c"
    LIGHT_PURPLE = "d"
    YELLOW = "e"
    WHITE = "f"
    OBFUSCATED = "k"
    BOLD = "l"
    STRIKETHROUGH = "m"
    UNDERLINE = "n"
    ITALIC = "o"
    RESET = "r"

    @property
    def is_color(self) -> bool:
        return self in COLOR_HEX

    @property
    def color_name(self) -> str:
        return self.name.lower()


COLOR_HEX: dict[FormatCode, str] = {
    FormatCode.BLACK: "#000000",
    FormatCode.DARK_BLUE: "#0000aa",
    FormatCode.DARK_GREEN: "#00aa00",
    FormatCode.DARK_AQUA: "#00aaaa",
    FormatCode.DARK_RED: "#aa0000",
    FormatCode.DARK_PURPLE: "#aa00aa",
    FormatCode.GOLD: "#ffaa00",
    FormatCode.GRAY: "#aaaaaa",
    FormatCode.DARK_GRAY: "#555555",
    FormatCode.BLUE: "#5555ff",
    FormatCode.GREEN: "#55ff55",
    FormatCode.AQUA: "#55ffff",
    FormatCode.RED: "#ff5555",
    FormatCode.LIGHT_PURPLE: "#ff55ff",
    FormatCode.YELLOW: "#ffff55",
    FormatCode.WHITE: "#ffffff",
}

# Style toggle code -> StyleState field
_TOGGLES: dict[FormatCode, str] = {
    FormatCode.BOLD: "bold",
    FormatCode.ITALIC: "italic",
    FormatCode.UNDERLINE: "underline",
    FormatCode.STRIKETHROUGH: "strikethrough",
    FormatCode.OBFUSCATED: "obfuscated",
}

_SELECTORS: dict[str, FormatCode] = {}
for _code in FormatCode:
    _SELECTORS[_code.value] = _code
    _SELECTORS[_code.value.upper()] = _code
del _code


def lookup(selector: str) -> FormatCode | None:
    """Map a selector character to its code, case-insensitively."""
    return _SELECTORS.get(selector)


@dataclass(frozen=True)
class StyleState:
    color: str | None = None
    bold: bool = False
    italic: bool = False
    underline: bool = False
    strikethrough: bool = False
    obfuscated: bool = False

    def apply(self, code: FormatCode, color_resets_styles: bool = False) -> StyleState:
        """Return the state after *code* takes effect."""
        if code is FormatCode.RESET:
            return _DEFAULT
        if code.is_color:
            if color_resets_styles:
                return StyleState(color=code.color_name)
            return replace(self, color=code.color_name)
        return replace(self, **{_TOGGLES[code]: True})

    def to_dict(self) -> dict[str, Any]:
        """Compact dict, omitting falsy fields."""
        out: dict[str, Any] = {}
        if self.color:
            out["c"] = self.color
        if self.bold:
            out["b"] = True
        if self.italic:
            out["i"] = True
        if self.underline:
            out["u"] = True
        if self.strikethrough:
            out["s"] = True
        if self.obfuscated:
            out["k"] = True
        return out


_DEFAULT = StyleState()


@dataclass(frozen=True)
class StyledRun:
    text: str
    style: StyleState = _DEFAULT

    def to_run(self) -> dict[str, Any]:
        run: dict[str, Any] = {"t": self.text}
        run.update(self.style.to_dict())
        return run


def parse(raw: str, *, color_resets_styles: bool = False) -> list[StyledRun]:
    """Parse text with formatting codes into a list of runs.

    A marker followed by anything other than a known selector (or by nothing)
    is kept as literal text. Empty spans between codes produce no run.
    """
    state = _DEFAULT
    runs: list[StyledRun] = []
    buf: list[str] = []
    i = 0
    n = len(raw)
    while i < n:
        ch = raw[i]
        if ch == MARKER and i + 1 < n:
            code = _SELECTORS.get(raw[i + 1])
            if code is not None:
                if buf:
                    runs.append(StyledRun("".join(buf), state))
                    buf = []
                state = state.apply(code, color_resets_styles)
                i += 2
                continue
        buf.append(ch)
        i += 1
    if buf:
        runs.append(StyledRun("".join(buf), state))
    return runs


def strip_codes(raw: str) -> str:
    """Return the literal text of *raw* with recognized codes removed."""
    return "".join(run.text for run in parse(raw))
