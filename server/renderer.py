"""Lay parsed runs out into lines of display units and keep them animated."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Callable

from format_parser import StyledRun, parse
from format_text import purify
from obfuscate import AnimatorHandle, ObfuscationAnimator


@dataclass
class DisplayUnit:
    run: StyledRun
    display: str = field(default="")

    def __post_init__(self) -> None:
        if not self.display:
            self.display = self.run.text

    @property
    def obfuscated(self) -> bool:
        return self.run.style.obfuscated

    def to_run(self) -> dict[str, Any]:
        return self.run.to_run()


def render(runs: list[StyledRun], max_lines: int | None = None) -> list[list[DisplayUnit]]:
    """Split runs at newlines into lines of display units.

    With *max_lines* set, everything after that many lines is dropped.
    """
    lines: list[list[DisplayUnit]] = [[]]
    for run in runs:
        for j, part in enumerate(run.text.split("\n")):
            if j:
                lines.append([])
            if part:
                lines[-1].append(DisplayUnit(StyledRun(part, run.style)))
    if max_lines is not None:
        del lines[max(max_lines, 0):]
    return lines


def to_runs(lines: list[list[DisplayUnit]]) -> list[list[dict[str, Any]]]:
    return [[unit.to_run() for unit in line] for line in lines]


class MountedText:
    """A rendered text whose obfuscated units repaint while it is mounted.

    Must be mounted from inside a running asyncio loop when the text contains
    obfuscated runs.
    """

    def __init__(
        self,
        raw: str,
        on_change: Callable[[MountedText], None] | None = None,
        *,
        max_lines: int | None = None,
        animator: ObfuscationAnimator | None = None,
        base_style: str = "",
        color_resets_styles: bool = False,
    ) -> None:
        self.raw = raw
        self.max_lines = max_lines
        self.base_style = base_style
        self.color_resets_styles = color_resets_styles
        self.lines: list[list[DisplayUnit]] = []
        self._on_change = on_change
        self._animator = animator or ObfuscationAnimator()
        self._keys: list[tuple[int, int, int]] = []
        self._mounted = False

    @property
    def mounted(self) -> bool:
        return self._mounted

    @property
    def handles(self) -> list[AnimatorHandle]:
        return [h for h in (self._animator.get(k) for k in self._keys) if h is not None]

    def mount(self) -> None:
        if self._mounted:
            return
        runs = parse(self.base_style + purify(self.raw), color_resets_styles=self.color_resets_styles)
        self.lines = render(runs, self.max_lines)
        for li, line in enumerate(self.lines):
            for ui, unit in enumerate(line):
                if unit.obfuscated:
                    key = (id(self), li, ui)
                    self._keys.append(key)
                    self._animator.attach(key, unit.run.text, self._painter(unit))
        self._mounted = True

    def update(self, raw: str) -> None:
        """Tear down the current handles, then parse and mount *raw*."""
        self.unmount()
        self.raw = raw
        self.mount()
        self._changed()

    def unmount(self) -> None:
        for key in self._keys:
            self._animator.detach(key)
        self._keys = []
        self._mounted = False

    def display_text(self) -> str:
        return "\n".join("".join(unit.display for unit in line) for line in self.lines)

    def _painter(self, unit: DisplayUnit) -> Callable[[str], None]:
        def paint(text: str) -> None:
            unit.display = text
            self._changed()

        return paint

    def _changed(self) -> None:
        if self._on_change is not None:
            self._on_change(self)
