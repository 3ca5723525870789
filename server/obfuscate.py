"""Glyph-scrambling effect for obfuscated (``§k``) runs.

Each mounted obfuscated run owns one AnimatorHandle, which repaints on its own
timer on the running asyncio loop until stopped. Frames are plain strings;
whoever owns the display surface decides what to do with them.
"""

from __future__ import annotations

import asyncio
import logging
import random
from typing import Callable, Hashable, Iterator

from glyph_table import pool_for

logger = logging.getLogger(__name__)

DEFAULT_FRAME_INTERVAL = 1 / 60


def frame(text: str, rng: random.Random | None = None) -> str:
    """Return one scrambled frame of *text*.

    Spaces are kept; every other character is replaced by a random glyph of
    the same width class (possibly itself).
    """
    choice = (rng or random).choice
    return "".join(" " if ch == " " else choice(pool_for(ch)) for ch in text)


def frames(text: str, rng: random.Random | None = None) -> Iterator[str]:
    while True:
        yield frame(text, rng)


class AnimatorHandle:
    """Repeating repaint task for a single obfuscated run."""

    def __init__(
        self,
        text: str,
        on_frame: Callable[[str], None],
        *,
        interval: float = DEFAULT_FRAME_INTERVAL,
        loop: asyncio.AbstractEventLoop | None = None,
        rng: random.Random | None = None,
    ) -> None:
        self.text = text
        self.ticks = 0
        self._on_frame = on_frame
        self._interval = interval
        self._loop = loop
        self._rng = rng
        self._timer: asyncio.TimerHandle | None = None
        self._alive = False

    @property
    def alive(self) -> bool:
        return self._alive

    def start(self) -> None:
        """Schedule ticks; restarts a stopped handle, no-op while running."""
        if self._alive:
            return
        if self._loop is None:
            self._loop = asyncio.get_running_loop()
        self._alive = True
        self._schedule()

    def stop(self) -> None:
        """Cancel the pending tick. Safe to call more than once."""
        self._alive = False
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None

    def _schedule(self) -> None:
        assert self._loop is not None
        self._timer = self._loop.call_later(self._interval, self._tick)

    def _tick(self) -> None:
        self._timer = None
        if not self._alive:
            return
        self.ticks += 1
        try:
            self._on_frame(frame(self.text, self._rng))
        except Exception:
            logger.exception("Obfuscation frame callback failed; stopping animator")
            self.stop()
            return
        # on_frame may have stopped us
        if self._alive:
            self._schedule()


class ObfuscationAnimator:
    """Keeps one AnimatorHandle per mounted obfuscated unit."""

    def __init__(
        self,
        interval: float = DEFAULT_FRAME_INTERVAL,
        rng: random.Random | None = None,
    ) -> None:
        self.interval = interval
        self._rng = rng
        self._handles: dict[Hashable, AnimatorHandle] = {}

    @property
    def active(self) -> int:
        return len(self._handles)

    def get(self, key: Hashable) -> AnimatorHandle | None:
        return self._handles.get(key)

    def attach(self, key: Hashable, text: str, on_frame: Callable[[str], None]) -> AnimatorHandle:
        self.detach(key)
        handle = AnimatorHandle(text, on_frame, interval=self.interval, rng=self._rng)
        handle.start()
        self._handles[key] = handle
        logger.debug("Attached obfuscation animator %r (%d chars)", key, len(text))
        return handle

    def detach(self, key: Hashable) -> None:
        handle = self._handles.pop(key, None)
        if handle is not None:
            handle.stop()

    def stop_all(self) -> None:
        for key in list(self._handles):
            self.detach(key)
