"""Line-oriented buffering of streamed agent text.

Agents stream text in arbitrary fragments. The buffer hands out complete
lines as soon as they are available and releases a partial line once
``timeout`` seconds have passed since text was last released, so a long
line streamed without pauses still shows up in bounded time.
"""

from __future__ import annotations

import time
from collections.abc import Callable


class LineBuffer:
    def __init__(
        self,
        timeout: float = 0.5,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._timeout = timeout
        self._clock = clock
        self._parts: list[str] = []
        self._last_flush = clock()

    def write(self, text: str) -> None:
        if text:
            self._parts.append(text)

    def pending(self) -> str:
        return "".join(self._parts)

    def flush(self, force: bool = False) -> str:
        """Return the text that is ready to be emitted.

        With ``force`` everything is returned with trailing newlines removed.
        Otherwise complete lines are returned and the partial tail is kept,
        unless nothing was released for longer than the timeout, in which
        case the tail goes out as well.
        """
        content = "".join(self._parts)
        if not content:
            return ""

        if force:
            return self._release(content.rstrip("\n"), "")

        cut = content.rfind("\n")
        if cut >= 0:
            return self._release(content[: cut + 1], content[cut + 1 :])

        if self._clock() - self._last_flush >= self._timeout:
            return self._release(content, "")
        return ""

    def _release(self, ready: str, rest: str) -> str:
        self._parts = [rest] if rest else []
        self._last_flush = self._clock()
        return ready
