"""A text spinner that advances as time passes."""

from __future__ import annotations

import sys
import time
from dataclasses import dataclass, field

_WINDOWS = sys.platform == "win32"


def _default_chars() -> list[str]:
    if _WINDOWS:
        return ["-"]
    return ["⠋", "⠙", "⠹", "⠸", "⠼", "⠴", "⠦", "⠧", "⠇", "⠏"]


def _default_done() -> str:
    return "-" if _WINDOWS else "⠿"


@dataclass
class Spinner:
    """Frames of a spinner; ``str()`` gives the frame to draw now."""

    chars: list[str] = field(default_factory=_default_chars)
    done: str = field(default_factory=_default_done)
    index: int = 0
    started: float = field(default_factory=time.monotonic)
    stopped: bool = False

    def __str__(self) -> str:
        if self.stopped:
            return self.done
        if time.monotonic() - self.started > 0.1:
            self.index = (self.index + 1) % len(self.chars)
        return self.chars[self.index]

    def stop(self) -> None:
        """Freeze the spinner on its final frame."""
        self.stopped = True