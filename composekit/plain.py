"""A progress writer that prints each event as a plain line."""

from __future__ import annotations

import threading
from collections.abc import Iterable
from concurrent.futures import CancelledError
from dataclasses import dataclass, field
from typing import TextIO

from composekit.event import Event

_POLL_INTERVAL = 0.05


@dataclass(eq=False)
class PlainWriter:
    """Writes one line per event to ``out``."""

    out: TextIO
    _done: threading.Event = field(default_factory=threading.Event, init=False, repr=False)

    def start(self, cancel: threading.Event | None = None) -> None:
        """Block until ``stop`` is called; raise CancelledError if cancelled first."""
        while not self._done.wait(_POLL_INTERVAL):
            if cancel is not None and cancel.is_set():
                raise CancelledError()

    def stop(self) -> None:
        self._done.set()

    def event(self, event: Event) -> None:
        print(event.id, event.text, event.status_text, file=self.out)

    def events(self, events: Iterable[Event]) -> None:
        for e in events:
            self.event(e)

    def tail_msgf(self, msg: str, *args: object) -> None:
        print(msg, *args, file=self.out)