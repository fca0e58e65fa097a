"""A progress writer that discards everything."""

from __future__ import annotations

import threading
from collections.abc import Iterable
from dataclasses import dataclass, field

from composekit.event import Event


@dataclass
class NoopWriter:
    """Accepts progress events and discards them, counting what it dropped.

    All instances compare equal: the counters are bookkeeping only and
    never change what the writer shows, which is nothing.
    """

    running: bool = field(default=False, compare=False)
    discarded_events: int = field(default=0, compare=False)
    discarded_messages: int = field(default=0, compare=False)

    def start(self, cancel: threading.Event | None = None) -> None:
        """Mark the writer as running and return at once."""
        self.running = True

    def stop(self) -> None:
        """Mark the writer as stopped."""
        self.running = False

    def event(self, event: Event) -> None:
        """Drop one event."""
        self.discarded_events += 1

    def events(self, events: Iterable[Event]) -> None:
        """Drop every event in ``events``."""
        for item in events:
            self.event(item)

    def tail_msgf(self, msg: str, *args: object) -> None:
        """Drop a trailing message."""
        self.discarded_messages += 1