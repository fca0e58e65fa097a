"""A progress writer that redraws a live status block on a terminal."""

from __future__ import annotations

import dataclasses
import shutil
import sys
import threading
import time
from collections.abc import Iterable, Mapping
from concurrent.futures import CancelledError
from dataclasses import dataclass, field
from typing import TextIO

from composekit.event import Event, EventStatus
from composekit.spinner import Spinner

_ESC = "\x1b["
_HIDE = _ESC + "?25l"
_SHOW = _ESC + "?25h"
_RESET = _ESC + "0m"
_WHITE = _ESC + "37m"
_BLUE = _ESC + "34m"
_RED = _ESC + "31m"
_TICK = 0.1
_COLOR = sys.platform != "win32"


def _apply(text: str, color: str) -> str:
    return color + text + _RESET


@dataclass(eq=False)
class TTYWriter:
    """Tracks events and periodically redraws them in place on ``out``."""

    out: TextIO
    terminal_width: int | None = None
    tracked: dict[str, Event] = field(default_factory=dict)
    event_ids: list[str] = field(default_factory=list)
    tail_events: list[str] = field(default_factory=list)
    repeated: bool = False
    num_lines: int = 0
    _done: threading.Event = field(default_factory=threading.Event, init=False, repr=False)
    _lock: threading.Lock = field(default_factory=threading.Lock, init=False, repr=False)

    def start(self, cancel: threading.Event | None = None) -> None:
        """Redraw every tick until stopped; raise CancelledError if cancelled."""
        while True:
            if self._done.wait(_TICK):
                self._print()
                self._print_tail_events()
                return
            if cancel is not None and cancel.is_set():
                self._print()
                self._print_tail_events()
                raise CancelledError()
            self._print()

    def stop(self) -> None:
        self._done.set()

    def event(self, event: Event) -> None:
        with self._lock:
            if event.id not in self.event_ids:
                self.event_ids.append(event.id)
            last = self.tracked.get(event.id)
            if last is not None:
                if event.status in (EventStatus.DONE, EventStatus.ERROR) and last.status != event.status:
                    last.stop()
                last.status = event.status
                last.text = event.text
                last.status_text = event.status_text
                # a parent may be set or cleared, but not swapped, to avoid flicker
                if not last.parent_id or not event.parent_id:
                    last.parent_id = event.parent_id
            else:
                fresh = dataclasses.replace(event, start_time=time.monotonic(), spinner=Spinner())
                if fresh.status in (EventStatus.DONE, EventStatus.ERROR):
                    fresh.stop()
                self.tracked[event.id] = fresh

    def events(self, events: Iterable[Event]) -> None:
        for e in events:
            self.event(e)

    def tail_msgf(self, msg: str, *args: object) -> None:
        with self._lock:
            self.tail_events.append(msg % args if args else msg)

    def _print_tail_events(self) -> None:
        with self._lock:
            for msg in self.tail_events:
                print(msg, file=self.out)

    def _width(self) -> int:
        if self.terminal_width is not None:
            return self.terminal_width
        return shutil.get_terminal_size().columns

    def _print(self) -> None:
        with self._lock:
            if not self.event_ids:
                return
            width = self._width()
            moves = f"{_ESC}1A" * (self.num_lines + 1)
            if not self.repeated:
                moves += f"{_ESC}1B"
            self.repeated = True
            self.out.write(moves + f"{_ESC}0G")

            self.out.write(_HIDE)
            try:
                done = num_done(self.tracked)
                first_line = f"[+] Running {done}/{self.num_lines}"
                if self.num_lines != 0 and done == self.num_lines:
                    first_line = _apply(first_line, _BLUE)
                print(first_line, file=self.out)

                status_padding = 0
                for event_id in self.event_ids:
                    e = self.tracked[event_id]
                    status_padding = max(status_padding, len(f"{e.id} {e.text}"))
                    if e.parent_id:
                        status_padding -= 2

                count = 0
                for event_id in self.event_ids:
                    e = self.tracked[event_id]
                    if e.parent_id:
                        continue
                    self.out.write(line_text(e, "", width, status_padding, _COLOR))
                    count += 1
                    for child_id in self.event_ids:
                        child = self.tracked[child_id]
                        if child.parent_id == e.id:
                            self.out.write(line_text(child, "  ", width, status_padding, _COLOR))
                            count += 1
                self.num_lines = count
            finally:
                self.out.write(_SHOW)


def line_text(event: Event, pad: str, terminal_width: int, status_padding: int, color: bool) -> str:
    """Render one event as a status line, ending with its elapsed time."""
    now = time.monotonic()
    start = event.start_time if event.start_time is not None else now
    if event.status == EventStatus.WORKING:
        end = now
    else:
        end = event.end_time if event.end_time is not None else start
    elapsed = end - start

    text_len = len(f"{event.id} {event.text}")
    padding = max(status_padding - text_len, 0)
    # long error messages would break the layout, so they are cut short
    max_status_len = terminal_width - text_len - status_padding - 15
    status = event.status_text
    if max_status_len > 0 and len(status) > max_status_len:
        status = status[:max_status_len] + "..."
    spinner = str(event.spinner) if event.spinner is not None else ""
    text = f"{pad} {spinner} {event.id} {event.text}{' ' * padding} {status}"
    timer = f"{elapsed:.1f}s\n"
    line = align(text, timer, terminal_width)

    if color:
        if event.status == EventStatus.DONE:
            return _apply(line, _BLUE)
        if event.status == EventStatus.ERROR:
            return _apply(line, _RED)
        return _apply(line, _WHITE)
    return line


def num_done(events: Mapping[str, Event]) -> int:
    """Count the events whose status is DONE."""
    return sum(1 for e in events.values() if e.status == EventStatus.DONE)


def align(left: str, right: str, width: int) -> str:
    """Pad ``left`` so that ``right`` ends at column ``width``."""
    return f"{left.ljust(abs(width - len(right) - 1))} {right}"