"""Choosing, sharing and running progress writers."""

from __future__ import annotations

import contextvars
import errno
import os
import sys
import threading
from collections.abc import Callable, Iterable, Iterator
from contextlib import contextmanager
from enum import Enum
from typing import Protocol, TextIO, TypeVar

from composekit.event import Event
from composekit.noop import NoopWriter
from composekit.plain import PlainWriter
from composekit.tty import TTYWriter

T = TypeVar("T")


class Writer(Protocol):
    """Something that can render a stream of progress events."""

    def start(self, cancel: threading.Event | None = None) -> None: ...

    def stop(self) -> None: ...

    def event(self, event: Event) -> None: ...

    def events(self, events: Iterable[Event]) -> None: ...

    def tail_msgf(self, msg: str, *args: object) -> None: ...


class Mode(str, Enum):
    """How progress is rendered."""

    AUTO = "auto"
    TTY = "tty"
    PLAIN = "plain"


current_mode: Mode = Mode.AUTO

_writer_var: contextvars.ContextVar[Writer] = contextvars.ContextVar("progress_writer")


@contextmanager
def with_context_writer(writer: Writer) -> Iterator[Writer]:
    """Make ``writer`` the current progress writer inside the block."""
    token = _writer_var.set(writer)
    try:
        yield writer
    finally:
        _writer_var.reset(token)


def context_writer() -> Writer:
    """Return the current progress writer, or a writer that discards events."""
    return _writer_var.get(NoopWriter())


def _is_terminal(out: TextIO) -> bool:
    try:
        return out.isatty()
    except (AttributeError, ValueError):
        return False


def new_writer(out: TextIO, mode: Mode | str = Mode.AUTO) -> Writer:
    """Build a writer for ``out`` according to ``mode``.

    Raises OSError when a terminal writer is requested for a non-terminal.
    """
    mode = Mode(mode)
    terminal = _is_terminal(out)
    if mode == Mode.TTY or (mode == Mode.AUTO and terminal):
        if not terminal:
            raise OSError(errno.ENOTTY, os.strerror(errno.ENOTTY))
        return TTYWriter(out)
    return PlainWriter(out)


def run_with_status(func: Callable[[], T]) -> T:
    """Run ``func`` while a writer on stderr renders its progress; return its result."""
    writer = new_writer(sys.stderr, current_mode)
    failures: list[BaseException] = []

    def _render() -> None:
        try:
            writer.start()
        except BaseException as exc:  # surfaced to the caller after join
            failures.append(exc)

    renderer = threading.Thread(target=_render, daemon=True)
    renderer.start()
    try:
        with with_context_writer(writer):
            result = func()
    finally:
        writer.stop()
        renderer.join()
    if failures:
        raise failures[0]
    return result


def run(func: Callable[[], object]) -> None:
    """Run ``func`` while a writer on stderr renders its progress."""
    run_with_status(func)